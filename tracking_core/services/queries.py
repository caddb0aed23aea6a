# tracking_core/services/queries.py
"""
Read side: item and ledger listings with role visibility applied.

Visibility lives in a JSON attribute and is evaluated in Python, so a
filtered page is built by streaming the ordered queryset in chunks of
limit * VISIBILITY_FETCH_MULTIPLIER and slicing the visible rows. Totals
always describe the visible set, so page 1 is dense and last_page is exact.
Without a role filter the database paginates directly.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from django.conf import settings

from tracking_core.exceptions import NotFound, ValidationError
from tracking_core.filters import OrderItemFilter, TrackingEntryFilter
from tracking_core.models import OrderItem, OrderItemTracking
from tracking_core.services.ledger import TrackingLedger
from tracking_core.tracking.visibility import VisibilityQuery, is_visible_for

logger = logging.getLogger(__name__)


ITEM_NOT_FOUND = "Order item not found"
SCAN_TOKEN_NOT_FOUND = "Scan token not found"
ACCESS_DENIED = "Order item not found or access denied"


def _tracking_setting(name: str, default):
    return getattr(settings, "TRACKING", {}).get(name, default)


@dataclass
class Page:
    results: List[Any]
    page: int
    limit: int
    total: int

    @property
    def last_page(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0

    def as_dict(self, serialize: Optional[Callable[[List[Any]], Any]] = None) -> Dict[str, Any]:
        return {
            "results": serialize(self.results) if serialize else self.results,
            "page": self.page,
            "limit": self.limit,
            "total": self.total,
            "last_page": self.last_page,
        }


def _clamp(page: Optional[int], limit: Optional[int]) -> tuple[int, int]:
    default_limit = _tracking_setting("DEFAULT_PAGE_SIZE", 10)
    max_limit = _tracking_setting("MAX_PAGE_SIZE", 100)
    try:
        page = 1 if page in (None, "") else int(page)
        limit = default_limit if limit in (None, "") else int(limit)
    except (TypeError, ValueError):
        raise ValidationError("page and limit must be integers")
    if page < 1 or limit < 1:
        raise ValidationError("page and limit must be positive")
    return page, min(limit, max_limit)


def paginate(qs, *, page=None, limit=None, visible: Optional[Callable[[Any], bool]] = None) -> Page:
    page, limit = _clamp(page, limit)
    skip = (page - 1) * limit

    if visible is None:
        total = qs.count()
        return Page(results=list(qs[skip:skip + limit]), page=page, limit=limit, total=total)

    multiplier = _tracking_setting("VISIBILITY_FETCH_MULTIPLIER", 5)
    chunk_size = max(limit * multiplier, 1)

    results: List[Any] = []
    total = 0
    for row in qs.iterator(chunk_size=chunk_size):
        if not visible(row):
            continue
        if skip <= total < skip + limit:
            results.append(row)
        total += 1

    return Page(results=results, page=page, limit=limit, total=total)


# ===============================================================
# Items
# ===============================================================

def list_items(
    filters: Optional[Dict[str, Any]] = None,
    visibility: Optional[VisibilityQuery] = None,
    *,
    page=None,
    limit=None,
) -> Page:
    qs = OrderItem.objects.select_related(
        "current_department", "last_department", "handover_department"
    ).order_by("-created_at", "-id")

    fs = OrderItemFilter(data=filters or {}, queryset=qs)
    if not fs.is_valid():
        raise ValidationError(fs.errors)
    qs = fs.qs

    visible = None
    if visibility is not None and not visibility.is_empty:
        visible = lambda item: is_visible_for(item, visibility)  # noqa: E731

    return paginate(qs, page=page, limit=limit, visible=visible)


def get_item_by_scan_token(scan_token: str, visibility: Optional[VisibilityQuery] = None) -> OrderItem:
    item = (
        OrderItem.objects.select_related(
            "current_department", "last_department", "handover_department"
        )
        .filter(scan_token=scan_token)
        .first()
        if scan_token
        else None
    )
    if item is None:
        raise NotFound(SCAN_TOKEN_NOT_FOUND)

    if visibility is not None and not visibility.is_empty and not is_visible_for(item, visibility):
        raise NotFound(ACCESS_DENIED)
    return item


# ===============================================================
# Ledger
# ===============================================================

def list_tracking_history(
    filters: Optional[Dict[str, Any]] = None,
    visibility: Optional[VisibilityQuery] = None,
    *,
    page=None,
    limit=None,
) -> Page:
    qs = OrderItemTracking.objects.select_related(
        "item", "department", "performed_by"
    ).order_by("-created_at", "-id")

    fs = TrackingEntryFilter(data=filters or {}, queryset=qs)
    if not fs.is_valid():
        raise ValidationError(fs.errors)
    qs = fs.qs

    visible = None
    if visibility is not None and not visibility.is_empty:
        visible = lambda entry: is_visible_for(entry.item, visibility)  # noqa: E731

    return paginate(qs, page=page, limit=limit, visible=visible)


def list_item_history(item_id, department_id=None, *, page=None, limit=None, ledger=None) -> Page:
    ledger = ledger or TrackingLedger()
    return paginate(ledger.list_by_item(item_id, department_id), page=page, limit=limit)


def get_item_statuses(item_id=None, external_order_id=None) -> Dict[str, Any]:
    """
    Full ledger (oldest first) for one item, or for every item of an
    external order.
    """
    if not item_id and not external_order_id:
        raise ValidationError("Either item_id or external_order_id must be provided")

    if item_id:
        items = list(OrderItem.objects.filter(pk=item_id))
        if not items:
            raise NotFound(ITEM_NOT_FOUND)
    else:
        items = list(
            OrderItem.objects.filter(external_order_id=external_order_id).order_by("created_at", "id")
        )
        if not items:
            raise NotFound(f"No order items found for external order {external_order_id}")

    entries = list(
        OrderItemTracking.objects.filter(item__in=items)
        .select_related("item", "department", "performed_by")
        .order_by("created_at", "id")
    )
    return {"items": items, "entries": entries}
