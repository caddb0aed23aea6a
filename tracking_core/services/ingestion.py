# tracking_core/services/ingestion.py
"""
Item ingestion from upstream stores and the administrative item operations
that sit next to it (scan tokens, visibility, issues, removal).

Ingestion is idempotent on (external_order_id, external_item_id): a repeated
row updates the existing item and never creates a second one.
"""

from __future__ import annotations

import logging
import secrets
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from django.conf import settings
from django.contrib.auth import get_user_model
from django.db import IntegrityError, transaction

from tracking_core.exceptions import Conflict, NotFound, ValidationError
from tracking_core.integrations.store_gateway import (
    StoreGateway,
    StoreGatewayError,
    flatten_orders,
)
from tracking_core.models import OrderItem
from tracking_core.services.directory import DepartmentDirectory, RoleDirectory
from tracking_core.services.ledger import TrackingLedger
from tracking_core.tracking import ACTION_STATUS_UPDATE, PENDING
from tracking_core.tracking.state_machine import TransitionRecord, clean_sub_status
from tracking_core.tracking.visibility import build_visibility

logger = logging.getLogger(__name__)


ITEM_NOT_FOUND = "Order item not found"
SCAN_TOKEN_GENERATED = "Scan token generated successfully"
ITEM_DELETED = "Order item deleted successfully"
ITEMS_SYNCED = "Order items synced successfully"
ORDERS_SYNCED = "Orders synced successfully"

DESCRIPTOR_FIELDS = (
    "product_name",
    "sku",
    "color",
    "size",
    "gender",
    "product_image",
    "leather_color",
)


@dataclass
class IngestResult:
    created: int = 0
    updated: int = 0
    items: List[OrderItem] = field(default_factory=list)

    @property
    def message(self) -> str:
        return ITEMS_SYNCED


# ===============================================================
# Scan tokens
# ===============================================================

def new_scan_token(item_id) -> str:
    return f"ORDER_ITEM_{item_id}_{secrets.token_hex(16)}"


def scan_url_for(item_id) -> str:
    base = getattr(settings, "TRACKING", {}).get("FRONTEND_URL", "http://localhost:3000")
    return f"{base.rstrip('/')}/orders/update-status?orderItemId={item_id}"


def _issue_scan_token(item: OrderItem) -> None:
    item.scan_token = new_scan_token(item.pk)
    item.scan_url = scan_url_for(item.pk)
    item.save(update_fields=["scan_token", "scan_url", "updated_at"])


def generate_scan_token(item_id) -> Dict[str, Any]:
    """
    Issue a fresh token for the item. The previous token stops resolving.
    """
    with transaction.atomic():
        item = _lock_item(item_id)
        _issue_scan_token(item)

    logger.info("scan token issued item=%s", item.pk)
    return {
        "scan_token": item.scan_token,
        "scan_url": item.scan_url,
        "message": SCAN_TOKEN_GENERATED,
    }


# ===============================================================
# Visibility
# ===============================================================

def _duplicates(values: List[str]) -> List[str]:
    return sorted(v for v, n in Counter(values).items() if n > 1)


def validate_visibility(
    role_ids: Optional[Iterable[Any]] = None,
    role_names: Optional[Iterable[Any]] = None,
    roles: Optional[RoleDirectory] = None,
) -> Optional[Dict[str, List[str]]]:
    """
    Check every referenced role exists and none is listed twice; return the
    stored visibility shape (None = public).
    """
    roles = roles or RoleDirectory()
    ids = [str(v) for v in (role_ids or [])]
    names = [str(v) for v in (role_names or [])]

    dup_ids = _duplicates(ids)
    if dup_ids:
        raise Conflict(f"Duplicate role IDs: {', '.join(dup_ids)}")
    dup_names = _duplicates(names)
    if dup_names:
        raise Conflict(f"Duplicate role names: {', '.join(dup_names)}")

    if ids:
        found = {str(r.pk) for r in roles.by_ids(ids)}
        missing = [v for v in ids if v not in found]
        if missing:
            raise ValidationError(f"Invalid role IDs: {', '.join(missing)}")

    if names:
        found = {r.name for r in roles.by_names(names)}
        missing = [v for v in names if v not in found]
        if missing:
            raise ValidationError(f"Invalid role names: {', '.join(missing)}")

    return build_visibility(ids, names)


def assign_visibility(item_id, role_ids=None, role_names=None, *, roles=None) -> OrderItem:
    visibility = validate_visibility(role_ids, role_names, roles=roles)
    with transaction.atomic():
        item = _lock_item(item_id)
        item.visibility = visibility
        item.save(update_fields=["visibility", "updated_at"])

    logger.info("visibility item=%s -> %s", item.pk, visibility or "public")
    return item


# ===============================================================
# Issues / removal
# ===============================================================

def update_issues(item_id, issues: Optional[str]) -> OrderItem:
    with transaction.atomic():
        item = _lock_item(item_id)
        item.issues = issues or None
        item.save(update_fields=["issues", "updated_at"])
    return item


def delete_item(item_id, *, ledger: Optional[TrackingLedger] = None) -> Dict[str, str]:
    """
    Administrative removal: ledger entries first, then the item, in one
    transaction.
    """
    ledger = ledger or TrackingLedger()
    with transaction.atomic():
        item = _lock_item(item_id)
        removed = ledger.delete_for_item(item.pk)
        item.delete()

    logger.info("item deleted item=%s ledger_entries=%s", item_id, removed)
    return {"message": ITEM_DELETED}


def _lock_item(item_id) -> OrderItem:
    try:
        return OrderItem.objects.select_for_update().get(pk=item_id)
    except (OrderItem.DoesNotExist, ValueError, TypeError):
        raise NotFound(ITEM_NOT_FOUND)


# ===============================================================
# Ingestion
# ===============================================================

def _resolve_context(user_id, department_id, departments: DepartmentDirectory):
    actor = None
    department = None
    if user_id:
        actor = get_user_model().objects.filter(pk=user_id).first()
        if actor is None:
            raise NotFound("User not found")
    if department_id:
        department = departments.get(department_id)
    return actor, department


def _clean_quantity(value) -> int:
    """Missing means 1; anything else must be a whole number >= 1."""
    if value is None or value == "":
        return 1
    if isinstance(value, bool) or (isinstance(value, float) and not value.is_integer()):
        raise ValidationError(f"Invalid quantity: {value}")
    try:
        quantity = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid quantity: {value}")
    if quantity < 1:
        raise ValidationError(f"Invalid quantity: {value}")
    return quantity


def _apply_descriptors(item: OrderItem, row: Dict[str, Any]) -> None:
    for name in DESCRIPTOR_FIELDS:
        if name not in row:
            continue
        value = row[name]
        if name in ("product_name", "sku", "leather_color"):
            value = value or None
        elif value is None:
            value = ""
        setattr(item, name, value)
    item.quantity = _clean_quantity(row.get("quantity"))
    item.is_leather = bool(row.get("is_leather", False))
    item.is_pattern = bool(row.get("is_pattern", False))


def _record_sync_status(item, previous_sub, actor, department, ledger: TrackingLedger, created: bool):
    if actor is None or department is None:
        logger.warning(
            "sync item=%s sub-status %s -> %s not recorded: missing %s",
            item.pk,
            previous_sub,
            item.sub_status,
            "user" if actor is None else "department",
        )
        return None

    if created:
        notes = f"Order item created with status: {item.sub_status}"
    else:
        notes = f"Order status updated via sync: {previous_sub or 'null'} -> {item.sub_status or 'null'}"

    record = TransitionRecord(
        action_type=ACTION_STATUS_UPDATE,
        department_id=department.pk,
        previous_status=item.lifecycle_status,
        status=item.lifecycle_status,
        sub_status=item.sub_status,
        preparation_type=item.preparation_type,
        notes=notes,
    )
    return ledger.append(item=item, record=record, actor=actor)


def ingest_items(
    rows: List[Dict[str, Any]],
    store_name: str,
    *,
    visibility: Optional[Dict[str, Any]] = None,
    user_id=None,
    department_id=None,
    roles: Optional[RoleDirectory] = None,
    departments: Optional[DepartmentDirectory] = None,
    ledger: Optional[TrackingLedger] = None,
) -> IngestResult:
    """
    Create or update items keyed by their external id pair.

    `visibility` ({"role_ids": [...], "role_names": [...]}) replaces the
    stored visibility on every touched item when supplied. A changed
    sub-status is written to the ledger only when both `user_id` and
    `department_id` are given.
    """
    if not store_name:
        raise ValidationError("Store name is required")
    if not rows:
        raise ValidationError("At least one order item is required")

    departments = departments or DepartmentDirectory()
    ledger = ledger or TrackingLedger()

    stored_visibility = None
    if visibility is not None:
        stored_visibility = validate_visibility(
            visibility.get("role_ids"), visibility.get("role_names"), roles=roles
        )

    actor, department = _resolve_context(user_id, department_id, departments)
    result = IngestResult()

    with transaction.atomic():
        for row in rows:
            order_id = str(row.get("external_order_id") or "").strip()
            item_id = str(row.get("external_item_id") or "").strip()
            if not order_id or not item_id:
                raise ValidationError("external_order_id and external_item_id are required")

            sub_supplied = "sub_status" in row
            sub_status = clean_sub_status(row.get("sub_status")) if sub_supplied else None

            item = (
                OrderItem.objects.select_for_update()
                .filter(external_order_id=order_id, external_item_id=item_id)
                .first()
            )
            created = item is None
            if created:
                item = OrderItem(
                    external_order_id=order_id,
                    external_item_id=item_id,
                    store_name=store_name,
                    lifecycle_status=PENDING,
                )

            previous_sub = item.sub_status
            _apply_descriptors(item, row)
            if sub_supplied:
                item.sub_status = sub_status
            if visibility is not None:
                item.visibility = stored_visibility

            try:
                with transaction.atomic():
                    item.save(_tracking_bypass=True)
            except IntegrityError as exc:
                clash = OrderItem.objects.filter(
                    external_order_id=order_id, external_item_id=item_id
                ).exclude(pk=item.pk).exists()
                if not clash:
                    raise
                raise Conflict(
                    f"Order item {order_id}/{item_id} conflicts with an existing record"
                ) from exc

            if created:
                _issue_scan_token(item)
                result.created += 1
            else:
                result.updated += 1

            if sub_supplied and item.sub_status and item.sub_status != previous_sub:
                _record_sync_status(item, previous_sub, actor, department, ledger, created)

            result.items.append(item)

    logger.info(
        "ingest store=%s created=%s updated=%s",
        store_name, result.created, result.updated,
    )
    return result


# ===============================================================
# Store sync
# ===============================================================

def sync_store(store_name: str, *, gateway: Optional[StoreGateway] = None) -> Dict[str, Any]:
    stores = getattr(settings, "TRACKING", {}).get("STORES", {})
    if store_name not in stores:
        raise ValidationError("Invalid store name")

    base_url = stores.get(store_name)
    if not base_url:
        raise ValidationError(f"API URL not configured for {store_name}")

    gateway = gateway or StoreGateway()
    try:
        rows = flatten_orders(gateway.fetch_orders(base_url))
    except StoreGatewayError as exc:
        logger.warning("store sync failed store=%s: %s", store_name, exc)
        raise ValidationError(f"Failed to sync orders from {store_name}: {exc}")

    if not rows:
        logger.info("store sync store=%s: no order items", store_name)
        return {"message": ORDERS_SYNCED, "synced": 0, "updated": 0}

    try:
        result = ingest_items(rows, store_name)
    except ValidationError as exc:
        logger.warning("store sync rejected store=%s: %s", store_name, exc.detail)
        raise ValidationError(f"Failed to sync orders from {store_name}: {exc.detail}")
    return {"message": ORDERS_SYNCED, "synced": result.created, "updated": result.updated}
