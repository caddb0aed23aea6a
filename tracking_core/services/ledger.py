# tracking_core/services/ledger.py
"""
Append-only tracking ledger.

append() must run inside the caller's transaction: if anything after it
raises, the entry goes away together with the projection update.
"""

from __future__ import annotations

import logging
from typing import Optional

from tracking_core.models import OrderItemTracking
from tracking_core.tracking.state_machine import TransitionRecord

logger = logging.getLogger(__name__)


class TrackingLedger:
    def append(self, *, item, record: TransitionRecord, actor) -> OrderItemTracking:
        entry = OrderItemTracking.objects.create(
            item=item,
            department_id=record.department_id,
            performed_by=actor,
            action_type=record.action_type,
            status=record.status,
            previous_status=record.previous_status or None,
            sub_status=record.sub_status,
            preparation_type=record.preparation_type,
            notes=record.notes or "",
        )
        logger.debug(
            "ledger append item=%s entry=%s %s %s->%s",
            item.pk,
            entry.pk,
            record.action_type,
            record.previous_status,
            record.status,
        )
        return entry

    def list_by_item(self, item_id, department_id: Optional[int] = None):
        """Entries for one item, newest first."""
        qs = OrderItemTracking.objects.filter(item_id=item_id)
        if department_id is not None:
            qs = qs.filter(department_id=department_id)
        return qs.select_related("department", "performed_by").order_by("-created_at", "-id")

    def delete_for_item(self, item_id) -> int:
        # QuerySet.delete bypasses the per-instance append-only save guard
        deleted, _ = OrderItemTracking.objects.filter(item_id=item_id).delete()
        return deleted
