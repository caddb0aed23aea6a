# tracking_core/services/order_tracking.py
"""
Authoritative order item workflow service.

All lifecycle moves (check-in, check-out, update-status, return-to-stage)
MUST go through OrderTrackingService. Never write lifecycle fields directly
in views or serializers.

Each operation:
  1. verifies the actor's password
  2. locks the item row (select_for_update) by scan token
  3. applies the state machine rule
  4. saves the projection and appends one ledger entry
inside a single transaction.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from django.db import transaction

from tracking_core.exceptions import NotFound, ValidationError
from tracking_core.models import OrderItem, OrderItemTracking
from tracking_core.services.directory import (
    ActorVerifier,
    DepartmentDirectory,
    RoleDirectory,
)
from tracking_core.services.ledger import TrackingLedger
from tracking_core.tracking import PREP_OUTSOURCED, normalize_status
from tracking_core.tracking.state_machine import (
    TransitionRecord,
    apply_check_in,
    apply_check_out,
    apply_return_to_stage,
    apply_status_update,
    ensure_can_check_out,
)

logger = logging.getLogger(__name__)


CHECKED_IN_MESSAGE = "Order item checked in successfully"
CHECKED_OUT_MESSAGE = "Order item checked out successfully"
STATUS_UPDATED_MESSAGE = "Order item status updated successfully"
SCAN_TOKEN_NOT_FOUND = "Scan token not found"
HANDOVER_DEPARTMENT_NOT_FOUND = "Handed over department not found"


def returned_message(target: str) -> str:
    return f"Order item returned to {target} successfully"


@dataclass(frozen=True)
class WorkflowResult:
    entry: OrderItemTracking
    item: OrderItem
    message: str


class OrderTrackingService:
    """
    Collaborators are borrowed, not owned: pass any objects exposing the same
    methods as the Django-backed defaults.
    """

    def __init__(
        self,
        *,
        actors: Optional[ActorVerifier] = None,
        departments: Optional[DepartmentDirectory] = None,
        roles: Optional[RoleDirectory] = None,
        ledger: Optional[TrackingLedger] = None,
    ):
        self.actors = actors or ActorVerifier()
        self.departments = departments or DepartmentDirectory()
        self.roles = roles or RoleDirectory()
        self.ledger = ledger or TrackingLedger()

    # ------------------------------------------------------------------
    # helpers
    # ------------------------------------------------------------------

    def _lock_item(self, scan_token: str) -> OrderItem:
        if not scan_token:
            raise NotFound(SCAN_TOKEN_NOT_FOUND)
        try:
            return OrderItem.objects.select_for_update().get(scan_token=scan_token)
        except OrderItem.DoesNotExist:
            raise NotFound(SCAN_TOKEN_NOT_FOUND)

    def _check_role_status(self, actor, sub_status: Optional[str]) -> None:
        if not sub_status:
            return
        role = self.roles.role_for_user(actor)
        allowed = self.roles.allowed_statuses(role)
        if allowed and normalize_status(sub_status) not in allowed:
            raise ValidationError(
                f"Status '{sub_status}' is not valid for role '{role.name}'. "
                f"Available statuses: {', '.join(allowed)}"
            )

    def _commit(self, item: OrderItem, record: TransitionRecord, actor) -> OrderItemTracking:
        item.save(_tracking_bypass=True)
        return self.ledger.append(item=item, record=record, actor=actor)

    # ------------------------------------------------------------------
    # operations
    # ------------------------------------------------------------------

    def check_in(
        self,
        *,
        scan_token: str,
        department_id,
        user_id,
        password: str,
        preparation_type: Optional[str] = None,
        sub_status: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> WorkflowResult:
        actor = self.actors.verify(user_id, password)

        with transaction.atomic():
            item = self._lock_item(scan_token)
            department = self.departments.get(department_id)
            self._check_role_status(actor, sub_status)

            record = apply_check_in(
                item,
                department.pk,
                preparation_type=preparation_type,
                sub_status=sub_status,
                notes=notes,
            )
            entry = self._commit(item, record, actor)

        logger.info(
            "check-in item=%s dept=%s by=%s %s->%s",
            item.pk, department.code, actor.pk, record.previous_status, record.status,
        )
        return WorkflowResult(entry=entry, item=item, message=CHECKED_IN_MESSAGE)

    def check_out(
        self,
        *,
        scan_token: str,
        department_id,
        user_id,
        password: str,
        handover_department_id,
        notes: Optional[str] = None,
    ) -> WorkflowResult:
        actor = self.actors.verify(user_id, password)

        with transaction.atomic():
            item = self._lock_item(scan_token)
            department = self.departments.get(department_id)

            ensure_can_check_out(item, department.pk)
            handover = self.departments.get(
                handover_department_id, message=HANDOVER_DEPARTMENT_NOT_FOUND
            )

            record = apply_check_out(item, department.pk, handover.pk, notes=notes)
            entry = self._commit(item, record, actor)

        logger.info(
            "check-out item=%s dept=%s handover=%s by=%s",
            item.pk, department.code, handover.code, actor.pk,
        )
        return WorkflowResult(entry=entry, item=item, message=CHECKED_OUT_MESSAGE)

    def update_status(
        self,
        *,
        scan_token: str,
        status: str,
        department_id,
        user_id,
        password: str,
        preparation_type: Optional[str] = None,
        sub_status: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> WorkflowResult:
        actor = self.actors.verify(user_id, password)

        with transaction.atomic():
            item = self._lock_item(scan_token)
            department = self.departments.get(department_id)
            self._check_role_status(actor, sub_status)

            record = apply_status_update(
                item,
                status,
                department.pk,
                preparation_type=preparation_type,
                sub_status=sub_status,
                notes=notes,
            )
            entry = self._commit(item, record, actor)

        logger.info(
            "status-update item=%s dept=%s by=%s %s->%s sub=%s",
            item.pk, department.code, actor.pk,
            record.previous_status, record.status, record.sub_status,
        )
        return WorkflowResult(entry=entry, item=item, message=STATUS_UPDATED_MESSAGE)

    def return_to_stage(
        self,
        *,
        scan_token: str,
        target_sub_status: str,
        department_id,
        user_id,
        password: str,
        reason: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> WorkflowResult:
        actor = self.actors.verify(user_id, password)

        with transaction.atomic():
            item = self._lock_item(scan_token)
            department = self.departments.get(department_id)
            self._check_role_status(actor, target_sub_status)

            if item.preparation_type == PREP_OUTSOURCED:
                logger.warning(
                    "return-to-stage item=%s is outsourced; returning to in-house stage %s",
                    item.pk, target_sub_status,
                )

            record = apply_return_to_stage(
                item,
                target_sub_status,
                department.pk,
                reason=reason,
                notes=notes,
            )
            entry = self._commit(item, record, actor)

        logger.info(
            "return-to-stage item=%s dept=%s by=%s %s->%s sub=%s",
            item.pk, department.code, actor.pk,
            record.previous_status, record.status, record.sub_status,
        )
        return WorkflowResult(
            entry=entry, item=item, message=returned_message(record.sub_status)
        )
