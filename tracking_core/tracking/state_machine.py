# tracking_core/tracking/state_machine.py
"""
Mutation rules for an order item's current projection.

Every function here validates against the item as it is *now*, mutates the
in-memory instance and returns a TransitionRecord describing what the ledger
should store. Nothing here touches the database: callers lock, save and
append inside one transaction.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from tracking_core.exceptions import (
    AlreadyCheckedIn,
    HandoverMismatch,
    InvalidTransition,
    OwnershipConflict,
    ValidationError,
)
from tracking_core.tracking import (
    ACTION_CHECK_IN,
    ACTION_CHECK_OUT,
    ACTION_STATUS_UPDATE,
    CHECKED_IN,
    CHECKED_OUT,
    HELD_STATES,
    IN_PROGRESS,
    PREPARATION_TYPES,
    RETURNABLE_SUB_STATUSES,
    is_known_lifecycle_status,
    is_known_sub_status,
    is_lifecycle_transition_allowed,
    is_transition_allowed,
    normalize_status,
)


DEFAULT_RETURN_REASON = "Quality issue"


@dataclass(frozen=True)
class TransitionRecord:
    action_type: str
    department_id: int
    previous_status: str
    status: str
    sub_status: Optional[str]
    preparation_type: Optional[str]
    notes: str = ""


# ===============================================================
# Input normalization
# ===============================================================

def clean_sub_status(value: Optional[str]) -> Optional[str]:
    """
    Empty means "not supplied". Anything else must be a catalog value.
    """
    if value in (None, ""):
        return None
    status = normalize_status(value)
    if not is_known_sub_status(status):
        raise ValidationError(f"Unknown sub-status: {value}")
    return status


def clean_preparation_type(value: Optional[str]) -> Optional[str]:
    if value in (None, ""):
        return None
    prep = normalize_status(value)
    if prep not in PREPARATION_TYPES:
        raise ValidationError(
            f"Invalid preparation type: {value}. "
            f"Valid values: {', '.join(PREPARATION_TYPES)}"
        )
    return prep


def _check_sub_status_move(item, target: Optional[str]) -> None:
    # first assignment and "unchanged" are always accepted
    if target is None:
        return
    current = item.sub_status
    if not current or current == target:
        return
    if not is_transition_allowed(current, target):
        raise InvalidTransition(
            f"Invalid sub-status transition: {current} -> {target}"
        )


# ===============================================================
# Check-in
# ===============================================================

def apply_check_in(
    item,
    department_id: int,
    *,
    preparation_type: Optional[str] = None,
    sub_status: Optional[str] = None,
    notes: Optional[str] = None,
) -> TransitionRecord:
    previous = normalize_status(item.lifecycle_status)
    sub_status = clean_sub_status(sub_status)
    preparation_type = clean_preparation_type(preparation_type)

    if previous in HELD_STATES:
        if item.current_department_id == department_id:
            raise AlreadyCheckedIn()
        # held elsewhere: the item is moving, no explicit checkout needed
    elif previous == CHECKED_OUT:
        expected = item.handover_department_id
        if expected is not None and expected != department_id:
            raise HandoverMismatch(expected_department_id=expected)
    elif not is_lifecycle_transition_allowed(previous, CHECKED_IN):
        raise InvalidTransition(
            f"Invalid status transition: {previous} -> {CHECKED_IN}"
        )

    _check_sub_status_move(item, sub_status)

    if item.current_department_id is not None:
        item.last_department_id = item.current_department_id
    item.lifecycle_status = CHECKED_IN
    item.current_department_id = department_id
    item.handover_department_id = None
    item.preparation_type = preparation_type
    if sub_status is not None:
        item.sub_status = sub_status

    return TransitionRecord(
        action_type=ACTION_CHECK_IN,
        department_id=department_id,
        previous_status=previous,
        status=CHECKED_IN,
        sub_status=item.sub_status,
        preparation_type=preparation_type,
        notes=notes or "",
    )


# ===============================================================
# Check-out
# ===============================================================

def ensure_can_check_out(item, department_id: int) -> None:
    if normalize_status(item.lifecycle_status) not in HELD_STATES:
        raise InvalidTransition(
            "Order item must be checked in or in-progress to check out"
        )
    if item.current_department_id != department_id:
        raise OwnershipConflict(
            "Order item is currently in a different department. "
            f"Current department: {item.current_department_id or 'none'}"
        )


def apply_check_out(
    item,
    department_id: int,
    handover_department_id: int,
    *,
    notes: Optional[str] = None,
) -> TransitionRecord:
    previous = normalize_status(item.lifecycle_status)
    ensure_can_check_out(item, department_id)

    item.last_department_id = item.current_department_id
    item.lifecycle_status = CHECKED_OUT
    item.current_department_id = None
    item.handover_department_id = handover_department_id

    return TransitionRecord(
        action_type=ACTION_CHECK_OUT,
        department_id=department_id,
        previous_status=previous,
        status=CHECKED_OUT,
        sub_status=item.sub_status,
        preparation_type=item.preparation_type,
        notes=notes or "",
    )


# ===============================================================
# Status update
# ===============================================================

def apply_status_update(
    item,
    target_status: str,
    department_id: int,
    *,
    preparation_type: Optional[str] = None,
    sub_status: Optional[str] = None,
    notes: Optional[str] = None,
) -> TransitionRecord:
    """
    Coarse-table move plus optional sub-status/preparation changes.

    The checked-out -> checked-in edge does not consult the handover target;
    only the dedicated check-in operation enforces it.
    """
    previous = normalize_status(item.lifecycle_status)
    target = normalize_status(target_status)
    sub_status = clean_sub_status(sub_status)
    preparation_type = clean_preparation_type(preparation_type)

    if not is_known_lifecycle_status(target):
        raise ValidationError(f"Unknown lifecycle status: {target_status}")
    if not is_lifecycle_transition_allowed(previous, target):
        raise InvalidTransition(
            f"Invalid status transition: {previous} -> {target}"
        )

    if target in (IN_PROGRESS, CHECKED_OUT) and item.current_department_id != department_id:
        raise OwnershipConflict(
            "Order item is not checked in to this department. "
            f"Current department: {item.current_department_id or 'none'}"
        )

    _check_sub_status_move(item, sub_status)

    if target == CHECKED_IN:
        if item.current_department_id is not None and item.current_department_id != department_id:
            item.last_department_id = item.current_department_id
        item.current_department_id = department_id
        item.handover_department_id = None
    elif target == CHECKED_OUT:
        item.last_department_id = item.current_department_id
        item.current_department_id = None
        item.handover_department_id = None
    elif target not in HELD_STATES:
        item.current_department_id = None
        item.handover_department_id = None

    item.lifecycle_status = target
    if preparation_type is not None:
        item.preparation_type = preparation_type
    if sub_status is not None:
        item.sub_status = sub_status

    return TransitionRecord(
        action_type=ACTION_STATUS_UPDATE,
        department_id=department_id,
        previous_status=previous,
        status=target,
        sub_status=item.sub_status,
        preparation_type=preparation_type,
        notes=notes or "",
    )


# ===============================================================
# Return to stage
# ===============================================================

def return_note(target: str, reason: Optional[str] = None, notes: Optional[str] = None) -> str:
    return f"Returned to {target}. Reason: {reason or DEFAULT_RETURN_REASON}. {notes or ''}"


def apply_return_to_stage(
    item,
    target_sub_status: str,
    department_id: int,
    *,
    reason: Optional[str] = None,
    notes: Optional[str] = None,
) -> TransitionRecord:
    """
    Rework escape hatch: sends the item back to an earlier in-progress stage
    without consulting the sub-status graph or the lifecycle table.
    """
    target = normalize_status(target_sub_status)
    if target not in RETURNABLE_SUB_STATUSES:
        raise InvalidTransition(
            f"Cannot return to status {target_sub_status}. "
            f"Valid return statuses: {', '.join(RETURNABLE_SUB_STATUSES)}"
        )

    previous = normalize_status(item.lifecycle_status)

    if item.current_department_id is not None and item.current_department_id != department_id:
        item.last_department_id = item.current_department_id
    item.lifecycle_status = IN_PROGRESS
    item.sub_status = target
    item.current_department_id = department_id
    item.handover_department_id = None

    return TransitionRecord(
        action_type=ACTION_STATUS_UPDATE,
        department_id=department_id,
        previous_status=previous,
        status=IN_PROGRESS,
        sub_status=target,
        preparation_type=item.preparation_type,
        notes=return_note(target, reason, notes),
    )


__all__ = [
    "TransitionRecord",
    "DEFAULT_RETURN_REASON",
    "clean_sub_status",
    "clean_preparation_type",
    "apply_check_in",
    "ensure_can_check_out",
    "apply_check_out",
    "apply_status_update",
    "apply_return_to_stage",
    "return_note",
]
