# tracking_core/tracking/__init__.py
from __future__ import annotations

from typing import Any, Dict, List, Optional, Set


# ===============================================================
# Lifecycle (coarse) statuses
# ===============================================================

PENDING = "pending"
CHECKED_IN = "checked-in"
IN_PROGRESS = "in-progress"
CHECKED_OUT = "checked-out"
COMPLETED = "completed"
SHIPPED = "shipped"
DELIVERED = "delivered"

LIFECYCLE_STATES: List[str] = [
    PENDING,
    CHECKED_IN,
    IN_PROGRESS,
    CHECKED_OUT,
    COMPLETED,
    SHIPPED,
    DELIVERED,
]

LIFECYCLE_TRANSITIONS: Dict[str, Set[str]] = {
    PENDING: {CHECKED_IN},
    CHECKED_IN: {IN_PROGRESS, CHECKED_OUT},
    IN_PROGRESS: {IN_PROGRESS, CHECKED_OUT},
    CHECKED_OUT: {CHECKED_IN},
    COMPLETED: {SHIPPED},
    SHIPPED: {DELIVERED},
    DELIVERED: set(),
}

# States in which exactly one department holds the item.
HELD_STATES: Set[str] = {CHECKED_IN, IN_PROGRESS}


# ===============================================================
# Action types and preparation types
# ===============================================================

ACTION_CHECK_IN = "check-in"
ACTION_CHECK_OUT = "check-out"
ACTION_STATUS_UPDATE = "status-update"

ACTION_TYPES: List[str] = [ACTION_CHECK_IN, ACTION_CHECK_OUT, ACTION_STATUS_UPDATE]

PREP_IN_HOUSE = "in-house"
PREP_OUTSOURCED = "outsourced"

PREPARATION_TYPES: List[str] = [PREP_IN_HOUSE, PREP_OUTSOURCED]


# ===============================================================
# Department sub-statuses
# ===============================================================

LEATHER_AVAILABILITY_PENDING = "leather_availability_pending"
LEATHER_AVAILABLE = "leather_available"
LEATHER_OUT_OF_STOCK = "leather_out_of_stock"
CUTTING_IN_PROGRESS = "cutting_in_progress"
CUTTING_COMPLETED = "cutting_completed"
EMBROIDERY_IN_PROGRESS = "embroidery_in_progress"
EMBROIDERY_COMPLETED = "embroidery_completed"
RIVETS_INSTALLATION_IN_PROGRESS = "rivets_installation_in_progress"
RIVETS_COMPLETED = "rivets_completed"
STITCHING_IN_PROGRESS = "stitching_in_progress"
STITCHING_COMPLETED = "stitching_completed"
PACKING_IN_PROGRESS = "packing_in_progress"
PACKING_COMPLETED = "packing_completed"
QUALITY_CONTROL_INSPECTION = "quality_control_inspection"
QUALITY_CONTROL_PASSED = "quality_control_passed"
QUALITY_CONTROL_FAILED = "quality_control_failed"
READY_TO_SHIP = "ready_to_ship"
SUB_SHIPPED = "shipped"
IN_TRANSIT = "in_transit"
CUSTOMS_CLEARANCE_PENDING = "customs_clearance_pending"
CUSTOMS_CLEARED = "customs_cleared"
SUB_DELIVERED = "delivered"

DEPARTMENT_SUB_STATUSES: Dict[str, List[str]] = {
    "inventory": [
        LEATHER_AVAILABILITY_PENDING,
        LEATHER_AVAILABLE,
        LEATHER_OUT_OF_STOCK,
    ],
    "cutting": [CUTTING_IN_PROGRESS, CUTTING_COMPLETED],
    "embroidery": [EMBROIDERY_IN_PROGRESS, EMBROIDERY_COMPLETED],
    "rivets": [RIVETS_INSTALLATION_IN_PROGRESS, RIVETS_COMPLETED],
    "stitching": [STITCHING_IN_PROGRESS, STITCHING_COMPLETED],
    "packing": [PACKING_IN_PROGRESS, PACKING_COMPLETED],
    "quality-control": [
        QUALITY_CONTROL_INSPECTION,
        QUALITY_CONTROL_PASSED,
        QUALITY_CONTROL_FAILED,
    ],
    "logistics": [
        READY_TO_SHIP,
        SUB_SHIPPED,
        IN_TRANSIT,
        CUSTOMS_CLEARANCE_PENDING,
        CUSTOMS_CLEARED,
        SUB_DELIVERED,
    ],
}

SUB_STATUSES: List[str] = [
    status for statuses in DEPARTMENT_SUB_STATUSES.values() for status in statuses
]

# Stages an item may be sent back to after a failed inspection.
RETURNABLE_SUB_STATUSES: List[str] = [
    CUTTING_IN_PROGRESS,
    EMBROIDERY_IN_PROGRESS,
    RIVETS_INSTALLATION_IN_PROGRESS,
    STITCHING_IN_PROGRESS,
    PACKING_IN_PROGRESS,
]

SUB_STATUS_TRANSITIONS: Dict[str, Set[str]] = {
    LEATHER_AVAILABILITY_PENDING: {LEATHER_AVAILABLE, LEATHER_OUT_OF_STOCK},
    LEATHER_AVAILABLE: {CUTTING_IN_PROGRESS},
    LEATHER_OUT_OF_STOCK: set(),

    CUTTING_IN_PROGRESS: {CUTTING_COMPLETED},
    CUTTING_COMPLETED: {EMBROIDERY_IN_PROGRESS},

    EMBROIDERY_IN_PROGRESS: {EMBROIDERY_COMPLETED},
    EMBROIDERY_COMPLETED: {RIVETS_INSTALLATION_IN_PROGRESS},

    RIVETS_INSTALLATION_IN_PROGRESS: {RIVETS_COMPLETED},
    RIVETS_COMPLETED: {STITCHING_IN_PROGRESS},

    STITCHING_IN_PROGRESS: {STITCHING_COMPLETED},
    STITCHING_COMPLETED: {PACKING_IN_PROGRESS},

    PACKING_IN_PROGRESS: {PACKING_COMPLETED},
    PACKING_COMPLETED: {QUALITY_CONTROL_INSPECTION},

    QUALITY_CONTROL_INSPECTION: {QUALITY_CONTROL_PASSED, QUALITY_CONTROL_FAILED},
    QUALITY_CONTROL_PASSED: {READY_TO_SHIP},
    QUALITY_CONTROL_FAILED: set(RETURNABLE_SUB_STATUSES),

    READY_TO_SHIP: {SUB_SHIPPED},
    SUB_SHIPPED: {IN_TRANSIT, CUSTOMS_CLEARANCE_PENDING},
    IN_TRANSIT: {SUB_DELIVERED},
    CUSTOMS_CLEARANCE_PENDING: {CUSTOMS_CLEARED},
    CUSTOMS_CLEARED: {IN_TRANSIT},

    SUB_DELIVERED: set(),
}


# ===============================================================
# Normalization
# ===============================================================

def normalize_status(value: Optional[str]) -> str:
    return str(value or "").strip().lower()


def is_known_lifecycle_status(value: Optional[str]) -> bool:
    return normalize_status(value) in LIFECYCLE_TRANSITIONS


def is_known_sub_status(value: Optional[str]) -> bool:
    return normalize_status(value) in SUB_STATUS_TRANSITIONS


# ===============================================================
# Public catalog API
# ===============================================================

def is_transition_allowed(current: Optional[str], target: Optional[str]) -> bool:
    """
    True iff `target` is a listed successor of `current` in the sub-status graph.
    Unknown statuses and self-loops are never allowed.
    """
    cur = normalize_status(current)
    tgt = normalize_status(target)
    return tgt in SUB_STATUS_TRANSITIONS.get(cur, set())


def is_lifecycle_transition_allowed(current: Optional[str], target: Optional[str]) -> bool:
    cur = normalize_status(current)
    tgt = normalize_status(target)
    return tgt in LIFECYCLE_TRANSITIONS.get(cur, set())


def allowed_next_sub_statuses(current: Optional[str]) -> List[str]:
    return sorted(SUB_STATUS_TRANSITIONS.get(normalize_status(current), set()))


def allowed_next_lifecycle_states(current: Optional[str]) -> List[str]:
    return sorted(LIFECYCLE_TRANSITIONS.get(normalize_status(current), set()))


def is_terminal_sub_status(status: Optional[str]) -> bool:
    cur = normalize_status(status)
    return cur in SUB_STATUS_TRANSITIONS and not SUB_STATUS_TRANSITIONS[cur]


def statuses_for_department(department_code: Optional[str]) -> List[str]:
    code = normalize_status(department_code)
    return list(DEPARTMENT_SUB_STATUSES.get(code, []))


def department_for_sub_status(status: Optional[str]) -> Optional[str]:
    cur = normalize_status(status)
    for code, statuses in DEPARTMENT_SUB_STATUSES.items():
        if cur in statuses:
            return code
    return None


def catalog_definition() -> Dict[str, Any]:
    """
    Stable JSON-serializable definition for UI.
    """
    return {
        "lifecycle": {
            "states": list(LIFECYCLE_STATES),
            "transitions": {
                state: sorted(nxt) for state, nxt in LIFECYCLE_TRANSITIONS.items()
            },
        },
        "sub_statuses": {
            "departments": {
                code: list(statuses) for code, statuses in DEPARTMENT_SUB_STATUSES.items()
            },
            "transitions": {
                state: sorted(nxt) for state, nxt in SUB_STATUS_TRANSITIONS.items()
            },
            "returnable": list(RETURNABLE_SUB_STATUSES),
        },
        "preparation_types": list(PREPARATION_TYPES),
        "action_types": list(ACTION_TYPES),
    }


__all__ = [
    "LIFECYCLE_STATES",
    "LIFECYCLE_TRANSITIONS",
    "HELD_STATES",
    "ACTION_TYPES",
    "PREPARATION_TYPES",
    "DEPARTMENT_SUB_STATUSES",
    "SUB_STATUSES",
    "SUB_STATUS_TRANSITIONS",
    "RETURNABLE_SUB_STATUSES",
    "normalize_status",
    "is_known_lifecycle_status",
    "is_known_sub_status",
    "is_transition_allowed",
    "is_lifecycle_transition_allowed",
    "allowed_next_sub_statuses",
    "allowed_next_lifecycle_states",
    "is_terminal_sub_status",
    "statuses_for_department",
    "department_for_sub_status",
    "catalog_definition",
]
