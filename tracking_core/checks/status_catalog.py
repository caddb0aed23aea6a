# tracking_core/checks/status_catalog.py

from django.core.checks import Error, register

from tracking_core.tracking import (
    DEPARTMENT_SUB_STATUSES,
    LIFECYCLE_TRANSITIONS,
    RETURNABLE_SUB_STATUSES,
    SUB_STATUS_TRANSITIONS,
    SUB_STATUSES,
)


@register()
def check_status_catalog(app_configs, **kwargs):
    """
    Django system check: every edge of both transition graphs points at a
    known status, and each department sub-status has an entry in the graph.
    """
    errors = []
    known_sub = set(SUB_STATUSES)

    if len(SUB_STATUSES) != len(known_sub):
        errors.append(
            Error(
                "A sub-status is listed under more than one department",
                hint=", ".join(sorted(s for s in known_sub if SUB_STATUSES.count(s) > 1)),
                id="tracking_core.E001",
            )
        )

    for source, targets in SUB_STATUS_TRANSITIONS.items():
        unknown = sorted((set(targets) | {source}) - known_sub)
        if unknown:
            errors.append(
                Error(
                    f"Sub-status graph entry '{source}' references unknown statuses",
                    hint=", ".join(unknown),
                    id="tracking_core.E002",
                )
            )

    missing = sorted(known_sub - set(SUB_STATUS_TRANSITIONS))
    if missing:
        errors.append(
            Error(
                "Department sub-statuses missing from the transition graph",
                hint=", ".join(missing),
                id="tracking_core.E003",
            )
        )

    for source, targets in LIFECYCLE_TRANSITIONS.items():
        unknown = sorted(set(targets) - set(LIFECYCLE_TRANSITIONS))
        if unknown:
            errors.append(
                Error(
                    f"Lifecycle entry '{source}' references unknown states",
                    hint=", ".join(unknown),
                    id="tracking_core.E004",
                )
            )

    for status in RETURNABLE_SUB_STATUSES:
        if status not in known_sub:
            errors.append(
                Error(
                    f"Return-to-stage target '{status}' is not a department sub-status",
                    id="tracking_core.E005",
                )
            )

    if not DEPARTMENT_SUB_STATUSES:
        errors.append(Error("No department sub-statuses defined", id="tracking_core.E006"))

    return errors
