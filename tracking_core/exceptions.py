# tracking_core/exceptions.py
"""
Failure kinds surfaced by the tracking services.

All of them are DRF API exceptions, so services raise them directly and the
REST layer renders them without extra translation.
"""

from __future__ import annotations

from rest_framework import status
from rest_framework.exceptions import APIException


class TrackingError(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Order item tracking failed."
    default_code = "tracking_error"


class NotFound(TrackingError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Not found."
    default_code = "not_found"


class Unauthorized(TrackingError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = "Invalid password"
    default_code = "unauthorized"


class InvalidTransition(TrackingError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Invalid status transition"
    default_code = "invalid_transition"


class OwnershipConflict(TrackingError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Order item is not held by this department."
    default_code = "ownership_conflict"


class HandoverMismatch(OwnershipConflict):
    """
    Check-in attempted by a department other than the one named at check-out.
    """

    default_detail = "Order item is being handed over to a different department."

    def __init__(self, expected_department_id, detail=None, code=None):
        self.expected_department_id = expected_department_id
        if detail is None:
            detail = (
                "Order item is being handed over to a different department. "
                f"Expected department: {expected_department_id}"
            )
        super().__init__(detail=detail, code=code)


class AlreadyCheckedIn(TrackingError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Order item is already checked in to this department"
    default_code = "already_checked_in"


class Conflict(TrackingError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Conflict."
    default_code = "conflict"


class ValidationError(TrackingError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Invalid input."
    default_code = "validation_error"


__all__ = [
    "TrackingError",
    "NotFound",
    "Unauthorized",
    "InvalidTransition",
    "OwnershipConflict",
    "HandoverMismatch",
    "AlreadyCheckedIn",
    "Conflict",
    "ValidationError",
]
