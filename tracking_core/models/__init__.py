from .core import Department, Role, RoleStatus, StaffProfile, TimeStampedModel
from .order_item import OrderItem
from .tracking_entry import OrderItemTracking

__all__ = [
    "TimeStampedModel",
    "Department",
    "Role",
    "RoleStatus",
    "StaffProfile",
    "OrderItem",
    "OrderItemTracking",
]
