# tracking_core/models/order_item.py

from django.db import models
from django.db.models import Q

from tracking_core.tracking import (
    HELD_STATES,
    LIFECYCLE_STATES,
    PENDING,
    CHECKED_OUT,
    PREPARATION_TYPES,
    SUB_STATUSES,
)
from tracking_core.tracking.guards import TrackingWriteGuardMixin

from .core import Department, TimeStampedModel


def _choices(values):
    return [(v, v.replace("_", " ").replace("-", " ").title()) for v in values]


class OrderItem(TrackingWriteGuardMixin, TimeStampedModel):
    """
    One physical unit moving through the production departments.

    Location and status fields are the current projection of the item's
    tracking ledger and are written only by the tracking services.
    """

    TRACKED_FIELDS = (
        "lifecycle_status",
        "sub_status",
        "current_department_id",
        "last_department_id",
        "handover_department_id",
    )

    # Upstream identity
    external_order_id = models.CharField(max_length=100, db_index=True)
    external_item_id = models.CharField(max_length=100)
    store_name = models.CharField(max_length=100, db_index=True)

    # Product descriptors
    product_name = models.CharField(max_length=255, null=True, blank=True)
    sku = models.CharField(max_length=100, null=True, blank=True)
    color = models.CharField(max_length=100, blank=True, default="")
    size = models.CharField(max_length=50, blank=True, default="")
    gender = models.CharField(max_length=50, blank=True, default="")
    product_image = models.CharField(max_length=500, blank=True, default="")
    leather_color = models.CharField(max_length=100, null=True, blank=True)
    quantity = models.PositiveIntegerField(default=1)
    is_leather = models.BooleanField(default=False)
    is_pattern = models.BooleanField(default=False)
    issues = models.TextField(null=True, blank=True)

    # Field-operation addressing
    scan_token = models.CharField(max_length=255, unique=True, null=True, blank=True)
    scan_url = models.CharField(max_length=500, null=True, blank=True)

    # Location
    current_department = models.ForeignKey(
        Department,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="held_items",
    )
    last_department = models.ForeignKey(
        Department,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="released_items",
    )
    handover_department = models.ForeignKey(
        Department,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="incoming_items",
    )

    # Status
    lifecycle_status = models.CharField(
        max_length=20,
        choices=_choices(LIFECYCLE_STATES),
        default=PENDING,
        db_index=True,
    )
    sub_status = models.CharField(
        max_length=64,
        choices=_choices(SUB_STATUSES),
        null=True,
        blank=True,
    )
    preparation_type = models.CharField(
        max_length=20,
        choices=_choices(PREPARATION_TYPES),
        null=True,
        blank=True,
    )

    # None = visible to everyone; else {"role_ids": [...], "role_names": [...]}
    visibility = models.JSONField(null=True, blank=True)

    class Meta:
        ordering = ["-created_at", "-id"]
        constraints = [
            models.UniqueConstraint(
                fields=["external_order_id", "external_item_id"],
                name="order_item_external_ids_unique",
            ),
            models.CheckConstraint(
                name="order_item_held_iff_department",
                condition=(
                    Q(lifecycle_status__in=sorted(HELD_STATES), current_department__isnull=False)
                    | (~Q(lifecycle_status__in=sorted(HELD_STATES)) & Q(current_department__isnull=True))
                ),
            ),
            models.CheckConstraint(
                name="order_item_handover_only_when_checked_out",
                condition=Q(handover_department__isnull=True) | Q(lifecycle_status=CHECKED_OUT),
            ),
            models.CheckConstraint(
                name="order_item_quantity_positive",
                condition=Q(quantity__gte=1),
            ),
        ]
        indexes = [
            models.Index(fields=["store_name", "lifecycle_status"], name="item_store_status_idx"),
            models.Index(fields=["current_department", "lifecycle_status"], name="item_dept_status_idx"),
        ]

    def __str__(self):
        return f"{self.external_order_id}/{self.external_item_id} ({self.lifecycle_status})"

    @property
    def is_held(self) -> bool:
        return self.lifecycle_status in HELD_STATES
