# tracking_core/models/tracking_entry.py

from django.conf import settings
from django.core.exceptions import PermissionDenied
from django.db import models

from tracking_core.tracking import ACTION_TYPES, LIFECYCLE_STATES, PREPARATION_TYPES

from .core import Department
from .order_item import OrderItem


class OrderItemTracking(models.Model):
    """
    Immutable audit record: one row per check-in, check-out or status update.
    """

    item = models.ForeignKey(
        OrderItem,
        on_delete=models.CASCADE,
        related_name="tracking_entries",
    )
    department = models.ForeignKey(
        Department,
        on_delete=models.PROTECT,
        related_name="tracking_entries",
    )
    performed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="tracking_entries",
    )

    action_type = models.CharField(
        max_length=20,
        choices=[(a, a) for a in ACTION_TYPES],
    )
    status = models.CharField(
        max_length=20,
        choices=[(s, s) for s in LIFECYCLE_STATES],
    )
    previous_status = models.CharField(max_length=20, null=True, blank=True)
    sub_status = models.CharField(max_length=64, null=True, blank=True)
    preparation_type = models.CharField(
        max_length=20,
        choices=[(p, p) for p in PREPARATION_TYPES],
        null=True,
        blank=True,
    )
    notes = models.TextField(blank=True, default="")

    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        ordering = ["-created_at", "-id"]
        indexes = [
            models.Index(fields=["item", "created_at"], name="tracking_item_time_idx"),
        ]

    def save(self, *args, **kwargs):
        if self.pk is not None:
            raise PermissionDenied("Tracking entries are append-only.")
        return super().save(*args, **kwargs)

    def __str__(self):
        return (
            f"{self.item_id}: {self.action_type} "
            f"{self.previous_status or '-'} → {self.status}"
        )
