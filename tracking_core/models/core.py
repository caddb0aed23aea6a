# tracking_core/models/core.py

from django.conf import settings
from django.db import models

from tracking_core.tracking import SUB_STATUSES


# ============================================================
# Base
# ============================================================
class TimeStampedModel(models.Model):
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True


# ============================================================
# Department
# ============================================================
class Department(TimeStampedModel):
    """A production department an item moves through (cutting, stitching, ...)."""

    code = models.SlugField(max_length=50, unique=True)
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    is_active = models.BooleanField(default=True, db_index=True)

    class Meta:
        ordering = ["name"]

    def __str__(self):
        return f"{self.code} - {self.name}"


# ============================================================
# Role
# ============================================================
class Role(TimeStampedModel):
    name = models.CharField(max_length=100, unique=True)
    description = models.TextField(blank=True)

    class Meta:
        ordering = ["name"]

    def __str__(self):
        return self.name


# ============================================================
# Role -> sub-status allow-list
# ============================================================
class RoleStatus(TimeStampedModel):
    """
    Sub-statuses a role may assign. A role with no active rows is unrestricted.
    """

    role = models.ForeignKey(
        Role,
        on_delete=models.CASCADE,
        related_name="statuses",
    )
    status = models.CharField(
        max_length=64,
        choices=[(s, s.replace("_", " ").title()) for s in SUB_STATUSES],
    )
    display_order = models.PositiveIntegerField(default=0)
    is_active = models.BooleanField(default=True)

    class Meta:
        ordering = ["role__name", "display_order", "status"]
        constraints = [
            models.UniqueConstraint(
                fields=["role", "status"],
                name="role_status_unique",
            ),
        ]

    def __str__(self):
        return f"{self.role.name}: {self.status}"


# ============================================================
# Staff profile
# ============================================================
class StaffProfile(TimeStampedModel):
    """Links a login to the role and home department used on the shop floor."""

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="staff_profile",
    )
    role = models.ForeignKey(
        Role,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="staff",
    )
    department = models.ForeignKey(
        Department,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="staff",
    )

    def __str__(self):
        role = self.role.name if self.role else "no role"
        return f"{self.user} ({role})"
