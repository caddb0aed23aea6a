# tracking_core/migrations/0001_initial.py

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


LIFECYCLE_CHOICES = [
    ("pending", "Pending"),
    ("checked-in", "Checked In"),
    ("in-progress", "In Progress"),
    ("checked-out", "Checked Out"),
    ("completed", "Completed"),
    ("shipped", "Shipped"),
    ("delivered", "Delivered"),
]

SUB_STATUS_VALUES = [
    "leather_availability_pending",
    "leather_available",
    "leather_out_of_stock",
    "cutting_in_progress",
    "cutting_completed",
    "embroidery_in_progress",
    "embroidery_completed",
    "rivets_installation_in_progress",
    "rivets_completed",
    "stitching_in_progress",
    "stitching_completed",
    "packing_in_progress",
    "packing_completed",
    "quality_control_inspection",
    "quality_control_passed",
    "quality_control_failed",
    "ready_to_ship",
    "shipped",
    "in_transit",
    "customs_clearance_pending",
    "customs_cleared",
    "delivered",
]

SUB_STATUS_CHOICES = [(s, s.replace("_", " ").title()) for s in SUB_STATUS_VALUES]

PREPARATION_CHOICES = [
    ("in-house", "In House"),
    ("outsourced", "Outsourced"),
]

HELD_STATES = ["checked-in", "in-progress"]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Department",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("code", models.SlugField(unique=True)),
                ("name", models.CharField(max_length=255)),
                ("description", models.TextField(blank=True)),
                ("is_active", models.BooleanField(db_index=True, default=True)),
            ],
            options={
                "ordering": ["name"],
            },
        ),
        migrations.CreateModel(
            name="Role",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("name", models.CharField(max_length=100, unique=True)),
                ("description", models.TextField(blank=True)),
            ],
            options={
                "ordering": ["name"],
            },
        ),
        migrations.CreateModel(
            name="RoleStatus",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("status", models.CharField(choices=SUB_STATUS_CHOICES, max_length=64)),
                ("display_order", models.PositiveIntegerField(default=0)),
                ("is_active", models.BooleanField(default=True)),
                (
                    "role",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="statuses",
                        to="tracking_core.role",
                    ),
                ),
            ],
            options={
                "ordering": ["role__name", "display_order", "status"],
                "constraints": [
                    models.UniqueConstraint(fields=("role", "status"), name="role_status_unique"),
                ],
            },
        ),
        migrations.CreateModel(
            name="StaffProfile",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "department",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="staff",
                        to="tracking_core.department",
                    ),
                ),
                (
                    "role",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="staff",
                        to="tracking_core.role",
                    ),
                ),
                (
                    "user",
                    models.OneToOneField(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="staff_profile",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "abstract": False,
            },
        ),
        migrations.CreateModel(
            name="OrderItem",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("external_order_id", models.CharField(db_index=True, max_length=100)),
                ("external_item_id", models.CharField(max_length=100)),
                ("store_name", models.CharField(db_index=True, max_length=100)),
                ("product_name", models.CharField(blank=True, max_length=255, null=True)),
                ("sku", models.CharField(blank=True, max_length=100, null=True)),
                ("color", models.CharField(blank=True, default="", max_length=100)),
                ("size", models.CharField(blank=True, default="", max_length=50)),
                ("gender", models.CharField(blank=True, default="", max_length=50)),
                ("product_image", models.CharField(blank=True, default="", max_length=500)),
                ("leather_color", models.CharField(blank=True, max_length=100, null=True)),
                ("quantity", models.PositiveIntegerField(default=1)),
                ("is_leather", models.BooleanField(default=False)),
                ("is_pattern", models.BooleanField(default=False)),
                ("issues", models.TextField(blank=True, null=True)),
                ("scan_token", models.CharField(blank=True, max_length=255, null=True, unique=True)),
                ("scan_url", models.CharField(blank=True, max_length=500, null=True)),
                (
                    "lifecycle_status",
                    models.CharField(choices=LIFECYCLE_CHOICES, db_index=True, default="pending", max_length=20),
                ),
                ("sub_status", models.CharField(blank=True, choices=SUB_STATUS_CHOICES, max_length=64, null=True)),
                (
                    "preparation_type",
                    models.CharField(blank=True, choices=PREPARATION_CHOICES, max_length=20, null=True),
                ),
                ("visibility", models.JSONField(blank=True, null=True)),
                (
                    "current_department",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="held_items",
                        to="tracking_core.department",
                    ),
                ),
                (
                    "handover_department",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="incoming_items",
                        to="tracking_core.department",
                    ),
                ),
                (
                    "last_department",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="released_items",
                        to="tracking_core.department",
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at", "-id"],
                "indexes": [
                    models.Index(fields=["store_name", "lifecycle_status"], name="item_store_status_idx"),
                    models.Index(fields=["current_department", "lifecycle_status"], name="item_dept_status_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("external_order_id", "external_item_id"),
                        name="order_item_external_ids_unique",
                    ),
                    models.CheckConstraint(
                        condition=(
                            models.Q(lifecycle_status__in=HELD_STATES, current_department__isnull=False)
                            | (
                                ~models.Q(lifecycle_status__in=HELD_STATES)
                                & models.Q(current_department__isnull=True)
                            )
                        ),
                        name="order_item_held_iff_department",
                    ),
                    models.CheckConstraint(
                        condition=(
                            models.Q(handover_department__isnull=True)
                            | models.Q(lifecycle_status="checked-out")
                        ),
                        name="order_item_handover_only_when_checked_out",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(quantity__gte=1),
                        name="order_item_quantity_positive",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="OrderItemTracking",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "action_type",
                    models.CharField(
                        choices=[
                            ("check-in", "check-in"),
                            ("check-out", "check-out"),
                            ("status-update", "status-update"),
                        ],
                        max_length=20,
                    ),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[(value, value) for value, _label in LIFECYCLE_CHOICES],
                        max_length=20,
                    ),
                ),
                ("previous_status", models.CharField(blank=True, max_length=20, null=True)),
                ("sub_status", models.CharField(blank=True, max_length=64, null=True)),
                (
                    "preparation_type",
                    models.CharField(
                        blank=True,
                        choices=[("in-house", "in-house"), ("outsourced", "outsourced")],
                        max_length=20,
                        null=True,
                    ),
                ),
                ("notes", models.TextField(blank=True, default="")),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                (
                    "department",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="tracking_entries",
                        to="tracking_core.department",
                    ),
                ),
                (
                    "item",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="tracking_entries",
                        to="tracking_core.orderitem",
                    ),
                ),
                (
                    "performed_by",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="tracking_entries",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at", "-id"],
                "indexes": [
                    models.Index(fields=["item", "created_at"], name="tracking_item_time_idx"),
                ],
            },
        ),
    ]
