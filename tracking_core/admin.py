# tracking_core/admin.py

from django.contrib import admin

from .models import (
    Department,
    Role,
    RoleStatus,
    StaffProfile,
    OrderItem,
    OrderItemTracking,
)


# =============================================================
# Tracking ledger (READ-ONLY AUDIT LOG)
# =============================================================

@admin.register(OrderItemTracking)
class OrderItemTrackingAdmin(admin.ModelAdmin):
    list_display = (
        "item",
        "action_type",
        "previous_status",
        "status",
        "sub_status",
        "department",
        "performed_by",
        "created_at",
    )
    list_filter = (
        "action_type",
        "status",
        "department",
    )
    search_fields = (
        "item__external_order_id",
        "item__scan_token",
        "performed_by__username",
    )
    ordering = ("-created_at", "-id")

    readonly_fields = [f.name for f in OrderItemTracking._meta.fields]

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


# =============================================================
# Order items
# =============================================================

@admin.register(OrderItem)
class OrderItemAdmin(admin.ModelAdmin):
    list_display = (
        "external_order_id",
        "external_item_id",
        "store_name",
        "lifecycle_status",
        "sub_status",
        "current_department",
        "created_at",
    )
    list_filter = ("store_name", "lifecycle_status", "current_department")
    search_fields = ("external_order_id", "external_item_id", "scan_token", "sku")
    ordering = ("-created_at", "-id")

    # location/status move only through the tracking service
    readonly_fields = (
        "lifecycle_status",
        "sub_status",
        "current_department",
        "last_department",
        "handover_department",
        "scan_token",
        "scan_url",
        "created_at",
        "updated_at",
    )


# =============================================================
# Directories
# =============================================================

@admin.register(Department)
class DepartmentAdmin(admin.ModelAdmin):
    list_display = ("code", "name", "is_active")
    list_filter = ("is_active",)
    search_fields = ("code", "name")
    ordering = ("name",)


class RoleStatusInline(admin.TabularInline):
    model = RoleStatus
    extra = 0
    fields = ("status", "display_order", "is_active")
    ordering = ("display_order", "status")


@admin.register(Role)
class RoleAdmin(admin.ModelAdmin):
    list_display = ("name", "description")
    search_fields = ("name",)
    inlines = [RoleStatusInline]


@admin.register(StaffProfile)
class StaffProfileAdmin(admin.ModelAdmin):
    list_display = ("user", "role", "department")
    list_filter = ("role", "department")
    search_fields = ("user__username",)
