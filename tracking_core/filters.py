# tracking_core/filters.py
import django_filters as df

from .models import OrderItem, OrderItemTracking


class OrderItemFilter(df.FilterSet):
    store_name = df.CharFilter(field_name="store_name")
    status = df.CharFilter(field_name="lifecycle_status")
    sub_status = df.CharFilter(field_name="sub_status")
    department_id = df.NumberFilter(field_name="current_department_id")
    external_order_id = df.CharFilter(field_name="external_order_id")
    created_at = df.DateFromToRangeFilter()

    class Meta:
        model = OrderItem
        fields = ["store_name", "status", "sub_status", "department_id", "external_order_id", "created_at"]


class TrackingEntryFilter(df.FilterSet):
    item_id = df.NumberFilter(field_name="item_id")
    scan_token = df.CharFilter(field_name="item__scan_token")
    department_id = df.NumberFilter(field_name="department_id")
    action_type = df.CharFilter(field_name="action_type")

    class Meta:
        model = OrderItemTracking
        fields = ["item_id", "scan_token", "department_id", "action_type"]
