from __future__ import annotations

import json
from typing import Any, Dict

from django.contrib.auth import get_user_model
from rest_framework import serializers

from .models import Department, OrderItem, OrderItemTracking
from .tracking import LIFECYCLE_STATES, PREPARATION_TYPES
from .tracking.visibility import VisibilityQuery


# ===============================================================
# Helpers
# ===============================================================

class FlexibleListField(serializers.ListField):
    """
    Accepts repeated query params (?role_ids=1&role_ids=2), a JSON array
    string (?role_ids=["1","2"]) or a comma separated string.
    """

    child = serializers.CharField()

    def to_internal_value(self, data):
        if isinstance(data, str):
            data = [data]
        if len(data) == 1 and isinstance(data[0], str):
            raw = data[0].strip()
            if raw.startswith("["):
                try:
                    data = json.loads(raw)
                except ValueError:
                    raise serializers.ValidationError("Not a valid JSON array.")
            elif "," in raw:
                data = [part.strip() for part in raw.split(",") if part.strip()]
        return super().to_internal_value(data)


class UserSlimSerializer(serializers.ModelSerializer):
    class Meta:
        model = get_user_model()
        fields = ("id", "username", "email")
        read_only_fields = fields


class DepartmentSlimSerializer(serializers.ModelSerializer):
    class Meta:
        model = Department
        fields = ("id", "code", "name")
        read_only_fields = fields


# ===============================================================
# Read models
# ===============================================================

class OrderItemSerializer(serializers.ModelSerializer):
    current_department = DepartmentSlimSerializer(read_only=True)
    last_department = DepartmentSlimSerializer(read_only=True)
    handover_department = DepartmentSlimSerializer(read_only=True)

    class Meta:
        model = OrderItem
        fields = (
            "id",
            "external_order_id",
            "external_item_id",
            "store_name",
            "product_name",
            "sku",
            "color",
            "size",
            "gender",
            "product_image",
            "leather_color",
            "quantity",
            "is_leather",
            "is_pattern",
            "issues",
            "scan_token",
            "scan_url",
            "lifecycle_status",
            "sub_status",
            "preparation_type",
            "current_department",
            "last_department",
            "handover_department",
            "visibility",
            "created_at",
            "updated_at",
        )
        read_only_fields = fields


class TrackingEntrySerializer(serializers.ModelSerializer):
    department = DepartmentSlimSerializer(read_only=True)
    performed_by = UserSlimSerializer(read_only=True)
    item_id = serializers.IntegerField(read_only=True)

    class Meta:
        model = OrderItemTracking
        fields = (
            "id",
            "item_id",
            "department",
            "performed_by",
            "action_type",
            "status",
            "previous_status",
            "sub_status",
            "preparation_type",
            "notes",
            "created_at",
        )
        read_only_fields = fields


class WorkflowResultSerializer(serializers.Serializer):
    message = serializers.CharField()
    tracking = TrackingEntrySerializer(source="entry")
    item = OrderItemSerializer()


# ===============================================================
# Workflow requests
# ===============================================================

class _ActorSerializer(serializers.Serializer):
    scan_token = serializers.CharField()
    department_id = serializers.IntegerField()
    user_id = serializers.IntegerField()
    password = serializers.CharField(write_only=True, trim_whitespace=False)
    notes = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class CheckInSerializer(_ActorSerializer):
    preparation_type = serializers.ChoiceField(
        choices=PREPARATION_TYPES, required=False, allow_null=True
    )
    sub_status = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class CheckOutSerializer(_ActorSerializer):
    handover_department_id = serializers.IntegerField()


class UpdateStatusSerializer(_ActorSerializer):
    status = serializers.ChoiceField(choices=LIFECYCLE_STATES)
    preparation_type = serializers.ChoiceField(
        choices=PREPARATION_TYPES, required=False, allow_null=True
    )
    sub_status = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class ReturnToStageSerializer(_ActorSerializer):
    target_sub_status = serializers.CharField()
    reason = serializers.CharField(required=False, allow_blank=True, allow_null=True)


# ===============================================================
# Query params
# ===============================================================

class VisibilityParamsSerializer(serializers.Serializer):
    role_id = serializers.CharField(required=False, allow_blank=True)
    role_name = serializers.CharField(required=False, allow_blank=True)
    role_ids = FlexibleListField(required=False)
    role_names = FlexibleListField(required=False)

    def to_query(self) -> VisibilityQuery:
        return VisibilityQuery.from_params(self.validated_data)


class PaginationParamsSerializer(VisibilityParamsSerializer):
    page = serializers.IntegerField(required=False, min_value=1)
    limit = serializers.IntegerField(required=False, min_value=1)


class ItemStatusesParamsSerializer(serializers.Serializer):
    item_id = serializers.IntegerField(required=False)
    external_order_id = serializers.CharField(required=False)

    def validate(self, attrs: Dict[str, Any]) -> Dict[str, Any]:
        if not attrs.get("item_id") and not attrs.get("external_order_id"):
            raise serializers.ValidationError(
                "Either item_id or external_order_id must be provided"
            )
        return attrs


# ===============================================================
# Ingestion / admin requests
# ===============================================================

class VisibilitySerializer(serializers.Serializer):
    role_ids = serializers.ListField(child=serializers.CharField(), required=False, default=list)
    role_names = serializers.ListField(child=serializers.CharField(), required=False, default=list)


class IngestRowSerializer(serializers.Serializer):
    external_order_id = serializers.CharField()
    external_item_id = serializers.CharField()
    product_name = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    sku = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    color = serializers.CharField(required=False, allow_blank=True)
    size = serializers.CharField(required=False, allow_blank=True)
    gender = serializers.CharField(required=False, allow_blank=True)
    product_image = serializers.CharField(required=False, allow_blank=True)
    leather_color = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    quantity = serializers.IntegerField(required=False, min_value=1, default=1)
    is_leather = serializers.BooleanField(required=False, default=False)
    is_pattern = serializers.BooleanField(required=False, default=False)
    sub_status = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class IngestSerializer(serializers.Serializer):
    store_name = serializers.CharField()
    items = IngestRowSerializer(many=True, allow_empty=False)
    visibility = VisibilitySerializer(required=False, allow_null=True)
    user_id = serializers.IntegerField(required=False, allow_null=True)
    department_id = serializers.IntegerField(required=False, allow_null=True)


class IssuesSerializer(serializers.Serializer):
    issues = serializers.CharField(allow_blank=True, allow_null=True)
