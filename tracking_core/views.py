# tracking_core/views.py
from __future__ import annotations

from drf_spectacular.utils import OpenApiParameter, OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from tracking_core.serializers import (
    CheckInSerializer,
    CheckOutSerializer,
    IngestSerializer,
    IssuesSerializer,
    ItemStatusesParamsSerializer,
    OrderItemSerializer,
    PaginationParamsSerializer,
    ReturnToStageSerializer,
    TrackingEntrySerializer,
    UpdateStatusSerializer,
    VisibilityParamsSerializer,
    VisibilitySerializer,
    WorkflowResultSerializer,
)
from tracking_core.services import ingestion, queries
from tracking_core.services.order_tracking import OrderTrackingService
from tracking_core.tracking import catalog_definition


VISIBILITY_PARAMETERS = [
    OpenApiParameter("role_id", str, required=False),
    OpenApiParameter("role_name", str, required=False),
    OpenApiParameter("role_ids", str, required=False, many=True),
    OpenApiParameter("role_names", str, required=False, many=True),
]

PAGE_PARAMETERS = [
    OpenApiParameter("page", int, required=False),
    OpenApiParameter("limit", int, required=False),
]

WORKFLOW_ERRORS = {
    400: OpenApiResponse(description="Invalid transition or input"),
    401: OpenApiResponse(description="Invalid password"),
    404: OpenApiResponse(description="User, department or scan token not found"),
    409: OpenApiResponse(description="Ownership conflict or already checked in"),
}


def _params(serializer_class, request):
    params = serializer_class(data=request.query_params)
    params.is_valid(raise_exception=True)
    return params


def _page_response(page, serializer_class):
    return Response(
        page.as_dict(lambda rows: serializer_class(rows, many=True).data)
    )


# ===============================================================
# Workflow (authoritative mutations)
# ===============================================================

class _WorkflowView(APIView):
    """
    Every workflow call re-verifies the acting user's password, so the
    request user (JWT/session) only gates access to the endpoint.
    """

    permission_classes = [IsAuthenticated]
    request_serializer = None
    service_class = OrderTrackingService

    def run(self, service: OrderTrackingService, data: dict):
        raise NotImplementedError

    def post(self, request):
        serializer = self.request_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = self.run(self.service_class(), dict(serializer.validated_data))
        return Response(WorkflowResultSerializer(result).data, status=status.HTTP_200_OK)


class CheckInView(_WorkflowView):
    request_serializer = CheckInSerializer

    @extend_schema(request=CheckInSerializer, responses={200: WorkflowResultSerializer, **WORKFLOW_ERRORS})
    def post(self, request):
        return super().post(request)

    def run(self, service, data):
        return service.check_in(**data)


class CheckOutView(_WorkflowView):
    request_serializer = CheckOutSerializer

    @extend_schema(request=CheckOutSerializer, responses={200: WorkflowResultSerializer, **WORKFLOW_ERRORS})
    def post(self, request):
        return super().post(request)

    def run(self, service, data):
        return service.check_out(**data)


class UpdateStatusView(_WorkflowView):
    request_serializer = UpdateStatusSerializer

    @extend_schema(request=UpdateStatusSerializer, responses={200: WorkflowResultSerializer, **WORKFLOW_ERRORS})
    def post(self, request):
        return super().post(request)

    def run(self, service, data):
        return service.update_status(**data)


class ReturnToStageView(_WorkflowView):
    request_serializer = ReturnToStageSerializer

    @extend_schema(request=ReturnToStageSerializer, responses={200: WorkflowResultSerializer, **WORKFLOW_ERRORS})
    def post(self, request):
        return super().post(request)

    def run(self, service, data):
        return service.return_to_stage(**data)


# ===============================================================
# Items
# ===============================================================

class OrderItemListView(APIView):
    """
    GET /tracking/items/?store_name=&status=&department_id=&role_ids=...
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        parameters=[
            OpenApiParameter("store_name", str, required=False),
            OpenApiParameter("status", str, required=False),
            OpenApiParameter("sub_status", str, required=False),
            OpenApiParameter("department_id", int, required=False),
            OpenApiParameter("external_order_id", str, required=False),
            *PAGE_PARAMETERS,
            *VISIBILITY_PARAMETERS,
        ],
        responses={200: OpenApiResponse(description="Paginated order items")},
    )
    def get(self, request):
        params = _params(PaginationParamsSerializer, request)
        page = queries.list_items(
            request.query_params,
            params.to_query(),
            page=params.validated_data.get("page"),
            limit=params.validated_data.get("limit"),
        )
        return _page_response(page, OrderItemSerializer)


class OrderItemByScanTokenView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        parameters=VISIBILITY_PARAMETERS,
        responses={200: OrderItemSerializer, 404: OpenApiResponse(description="Not found or not visible")},
    )
    def get(self, request, token: str):
        params = _params(VisibilityParamsSerializer, request)
        item = queries.get_item_by_scan_token(token, params.to_query())
        return Response(OrderItemSerializer(item).data)


class OrderItemStatusesView(APIView):
    """
    GET /tracking/items/statuses/?item_id=<id> | ?external_order_id=<id>
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        parameters=[
            OpenApiParameter("item_id", int, required=False),
            OpenApiParameter("external_order_id", str, required=False),
        ],
        responses={200: OpenApiResponse(description="Ledger entries, oldest first")},
    )
    def get(self, request):
        params = _params(ItemStatusesParamsSerializer, request)
        found = queries.get_item_statuses(
            item_id=params.validated_data.get("item_id"),
            external_order_id=params.validated_data.get("external_order_id"),
        )
        return Response(
            {
                "items": OrderItemSerializer(found["items"], many=True).data,
                "results": TrackingEntrySerializer(found["entries"], many=True).data,
            }
        )


class ScanTokenView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(request=None, responses={200: OpenApiResponse(description="New scan token and URL")})
    def post(self, request, pk: int):
        return Response(ingestion.generate_scan_token(pk))


class OrderItemVisibilityView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(request=VisibilitySerializer, responses={200: OrderItemSerializer})
    def put(self, request, pk: int):
        serializer = VisibilitySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        item = ingestion.assign_visibility(
            pk,
            serializer.validated_data.get("role_ids"),
            serializer.validated_data.get("role_names"),
        )
        return Response(OrderItemSerializer(item).data)


class OrderItemIssuesView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(request=IssuesSerializer, responses={200: OrderItemSerializer})
    def patch(self, request, pk: int):
        serializer = IssuesSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        item = ingestion.update_issues(pk, serializer.validated_data.get("issues"))
        return Response(OrderItemSerializer(item).data)


class OrderItemDetailView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(responses={200: OpenApiResponse(description="Item and its ledger removed")})
    def delete(self, request, pk: int):
        return Response(ingestion.delete_item(pk))


class OrderItemSyncView(APIView):
    """
    POST /tracking/items/sync/

    Upsert items pushed by an upstream system.
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(request=IngestSerializer, responses={200: OpenApiResponse(description="Created/updated counts")})
    def post(self, request):
        serializer = IngestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        result = ingestion.ingest_items(
            [dict(row) for row in data["items"]],
            data["store_name"],
            visibility=data.get("visibility"),
            user_id=data.get("user_id"),
            department_id=data.get("department_id"),
        )
        return Response(
            {
                "message": result.message,
                "synced": result.created,
                "updated": result.updated,
            }
        )


class StoreSyncView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(request=None, responses={200: OpenApiResponse(description="Orders pulled from the store")})
    def post(self, request, store: str):
        return Response(ingestion.sync_store(store))


# ===============================================================
# Ledger
# ===============================================================

class TrackingHistoryView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        parameters=[
            OpenApiParameter("item_id", int, required=False),
            OpenApiParameter("scan_token", str, required=False),
            OpenApiParameter("department_id", int, required=False),
            OpenApiParameter("action_type", str, required=False),
            *PAGE_PARAMETERS,
            *VISIBILITY_PARAMETERS,
        ],
        responses={200: OpenApiResponse(description="Paginated ledger entries, newest first")},
    )
    def get(self, request):
        params = _params(PaginationParamsSerializer, request)
        page = queries.list_tracking_history(
            request.query_params,
            params.to_query(),
            page=params.validated_data.get("page"),
            limit=params.validated_data.get("limit"),
        )
        return _page_response(page, TrackingEntrySerializer)


# ===============================================================
# Catalog
# ===============================================================

class StatusCatalogView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(responses={200: OpenApiResponse(description="Lifecycle and sub-status graphs")})
    def get(self, request):
        return Response(catalog_definition())


class HealthCheckView(APIView):
    permission_classes = [AllowAny]

    @extend_schema(tags=["System"])
    def get(self, request):
        return Response({"status": "ok", "service": "prod-tracker"})
