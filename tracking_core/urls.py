# tracking_core/urls.py

from django.urls import path

from .views import (
    CheckInView,
    CheckOutView,
    HealthCheckView,
    OrderItemByScanTokenView,
    OrderItemDetailView,
    OrderItemIssuesView,
    OrderItemListView,
    OrderItemStatusesView,
    OrderItemSyncView,
    OrderItemVisibilityView,
    ReturnToStageView,
    ScanTokenView,
    StatusCatalogView,
    StoreSyncView,
    TrackingHistoryView,
    UpdateStatusView,
)

urlpatterns = [
    path("health/", HealthCheckView.as_view(), name="health"),

    # -------------------------------------------------
    # Workflow (authoritative mutations)
    # -------------------------------------------------
    path("check-in/", CheckInView.as_view(), name="tracking-check-in"),
    path("check-out/", CheckOutView.as_view(), name="tracking-check-out"),
    path("update-status/", UpdateStatusView.as_view(), name="tracking-update-status"),
    path("return-to-stage/", ReturnToStageView.as_view(), name="tracking-return-to-stage"),

    # -------------------------------------------------
    # Items
    # -------------------------------------------------
    path("items/", OrderItemListView.as_view(), name="tracking-items"),
    path("items/sync/", OrderItemSyncView.as_view(), name="tracking-items-sync"),
    path("items/statuses/", OrderItemStatusesView.as_view(), name="tracking-item-statuses"),
    path("items/scan/<str:token>/", OrderItemByScanTokenView.as_view(), name="tracking-item-by-scan"),
    path("items/<int:pk>/scan-token/", ScanTokenView.as_view(), name="tracking-item-scan-token"),
    path("items/<int:pk>/visibility/", OrderItemVisibilityView.as_view(), name="tracking-item-visibility"),
    path("items/<int:pk>/issues/", OrderItemIssuesView.as_view(), name="tracking-item-issues"),
    path("items/<int:pk>/", OrderItemDetailView.as_view(), name="tracking-item-detail"),

    # -------------------------------------------------
    # Ledger / stores / catalog
    # -------------------------------------------------
    path("history/", TrackingHistoryView.as_view(), name="tracking-history"),
    path("stores/<str:store>/sync/", StoreSyncView.as_view(), name="tracking-store-sync"),
    path("catalog/", StatusCatalogView.as_view(), name="tracking-catalog"),
]
