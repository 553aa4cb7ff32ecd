from django.urls import path
from . import views

app_name = "assembly"

urlpatterns = [
    path("stages/", views.StageListView.as_view(), name="stage-list"),

    path("products/", views.ProductListView.as_view(), name="product-list"),
    path("products/<int:product_id>/", views.ProductDetailView.as_view(), name="product-detail"),

    path("batches/", views.BatchListView.as_view(), name="batch-list"),
    path("batches/<int:batch_id>/", views.BatchDetailView.as_view(), name="batch-detail"),
    path("batches/<int:batch_id>/serials/", views.BatchSerialsView.as_view(), name="batch-serials"),

    path("units/serial/<str:serial_number>/progress/", views.UnitSerialProgressView.as_view(), name="unit-serial-progress"),
    path("units/<int:unit_id>/", views.UnitDetailView.as_view(), name="unit-detail"),
    path("units/<int:unit_id>/progress/", views.UnitProgressView.as_view(), name="unit-progress"),
    path("units/<int:unit_id>/history/", views.UnitHistoryView.as_view(), name="unit-history"),
    path("units/<int:unit_id>/complete/", views.UnitCompleteStageView.as_view(), name="unit-complete"),
    path("units/<int:unit_id>/reject/", views.UnitRejectStageView.as_view(), name="unit-reject"),

    path("dashboard/", views.DashboardOverviewView.as_view(), name="dashboard"),
    path("dashboard/production/", views.ProductionSummaryView.as_view(), name="dashboard-production"),
    path("dashboard/rejections/", views.RejectionSummaryView.as_view(), name="dashboard-rejections"),
    path("dashboard/wip/", views.WipByStageView.as_view(), name="dashboard-wip"),
]
