"""URL configuration for the assets JSON API."""

from django.urls import path

from . import views

app_name = "assets"

urlpatterns = [
    # Dashboard
    path("dashboard/", views.dashboard, name="dashboard"),
    path("users/", views.user_list, name="user_list"),
    # Assets
    path("assets/", views.asset_collection, name="asset_collection"),
    path("assets/<uuid:pk>/", views.asset_detail, name="asset_detail"),
    path(
        "assets/<uuid:pk>/sanitize/",
        views.asset_sanitize,
        name="asset_sanitize",
    ),
    path(
        "assets/<uuid:pk>/dispose/",
        views.asset_dispose,
        name="asset_dispose",
    ),
    path(
        "assets/<uuid:pk>/images/",
        views.asset_images,
        name="asset_images",
    ),
    path(
        "assets/<uuid:pk>/hard-drives/<int:drive_pk>/",
        views.hard_drive_detail,
        name="hard_drive_detail",
    ),
    # Intake
    path("intake/", views.intake_collection, name="intake_collection"),
    # Work orders
    path(
        "work-orders/",
        views.work_order_collection,
        name="work_order_collection",
    ),
    path(
        "work-orders/<uuid:pk>/",
        views.work_order_detail,
        name="work_order_detail",
    ),
    path(
        "work-orders/<uuid:pk>/steps/",
        views.work_order_steps,
        name="work_order_steps",
    ),
    # Organizations & locations
    path(
        "organizations/",
        views.organization_collection,
        name="organization_collection",
    ),
    path(
        "organizations/<int:pk>/",
        views.organization_detail,
        name="organization_detail",
    ),
    path("locations/", views.location_collection, name="location_collection"),
    # Reports
    path("reports/export/", views.report_export, name="report_export"),
]
