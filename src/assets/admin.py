"""Admin configuration for assets app using django-unfold."""

from unfold.admin import ModelAdmin, TabularInline
from unfold.contrib.filters.admin import (
    ChoicesDropdownFilter,
    RelatedDropdownFilter,
)
from unfold.decorators import action, display
from unfold.enums import ActionVariant

from django.contrib import admin
from django.http import HttpResponse
from django.utils.html import format_html

from .models import (
    Asset,
    AssetIdentifier,
    AssetImage,
    AssetStatusHistory,
    ChainOfCustodyEvent,
    HardDrive,
    IntakeLine,
    IntakeOrder,
    Location,
    OrgParty,
    SalesLine,
    SalesOrder,
    SanitizationAction,
    SanitizationResult,
    WorkOrder,
    WorkOrderStep,
)

STATUS_LABELS = {
    "RECEIVED": "info",
    "IN_PROCESS": "warning",
    "SANITIZED": "success",
    "READY_FOR_SALE": "success",
    "SCRAPPED": "default",
    "SHIPPED": "default",
    "DESTROYED": "danger",
}


class ReadOnlyAdminMixin:
    """Audit records are written by the lifecycle services only."""

    def has_add_permission(self, request, obj=None):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


class AssetIdentifierInline(TabularInline):
    model = AssetIdentifier
    extra = 0
    fields = ["id_type", "id_value"]

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


class HardDriveInline(TabularInline):
    model = HardDrive
    extra = 0
    fields = [
        "serial_number",
        "capacity_gb",
        "value_usd",
        "destruction_status",
        "destruction_certificate",
        "destroyed_at",
        "verified_by",
    ]
    readonly_fields = ["destroyed_at", "verified_by"]

    def has_delete_permission(self, request, obj=None):
        return False


class AssetImageInline(TabularInline):
    model = AssetImage
    extra = 0
    fields = ["image", "name", "content_type", "size", "uploaded_by"]
    readonly_fields = ["name", "content_type", "size", "uploaded_by"]


class StatusHistoryInline(ReadOnlyAdminMixin, TabularInline):
    model = AssetStatusHistory
    extra = 0
    fields = ["from_status", "to_status", "changed_by", "changed_at", "notes"]
    readonly_fields = fields


class LocationInline(TabularInline):
    model = Location
    extra = 0
    fields = ["name", "address", "is_active"]


@admin.register(OrgParty)
class OrgPartyAdmin(ModelAdmin):
    list_display = [
        "name",
        "display_type",
        "risk_tier",
        "display_active",
        "display_asset_count",
    ]
    list_filter = [
        ("org_type", ChoicesDropdownFilter),
        ("risk_tier", ChoicesDropdownFilter),
        "active",
    ]
    search_fields = ["name", "email", "city"]
    inlines = [LocationInline]

    @display(
        description="Type",
        label={
            "CUSTOMER": "info",
            "SUPPLIER": "success",
            "DOWNSTREAM": "warning",
            "INTERNAL": "default",
        },
    )
    def display_type(self, obj):
        return obj.org_type

    @display(description="Active", boolean=True)
    def display_active(self, obj):
        return obj.active

    @display(description="Assets")
    def display_asset_count(self, obj):
        return obj.assets.count()


@admin.register(Location)
class LocationAdmin(ModelAdmin):
    list_display = ["name", "org", "display_active", "display_asset_count"]
    list_filter = ["is_active", ("org", RelatedDropdownFilter)]
    search_fields = ["name", "address", "description"]
    autocomplete_fields = ["org"]

    @display(description="Active", boolean=True)
    def display_active(self, obj):
        return obj.is_active

    @display(description="Assets")
    def display_asset_count(self, obj):
        return obj.assets.count()


@admin.register(Asset)
class AssetAdmin(ModelAdmin):
    list_display = [
        "display_header",
        "display_status",
        "client",
        "current_location",
        "data_bearing",
        "updated_at",
    ]
    list_filter = [
        ("current_status", ChoicesDropdownFilter),
        ("r2v3_compliance", ChoicesDropdownFilter),
        ("client", RelatedDropdownFilter),
        ("current_location", RelatedDropdownFilter),
        "data_bearing",
        "hazmat",
    ]
    list_filter_submit = True
    search_fields = [
        "manufacturer",
        "model",
        "identifiers__id_value",
        "client__name",
    ]
    # Status and location change only through the audited API.
    readonly_fields = [
        "id",
        "current_status",
        "current_location",
        "created_by",
        "created_at",
        "updated_at",
    ]
    autocomplete_fields = ["client", "assigned_to"]
    inlines = [
        AssetIdentifierInline,
        HardDriveInline,
        AssetImageInline,
        StatusHistoryInline,
    ]
    actions = ["export_selected_xlsx"]

    fieldsets = (
        (
            None,
            {
                "fields": (
                    "id",
                    "client",
                    "manufacturer",
                    "model",
                    "current_status",
                    "current_location",
                    "assigned_to",
                )
            },
        ),
        (
            "Hardware",
            {
                "fields": (
                    "purchase_date",
                    "processor",
                    "ram_size_gb",
                    "storage_type",
                    "storage_capacity_gb",
                    "screen_size_inches",
                    "operating_system",
                    "data_bearing",
                    "hazmat",
                    "resale_value",
                ),
                "classes": ["tab"],
            },
        ),
        (
            "Compliance",
            {
                "fields": (
                    "r2v3_compliance",
                    "compliance_notes",
                    "compliance_summary",
                    "suggested_next_action",
                ),
                "classes": ["tab"],
            },
        ),
        (
            "Tracking",
            {
                "fields": ("created_by", "created_at", "updated_at"),
                "classes": ["tab"],
            },
        ),
    )

    @display(description="Asset", header=True, ordering="manufacturer")
    def display_header(self, obj):
        return str(obj), obj.primary_identifier

    @display(description="Status", label=STATUS_LABELS)
    def display_status(self, obj):
        return obj.current_status

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False

    @action(
        description="Export selected to Excel",
        icon="download",
        variant=ActionVariant.PRIMARY,
    )
    def export_selected_xlsx(self, request, queryset):
        from datetime import date

        from .services.export import (
            ASSET_COLUMNS,
            asset_report_queryset,
            asset_row,
            write_workbook,
        )

        assets = asset_report_queryset().filter(
            pk__in=queryset.values("pk")
        )
        buffer = write_workbook(ASSET_COLUMNS, (asset_row(a) for a in assets))
        response = HttpResponse(
            buffer.getvalue(),
            content_type="application/vnd.openxmlformats-officedocument"
            ".spreadsheetml.sheet",
        )
        filename = f"assets-export-{date.today().isoformat()}.xlsx"
        response["Content-Disposition"] = f'attachment; filename="{filename}"'
        return response


@admin.register(AssetStatusHistory)
class AssetStatusHistoryAdmin(ReadOnlyAdminMixin, ModelAdmin):
    list_display = [
        "asset",
        "from_status",
        "display_to_status",
        "changed_by",
        "changed_at",
    ]
    list_filter = [("to_status", ChoicesDropdownFilter)]
    search_fields = ["asset__manufacturer", "asset__model", "notes"]
    date_hierarchy = "changed_at"

    @display(description="To", label=STATUS_LABELS)
    def display_to_status(self, obj):
        return obj.to_status


@admin.register(ChainOfCustodyEvent)
class ChainOfCustodyEventAdmin(ReadOnlyAdminMixin, ModelAdmin):
    list_display = [
        "asset",
        "display_event_type",
        "from_location",
        "to_location",
        "performed_by",
        "event_ts",
    ]
    list_filter = [
        ("event_type", ChoicesDropdownFilter),
        ("from_location", RelatedDropdownFilter),
        ("to_location", RelatedDropdownFilter),
    ]
    search_fields = ["asset__manufacturer", "asset__model", "notes"]
    date_hierarchy = "event_ts"

    @display(
        description="Event",
        label={
            "RECEIVED": "info",
            "MOVED": "default",
            "SANITIZED": "success",
            "SHIPPED": "warning",
            "DESTROYED": "danger",
            "NOTE": "default",
        },
    )
    def display_event_type(self, obj):
        return obj.event_type


class SanitizationResultInline(ReadOnlyAdminMixin, TabularInline):
    model = SanitizationResult
    extra = 0
    fields = ["passed", "verifier", "verified_at", "certificate_number"]
    readonly_fields = fields


@admin.register(SanitizationAction)
class SanitizationActionAdmin(ReadOnlyAdminMixin, ModelAdmin):
    list_display = [
        "asset",
        "method",
        "certificate_number",
        "performed_by",
        "started_at",
    ]
    list_filter = [("method", ChoicesDropdownFilter)]
    search_fields = ["certificate_number", "tool_name"]
    date_hierarchy = "started_at"
    inlines = [SanitizationResultInline]


class WorkOrderStepInline(TabularInline):
    model = WorkOrderStep
    extra = 0
    fields = [
        "sequence",
        "procedure_code",
        "started_at",
        "ended_at",
        "passed",
        "notes",
    ]


@admin.register(WorkOrder)
class WorkOrderAdmin(ModelAdmin):
    list_display = ["__str__", "asset", "tech", "opened_at", "display_open"]
    list_filter = [("wo_type", ChoicesDropdownFilter)]
    search_fields = ["notes", "asset__manufacturer", "asset__model"]
    autocomplete_fields = ["tech"]
    readonly_fields = ["asset", "opened_at"]
    inlines = [WorkOrderStepInline]

    @display(description="Open", boolean=True)
    def display_open(self, obj):
        return obj.is_open


class IntakeLineInline(TabularInline):
    model = IntakeLine
    extra = 0
    fields = ["description", "quantity", "weight_kg", "asset"]
    raw_id_fields = ["asset"]


@admin.register(IntakeOrder)
class IntakeOrderAdmin(ModelAdmin):
    list_display = [
        "order_number",
        "client",
        "received_date",
        "total_weight_kg",
        "created_by",
    ]
    list_filter = [("client", RelatedDropdownFilter)]
    search_fields = ["order_number", "packing_list_num"]
    date_hierarchy = "received_date"
    readonly_fields = ["created_by", "created_at"]
    inlines = [IntakeLineInline]

    def save_model(self, request, obj, form, change):
        if not change:
            obj.created_by = request.user
        super().save_model(request, obj, form, change)


class SalesLineInline(TabularInline):
    model = SalesLine
    extra = 0
    fields = ["asset", "unit_price", "total_price"]
    readonly_fields = ["asset"]

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(SalesOrder)
class SalesOrderAdmin(ModelAdmin):
    list_display = ["order_number", "customer", "display_status", "created_at"]
    list_filter = [
        ("status", ChoicesDropdownFilter),
        ("customer", RelatedDropdownFilter),
    ]
    search_fields = ["order_number", "notes"]
    readonly_fields = ["order_number", "created_by", "idempotency_key"]
    inlines = [SalesLineInline]

    def has_add_permission(self, request):
        # Orders are created by asset disposal.
        return False

    @display(
        description="Status",
        label={
            "DRAFT": "info",
            "CONFIRMED": "warning",
            "COMPLETED": "success",
            "CANCELLED": "danger",
        },
    )
    def display_status(self, obj):
        return obj.status


@admin.register(AssetImage)
class AssetImageAdmin(ModelAdmin):
    list_display = ["asset", "name", "image_preview", "uploaded_at"]
    search_fields = ["name", "asset__manufacturer", "asset__model"]
    readonly_fields = ["image_preview", "content_type", "size", "uploaded_by"]

    @display(description="Preview")
    def image_preview(self, obj):
        if obj.image:
            return format_html(
                '<img src="{}" style="max-height: 60px;" />', obj.image.url
            )
        return "-"
