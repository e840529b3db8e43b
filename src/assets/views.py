"""JSON API views for the assets app."""

import logging
import math

from django_ratelimit.decorators import ratelimit

from django.conf import settings
from django.contrib.auth import get_user_model
from django.db.models import Count, Prefetch, Q
from django.http import HttpResponse, JsonResponse
from django.shortcuts import get_object_or_404
from django.views.decorators.csrf import ensure_csrf_cookie

from .api import InvalidInput, api_view, clean_form, clean_items, parse_json
from .forms import (
    AssetCreateForm,
    AssetUpdateForm,
    DisposeForm,
    HardDriveDestructionForm,
    HardDriveForm,
    IdentifierForm,
    ImageUploadForm,
    IntakeLineForm,
    IntakeOrderForm,
    LocationForm,
    OrganizationForm,
    SanitizeForm,
    WorkOrderForm,
    WorkOrderStepForm,
    WorkOrderUpdateForm,
)
from .models import (
    STATUS_CHOICES,
    Asset,
    AssetStatusHistory,
    ChainOfCustodyEvent,
    HardDrive,
    IntakeOrder,
    Location,
    OrgParty,
    SanitizationResult,
    WorkOrder,
)
from .serializers import (
    serialize_asset,
    serialize_hard_drive,
    serialize_image,
    serialize_intake_order,
    serialize_location,
    serialize_org,
    serialize_sales_order,
    serialize_sanitization_result,
    serialize_step,
    serialize_user,
    serialize_work_order,
)
from .services import (
    disposal,
    intake,
    lifecycle,
    organizations,
    sanitization,
    work_orders,
)
from .services.search import filter_assets

User = get_user_model()

logger = logging.getLogger(__name__)

XLSX_CONTENT_TYPE = (
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
)


def _positive_int(value, default, name):
    if value in (None, ""):
        return default
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise InvalidInput({name: ["Enter a whole number."]})
    if number < 1:
        raise InvalidInput({name: ["Ensure this value is at least 1."]})
    return number


def _asset_filters(request):
    """Parse the ``status`` and ``clientId`` list filters."""
    status = request.GET.get("status") or None
    if status and status not in dict(STATUS_CHOICES):
        raise InvalidInput({"status": [f"'{status}' is not a valid status."]})
    client_id = _positive_int(request.GET.get("clientId"), None, "clientId")
    return status, client_id


def _idempotency_key(request, cleaned):
    form_key = cleaned.pop("idempotency_key", "")
    return request.headers.get("Idempotency-Key") or form_key or None


def _asset_queryset():
    return Asset.objects.select_related(
        "client", "current_location", "assigned_to"
    ).prefetch_related("identifiers")


def _asset_detail_queryset():
    return _asset_queryset().prefetch_related(
        Prefetch(
            "hard_drives",
            queryset=HardDrive.objects.select_related("verified_by"),
        ),
        Prefetch(
            "status_history",
            queryset=AssetStatusHistory.objects.select_related("changed_by"),
        ),
        Prefetch(
            "custody_events",
            queryset=ChainOfCustodyEvent.objects.select_related(
                "from_location", "to_location", "performed_by"
            ),
        ),
        Prefetch(
            "work_orders",
            queryset=WorkOrder.objects.select_related(
                "tech"
            ).prefetch_related("steps"),
        ),
        Prefetch(
            "sanitization_results",
            queryset=SanitizationResult.objects.select_related(
                "action", "verifier"
            ),
        ),
    )


def _work_order_queryset():
    return WorkOrder.objects.select_related(
        "asset",
        "asset__client",
        "asset__current_location",
        "asset__assigned_to",
        "tech",
    ).prefetch_related("steps", "asset__identifiers")


def _intake_queryset():
    return IntakeOrder.objects.select_related("client").prefetch_related(
        "lines", "lines__asset"
    )


# --- Dashboard ---


@api_view(["GET"])
@ensure_csrf_cookie
def dashboard(request):
    """Current user plus headline counts and the latest assets."""
    stats = Asset.objects.aggregate(
        total_assets=Count("pk"),
        in_process=Count("pk", filter=Q(current_status="IN_PROCESS")),
        ready_for_sale=Count("pk", filter=Q(current_status="READY_FOR_SALE")),
    )
    open_work_orders = WorkOrder.objects.filter(closed_at__isnull=True).count()
    recent = _asset_queryset().order_by("-created_at")[:5]
    return JsonResponse(
        {
            "user": serialize_user(request.user),
            "stats": {
                "totalAssets": stats["total_assets"],
                "inProcess": stats["in_process"],
                "readyForSale": stats["ready_for_sale"],
                "openWorkOrders": open_work_orders,
            },
            "recentAssets": [serialize_asset(a) for a in recent],
        }
    )


@api_view(["GET"])
def user_list(request):
    users = User.objects.filter(is_active=True).order_by(
        "display_name", "username"
    )
    return JsonResponse({"users": [serialize_user(u) for u in users]})


# --- Assets ---


@api_view(["GET", "POST"])
def asset_collection(request):
    if request.method == "POST":
        return _asset_create(request)

    status, client_id = _asset_filters(request)
    page = _positive_int(request.GET.get("page"), 1, "page")
    limit = min(
        _positive_int(
            request.GET.get("limit"), settings.ASSET_PAGE_SIZE, "limit"
        ),
        settings.ASSET_PAGE_SIZE_MAX,
    )
    queryset = filter_assets(
        _asset_queryset(), status=status, client_id=client_id
    )
    total = queryset.count()
    offset = (page - 1) * limit
    assets = queryset[offset : offset + limit]
    return JsonResponse(
        {
            "assets": [serialize_asset(a) for a in assets],
            "pagination": {
                "page": page,
                "limit": limit,
                "total": total,
                "totalPages": math.ceil(total / limit),
            },
        }
    )


def _asset_create(request):
    data = parse_json(request)
    cleaned = clean_form(AssetCreateForm, data)
    identifiers = clean_items(
        IdentifierForm, data.get("identifiers"), "identifiers", required=True
    )
    hard_drives = clean_items(
        HardDriveForm, data.get("hard_drives"), "hard_drives"
    )
    asset = lifecycle.create_asset(
        identifiers=identifiers,
        hard_drives=hard_drives,
        performed_by=request.user,
        **AssetCreateForm.to_service_kwargs(cleaned),
    )
    asset = _asset_detail_queryset().get(pk=asset.pk)
    return JsonResponse(serialize_asset(asset, detail=True), status=201)


@api_view(["GET", "PATCH"])
def asset_detail(request, pk):
    if request.method == "PATCH":
        data = parse_json(request)
        cleaned = clean_form(AssetUpdateForm, data, partial=True)
        lifecycle.update_asset(
            pk,
            request.user,
            **AssetUpdateForm.to_service_kwargs(cleaned),
        )
    asset = get_object_or_404(_asset_detail_queryset(), pk=pk)
    return JsonResponse(serialize_asset(asset, detail=True))


@api_view(["POST"])
def asset_sanitize(request, pk):
    asset = get_object_or_404(Asset, pk=pk)
    cleaned = clean_form(SanitizeForm, parse_json(request))
    key = _idempotency_key(request, cleaned)
    result = sanitization.sanitize_asset(
        asset,
        performed_by=request.user,
        idempotency_key=key,
        **cleaned,
    )
    return JsonResponse(
        {
            "success": True,
            "sanitizationResult": serialize_sanitization_result(result),
            "certificateNumber": result.certificate_number,
        }
    )


@api_view(["POST"])
def asset_dispose(request, pk):
    asset = get_object_or_404(Asset, pk=pk)
    cleaned = clean_form(DisposeForm, parse_json(request))
    key = _idempotency_key(request, cleaned)
    order = disposal.dispose_asset(
        asset,
        cleaned["customer_id"],
        request.user,
        sale_price=cleaned["sale_price"],
        notes=cleaned["notes"],
        idempotency_key=key,
    )
    return JsonResponse(
        {
            "success": True,
            "salesOrder": order.order_number,
            "order": serialize_sales_order(order),
        }
    )


@api_view(["GET", "POST"])
@ratelimit(key="user_or_ip", rate="30/m", method="POST", block=True)
def asset_images(request, pk):
    asset = get_object_or_404(Asset, pk=pk)
    if request.method == "POST":
        from .services.images import store_asset_image

        cleaned = clean_form(ImageUploadForm, request.POST, request.FILES)
        image = store_asset_image(asset, cleaned["file"], request.user)
        return JsonResponse(serialize_image(image), status=201)
    return JsonResponse(
        {"images": [serialize_image(i) for i in asset.images.all()]}
    )


@api_view(["PATCH"])
def hard_drive_detail(request, pk, drive_pk):
    drive = get_object_or_404(HardDrive, pk=drive_pk, asset_id=pk)
    cleaned = clean_form(HardDriveDestructionForm, parse_json(request))
    drive = lifecycle.record_drive_destruction(
        drive,
        request.user,
        cleaned["destruction_status"],
        certificate=cleaned["destruction_certificate"],
        destroyed_at=cleaned["destroyed_at"],
    )
    return JsonResponse(serialize_hard_drive(drive))


# --- Intake ---


@api_view(["GET", "POST"])
def intake_collection(request):
    if request.method == "POST":
        data = parse_json(request)
        cleaned = clean_form(IntakeOrderForm, data)
        lines = clean_items(
            IntakeLineForm, data.get("lines"), "lines", required=True
        )
        order = intake.create_intake_order(
            client=cleaned["client_id"],
            order_number=cleaned["order_number"],
            received_date=cleaned["received_date"],
            lines=lines,
            performed_by=request.user,
            packing_list_num=cleaned["packing_list_num"],
            total_weight_kg=cleaned["total_weight_kg"],
            notes=cleaned["notes"],
        )
        order = _intake_queryset().get(pk=order.pk)
        return JsonResponse(serialize_intake_order(order), status=201)

    orders = _intake_queryset().order_by("-received_date")
    return JsonResponse(
        {"intakeOrders": [serialize_intake_order(o) for o in orders]}
    )


# --- Work orders ---


@api_view(["GET", "POST"])
def work_order_collection(request):
    if request.method == "POST":
        data = parse_json(request)
        cleaned = clean_form(WorkOrderForm, data)
        steps = clean_items(WorkOrderStepForm, data.get("steps"), "steps")
        work_order = work_orders.open_work_order(
            cleaned["asset_id"],
            cleaned["wo_type"],
            request.user,
            tech=cleaned["tech_id"],
            notes=cleaned["notes"],
            steps=steps,
        )
        work_order = _work_order_queryset().get(pk=work_order.pk)
        return JsonResponse(
            serialize_work_order(work_order, include_asset=True), status=201
        )

    queryset = _work_order_queryset()
    status = request.GET.get("status")
    if status == "open":
        queryset = queryset.filter(closed_at__isnull=True)
    elif status == "closed":
        queryset = queryset.filter(closed_at__isnull=False)
    elif status:
        raise InvalidInput({"status": ["Must be 'open' or 'closed'."]})
    asset_id = request.GET.get("assetId")
    if asset_id:
        queryset = queryset.filter(asset_id=asset_id)
    return JsonResponse(
        {
            "workOrders": [
                serialize_work_order(w, include_asset=True)
                for w in queryset.order_by("-opened_at")
            ]
        }
    )


@api_view(["PATCH"])
def work_order_detail(request, pk):
    work_order = get_object_or_404(WorkOrder, pk=pk)
    cleaned = clean_form(
        WorkOrderUpdateForm, parse_json(request), partial=True
    )
    changes = {}
    if cleaned.get("tech_id"):
        changes["tech"] = cleaned["tech_id"]
    if "notes" in cleaned:
        changes["notes"] = cleaned["notes"] or ""
    if "closed_at" in cleaned:
        changes["closed_at"] = cleaned["closed_at"]
    work_orders.update_work_order(work_order, **changes)
    work_order = _work_order_queryset().get(pk=work_order.pk)
    return JsonResponse(serialize_work_order(work_order, include_asset=True))


@api_view(["POST", "PATCH"])
def work_order_steps(request, pk):
    work_order = get_object_or_404(WorkOrder, pk=pk)
    data = parse_json(request)
    if request.method == "POST":
        cleaned = clean_form(WorkOrderStepForm, data)
        step = work_orders.add_step(work_order, **cleaned)
        return JsonResponse(serialize_step(step), status=201)

    if not request.GET.get("stepId"):
        raise InvalidInput(
            {"stepId": ["This parameter is required."]},
            message="stepId is required",
        )
    step_id = _positive_int(request.GET.get("stepId"), None, "stepId")
    cleaned = clean_form(WorkOrderStepForm, data, partial=True)
    step = work_orders.update_step(work_order, step_id, **cleaned)
    return JsonResponse(serialize_step(step))


# --- Organizations & locations ---


@api_view(["GET", "POST"])
def organization_collection(request):
    if request.method == "POST":
        data = parse_json(request)
        cleaned = clean_form(OrganizationForm, data)
        fields = OrganizationForm.to_service_kwargs(cleaned)
        if "active" not in data:
            fields["active"] = True
        org = organizations.create_organization(**fields)
        return JsonResponse(
            serialize_org(org, counts={"assets": 0, "locations": 0}),
            status=201,
        )

    queryset = OrgParty.objects.annotate(
        asset_count=Count("assets", distinct=True),
        location_count=Count("locations", distinct=True),
    )
    org_type = request.GET.get("type")
    if org_type:
        if org_type not in dict(OrgParty.TYPE_CHOICES):
            raise InvalidInput(
                {"type": [f"'{org_type}' is not a valid type."]}
            )
        queryset = queryset.filter(org_type=org_type)
    active = request.GET.get("active")
    if active:
        queryset = queryset.filter(active=active.lower() in ("true", "1"))
    return JsonResponse(
        {
            "organizations": [
                serialize_org(
                    org,
                    counts={
                        "assets": org.asset_count,
                        "locations": org.location_count,
                    },
                )
                for org in queryset
            ]
        }
    )


@api_view(["GET", "PATCH", "DELETE"])
def organization_detail(request, pk):
    org = get_object_or_404(OrgParty, pk=pk)
    if request.method == "DELETE":
        organizations.delete_organization(org)
        return JsonResponse({"success": True})
    if request.method == "PATCH":
        cleaned = clean_form(
            OrganizationForm, parse_json(request), partial=True
        )
        org = organizations.update_organization(
            org, **OrganizationForm.to_service_kwargs(cleaned)
        )
    return JsonResponse(
        serialize_org(
            org,
            counts={
                "assets": org.assets.count(),
                "locations": org.locations.count(),
            },
        )
    )


@api_view(["GET", "POST"])
def location_collection(request):
    if request.method == "POST":
        cleaned = clean_form(LocationForm, parse_json(request))
        location = Location(
            org=cleaned["org_id"],
            name=cleaned["name"],
            address=cleaned["address"],
            description=cleaned["description"],
        )
        location.full_clean()
        location.save()
        logger.info(
            "Location %s created for organization %s",
            location.pk,
            location.org_id,
        )
        return JsonResponse(serialize_location(location), status=201)

    queryset = Location.objects.filter(is_active=True)
    org_id = _positive_int(request.GET.get("orgId"), None, "orgId")
    if org_id:
        queryset = queryset.filter(org_id=org_id)
    return JsonResponse(
        {"locations": [serialize_location(loc) for loc in queryset]}
    )


# --- Reports ---


@api_view(["GET"])
@ratelimit(key="user_or_ip", rate="30/m", method="GET", block=True)
def report_export(request):
    """Download a report as an .xlsx workbook."""
    from .services.export import REPORT_TYPES, export_report_xlsx

    report_type = request.GET.get("type") or "assets"
    if report_type not in REPORT_TYPES:
        raise InvalidInput(
            {"type": [f"Must be one of: {', '.join(REPORT_TYPES)}."]},
            message="Invalid report type",
        )
    status, client_id = _asset_filters(request)
    buffer, filename = export_report_xlsx(
        report_type, status=status, client_id=client_id
    )

    response = HttpResponse(buffer.getvalue(), content_type=XLSX_CONTENT_TYPE)
    response["Content-Disposition"] = f'attachment; filename="{filename}"'
    return response
