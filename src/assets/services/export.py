"""Excel report exports: assets, chain of custody and work orders."""

from datetime import date
from decimal import Decimal
from io import BytesIO

import openpyxl
from openpyxl.styles import Font, PatternFill

from django.conf import settings
from django.db.models import Prefetch
from django.utils import timezone

from ..models import ChainOfCustodyEvent, SanitizationResult, WorkOrder
from .search import filter_assets

REPORT_TYPES = ("assets", "chain-of-custody", "work-orders")

# Threshold above which .iterator() is used for memory efficiency
ITERATOR_THRESHOLD = 1000
ITERATOR_CHUNK_SIZE = 1000

ASSET_COLUMNS = [
    "Asset Tag",
    "Serial Number",
    "Make",
    "Model",
    "Processor",
    "RAM Size (GB)",
    "Storage Type",
    "Storage Capacity (GB)",
    "Screen Size (inches)",
    "Operating System",
    "R2v3 Compliance",
    "Asset Value (USD)",
    "Purchase Date",
    "Location",
    "Assigned To",
    "Compliance Notes",
    "Hard Drives",
    "Asset Age (years)",
    "Number of Hard Drives",
    "Total Hard Drive Capacity (GB)",
    "Total Hard Drive Value (USD)",
    "All Hard Drive Destruction Statuses",
    "Destruction Certificates",
    "Hard Drive Wiped",
    "Wipe Certificate",
    "Wiped Date",
    "Asset Compliance Summary",
    "Suggested Next Compliance Action",
]

CUSTODY_COLUMNS = [
    "Event Type",
    "Event Date",
    "Asset ID",
    "Manufacturer",
    "Model",
    "Client",
    "From Location",
    "To Location",
    "Performed By",
    "Notes",
]

WORK_ORDER_COLUMNS = [
    "Work Order ID",
    "Type",
    "Asset ID",
    "Client",
    "Tech",
    "Opened",
    "Closed",
    "Steps",
    "Status",
]


def _date(value):
    if value is None:
        return ""
    if hasattr(value, "tzinfo"):
        value = timezone.localtime(value)
    return value.strftime("%Y-%m-%d")


def _datetime(value):
    return timezone.localtime(value).strftime("%Y-%m-%d %H:%M:%S")


def _money(value):
    return f"{Decimal(value or 0):.2f}"


def _user_name(user):
    return user.get_display_name() if user else ""


def _asset_label(asset):
    """First identifier value, falling back to a short asset id."""
    identifiers = list(asset.identifiers.all())
    return identifiers[0].id_value if identifiers else str(asset.id)[:8]


def destruction_summary(drives) -> str:
    """Summarize drive destruction as Compliant, Mixed or Not Destroyed.

    An asset without drives has nothing left to destroy and reads as
    Compliant.
    """
    if all(d.destruction_status == "COMPLIANT" for d in drives):
        return "Compliant"
    if any(d.destruction_status for d in drives):
        return "Mixed"
    return "Not Destroyed"


def asset_row(asset) -> list:
    """Flatten one asset into ``ASSET_COLUMNS`` order.

    Expects ``identifiers``, ``hard_drives`` and ``passed_wipes``
    prefetched (see ``asset_report_queryset``).
    """
    identifiers = list(asset.identifiers.all())
    by_type = {}
    for ident in identifiers:
        by_type.setdefault(ident.id_type, ident.id_value)
    drives = list(asset.hard_drives.all())
    wipe = asset.passed_wipes[0] if asset.passed_wipes else None
    age = asset.age_years

    return [
        by_type.get("CLIENT_TAG")
        or (identifiers[0].id_value if identifiers else ""),
        by_type.get("SERIAL", ""),
        asset.manufacturer,
        asset.model,
        asset.processor,
        asset.ram_size_gb or "",
        asset.storage_type,
        asset.storage_capacity_gb or "",
        float(asset.screen_size_inches) if asset.screen_size_inches else "",
        asset.operating_system,
        asset.r2v3_compliance,
        _money(asset.resale_value) if asset.resale_value else "",
        _date(asset.purchase_date),
        asset.current_location.name if asset.current_location else "",
        _user_name(asset.assigned_to) or "Unassigned",
        asset.compliance_notes,
        ", ".join(d.serial_number for d in drives),
        str(age) if age is not None else "",
        len(drives),
        sum(d.capacity_gb or 0 for d in drives),
        _money(sum((d.value_usd or 0 for d in drives), Decimal("0"))),
        destruction_summary(drives),
        ", ".join(
            d.destruction_certificate
            for d in drives
            if d.destruction_certificate
        ),
        "Yes" if wipe else "No",
        wipe.certificate_number if wipe else "",
        _date(wipe.verified_at) if wipe else "",
        asset.compliance_summary,
        asset.suggested_next_action,
    ]


def asset_report_queryset(status=None, client_id=None):
    """Assets matching the list filters, with report relations loaded."""
    return (
        filter_assets(status=status, client_id=client_id)
        .select_related("client", "current_location", "assigned_to")
        .prefetch_related(
            "identifiers",
            "hard_drives",
            Prefetch(
                "sanitization_results",
                queryset=SanitizationResult.objects.filter(
                    passed=True
                ).order_by("-created_at", "-pk"),
                to_attr="passed_wipes",
            ),
        )
    )


def custody_rows(limit):
    events = ChainOfCustodyEvent.objects.select_related(
        "asset",
        "asset__client",
        "from_location",
        "to_location",
        "performed_by",
    ).prefetch_related("asset__identifiers")[:limit]
    for event in events:
        yield [
            event.event_type,
            _datetime(event.event_ts),
            _asset_label(event.asset),
            event.asset.manufacturer,
            event.asset.model,
            event.asset.client.name,
            event.from_location.name if event.from_location else "",
            event.to_location.name if event.to_location else "",
            _user_name(event.performed_by),
            event.notes,
        ]


def work_order_rows(limit):
    work_orders = WorkOrder.objects.select_related(
        "asset", "asset__client", "tech"
    ).prefetch_related("asset__identifiers", "steps")[:limit]
    for wo in work_orders:
        yield [
            str(wo.id)[:8],
            wo.wo_type,
            _asset_label(wo.asset),
            wo.asset.client.name,
            _user_name(wo.tech),
            _date(wo.opened_at),
            _date(wo.closed_at),
            len(wo.steps.all()),
            "Open" if wo.is_open else "Closed",
        ]


def build_report_rows(report_type, status=None, client_id=None):
    """Return ``(columns, rows)`` for ``report_type``.

    Raises ``ValueError`` for an unknown report type.
    """
    limit = settings.REPORT_ROW_LIMIT
    if report_type == "assets":
        queryset = asset_report_queryset(status=status, client_id=client_id)
        # Use .iterator() for large datasets to reduce memory pressure
        if queryset.count() > ITERATOR_THRESHOLD:
            queryset = queryset.iterator(chunk_size=ITERATOR_CHUNK_SIZE)
        return ASSET_COLUMNS, (asset_row(a) for a in queryset)
    if report_type == "chain-of-custody":
        return CUSTODY_COLUMNS, custody_rows(limit)
    if report_type == "work-orders":
        return WORK_ORDER_COLUMNS, work_order_rows(limit)
    raise ValueError(f"Unknown report type '{report_type}'.")


def write_workbook(columns, rows) -> BytesIO:
    """Write rows to a single-sheet ("Data") workbook."""
    wb = openpyxl.Workbook()
    ws = wb.active
    ws.title = "Data"
    header_font = Font(bold=True)
    header_fill = PatternFill(
        start_color="F59E0B", end_color="F59E0B", fill_type="solid"
    )
    ws.append(columns)
    for col_idx, _header in enumerate(columns, 1):
        cell = ws.cell(row=1, column=col_idx)
        cell.font = header_font
        cell.fill = header_fill

    for row in rows:
        ws.append(row)

    # Auto-size columns
    for column_cells in ws.columns:
        max_length = max(len(str(cell.value or "")) for cell in column_cells)
        ws.column_dimensions[column_cells[0].column_letter].width = min(
            max_length + 2, 50
        )

    buffer = BytesIO()
    wb.save(buffer)
    buffer.seek(0)
    return buffer


def export_report_xlsx(report_type, status=None, client_id=None):
    """Export a report to an Excel workbook.

    Returns ``(buffer, filename)`` where the filename follows
    ``<type>-export-<YYYY-MM-DD>.xlsx``.
    """
    columns, rows = build_report_rows(
        report_type, status=status, client_id=client_id
    )
    buffer = write_workbook(columns, rows)
    filename = f"{report_type}-export-{date.today().isoformat()}.xlsx"
    return buffer, filename
