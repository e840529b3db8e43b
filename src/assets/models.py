"""Models for ITAD asset lifecycle tracking."""

import re
import uuid

from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models
from django.db.models.functions import Lower
from django.utils import timezone

STATUS_CHOICES = [
    ("RECEIVED", "Received"),
    ("IN_PROCESS", "In Process"),
    ("SANITIZED", "Sanitized"),
    ("READY_FOR_SALE", "Ready for Sale"),
    ("SCRAPPED", "Scrapped"),
    ("SHIPPED", "Shipped"),
    ("DESTROYED", "Destroyed"),
]

COMPLIANCE_CHOICES = [
    ("COMPLIANT", "Compliant"),
    ("PENDING", "Pending"),
    ("NONCOMPLIANT", "Non-compliant"),
]


class AppendOnlyModel(models.Model):
    """Audit rows may be inserted but never modified or deleted."""

    class Meta:
        abstract = True

    def save(self, *args, **kwargs):
        if self.pk is not None and not self._state.adding:
            raise ValidationError(
                f"{self._meta.verbose_name_plural.capitalize()} are "
                f"immutable and cannot be modified."
            )
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError(
            f"{self._meta.verbose_name_plural.capitalize()} are "
            f"immutable and cannot be deleted."
        )


class OrgParty(models.Model):
    """Client, supplier, downstream vendor or internal organization."""

    TYPE_CHOICES = [
        ("CUSTOMER", "Customer"),
        ("SUPPLIER", "Supplier"),
        ("DOWNSTREAM", "Downstream Vendor"),
        ("INTERNAL", "Internal"),
    ]

    RISK_TIER_CHOICES = [
        ("LOW", "Low"),
        ("MEDIUM", "Medium"),
        ("HIGH", "High"),
        ("CRITICAL", "Critical"),
    ]

    org_type = models.CharField(
        max_length=20, choices=TYPE_CHOICES, default="CUSTOMER"
    )
    name = models.CharField(max_length=200)
    r2_scope = models.TextField(
        blank=True, help_text="R2v3 certification scope"
    )
    risk_tier = models.CharField(
        max_length=10, choices=RISK_TIER_CHOICES, blank=True
    )
    active = models.BooleanField(default=True)
    email = models.EmailField(blank=True)
    phone = models.CharField(max_length=50, blank=True)
    address = models.CharField(max_length=255, blank=True)
    city = models.CharField(max_length=100, blank=True)
    state = models.CharField(max_length=100, blank=True)
    zip_code = models.CharField(max_length=20, blank=True)
    country = models.CharField(max_length=100, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name"]
        verbose_name = "organization"
        verbose_name_plural = "organizations"
        indexes = [
            models.Index(
                fields=["org_type", "active"], name="idx_org_type_active"
            ),
        ]

    def __str__(self):
        return self.name


class Location(models.Model):
    """Physical site belonging to an organization."""

    org = models.ForeignKey(
        OrgParty, on_delete=models.CASCADE, related_name="locations"
    )
    name = models.CharField(max_length=100)
    address = models.TextField(blank=True)
    description = models.TextField(blank=True)
    is_active = models.BooleanField(default=True)

    class Meta:
        ordering = ["name"]
        constraints = [
            models.UniqueConstraint(
                fields=["org", "name"],
                name="unique_location_name_per_org",
            ),
        ]

    def __str__(self):
        return self.name


class Asset(models.Model):
    """Device tracked from intake through sanitization to disposal.

    ``current_status`` always mirrors the newest ``AssetStatusHistory``
    row; change it only through ``assets.services.lifecycle``.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    client = models.ForeignKey(
        OrgParty, on_delete=models.PROTECT, related_name="assets"
    )
    manufacturer = models.CharField(max_length=100, blank=True)
    model = models.CharField(max_length=100, blank=True)
    purchase_date = models.DateField(null=True, blank=True)
    processor = models.CharField(max_length=100, blank=True)
    ram_size_gb = models.PositiveIntegerField(null=True, blank=True)
    storage_type = models.CharField(max_length=50, blank=True)
    storage_capacity_gb = models.PositiveIntegerField(null=True, blank=True)
    screen_size_inches = models.DecimalField(
        max_digits=4, decimal_places=1, null=True, blank=True
    )
    operating_system = models.CharField(max_length=100, blank=True)
    current_status = models.CharField(
        max_length=20, choices=STATUS_CHOICES, default="RECEIVED"
    )
    current_location = models.ForeignKey(
        Location,
        on_delete=models.PROTECT,
        related_name="assets",
        null=True,
        blank=True,
    )
    assigned_to = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        related_name="assigned_assets",
        null=True,
        blank=True,
    )
    data_bearing = models.BooleanField(default=False)
    hazmat = models.BooleanField(default=False)
    resale_value = models.DecimalField(
        max_digits=12, decimal_places=2, null=True, blank=True
    )
    r2v3_compliance = models.CharField(
        max_length=20, choices=COMPLIANCE_CHOICES, blank=True
    )
    compliance_notes = models.TextField(blank=True)
    compliance_summary = models.TextField(blank=True)
    suggested_next_action = models.TextField(
        blank=True, help_text="Suggested next compliance action"
    )
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        related_name="created_assets",
        null=True,
        blank=True,
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(
                fields=["current_status"], name="idx_asset_status"
            ),
            models.Index(
                fields=["client", "current_status"],
                name="idx_asset_client_status",
            ),
        ]

    def __str__(self):
        label = " ".join(p for p in (self.manufacturer, self.model) if p)
        return label or str(self.id)[:8]

    def delete(self, *args, **kwargs):
        raise ValidationError(
            "Assets cannot be deleted. Transition them to a terminal "
            "status instead."
        )

    @property
    def primary_identifier(self):
        """First identifier value, falling back to a short id."""
        first = self.identifiers.first()
        return first.id_value if first else str(self.id)[:8]

    @property
    def age_years(self):
        if not self.purchase_date:
            return None
        return (timezone.localdate() - self.purchase_date).days // 365


class AssetIdentifier(models.Model):
    """Serial number, tag or hardware address attached to an asset."""

    ID_TYPE_CHOICES = [
        ("SERIAL", "Serial Number"),
        ("CLIENT_TAG", "Client Tag"),
        ("INT_TAG", "Internal Tag"),
        ("IMEI", "IMEI"),
        ("MAC", "MAC Address"),
        ("UUID", "UUID"),
    ]

    asset = models.ForeignKey(
        Asset, on_delete=models.PROTECT, related_name="identifiers"
    )
    id_type = models.CharField(max_length=20, choices=ID_TYPE_CHOICES)
    id_value = models.CharField(max_length=200)

    class Meta:
        ordering = ["pk"]
        indexes = [
            models.Index(fields=["id_value"], name="idx_identifier_value"),
        ]

    def __str__(self):
        return f"{self.id_type}: {self.id_value}"

    def save(self, *args, **kwargs):
        if self.pk is not None and not self._state.adding:
            raise ValidationError("Asset identifiers cannot be modified.")
        super().save(*args, **kwargs)


class HardDrive(models.Model):
    """Storage device removed from or installed in an asset."""

    DESTRUCTION_STATUS_CHOICES = COMPLIANCE_CHOICES

    asset = models.ForeignKey(
        Asset, on_delete=models.PROTECT, related_name="hard_drives"
    )
    serial_number = models.CharField(max_length=100)
    capacity_gb = models.PositiveIntegerField(null=True, blank=True)
    value_usd = models.DecimalField(
        max_digits=10, decimal_places=2, null=True, blank=True
    )
    destruction_status = models.CharField(
        max_length=20,
        choices=DESTRUCTION_STATUS_CHOICES,
        blank=True,
        help_text="Blank until the drive has been destroyed",
    )
    destruction_certificate = models.CharField(max_length=100, blank=True)
    destroyed_at = models.DateTimeField(null=True, blank=True)
    verified_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        related_name="verified_drives",
        null=True,
        blank=True,
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["created_at", "pk"]

    def __str__(self):
        return self.serial_number


class AssetStatusHistory(AppendOnlyModel):
    """Append-only log of asset status transitions."""

    asset = models.ForeignKey(
        Asset, on_delete=models.PROTECT, related_name="status_history"
    )
    from_status = models.CharField(
        max_length=20, choices=STATUS_CHOICES, null=True, blank=True
    )
    to_status = models.CharField(max_length=20, choices=STATUS_CHOICES)
    changed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="status_changes",
    )
    changed_at = models.DateTimeField(default=timezone.now)
    notes = models.TextField(blank=True)

    class Meta:
        ordering = ["-changed_at", "-pk"]
        verbose_name = "status history entry"
        verbose_name_plural = "status history entries"
        get_latest_by = ["changed_at", "pk"]
        indexes = [
            models.Index(
                fields=["asset", "changed_at"],
                name="idx_history_asset_changed",
            ),
        ]

    def __str__(self):
        return f"{self.asset}: {self.from_status or '-'} -> {self.to_status}"


class ChainOfCustodyEvent(AppendOnlyModel):
    """Append-only log of physical custody and location changes."""

    EVENT_TYPE_CHOICES = [
        ("RECEIVED", "Received"),
        ("MOVED", "Moved"),
        ("SANITIZED", "Sanitized"),
        ("SHIPPED", "Shipped"),
        ("DESTROYED", "Destroyed"),
        ("NOTE", "Note"),
    ]

    asset = models.ForeignKey(
        Asset, on_delete=models.PROTECT, related_name="custody_events"
    )
    event_type = models.CharField(max_length=20, choices=EVENT_TYPE_CHOICES)
    from_location = models.ForeignKey(
        Location,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="custody_events_from",
    )
    to_location = models.ForeignKey(
        Location,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="custody_events_to",
    )
    performed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="custody_events",
    )
    event_ts = models.DateTimeField(default=timezone.now)
    notes = models.TextField(blank=True)

    class Meta:
        ordering = ["-event_ts", "-pk"]
        verbose_name = "chain of custody event"
        verbose_name_plural = "chain of custody events"
        indexes = [
            models.Index(fields=["event_ts"], name="idx_custody_event_ts"),
            models.Index(
                fields=["asset", "event_ts"],
                name="idx_custody_asset_ts",
            ),
        ]

    def __str__(self):
        return f"{self.asset} - {self.get_event_type_display()}"


class WorkOrder(models.Model):
    """Bench job (test, repair, sanitize, teardown) against an asset."""

    TYPE_CHOICES = [
        ("TEST", "Test"),
        ("REPAIR", "Repair"),
        ("SANITIZE", "Sanitize"),
        ("TEARDOWN", "Teardown"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    asset = models.ForeignKey(
        Asset, on_delete=models.PROTECT, related_name="work_orders"
    )
    wo_type = models.CharField(max_length=20, choices=TYPE_CHOICES)
    tech = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="work_orders",
    )
    notes = models.TextField(blank=True)
    opened_at = models.DateTimeField(default=timezone.now)
    closed_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["-opened_at"]
        indexes = [
            models.Index(
                fields=["closed_at"], name="idx_workorder_closed_at"
            ),
        ]

    def __str__(self):
        return f"{self.get_wo_type_display()} {str(self.id)[:8]}"

    @property
    def is_open(self):
        return self.closed_at is None


class WorkOrderStep(models.Model):
    """Procedure performed as part of a work order.

    ``sequence`` is caller-supplied; duplicates and gaps are allowed.
    """

    work_order = models.ForeignKey(
        WorkOrder, on_delete=models.CASCADE, related_name="steps"
    )
    sequence = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    procedure_code = models.CharField(max_length=50, blank=True)
    started_at = models.DateTimeField(null=True, blank=True)
    ended_at = models.DateTimeField(null=True, blank=True)
    passed = models.BooleanField(null=True, blank=True)
    notes = models.TextField(blank=True)

    class Meta:
        ordering = ["sequence", "pk"]

    def __str__(self):
        return f"Step {self.sequence} of {self.work_order}"


class SanitizationAction(models.Model):
    """A data sanitization performed on an asset."""

    METHOD_CHOICES = [
        ("NIST_800_88_CLEAR", "NIST 800-88 Clear"),
        ("NIST_800_88_PURGE", "NIST 800-88 Purge"),
        ("PHYSICAL_DESTROY", "Physical Destruction"),
    ]

    asset = models.ForeignKey(
        Asset, on_delete=models.PROTECT, related_name="sanitization_actions"
    )
    method = models.CharField(max_length=30, choices=METHOD_CHOICES)
    tool_name = models.CharField(max_length=100, blank=True)
    tool_version = models.CharField(max_length=50, blank=True)
    certificate_number = models.CharField(max_length=100)
    verifier = models.CharField(max_length=255, blank=True)
    performed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="sanitization_actions",
    )
    started_at = models.DateTimeField(default=timezone.now)
    ended_at = models.DateTimeField(null=True, blank=True)
    idempotency_key = models.CharField(max_length=255, null=True, blank=True)

    class Meta:
        ordering = ["-started_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["asset", "idempotency_key"],
                condition=models.Q(idempotency_key__isnull=False),
                name="unique_sanitization_idempotency_key",
            ),
        ]

    def __str__(self):
        return f"{self.get_method_display()} on {self.asset}"


class SanitizationResult(AppendOnlyModel):
    """Verified outcome of a sanitization action."""

    action = models.OneToOneField(
        SanitizationAction, on_delete=models.PROTECT, related_name="result"
    )
    asset = models.ForeignKey(
        Asset, on_delete=models.PROTECT, related_name="sanitization_results"
    )
    passed = models.BooleanField(default=True)
    verifier = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="verified_sanitizations",
    )
    verified_at = models.DateTimeField(default=timezone.now)
    certificate_number = models.CharField(max_length=100)
    notes = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at", "-pk"]
        verbose_name = "sanitization result"
        verbose_name_plural = "sanitization results"

    def __str__(self):
        return self.certificate_number


class SalesOrder(models.Model):
    """Sale or disposal of one or more assets to a customer."""

    STATUS_CHOICES = [
        ("DRAFT", "Draft"),
        ("CONFIRMED", "Confirmed"),
        ("COMPLETED", "Completed"),
        ("CANCELLED", "Cancelled"),
    ]

    order_number = models.CharField(max_length=50, unique=True)
    customer = models.ForeignKey(
        OrgParty, on_delete=models.PROTECT, related_name="sales_orders"
    )
    status = models.CharField(
        max_length=20, choices=STATUS_CHOICES, default="DRAFT"
    )
    notes = models.TextField(blank=True)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="sales_orders",
    )
    created_at = models.DateTimeField(auto_now_add=True)
    idempotency_key = models.CharField(
        max_length=255, unique=True, null=True, blank=True
    )

    class Meta:
        ordering = ["-created_at"]

    def __str__(self):
        return self.order_number


class SalesLine(models.Model):
    order = models.ForeignKey(
        SalesOrder, on_delete=models.CASCADE, related_name="lines"
    )
    asset = models.ForeignKey(
        Asset, on_delete=models.PROTECT, related_name="sales_lines"
    )
    unit_price = models.DecimalField(
        max_digits=12, decimal_places=2, null=True, blank=True
    )
    total_price = models.DecimalField(
        max_digits=12, decimal_places=2, null=True, blank=True
    )

    def __str__(self):
        return f"{self.order} / {self.asset}"


class IntakeOrder(models.Model):
    """Inbound shipment manifest from a client."""

    order_number = models.CharField(max_length=100)
    client = models.ForeignKey(
        OrgParty, on_delete=models.PROTECT, related_name="intake_orders"
    )
    received_date = models.DateTimeField()
    packing_list_num = models.CharField(max_length=100, blank=True)
    total_weight_kg = models.DecimalField(
        max_digits=10, decimal_places=2, null=True, blank=True
    )
    notes = models.TextField(blank=True)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="intake_orders",
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-received_date"]
        constraints = [
            models.UniqueConstraint(
                Lower("order_number"),
                name="unique_intake_order_number_ci",
            ),
        ]

    def __str__(self):
        return self.order_number


class IntakeLine(models.Model):
    intake_order = models.ForeignKey(
        IntakeOrder, on_delete=models.CASCADE, related_name="lines"
    )
    description = models.CharField(max_length=255, blank=True)
    quantity = models.PositiveIntegerField(
        default=1, validators=[MinValueValidator(1)]
    )
    weight_kg = models.DecimalField(
        max_digits=10, decimal_places=2, null=True, blank=True
    )
    asset = models.ForeignKey(
        Asset,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="intake_lines",
    )

    class Meta:
        ordering = ["pk"]

    def __str__(self):
        return f"{self.quantity} x {self.description}"


def asset_image_upload_to(instance, filename):
    """Store images as ``<asset id>_<ms timestamp>_<sanitized name>``."""
    safe_name = re.sub(r"[^a-zA-Z0-9.-]", "_", filename)
    stamp = int(timezone.now().timestamp() * 1000)
    return f"assets/{instance.asset_id}_{stamp}_{safe_name}"


class AssetImage(models.Model):
    """Photographic record attached to an asset."""

    asset = models.ForeignKey(
        Asset, on_delete=models.PROTECT, related_name="images"
    )
    image = models.ImageField(upload_to=asset_image_upload_to)
    name = models.CharField(max_length=255)
    content_type = models.CharField(max_length=100, blank=True)
    size = models.PositiveIntegerField(default=0)
    uploaded_at = models.DateTimeField(auto_now_add=True)
    uploaded_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
    )

    class Meta:
        ordering = ["-uploaded_at", "-pk"]

    def __str__(self):
        return f"Image for {self.asset}"
