import uuid

import django.core.validators
import django.db.models.deletion
import django.db.models.functions.text
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models

import assets.models

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


def _id():
    return models.BigAutoField(
        auto_created=True, primary_key=True, serialize=False, verbose_name="ID"
    )


def _user_fk(on_delete, related_name, null=False):
    return models.ForeignKey(
        blank=null,
        null=null,
        on_delete=on_delete,
        related_name=related_name,
        to=settings.AUTH_USER_MODEL,
    )


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ("accounts", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="OrgParty",
            fields=[
                ("id", _id()),
                (
                    "org_type",
                    models.CharField(
                        choices=[
                            ("CUSTOMER", "Customer"),
                            ("SUPPLIER", "Supplier"),
                            ("DOWNSTREAM", "Downstream Vendor"),
                            ("INTERNAL", "Internal"),
                        ],
                        default="CUSTOMER",
                        max_length=20,
                    ),
                ),
                ("name", models.CharField(max_length=200)),
                (
                    "r2_scope",
                    models.TextField(
                        blank=True, help_text="R2v3 certification scope"
                    ),
                ),
                (
                    "risk_tier",
                    models.CharField(
                        blank=True,
                        choices=[
                            ("LOW", "Low"),
                            ("MEDIUM", "Medium"),
                            ("HIGH", "High"),
                            ("CRITICAL", "Critical"),
                        ],
                        max_length=10,
                    ),
                ),
                ("active", models.BooleanField(default=True)),
                ("email", models.EmailField(blank=True, max_length=254)),
                ("phone", models.CharField(blank=True, max_length=50)),
                ("address", models.CharField(blank=True, max_length=255)),
                ("city", models.CharField(blank=True, max_length=100)),
                ("state", models.CharField(blank=True, max_length=100)),
                ("zip_code", models.CharField(blank=True, max_length=20)),
                ("country", models.CharField(blank=True, max_length=100)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "verbose_name": "organization",
                "verbose_name_plural": "organizations",
                "ordering": ["name"],
                "indexes": [
                    models.Index(
                        fields=["org_type", "active"],
                        name="idx_org_type_active",
                    )
                ],
            },
        ),
        migrations.CreateModel(
            name="Location",
            fields=[
                ("id", _id()),
                ("name", models.CharField(max_length=100)),
                ("address", models.TextField(blank=True)),
                ("description", models.TextField(blank=True)),
                ("is_active", models.BooleanField(default=True)),
                (
                    "org",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="locations",
                        to="assets.orgparty",
                    ),
                ),
            ],
            options={
                "ordering": ["name"],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("org", "name"),
                        name="unique_location_name_per_org",
                    )
                ],
            },
        ),
        migrations.CreateModel(
            name="Asset",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                ("manufacturer", models.CharField(blank=True, max_length=100)),
                ("model", models.CharField(blank=True, max_length=100)),
                ("purchase_date", models.DateField(blank=True, null=True)),
                ("processor", models.CharField(blank=True, max_length=100)),
                (
                    "ram_size_gb",
                    models.PositiveIntegerField(blank=True, null=True),
                ),
                ("storage_type", models.CharField(blank=True, max_length=50)),
                (
                    "storage_capacity_gb",
                    models.PositiveIntegerField(blank=True, null=True),
                ),
                (
                    "screen_size_inches",
                    models.DecimalField(
                        blank=True, decimal_places=1, max_digits=4, null=True
                    ),
                ),
                (
                    "operating_system",
                    models.CharField(blank=True, max_length=100),
                ),
                (
                    "current_status",
                    models.CharField(
                        choices=STATUS_CHOICES,
                        default="RECEIVED",
                        max_length=20,
                    ),
                ),
                ("data_bearing", models.BooleanField(default=False)),
                ("hazmat", models.BooleanField(default=False)),
                (
                    "resale_value",
                    models.DecimalField(
                        blank=True, decimal_places=2, max_digits=12, null=True
                    ),
                ),
                (
                    "r2v3_compliance",
                    models.CharField(
                        blank=True, choices=COMPLIANCE_CHOICES, max_length=20
                    ),
                ),
                ("compliance_notes", models.TextField(blank=True)),
                ("compliance_summary", models.TextField(blank=True)),
                (
                    "suggested_next_action",
                    models.TextField(
                        blank=True,
                        help_text="Suggested next compliance action",
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "client",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="assets",
                        to="assets.orgparty",
                    ),
                ),
                (
                    "current_location",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="assets",
                        to="assets.location",
                    ),
                ),
                (
                    "assigned_to",
                    _user_fk(
                        django.db.models.deletion.SET_NULL,
                        "assigned_assets",
                        null=True,
                    ),
                ),
                (
                    "created_by",
                    _user_fk(
                        django.db.models.deletion.SET_NULL,
                        "created_assets",
                        null=True,
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(
                        fields=["current_status"], name="idx_asset_status"
                    ),
                    models.Index(
                        fields=["client", "current_status"],
                        name="idx_asset_client_status",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="AssetIdentifier",
            fields=[
                ("id", _id()),
                (
                    "id_type",
                    models.CharField(
                        choices=[
                            ("SERIAL", "Serial Number"),
                            ("CLIENT_TAG", "Client Tag"),
                            ("INT_TAG", "Internal Tag"),
                            ("IMEI", "IMEI"),
                            ("MAC", "MAC Address"),
                            ("UUID", "UUID"),
                        ],
                        max_length=20,
                    ),
                ),
                ("id_value", models.CharField(max_length=200)),
                (
                    "asset",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="identifiers",
                        to="assets.asset",
                    ),
                ),
            ],
            options={
                "ordering": ["pk"],
                "indexes": [
                    models.Index(
                        fields=["id_value"], name="idx_identifier_value"
                    )
                ],
            },
        ),
        migrations.CreateModel(
            name="HardDrive",
            fields=[
                ("id", _id()),
                ("serial_number", models.CharField(max_length=100)),
                (
                    "capacity_gb",
                    models.PositiveIntegerField(blank=True, null=True),
                ),
                (
                    "value_usd",
                    models.DecimalField(
                        blank=True, decimal_places=2, max_digits=10, null=True
                    ),
                ),
                (
                    "destruction_status",
                    models.CharField(
                        blank=True,
                        choices=COMPLIANCE_CHOICES,
                        help_text="Blank until the drive has been destroyed",
                        max_length=20,
                    ),
                ),
                (
                    "destruction_certificate",
                    models.CharField(blank=True, max_length=100),
                ),
                ("destroyed_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "asset",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="hard_drives",
                        to="assets.asset",
                    ),
                ),
                (
                    "verified_by",
                    _user_fk(
                        django.db.models.deletion.SET_NULL,
                        "verified_drives",
                        null=True,
                    ),
                ),
            ],
            options={"ordering": ["created_at", "pk"]},
        ),
        migrations.CreateModel(
            name="AssetStatusHistory",
            fields=[
                ("id", _id()),
                (
                    "from_status",
                    models.CharField(
                        blank=True,
                        choices=STATUS_CHOICES,
                        max_length=20,
                        null=True,
                    ),
                ),
                (
                    "to_status",
                    models.CharField(choices=STATUS_CHOICES, max_length=20),
                ),
                (
                    "changed_at",
                    models.DateTimeField(default=django.utils.timezone.now),
                ),
                ("notes", models.TextField(blank=True)),
                (
                    "asset",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="status_history",
                        to="assets.asset",
                    ),
                ),
                (
                    "changed_by",
                    _user_fk(
                        django.db.models.deletion.PROTECT, "status_changes"
                    ),
                ),
            ],
            options={
                "verbose_name": "status history entry",
                "verbose_name_plural": "status history entries",
                "ordering": ["-changed_at", "-pk"],
                "get_latest_by": ["changed_at", "pk"],
                "indexes": [
                    models.Index(
                        fields=["asset", "changed_at"],
                        name="idx_history_asset_changed",
                    )
                ],
            },
        ),
        migrations.CreateModel(
            name="ChainOfCustodyEvent",
            fields=[
                ("id", _id()),
                (
                    "event_type",
                    models.CharField(
                        choices=[
                            ("RECEIVED", "Received"),
                            ("MOVED", "Moved"),
                            ("SANITIZED", "Sanitized"),
                            ("SHIPPED", "Shipped"),
                            ("DESTROYED", "Destroyed"),
                            ("NOTE", "Note"),
                        ],
                        max_length=20,
                    ),
                ),
                (
                    "event_ts",
                    models.DateTimeField(default=django.utils.timezone.now),
                ),
                ("notes", models.TextField(blank=True)),
                (
                    "asset",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="custody_events",
                        to="assets.asset",
                    ),
                ),
                (
                    "from_location",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="custody_events_from",
                        to="assets.location",
                    ),
                ),
                (
                    "to_location",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="custody_events_to",
                        to="assets.location",
                    ),
                ),
                (
                    "performed_by",
                    _user_fk(
                        django.db.models.deletion.PROTECT, "custody_events"
                    ),
                ),
            ],
            options={
                "verbose_name": "chain of custody event",
                "verbose_name_plural": "chain of custody events",
                "ordering": ["-event_ts", "-pk"],
                "indexes": [
                    models.Index(
                        fields=["event_ts"], name="idx_custody_event_ts"
                    ),
                    models.Index(
                        fields=["asset", "event_ts"],
                        name="idx_custody_asset_ts",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="WorkOrder",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                (
                    "wo_type",
                    models.CharField(
                        choices=[
                            ("TEST", "Test"),
                            ("REPAIR", "Repair"),
                            ("SANITIZE", "Sanitize"),
                            ("TEARDOWN", "Teardown"),
                        ],
                        max_length=20,
                    ),
                ),
                ("notes", models.TextField(blank=True)),
                (
                    "opened_at",
                    models.DateTimeField(default=django.utils.timezone.now),
                ),
                ("closed_at", models.DateTimeField(blank=True, null=True)),
                (
                    "asset",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="work_orders",
                        to="assets.asset",
                    ),
                ),
                (
                    "tech",
                    _user_fk(django.db.models.deletion.PROTECT, "work_orders"),
                ),
            ],
            options={
                "ordering": ["-opened_at"],
                "indexes": [
                    models.Index(
                        fields=["closed_at"], name="idx_workorder_closed_at"
                    )
                ],
            },
        ),
        migrations.CreateModel(
            name="WorkOrderStep",
            fields=[
                ("id", _id()),
                (
                    "sequence",
                    models.PositiveIntegerField(
                        validators=[
                            django.core.validators.MinValueValidator(1)
                        ]
                    ),
                ),
                (
                    "procedure_code",
                    models.CharField(blank=True, max_length=50),
                ),
                ("started_at", models.DateTimeField(blank=True, null=True)),
                ("ended_at", models.DateTimeField(blank=True, null=True)),
                ("passed", models.BooleanField(blank=True, null=True)),
                ("notes", models.TextField(blank=True)),
                (
                    "work_order",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="steps",
                        to="assets.workorder",
                    ),
                ),
            ],
            options={"ordering": ["sequence", "pk"]},
        ),
        migrations.CreateModel(
            name="SanitizationAction",
            fields=[
                ("id", _id()),
                (
                    "method",
                    models.CharField(
                        choices=[
                            ("NIST_800_88_CLEAR", "NIST 800-88 Clear"),
                            ("NIST_800_88_PURGE", "NIST 800-88 Purge"),
                            ("PHYSICAL_DESTROY", "Physical Destruction"),
                        ],
                        max_length=30,
                    ),
                ),
                ("tool_name", models.CharField(blank=True, max_length=100)),
                ("tool_version", models.CharField(blank=True, max_length=50)),
                ("certificate_number", models.CharField(max_length=100)),
                ("verifier", models.CharField(blank=True, max_length=255)),
                (
                    "started_at",
                    models.DateTimeField(default=django.utils.timezone.now),
                ),
                ("ended_at", models.DateTimeField(blank=True, null=True)),
                (
                    "idempotency_key",
                    models.CharField(blank=True, max_length=255, null=True),
                ),
                (
                    "asset",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="sanitization_actions",
                        to="assets.asset",
                    ),
                ),
                (
                    "performed_by",
                    _user_fk(
                        django.db.models.deletion.PROTECT,
                        "sanitization_actions",
                    ),
                ),
            ],
            options={
                "ordering": ["-started_at"],
                "constraints": [
                    models.UniqueConstraint(
                        condition=models.Q(idempotency_key__isnull=False),
                        fields=("asset", "idempotency_key"),
                        name="unique_sanitization_idempotency_key",
                    )
                ],
            },
        ),
        migrations.CreateModel(
            name="SanitizationResult",
            fields=[
                ("id", _id()),
                ("passed", models.BooleanField(default=True)),
                (
                    "verified_at",
                    models.DateTimeField(default=django.utils.timezone.now),
                ),
                ("certificate_number", models.CharField(max_length=100)),
                ("notes", models.TextField(blank=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "action",
                    models.OneToOneField(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="result",
                        to="assets.sanitizationaction",
                    ),
                ),
                (
                    "asset",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="sanitization_results",
                        to="assets.asset",
                    ),
                ),
                (
                    "verifier",
                    _user_fk(
                        django.db.models.deletion.PROTECT,
                        "verified_sanitizations",
                    ),
                ),
            ],
            options={
                "verbose_name": "sanitization result",
                "verbose_name_plural": "sanitization results",
                "ordering": ["-created_at", "-pk"],
            },
        ),
        migrations.CreateModel(
            name="SalesOrder",
            fields=[
                ("id", _id()),
                ("order_number", models.CharField(max_length=50, unique=True)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("DRAFT", "Draft"),
                            ("CONFIRMED", "Confirmed"),
                            ("COMPLETED", "Completed"),
                            ("CANCELLED", "Cancelled"),
                        ],
                        default="DRAFT",
                        max_length=20,
                    ),
                ),
                ("notes", models.TextField(blank=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "idempotency_key",
                    models.CharField(
                        blank=True, max_length=255, null=True, unique=True
                    ),
                ),
                (
                    "customer",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="sales_orders",
                        to="assets.orgparty",
                    ),
                ),
                (
                    "created_by",
                    _user_fk(
                        django.db.models.deletion.PROTECT, "sales_orders"
                    ),
                ),
            ],
            options={"ordering": ["-created_at"]},
        ),
        migrations.CreateModel(
            name="SalesLine",
            fields=[
                ("id", _id()),
                (
                    "unit_price",
                    models.DecimalField(
                        blank=True, decimal_places=2, max_digits=12, null=True
                    ),
                ),
                (
                    "total_price",
                    models.DecimalField(
                        blank=True, decimal_places=2, max_digits=12, null=True
                    ),
                ),
                (
                    "asset",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="sales_lines",
                        to="assets.asset",
                    ),
                ),
                (
                    "order",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="lines",
                        to="assets.salesorder",
                    ),
                ),
            ],
        ),
        migrations.CreateModel(
            name="IntakeOrder",
            fields=[
                ("id", _id()),
                ("order_number", models.CharField(max_length=100)),
                ("received_date", models.DateTimeField()),
                (
                    "packing_list_num",
                    models.CharField(blank=True, max_length=100),
                ),
                (
                    "total_weight_kg",
                    models.DecimalField(
                        blank=True, decimal_places=2, max_digits=10, null=True
                    ),
                ),
                ("notes", models.TextField(blank=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "client",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="intake_orders",
                        to="assets.orgparty",
                    ),
                ),
                (
                    "created_by",
                    _user_fk(
                        django.db.models.deletion.PROTECT, "intake_orders"
                    ),
                ),
            ],
            options={
                "ordering": ["-received_date"],
                "constraints": [
                    models.UniqueConstraint(
                        django.db.models.functions.text.Lower("order_number"),
                        name="unique_intake_order_number_ci",
                    )
                ],
            },
        ),
        migrations.CreateModel(
            name="IntakeLine",
            fields=[
                ("id", _id()),
                ("description", models.CharField(blank=True, max_length=255)),
                (
                    "quantity",
                    models.PositiveIntegerField(
                        default=1,
                        validators=[
                            django.core.validators.MinValueValidator(1)
                        ],
                    ),
                ),
                (
                    "weight_kg",
                    models.DecimalField(
                        blank=True, decimal_places=2, max_digits=10, null=True
                    ),
                ),
                (
                    "asset",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="intake_lines",
                        to="assets.asset",
                    ),
                ),
                (
                    "intake_order",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="lines",
                        to="assets.intakeorder",
                    ),
                ),
            ],
            options={"ordering": ["pk"]},
        ),
        migrations.CreateModel(
            name="AssetImage",
            fields=[
                ("id", _id()),
                (
                    "image",
                    models.ImageField(
                        upload_to=assets.models.asset_image_upload_to
                    ),
                ),
                ("name", models.CharField(max_length=255)),
                (
                    "content_type",
                    models.CharField(blank=True, max_length=100),
                ),
                ("size", models.PositiveIntegerField(default=0)),
                ("uploaded_at", models.DateTimeField(auto_now_add=True)),
                (
                    "asset",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="images",
                        to="assets.asset",
                    ),
                ),
                (
                    "uploaded_by",
                    models.ForeignKey(
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={"ordering": ["-uploaded_at", "-pk"]},
        ),
    ]
