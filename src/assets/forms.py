"""Input validation forms for the JSON API.

Field names are the snake_case form of the camelCase request keys
(``clientId`` -> ``client_id``); ``api.parse_json`` does the conversion.
"""

from django import forms
from django.contrib.auth import get_user_model

from .models import (
    COMPLIANCE_CHOICES,
    STATUS_CHOICES,
    Asset,
    AssetIdentifier,
    HardDrive,
    Location,
    OrgParty,
    SanitizationAction,
    WorkOrder,
)

User = get_user_model()

BLANK_CHOICE = [("", "---------")]


class UserChoiceField(forms.ModelChoiceField):
    """User reference that also accepts the literal ``"unassigned"``."""

    def to_python(self, value):
        if value == "unassigned":
            return None
        return super().to_python(value)


class AssetFieldsForm(forms.Form):
    """Descriptive asset fields shared by create and update."""

    manufacturer = forms.CharField(max_length=100, required=False)
    model = forms.CharField(max_length=100, required=False)
    purchase_date = forms.DateField(required=False)
    processor = forms.CharField(max_length=100, required=False)
    ram_size_gb = forms.IntegerField(min_value=0, required=False)
    storage_type = forms.CharField(max_length=50, required=False)
    storage_capacity_gb = forms.IntegerField(min_value=0, required=False)
    screen_size_inches = forms.DecimalField(
        max_digits=4, decimal_places=1, min_value=0, required=False
    )
    operating_system = forms.CharField(max_length=100, required=False)
    data_bearing = forms.BooleanField(required=False)
    hazmat = forms.BooleanField(required=False)
    resale_value = forms.DecimalField(
        max_digits=12, decimal_places=2, min_value=0, required=False
    )
    r2v3_compliance = forms.ChoiceField(
        choices=BLANK_CHOICE + COMPLIANCE_CHOICES, required=False
    )
    compliance_notes = forms.CharField(required=False)
    compliance_summary = forms.CharField(required=False)
    suggested_next_action = forms.CharField(required=False)
    current_location_id = forms.ModelChoiceField(
        queryset=Location.objects.all(), required=False
    )
    assigned_to_id = UserChoiceField(
        queryset=User.objects.all(), required=False
    )

    # Request field name -> service keyword
    RENAMES = {
        "client_id": "client",
        "current_location_id": "current_location",
        "assigned_to_id": "assigned_to",
    }

    @classmethod
    def to_service_kwargs(cls, cleaned):
        kwargs = {cls.RENAMES.get(k, k): v for k, v in cleaned.items()}
        if "purchase_date" in kwargs and not kwargs["purchase_date"]:
            kwargs["purchase_date"] = None
        return kwargs


class AssetCreateForm(AssetFieldsForm):
    client_id = forms.ModelChoiceField(queryset=OrgParty.objects.all())


class AssetUpdateForm(AssetFieldsForm):
    current_status = forms.ChoiceField(choices=STATUS_CHOICES, required=False)
    notes = forms.CharField(required=False)


class IdentifierForm(forms.Form):
    id_type = forms.ChoiceField(choices=AssetIdentifier.ID_TYPE_CHOICES)
    id_value = forms.CharField(max_length=200)


class HardDriveForm(forms.Form):
    serial_number = forms.CharField(max_length=100)
    capacity_gb = forms.IntegerField(min_value=0, required=False)
    value_usd = forms.DecimalField(
        max_digits=10, decimal_places=2, min_value=0, required=False
    )


class HardDriveDestructionForm(forms.Form):
    destruction_status = forms.ChoiceField(
        choices=HardDrive.DESTRUCTION_STATUS_CHOICES
    )
    destruction_certificate = forms.CharField(max_length=100, required=False)
    destroyed_at = forms.DateTimeField(required=False)


class SanitizeForm(forms.Form):
    method = forms.ChoiceField(choices=SanitizationAction.METHOD_CHOICES)
    tool_name = forms.CharField(max_length=100, required=False)
    tool_version = forms.CharField(max_length=50, required=False)
    certificate_number = forms.CharField(max_length=100, required=False)
    notes = forms.CharField(required=False)
    idempotency_key = forms.CharField(max_length=255, required=False)


class DisposeForm(forms.Form):
    customer_id = forms.ModelChoiceField(queryset=OrgParty.objects.all())
    sale_price = forms.DecimalField(
        max_digits=12, decimal_places=2, min_value=0, required=False
    )
    notes = forms.CharField(required=False)
    idempotency_key = forms.CharField(max_length=255, required=False)


class ImageUploadForm(forms.Form):
    file = forms.ImageField()


class IntakeOrderForm(forms.Form):
    client_id = forms.ModelChoiceField(queryset=OrgParty.objects.all())
    order_number = forms.CharField(max_length=100)
    received_date = forms.DateTimeField()
    packing_list_num = forms.CharField(max_length=100, required=False)
    total_weight_kg = forms.DecimalField(
        max_digits=10, decimal_places=2, min_value=0, required=False
    )
    notes = forms.CharField(required=False)


class IntakeLineForm(forms.Form):
    description = forms.CharField(max_length=255, required=False)
    quantity = forms.IntegerField(min_value=1, required=False)
    weight_kg = forms.DecimalField(
        max_digits=10, decimal_places=2, min_value=0, required=False
    )


class WorkOrderForm(forms.Form):
    asset_id = forms.ModelChoiceField(queryset=Asset.objects.all())
    wo_type = forms.ChoiceField(choices=WorkOrder.TYPE_CHOICES)
    tech_id = forms.ModelChoiceField(
        queryset=User.objects.all(), required=False
    )
    notes = forms.CharField(required=False)


class WorkOrderUpdateForm(forms.Form):
    tech_id = forms.ModelChoiceField(
        queryset=User.objects.all(), required=False
    )
    notes = forms.CharField(required=False)
    closed_at = forms.DateTimeField(required=False)


class WorkOrderStepForm(forms.Form):
    sequence = forms.IntegerField(min_value=1)
    procedure_code = forms.CharField(max_length=50, required=False)
    started_at = forms.DateTimeField(required=False)
    ended_at = forms.DateTimeField(required=False)
    passed = forms.NullBooleanField(required=False)
    notes = forms.CharField(required=False)


class OrganizationForm(forms.Form):
    type = forms.ChoiceField(choices=OrgParty.TYPE_CHOICES)
    name = forms.CharField(max_length=200)
    r2_scope = forms.CharField(required=False)
    risk_tier = forms.ChoiceField(
        choices=BLANK_CHOICE + OrgParty.RISK_TIER_CHOICES, required=False
    )
    active = forms.BooleanField(required=False)
    email = forms.EmailField(required=False)
    phone = forms.CharField(max_length=50, required=False)
    address = forms.CharField(max_length=255, required=False)
    city = forms.CharField(max_length=100, required=False)
    state = forms.CharField(max_length=100, required=False)
    zip_code = forms.CharField(max_length=20, required=False)
    country = forms.CharField(max_length=100, required=False)

    @staticmethod
    def to_service_kwargs(cleaned):
        kwargs = dict(cleaned)
        if "type" in kwargs:
            kwargs["org_type"] = kwargs.pop("type")
        return kwargs


class LocationForm(forms.Form):
    org_id = forms.ModelChoiceField(queryset=OrgParty.objects.all())
    name = forms.CharField(max_length=100)
    address = forms.CharField(required=False)
    description = forms.CharField(required=False)
