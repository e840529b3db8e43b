"""Tests for service layer business logic."""

from datetime import timedelta
from decimal import Decimal
from unittest.mock import patch

import pytest

from django.core.exceptions import ValidationError
from django.utils import timezone

from assets.exceptions import ConflictError
from assets.factories import (
    AssetFactory,
    HardDriveFactory,
    OrgPartyFactory,
    WorkOrderStepFactory,
)
from assets.models import (
    Asset,
    AssetStatusHistory,
    IntakeOrder,
    OrgParty,
    SalesLine,
    SalesOrder,
    SanitizationAction,
    SanitizationResult,
    WorkOrder,
    WorkOrderStep,
)


def _assert_history_consistent(asset):
    """Newest history row matches current_status and rows chain up."""
    asset.refresh_from_db()
    entries = list(asset.status_history.order_by("changed_at", "pk"))
    assert entries[0].from_status is None
    for previous, entry in zip(entries, entries[1:]):
        assert entry.from_status == previous.to_status
    assert entries[-1].to_status == asset.current_status


# ============================================================
# LIFECYCLE
# ============================================================


@pytest.mark.django_db
class TestCreateAsset:
    def test_creates_asset_with_audit_rows(self, client_org, location, user):
        from assets.services.lifecycle import create_asset

        asset = create_asset(
            client=client_org,
            identifiers=[{"id_type": "SERIAL", "id_value": "ABC123"}],
            performed_by=user,
            current_location=location,
            manufacturer="Lenovo",
            model="T14",
        )
        assert asset.current_status == "RECEIVED"
        assert asset.created_by == user
        assert list(asset.identifiers.values_list("id_value", flat=True)) == [
            "ABC123"
        ]
        history = asset.status_history.get()
        assert history.from_status is None
        assert history.to_status == "RECEIVED"
        assert history.changed_by == user
        event = asset.custody_events.get()
        assert event.event_type == "RECEIVED"
        assert event.to_location == location
        assert event.performed_by == user

    def test_creates_hard_drives(self, client_org, user):
        from assets.services.lifecycle import create_asset

        asset = create_asset(
            client=client_org,
            identifiers=[{"id_type": "SERIAL", "id_value": "ABC123"}],
            performed_by=user,
            hard_drives=[
                {"serial_number": "HD1", "capacity_gb": 256},
                {"serial_number": "HD2", "value_usd": Decimal("12.50")},
            ],
        )
        serials = list(
            asset.hard_drives.values_list("serial_number", flat=True)
        )
        assert serials == ["HD1", "HD2"]

    def test_requires_identifier(self, client_org, user):
        from assets.services.lifecycle import create_asset

        with pytest.raises(ValidationError, match="identifier"):
            create_asset(client=client_org, identifiers=[], performed_by=user)
        assert Asset.objects.count() == 0

    def test_requires_client(self, user):
        from assets.services.lifecycle import create_asset

        with pytest.raises(ValidationError):
            create_asset(
                client=None,
                identifiers=[{"id_type": "SERIAL", "id_value": "X"}],
                performed_by=user,
            )

    def test_rejects_status_field(self, client_org, user):
        from assets.services.lifecycle import create_asset

        with pytest.raises(ValidationError):
            create_asset(
                client=client_org,
                identifiers=[{"id_type": "SERIAL", "id_value": "X"}],
                performed_by=user,
                current_status="SHIPPED",
            )

    def test_failure_writes_nothing(self, client_org, location, user):
        from assets.services.lifecycle import create_asset

        with patch(
            "assets.services.lifecycle.record_custody_event",
            side_effect=RuntimeError("boom"),
        ):
            with pytest.raises(RuntimeError):
                create_asset(
                    client=client_org,
                    identifiers=[{"id_type": "SERIAL", "id_value": "X"}],
                    performed_by=user,
                    current_location=location,
                )
        assert Asset.objects.count() == 0
        assert AssetStatusHistory.objects.count() == 0


@pytest.mark.django_db
class TestUpdateAsset:
    def test_status_change_appends_history(self, asset, user):
        from assets.services.lifecycle import update_asset

        update_asset(asset, user, current_status="IN_PROCESS", notes="bench")
        entry = asset.status_history.first()
        assert entry.from_status == "RECEIVED"
        assert entry.to_status == "IN_PROCESS"
        assert entry.notes == "bench"
        _assert_history_consistent(asset)

    def test_same_status_writes_no_history(self, asset, user):
        from assets.services.lifecycle import update_asset

        update_asset(asset, user, current_status="RECEIVED")
        assert asset.status_history.count() == 1

    def test_invalid_status_rejected(self, asset, user):
        from assets.services.lifecycle import update_asset

        with pytest.raises(ValidationError, match="not a valid status"):
            update_asset(asset, user, current_status="LOST")
        asset.refresh_from_db()
        assert asset.current_status == "RECEIVED"

    def test_location_change_appends_moved_event(
        self, asset, user, location, second_location
    ):
        from assets.services.lifecycle import update_asset

        update_asset(asset, user, current_location=second_location)
        event = asset.custody_events.get(event_type="MOVED")
        assert event.from_location == location
        assert event.to_location == second_location
        asset.refresh_from_db()
        assert asset.current_location == second_location

    def test_same_location_writes_no_event(self, asset, user, location):
        from assets.services.lifecycle import update_asset

        update_asset(asset, user, current_location=location)
        assert not asset.custody_events.filter(event_type="MOVED").exists()

    def test_clearing_location(self, asset, user, location):
        from assets.services.lifecycle import update_asset

        update_asset(asset, user, current_location=None)
        event = asset.custody_events.get(event_type="MOVED")
        assert event.from_location == location
        assert event.to_location is None

    def test_plain_fields(self, asset, user):
        from assets.services.lifecycle import update_asset

        update_asset(asset, user, processor="i7", ram_size_gb=16)
        asset.refresh_from_db()
        assert asset.processor == "i7"
        assert asset.ram_size_gb == 16
        assert asset.status_history.count() == 1

    def test_accepts_primary_key(self, asset, user):
        from assets.services.lifecycle import update_asset

        result = update_asset(asset.pk, user, current_status="IN_PROCESS")
        assert result.current_status == "IN_PROCESS"

    def test_missing_asset(self, user):
        import uuid

        from assets.services.lifecycle import update_asset

        with pytest.raises(Asset.DoesNotExist):
            update_asset(uuid.uuid4(), user, current_status="IN_PROCESS")

    def test_status_and_location_together(self, asset, user, second_location):
        from assets.services.lifecycle import update_asset

        update_asset(
            asset,
            user,
            current_status="IN_PROCESS",
            current_location=second_location,
        )
        assert asset.status_history.count() == 2
        assert asset.custody_events.filter(event_type="MOVED").count() == 1


@pytest.mark.django_db
class TestRecordDriveDestruction:
    def test_marks_drive(self, hard_drive, user):
        from assets.services.lifecycle import record_drive_destruction

        drive = record_drive_destruction(
            hard_drive, user, "COMPLIANT", certificate="DC-1"
        )
        drive.refresh_from_db()
        assert drive.destruction_status == "COMPLIANT"
        assert drive.destruction_certificate == "DC-1"
        assert drive.verified_by == user
        assert drive.destroyed_at is not None

    def test_invalid_status(self, hard_drive, user):
        from assets.services.lifecycle import record_drive_destruction

        with pytest.raises(ValidationError):
            record_drive_destruction(hard_drive, user, "SHREDDED")


# ============================================================
# INTAKE
# ============================================================


@pytest.mark.django_db
class TestIntake:
    def _create(self, client_org, user, order_number="IN-1001", **kwargs):
        from assets.services.intake import create_intake_order

        return create_intake_order(
            client=client_org,
            order_number=order_number,
            received_date=timezone.now(),
            lines=kwargs.pop(
                "lines", [{"description": "Laptops", "quantity": 10}]
            ),
            performed_by=user,
            **kwargs,
        )

    def test_creates_order_and_lines(self, client_org, user):
        order = self._create(
            client_org,
            user,
            lines=[
                {"description": "Laptops", "quantity": 10},
                {"description": "Monitors", "weight_kg": Decimal("40.5")},
            ],
            total_weight_kg=Decimal("120.00"),
        )
        lines = list(order.lines.all())
        assert [line.quantity for line in lines] == [10, 1]
        assert order.created_by == user

    def test_duplicate_number_case_insensitive(self, client_org, user):
        self._create(client_org, user, order_number="IN-ABC")
        with pytest.raises(ConflictError) as exc_info:
            self._create(client_org, user, order_number="in-abc")
        assert exc_info.value.message == "Order number already exists"
        assert exc_info.value.field == "order_number"
        assert IntakeOrder.objects.count() == 1

    def test_requires_lines(self, client_org, user):
        with pytest.raises(ValidationError):
            self._create(client_org, user, lines=[])

    def test_zero_quantity_rejected(self, client_org, user):
        with pytest.raises(ValidationError):
            self._create(
                client_org,
                user,
                lines=[{"description": "Laptops", "quantity": 0}],
            )
        assert IntakeOrder.objects.count() == 0

    def test_description_optional(self, client_org, user):
        order = self._create(client_org, user, lines=[{"quantity": 3}])
        line = order.lines.get()
        assert line.description == ""
        assert line.quantity == 3

    def test_invalid_line_rolls_back(self, client_org, user):
        with pytest.raises(ValidationError):
            self._create(
                client_org,
                user,
                lines=[
                    {"description": "Laptops", "quantity": 2},
                    {"description": "Bad", "quantity": -1},
                ],
            )
        assert IntakeOrder.objects.count() == 0


# ============================================================
# WORK ORDERS
# ============================================================


@pytest.mark.django_db
class TestWorkOrders:
    def test_open_moves_received_asset_in_process(self, asset, user):
        from assets.services.work_orders import open_work_order

        work_order = open_work_order(asset, "TEST", user)
        asset.refresh_from_db()
        assert asset.current_status == "IN_PROCESS"
        assert work_order.tech == user
        assert work_order.is_open
        entry = asset.status_history.first()
        assert entry.notes == "Work order opened: TEST"
        _assert_history_consistent(asset)

    def test_open_leaves_other_status(self, client_org, user):
        from assets.services.work_orders import open_work_order

        asset = AssetFactory(
            client=client_org, current_status="SANITIZED", created_by=user
        )
        open_work_order(asset, "REPAIR", user)
        asset.refresh_from_db()
        assert asset.current_status == "SANITIZED"
        assert asset.status_history.count() == 1

    def test_open_with_steps_and_tech(self, asset, user, second_user):
        from assets.services.work_orders import open_work_order

        work_order = open_work_order(
            asset,
            "TEST",
            user,
            tech=second_user,
            steps=[
                {"sequence": 1, "procedure_code": "POST"},
                {"sequence": 1, "procedure_code": "DUP"},
                {"sequence": 5, "procedure_code": "GAP"},
            ],
        )
        assert work_order.tech == second_user
        assert list(work_order.steps.values_list("sequence", flat=True)) == [
            1,
            1,
            5,
        ]

    def test_failure_rolls_back_work_order(self, asset, user):
        from assets.services.work_orders import open_work_order

        with pytest.raises(ValidationError):
            open_work_order(asset, "TEST", user, steps=[{"sequence": 0}])
        assert WorkOrder.objects.count() == 0
        asset.refresh_from_db()
        assert asset.current_status == "RECEIVED"

    def test_close_without_time_uses_now(self, work_order):
        from assets.services.work_orders import update_work_order

        before = timezone.now()
        work_order = update_work_order(work_order, closed_at=None)
        assert work_order.closed_at >= before

    def test_close_with_explicit_time(self, work_order):
        from assets.services.work_orders import update_work_order

        closed = timezone.now() - timedelta(hours=2)
        work_order = update_work_order(work_order, closed_at=closed)
        assert work_order.closed_at == closed

    def test_update_leaves_closed_at_when_omitted(self, work_order):
        from assets.services.work_orders import update_work_order

        work_order = update_work_order(work_order, notes="checked")
        assert work_order.notes == "checked"
        assert work_order.closed_at is None

    def test_add_and_update_step(self, work_order):
        from assets.services.work_orders import add_step, update_step

        step = add_step(work_order, sequence=2, procedure_code="WIPE")
        step = update_step(work_order, step.pk, passed=True, notes="ok")
        step.refresh_from_db()
        assert step.passed is True
        assert step.notes == "ok"
        assert step.procedure_code == "WIPE"

    def test_update_step_of_other_work_order(self, work_order):
        from assets.services.work_orders import update_step

        other = WorkOrderStepFactory()
        with pytest.raises(WorkOrderStep.DoesNotExist):
            update_step(work_order, other.pk, passed=False)


# ============================================================
# SANITIZATION
# ============================================================


@pytest.mark.django_db
class TestSanitization:
    def test_sanitize_records_action_result_and_audit(
        self, asset, user, location
    ):
        from assets.services.sanitization import sanitize_asset

        result = sanitize_asset(
            asset, "NIST_800_88_PURGE", user, tool_name="Blancco"
        )
        assert result.passed is True
        assert result.verifier == user
        assert result.certificate_number.startswith("CERT-")
        assert result.action.tool_name == "Blancco"
        asset.refresh_from_db()
        assert asset.current_status == "SANITIZED"
        entry = asset.status_history.first()
        assert entry.notes == "Hard drive sanitized"
        event = asset.custody_events.get(event_type="SANITIZED")
        assert event.notes == "Sanitized using NIST_800_88_PURGE"
        assert event.from_location == location
        _assert_history_consistent(asset)

    def test_sanitize_in_process_asset(self, asset, user):
        from assets.services.lifecycle import update_asset
        from assets.services.sanitization import sanitize_asset

        update_asset(asset, user, current_status="IN_PROCESS")
        history_before = asset.status_history.count()
        custody_before = asset.custody_events.count()

        sanitize_asset(asset, "NIST_800_88_PURGE", user)

        asset.refresh_from_db()
        assert asset.current_status == "SANITIZED"
        assert asset.status_history.count() == history_before + 1
        assert asset.custody_events.count() == custody_before + 1
        entry = asset.status_history.first()
        assert entry.from_status == "IN_PROCESS"
        assert entry.to_status == "SANITIZED"
        assert SanitizationAction.objects.filter(asset=asset).count() == 1
        result = SanitizationResult.objects.get(asset=asset)
        assert result.passed is True
        _assert_history_consistent(asset)

    def test_uses_supplied_certificate(self, asset, user):
        from assets.services.sanitization import sanitize_asset

        result = sanitize_asset(
            asset, "NIST_800_88_CLEAR", user, certificate_number="C-42"
        )
        assert result.certificate_number == "C-42"
        assert result.action.certificate_number == "C-42"

    def test_second_sanitize_skips_status_change(self, asset, user):
        from assets.services.sanitization import sanitize_asset

        sanitize_asset(asset, "NIST_800_88_CLEAR", user)
        sanitize_asset(asset, "NIST_800_88_PURGE", user)
        assert SanitizationResult.objects.filter(asset=asset).count() == 2
        assert (
            asset.status_history.filter(to_status="SANITIZED").count() == 1
        )
        assert asset.custody_events.filter(event_type="SANITIZED").count() == 1

    def test_idempotency_key_replays(self, asset, user):
        from assets.services.sanitization import sanitize_asset

        first = sanitize_asset(
            asset, "NIST_800_88_CLEAR", user, idempotency_key="k-1"
        )
        second = sanitize_asset(
            asset, "NIST_800_88_CLEAR", user, idempotency_key="k-1"
        )
        assert first.pk == second.pk
        assert SanitizationAction.objects.count() == 1

    def test_certificate_number_format(self):
        from datetime import datetime, timezone as dt_timezone

        from assets.services.sanitization import generate_certificate_number

        now = datetime(2024, 1, 1, tzinfo=dt_timezone.utc)
        assert generate_certificate_number(now) == "CERT-1704067200000"


# ============================================================
# DISPOSAL
# ============================================================


@pytest.mark.django_db
class TestDisposal:
    def test_dispose_creates_order_and_ships(self, asset, user, buyer_org):
        from assets.services.disposal import dispose_asset

        order = dispose_asset(
            asset, buyer_org, user, sale_price=Decimal("150.00")
        )
        assert order.status == "COMPLETED"
        assert order.order_number.startswith("SO-")
        line = order.lines.get()
        assert line.asset == asset
        assert line.unit_price == Decimal("150.00")
        assert line.total_price == Decimal("150.00")
        asset.refresh_from_db()
        assert asset.current_status == "SHIPPED"
        entry = asset.status_history.first()
        assert entry.notes == "Disposed/Sold to customer"
        event = asset.custody_events.get(event_type="SHIPPED")
        assert event.notes == "Asset disposed/sold"
        _assert_history_consistent(asset)

    def test_custody_notes_use_supplied_notes(self, asset, user, buyer_org):
        from assets.services.disposal import dispose_asset

        dispose_asset(asset, buyer_org, user, notes="Pallet 7")
        event = asset.custody_events.get(event_type="SHIPPED")
        assert event.notes == "Pallet 7"

    def test_order_numbers_unique(self, client_org, user, buyer_org):
        from assets.services.disposal import dispose_asset

        numbers = {
            dispose_asset(
                AssetFactory(client=client_org, created_by=user),
                buyer_org,
                user,
            ).order_number
            for _ in range(3)
        }
        assert len(numbers) == 3

    def test_idempotency_key_replays(self, asset, user, buyer_org):
        from assets.services.disposal import dispose_asset

        first = dispose_asset(asset, buyer_org, user, idempotency_key="d-1")
        second = dispose_asset(asset, buyer_org, user, idempotency_key="d-1")
        assert first.pk == second.pk
        assert SalesOrder.objects.count() == 1
        assert asset.status_history.filter(to_status="SHIPPED").count() == 1

    def test_repeat_disposal_without_key(self, asset, user, buyer_org):
        from assets.services.disposal import dispose_asset

        for calls in (1, 2):
            dispose_asset(asset, buyer_org, user)
            assert SalesOrder.objects.count() == calls
            assert SalesLine.objects.filter(asset=asset).count() == calls
            assert asset.status_history.count() == 1 + calls
            assert (
                asset.custody_events.filter(event_type="SHIPPED").count()
                == calls
            )
        latest = asset.status_history.first()
        assert latest.from_status == "SHIPPED"
        assert latest.to_status == "SHIPPED"
        _assert_history_consistent(asset)

    def test_dispose_from_terminal_status(self, client_org, user, buyer_org):
        from assets.services.disposal import dispose_asset

        asset = AssetFactory(
            client=client_org, current_status="SCRAPPED", created_by=user
        )
        order = dispose_asset(asset, buyer_org, user)
        assert order.lines.get().asset == asset
        asset.refresh_from_db()
        assert asset.current_status == "SHIPPED"
        entry = asset.status_history.first()
        assert entry.from_status == "SCRAPPED"
        assert asset.status_history.count() == 2
        assert asset.custody_events.filter(event_type="SHIPPED").count() == 1
        _assert_history_consistent(asset)

    def test_idempotency_key_for_other_asset(
        self, asset, user, buyer_org, client_org
    ):
        from assets.services.disposal import dispose_asset

        dispose_asset(asset, buyer_org, user, idempotency_key="d-1")
        other = AssetFactory(client=client_org, created_by=user)
        with pytest.raises(ConflictError):
            dispose_asset(other, buyer_org, user, idempotency_key="d-1")
        other.refresh_from_db()
        assert other.current_status == "RECEIVED"


# ============================================================
# ORGANIZATIONS
# ============================================================


@pytest.mark.django_db
class TestOrganizations:
    def test_create(self):
        from assets.services.organizations import create_organization

        org = create_organization(
            org_type="SUPPLIER", name="Parts Inc", risk_tier="LOW"
        )
        assert org.org_type == "SUPPLIER"
        assert org.active is True

    def test_create_rejects_bad_type(self):
        from assets.services.organizations import create_organization

        with pytest.raises(ValidationError):
            create_organization(org_type="ALIEN", name="X")

    def test_update(self, client_org):
        from assets.services.organizations import update_organization

        org = update_organization(client_org, city="Austin", active=False)
        org.refresh_from_db()
        assert org.city == "Austin"
        assert org.active is False

    def test_delete_unused(self):
        from assets.services.organizations import delete_organization

        org = OrgPartyFactory()
        delete_organization(org)
        assert not OrgParty.objects.filter(pk=org.pk).exists()

    def test_delete_with_assets_conflicts(self, asset, client_org):
        from assets.services.organizations import delete_organization

        with pytest.raises(ConflictError):
            delete_organization(client_org)
        assert OrgParty.objects.filter(pk=client_org.pk).exists()


# ============================================================
# IMAGES
# ============================================================


class _Upload:
    def __init__(self, content_type, size, name="photo.jpg"):
        self.content_type = content_type
        self.size = size
        self.name = name


class TestImageValidation:
    def test_rejects_non_image(self):
        from assets.services.images import validate_image_upload

        with pytest.raises(ValidationError, match="Only image files"):
            validate_image_upload(_Upload("application/pdf", 100))

    def test_rejects_large_file(self, settings):
        from assets.services.images import validate_image_upload

        settings.IMAGE_UPLOAD_MAX_BYTES = 1024
        with pytest.raises(ValidationError, match="too large"):
            validate_image_upload(_Upload("image/png", 2048))

    def test_accepts_image(self):
        from assets.services.images import validate_image_upload

        validate_image_upload(_Upload("image/jpeg", 100))


# ============================================================
# SEARCH
# ============================================================


@pytest.mark.django_db
class TestFilterAssets:
    def test_filters_by_status_and_client(self, asset, client_org, user):
        from assets.services.search import filter_assets

        other_client = OrgPartyFactory()
        AssetFactory(client=other_client, created_by=user)
        AssetFactory(
            client=client_org, current_status="SANITIZED", created_by=user
        )
        assert filter_assets(client_id=client_org.pk).count() == 2
        assert list(
            filter_assets(status="RECEIVED", client_id=client_org.pk)
        ) == [asset]

    def test_empty_filters_ignored(self, asset):
        from assets.services.search import filter_assets

        assert filter_assets(status="", client_id=None).count() == 1


@pytest.mark.django_db
class TestDriveDestructionSummary:
    def test_summaries(self, asset):
        from assets.services.export import destruction_summary

        assert destruction_summary([]) == "Compliant"
        compliant = HardDriveFactory(
            asset=asset, destruction_status="COMPLIANT"
        )
        pending = HardDriveFactory(asset=asset, destruction_status="PENDING")
        untouched = HardDriveFactory(asset=asset)
        assert destruction_summary([compliant]) == "Compliant"
        assert destruction_summary([compliant, pending]) == "Mixed"
        assert destruction_summary([untouched]) == "Not Destroyed"
