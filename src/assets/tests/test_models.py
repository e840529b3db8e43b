"""Tests for asset models."""

from datetime import date, timedelta

import pytest

from django.core.exceptions import ValidationError
from django.db import IntegrityError
from django.utils import timezone

from assets.factories import (
    AssetFactory,
    IntakeOrderFactory,
    LocationFactory,
    OrgPartyFactory,
)
from assets.models import (
    AssetIdentifier,
    AssetStatusHistory,
    ChainOfCustodyEvent,
    IntakeOrder,
    SanitizationAction,
    SanitizationResult,
    asset_image_upload_to,
)


@pytest.mark.django_db
class TestAsset:
    def test_str_uses_manufacturer_and_model(self, asset):
        assert str(asset) == "Dell Latitude 5420"

    def test_str_falls_back_to_short_id(self, client_org, user):
        asset = AssetFactory(
            client=client_org, manufacturer="", model="", created_by=user
        )
        assert str(asset) == str(asset.id)[:8]

    def test_defaults(self, client_org, user):
        asset = AssetFactory(client=client_org, created_by=user)
        assert asset.current_status == "RECEIVED"
        assert asset.hazmat is False

    def test_cannot_be_deleted(self, asset):
        with pytest.raises(ValidationError, match="cannot be deleted"):
            asset.delete()

    def test_primary_identifier(self, asset):
        assert asset.primary_identifier == "SN-0001"

    def test_age_years(self, asset):
        asset.purchase_date = date.today() - timedelta(days=365 * 3 + 5)
        assert asset.age_years == 3

    def test_age_years_without_purchase_date(self, asset):
        assert asset.age_years is None

    def test_factory_writes_initial_history(self, asset):
        entry = asset.status_history.get()
        assert entry.from_status is None
        assert entry.to_status == "RECEIVED"


@pytest.mark.django_db
class TestAssetIdentifier:
    def test_cannot_be_modified(self, asset):
        identifier = asset.identifiers.first()
        identifier.id_value = "CHANGED"
        with pytest.raises(ValidationError):
            identifier.save()

    def test_str(self, asset):
        assert str(asset.identifiers.first()) == "SERIAL: SN-0001"

    def test_invalid_type_rejected(self, asset):
        identifier = AssetIdentifier(
            asset=asset, id_type="BOGUS", id_value="x"
        )
        with pytest.raises(ValidationError):
            identifier.full_clean()


@pytest.mark.django_db
class TestAppendOnlyRecords:
    def test_status_history_cannot_be_modified(self, asset):
        entry = asset.status_history.get()
        entry.notes = "rewritten"
        with pytest.raises(ValidationError, match="immutable"):
            entry.save()

    def test_status_history_cannot_be_deleted(self, asset):
        with pytest.raises(ValidationError, match="immutable"):
            asset.status_history.get().delete()

    def test_custody_event_cannot_be_modified(self, asset, user, location):
        event = ChainOfCustodyEvent.objects.create(
            asset=asset,
            event_type="NOTE",
            performed_by=user,
            to_location=location,
        )
        event.notes = "changed"
        with pytest.raises(ValidationError):
            event.save()
        with pytest.raises(ValidationError):
            event.delete()

    def test_sanitization_result_cannot_be_modified(self, asset, user):
        action = SanitizationAction.objects.create(
            asset=asset,
            method="NIST_800_88_PURGE",
            certificate_number="CERT-1",
            performed_by=user,
        )
        result = SanitizationResult.objects.create(
            action=action,
            asset=asset,
            verifier=user,
            certificate_number="CERT-1",
        )
        result.passed = False
        with pytest.raises(ValidationError):
            result.save()

    def test_history_ordering_newest_first(self, asset, user):
        later = AssetStatusHistory.objects.create(
            asset=asset,
            from_status="RECEIVED",
            to_status="IN_PROCESS",
            changed_by=user,
            changed_at=timezone.now() + timedelta(minutes=1),
        )
        assert asset.status_history.first() == later


@pytest.mark.django_db
class TestLocation:
    def test_name_unique_per_org(self, location):
        with pytest.raises(IntegrityError):
            LocationFactory(org=location.org, name=location.name)

    def test_same_name_allowed_in_other_org(self, location):
        other = LocationFactory(org=OrgPartyFactory(), name=location.name)
        assert other.pk != location.pk


@pytest.mark.django_db
class TestIntakeOrder:
    def test_order_number_unique_case_insensitive(self, client_org, user):
        IntakeOrderFactory(
            order_number="IN-ABC", client=client_org, created_by=user
        )
        with pytest.raises(IntegrityError):
            IntakeOrder.objects.create(
                order_number="in-abc",
                client=client_org,
                received_date=timezone.now(),
                created_by=user,
            )


@pytest.mark.django_db
class TestWorkOrder:
    def test_is_open(self, work_order):
        assert work_order.is_open
        work_order.closed_at = timezone.now()
        assert not work_order.is_open


class TestImageUploadPath:
    def test_sanitizes_filename(self):
        class Stub:
            asset_id = "abc"

        path = asset_image_upload_to(Stub(), "my photo (1).jpg")
        assert path.startswith("assets/abc_")
        assert path.endswith("_my_photo__1_.jpg")
