"""Factory Boy factories for ITAD test data generation."""

import factory
from factory.django import DjangoModelFactory

from django.utils import timezone


class UserFactory(DjangoModelFactory):
    """Factory for CustomUser model."""

    class Meta:
        model = "accounts.CustomUser"
        skip_postgeneration_save = True

    username = factory.Sequence(lambda n: f"user{n}")
    email = factory.LazyAttribute(lambda o: f"{o.username}@example.com")
    display_name = factory.Faker("name")
    role = "TECH"
    is_active = True

    @factory.post_generation
    def password(self, create, extracted, **kwargs):
        pwd = extracted or "testpass123!"
        self.set_password(pwd)
        if create:
            self.save(update_fields=["password"])


class OrgPartyFactory(DjangoModelFactory):
    """Factory for OrgParty model."""

    class Meta:
        model = "assets.OrgParty"

    org_type = "CUSTOMER"
    name = factory.Sequence(lambda n: f"Organization {n}")
    active = True


class LocationFactory(DjangoModelFactory):
    """Factory for Location model."""

    class Meta:
        model = "assets.Location"

    org = factory.SubFactory(OrgPartyFactory, org_type="INTERNAL")
    name = factory.Sequence(lambda n: f"Location {n}")
    address = factory.Faker("address")


class AssetFactory(DjangoModelFactory):
    """Factory for Asset model.

    Writes the asset directly and then appends the initial
    ``None -> current_status`` history row and a serial identifier, so
    the asset looks like one created through the intake service.
    """

    class Meta:
        model = "assets.Asset"
        skip_postgeneration_save = True

    client = factory.SubFactory(OrgPartyFactory)
    manufacturer = "Dell"
    model = factory.Sequence(lambda n: f"Latitude {5400 + n}")
    current_status = "RECEIVED"
    current_location = factory.SubFactory(LocationFactory)
    data_bearing = True
    created_by = factory.SubFactory(UserFactory)

    @factory.post_generation
    def history(self, create, extracted, **kwargs):
        if not create:
            return
        from assets.models import AssetStatusHistory

        AssetStatusHistory.objects.create(
            asset=self,
            from_status=None,
            to_status=self.current_status,
            changed_by=self.created_by,
        )

    @factory.post_generation
    def identifiers(self, create, extracted, **kwargs):
        if not create:
            return
        from assets.models import AssetIdentifier

        for id_type, id_value in extracted or [
            ("SERIAL", f"SN-{str(self.pk)[:8].upper()}")
        ]:
            AssetIdentifier.objects.create(
                asset=self, id_type=id_type, id_value=id_value
            )


class HardDriveFactory(DjangoModelFactory):
    """Factory for HardDrive model."""

    class Meta:
        model = "assets.HardDrive"

    asset = factory.SubFactory(AssetFactory)
    serial_number = factory.Sequence(lambda n: f"HD{n:06d}")
    capacity_gb = 512


class WorkOrderFactory(DjangoModelFactory):
    """Factory for WorkOrder model."""

    class Meta:
        model = "assets.WorkOrder"

    asset = factory.SubFactory(AssetFactory)
    wo_type = "TEST"
    tech = factory.SubFactory(UserFactory)
    opened_at = factory.LazyFunction(timezone.now)


class WorkOrderStepFactory(DjangoModelFactory):
    """Factory for WorkOrderStep model."""

    class Meta:
        model = "assets.WorkOrderStep"

    work_order = factory.SubFactory(WorkOrderFactory)
    sequence = factory.Sequence(lambda n: n + 1)
    procedure_code = "POST"


class IntakeOrderFactory(DjangoModelFactory):
    """Factory for IntakeOrder model."""

    class Meta:
        model = "assets.IntakeOrder"

    order_number = factory.Sequence(lambda n: f"IN-{n:05d}")
    client = factory.SubFactory(OrgPartyFactory)
    received_date = factory.LazyFunction(timezone.now)
    created_by = factory.SubFactory(UserFactory)
