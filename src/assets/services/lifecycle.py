"""Asset lifecycle service.

Every change to an asset's status or location is written together with
its audit row (``AssetStatusHistory`` or ``ChainOfCustodyEvent``) inside
one database transaction, while holding a row lock on the asset.
"""

import logging

from django.core.exceptions import ValidationError
from django.db import transaction
from django.utils import timezone

from ..models import (
    STATUS_CHOICES,
    Asset,
    AssetIdentifier,
    AssetStatusHistory,
    ChainOfCustodyEvent,
    HardDrive,
)

logger = logging.getLogger(__name__)

# Fields a caller may set directly on create/update. Status and location
# have dedicated audited handling below.
EDITABLE_FIELDS = (
    "manufacturer",
    "model",
    "purchase_date",
    "processor",
    "ram_size_gb",
    "storage_type",
    "storage_capacity_gb",
    "screen_size_inches",
    "operating_system",
    "assigned_to",
    "data_bearing",
    "hazmat",
    "resale_value",
    "r2v3_compliance",
    "compliance_notes",
    "compliance_summary",
    "suggested_next_action",
)


def lock_asset(asset) -> Asset:
    """Re-read an asset under a row lock held until the transaction ends.

    Accepts an ``Asset`` or its primary key. Must be called inside
    ``transaction.atomic``. Raises ``Asset.DoesNotExist``.
    """
    pk = asset.pk if isinstance(asset, Asset) else asset
    return Asset.objects.select_for_update().get(pk=pk)


def record_status_change(
    asset: Asset,
    to_status: str,
    performed_by,
    notes: str = "",
    timestamp=None,
) -> AssetStatusHistory:
    """Append a history row and set ``asset.current_status``.

    The caller must hold the row lock from ``lock_asset``.
    """
    if to_status not in dict(STATUS_CHOICES):
        raise ValidationError(
            {"current_status": f"'{to_status}' is not a valid status."}
        )
    entry = AssetStatusHistory.objects.create(
        asset=asset,
        from_status=asset.current_status,
        to_status=to_status,
        changed_by=performed_by,
        changed_at=timestamp or timezone.now(),
        notes=notes,
    )
    logger.info(
        "Asset %s status %s -> %s by %s",
        asset.pk,
        asset.current_status,
        to_status,
        performed_by.pk,
    )
    asset.current_status = to_status
    asset.save(update_fields=["current_status", "updated_at"])
    return entry


def record_custody_event(
    asset: Asset,
    event_type: str,
    performed_by,
    from_location=None,
    to_location=None,
    notes: str = "",
    timestamp=None,
) -> ChainOfCustodyEvent:
    """Append a chain-of-custody event for ``asset``."""
    return ChainOfCustodyEvent.objects.create(
        asset=asset,
        event_type=event_type,
        from_location=from_location,
        to_location=to_location,
        performed_by=performed_by,
        event_ts=timestamp or timezone.now(),
        notes=notes,
    )


def _check_fields(fields):
    unknown = set(fields) - set(EDITABLE_FIELDS)
    if unknown:
        raise ValidationError(
            {name: "This field cannot be set." for name in sorted(unknown)}
        )


@transaction.atomic
def create_asset(
    client,
    identifiers,
    performed_by,
    current_location=None,
    hard_drives=(),
    **fields,
) -> Asset:
    """Register a newly received asset.

    ``identifiers`` is a sequence of ``{"id_type", "id_value"}`` dicts
    (at least one); ``hard_drives`` a sequence of ``{"serial_number",
    "capacity_gb", "value_usd"}`` dicts. Writes the initial
    ``None -> RECEIVED`` history row and a RECEIVED custody event.
    """
    if client is None:
        raise ValidationError({"client": "An owning client is required."})
    if not identifiers:
        raise ValidationError(
            {"identifiers": "At least one identifier is required."}
        )
    _check_fields(fields)

    asset = Asset(
        client=client,
        current_location=current_location,
        current_status="RECEIVED",
        created_by=performed_by,
        **fields,
    )
    asset.full_clean()
    asset.save()

    for ident in identifiers:
        identifier = AssetIdentifier(
            asset=asset,
            id_type=ident["id_type"],
            id_value=ident["id_value"],
        )
        identifier.full_clean()
        identifier.save()

    for drive in hard_drives:
        HardDrive.objects.create(
            asset=asset,
            serial_number=drive["serial_number"],
            capacity_gb=drive.get("capacity_gb"),
            value_usd=drive.get("value_usd"),
        )

    AssetStatusHistory.objects.create(
        asset=asset,
        from_status=None,
        to_status="RECEIVED",
        changed_by=performed_by,
    )
    record_custody_event(
        asset,
        "RECEIVED",
        performed_by,
        to_location=current_location,
    )
    logger.info(
        "Asset %s received for client %s by %s",
        asset.pk,
        client.pk,
        performed_by.pk,
    )
    return asset


_UNSET = object()


@transaction.atomic
def update_asset(
    asset,
    performed_by,
    current_status=None,
    current_location=_UNSET,
    notes: str = "",
    **fields,
) -> Asset:
    """Patch an asset, auditing status and location changes.

    A status different from the stored one appends a history row; a
    ``current_location`` that differs from the stored one (``None``
    clears it) appends a MOVED custody event. Leave ``current_location``
    out to keep the location unchanged.
    """
    _check_fields(fields)
    asset = lock_asset(asset)

    for name, value in fields.items():
        setattr(asset, name, value)
    if fields:
        asset.full_clean(exclude=["current_status"])
        asset.save(update_fields=[*fields, "updated_at"])

    if current_status and current_status != asset.current_status:
        record_status_change(asset, current_status, performed_by, notes)

    if (
        current_location is not _UNSET
        and getattr(current_location, "pk", None)
        != asset.current_location_id
    ):
        record_custody_event(
            asset,
            "MOVED",
            performed_by,
            from_location=asset.current_location,
            to_location=current_location,
            notes=notes,
        )
        asset.current_location = current_location
        asset.save(update_fields=["current_location", "updated_at"])
    return asset


@transaction.atomic
def record_drive_destruction(
    drive,
    performed_by,
    destruction_status: str,
    certificate: str = "",
    destroyed_at=None,
) -> HardDrive:
    """Record destruction of a single hard drive.

    The owning asset's row is locked so that drive updates serialize
    with other writes on the asset. No asset-level audit row is written.
    """
    lock_asset(drive.asset_id)
    drive.destruction_status = destruction_status
    drive.destruction_certificate = certificate
    drive.destroyed_at = destroyed_at or timezone.now()
    drive.verified_by = performed_by
    drive.full_clean()
    drive.save(
        update_fields=[
            "destruction_status",
            "destruction_certificate",
            "destroyed_at",
            "verified_by",
        ]
    )
    logger.info(
        "Hard drive %s on asset %s marked %s by %s",
        drive.pk,
        drive.asset_id,
        destruction_status,
        performed_by.pk,
    )
    return drive
