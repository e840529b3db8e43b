"""Sanitization service: record data wipes and their certificates."""

import logging

from django.db import transaction
from django.utils import timezone

from ..models import SanitizationAction, SanitizationResult
from .lifecycle import lock_asset, record_custody_event, record_status_change

logger = logging.getLogger(__name__)


def generate_certificate_number(now=None) -> str:
    """Return a time-based certificate number, ``CERT-<epoch ms>``."""
    now = now or timezone.now()
    return f"CERT-{int(now.timestamp() * 1000)}"


@transaction.atomic
def sanitize_asset(
    asset,
    method: str,
    performed_by,
    tool_name: str = "",
    tool_version: str = "",
    certificate_number: str = "",
    notes: str = "",
    idempotency_key: str | None = None,
) -> SanitizationResult:
    """Record a sanitization and move the asset to SANITIZED.

    Every call records a passed action/result pair. The status history
    row and SANITIZED custody event are only written when the asset is
    not already SANITIZED. A repeated ``idempotency_key`` for the same
    asset returns the earlier result without writing anything.
    """
    asset = lock_asset(asset)
    if idempotency_key:
        previous = (
            SanitizationResult.objects.select_related("action")
            .filter(asset=asset, action__idempotency_key=idempotency_key)
            .first()
        )
        if previous is not None:
            logger.info(
                "Replayed sanitization %s for asset %s",
                previous.certificate_number,
                asset.pk,
            )
            return previous

    now = timezone.now()
    certificate_number = certificate_number or generate_certificate_number(
        now
    )
    action = SanitizationAction.objects.create(
        asset=asset,
        method=method,
        tool_name=tool_name,
        tool_version=tool_version,
        certificate_number=certificate_number,
        verifier=performed_by.get_display_name(),
        performed_by=performed_by,
        started_at=now,
        ended_at=now,
        idempotency_key=idempotency_key or None,
    )
    result = SanitizationResult.objects.create(
        action=action,
        asset=asset,
        passed=True,
        verifier=performed_by,
        verified_at=now,
        certificate_number=certificate_number,
        notes=notes,
    )

    if asset.current_status != "SANITIZED":
        record_status_change(
            asset,
            "SANITIZED",
            performed_by,
            notes="Hard drive sanitized",
        )
        record_custody_event(
            asset,
            "SANITIZED",
            performed_by,
            from_location=asset.current_location,
            notes=f"Sanitized using {method}",
        )
    logger.info(
        "Asset %s sanitized (%s), certificate %s",
        asset.pk,
        method,
        certificate_number,
    )
    return result
