"""Disposal service: sell or hand off an asset to a customer."""

import logging
import secrets

from django.db import transaction
from django.utils import timezone

from ..exceptions import ConflictError
from ..models import SalesLine, SalesOrder
from .lifecycle import lock_asset, record_custody_event, record_status_change

logger = logging.getLogger(__name__)


def generate_order_number(now=None) -> str:
    """Return a unique, time-based sales order number."""
    now = now or timezone.now()
    return f"SO-{int(now.timestamp() * 1000)}-{secrets.token_hex(3).upper()}"


@transaction.atomic
def dispose_asset(
    asset,
    customer,
    performed_by,
    sale_price=None,
    notes: str = "",
    idempotency_key: str | None = None,
) -> SalesOrder:
    """Sell an asset: one COMPLETED order with one line, then SHIPPED.

    Applies regardless of the asset's prior status. A repeated
    ``idempotency_key`` returns the order it created the first time.
    """
    asset = lock_asset(asset)
    if idempotency_key:
        previous = SalesOrder.objects.filter(
            idempotency_key=idempotency_key
        ).first()
        if previous is not None:
            if not previous.lines.filter(asset=asset).exists():
                raise ConflictError(
                    "Idempotency key was already used for another asset",
                    field="idempotency_key",
                )
            logger.info(
                "Replayed disposal %s for asset %s",
                previous.order_number,
                asset.pk,
            )
            return previous

    order = SalesOrder.objects.create(
        order_number=generate_order_number(),
        customer=customer,
        status="COMPLETED",
        notes=notes,
        created_by=performed_by,
        idempotency_key=idempotency_key or None,
    )
    SalesLine.objects.create(
        order=order,
        asset=asset,
        unit_price=sale_price,
        total_price=sale_price,
    )

    record_status_change(
        asset,
        "SHIPPED",
        performed_by,
        notes="Disposed/Sold to customer",
    )
    record_custody_event(
        asset,
        "SHIPPED",
        performed_by,
        from_location=asset.current_location,
        notes=notes or "Asset disposed/sold",
    )
    logger.info(
        "Asset %s disposed to %s on order %s",
        asset.pk,
        customer.pk,
        order.order_number,
    )
    return order
