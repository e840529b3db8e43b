"""Intake order (shipment manifest) service."""

import logging

from django.core.exceptions import ValidationError
from django.db import IntegrityError, transaction

from ..exceptions import ConflictError
from ..models import IntakeLine, IntakeOrder

logger = logging.getLogger(__name__)

DUPLICATE_ORDER_MESSAGE = "Order number already exists"


def create_intake_order(
    client,
    order_number: str,
    received_date,
    lines,
    performed_by,
    packing_list_num: str = "",
    total_weight_kg=None,
    notes: str = "",
) -> IntakeOrder:
    """Create an intake order and its lines in one write.

    Order numbers are unique regardless of case; a duplicate raises
    ``ConflictError`` and nothing is written. ``lines`` is a sequence of
    ``{"description", "quantity", "weight_kg"}`` dicts.
    """
    order_number = (order_number or "").strip()
    if not order_number:
        raise ValidationError({"order_number": "An order number is required."})
    if not lines:
        raise ValidationError({"lines": "At least one line is required."})
    if IntakeOrder.objects.filter(order_number__iexact=order_number).exists():
        raise ConflictError(DUPLICATE_ORDER_MESSAGE, field="order_number")

    try:
        with transaction.atomic():
            order = IntakeOrder.objects.create(
                client=client,
                order_number=order_number,
                received_date=received_date,
                packing_list_num=packing_list_num,
                total_weight_kg=total_weight_kg,
                notes=notes,
                created_by=performed_by,
            )
            for line in lines:
                quantity = line.get("quantity")
                if quantity is None:
                    quantity = 1
                if quantity < 1:
                    raise ValidationError(
                        {"quantity": "Quantity must be at least 1."}
                    )
                IntakeLine.objects.create(
                    intake_order=order,
                    description=line.get("description", ""),
                    quantity=quantity,
                    weight_kg=line.get("weight_kg"),
                )
    except IntegrityError as exc:
        # A concurrent request won the race past the pre-check.
        raise ConflictError(
            DUPLICATE_ORDER_MESSAGE, field="order_number"
        ) from exc

    logger.info(
        "Intake order %s created with %d line(s) by %s",
        order.order_number,
        len(lines),
        performed_by.pk,
    )
    return order
