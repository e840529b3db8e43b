"""Work order service."""

import logging

from django.db import transaction
from django.utils import timezone

from ..models import WorkOrder, WorkOrderStep
from .lifecycle import lock_asset, record_status_change

logger = logging.getLogger(__name__)

STEP_FIELDS = (
    "sequence",
    "procedure_code",
    "started_at",
    "ended_at",
    "passed",
    "notes",
)

_UNSET = object()


@transaction.atomic
def open_work_order(
    asset,
    wo_type: str,
    performed_by,
    tech=None,
    notes: str = "",
    steps=(),
) -> WorkOrder:
    """Open a work order with optional initial steps.

    An asset that is exactly RECEIVED moves to IN_PROCESS; any other
    status is left alone. ``tech`` defaults to ``performed_by``.
    """
    asset = lock_asset(asset)
    work_order = WorkOrder.objects.create(
        asset=asset,
        wo_type=wo_type,
        tech=tech or performed_by,
        notes=notes,
    )
    for step in steps:
        _create_step(work_order, step)

    if asset.current_status == "RECEIVED":
        record_status_change(
            asset,
            "IN_PROCESS",
            performed_by,
            notes=f"Work order opened: {wo_type}",
        )
    logger.info(
        "Work order %s (%s) opened on asset %s by %s",
        work_order.pk,
        wo_type,
        asset.pk,
        performed_by.pk,
    )
    return work_order


@transaction.atomic
def update_work_order(
    work_order, tech=None, notes=None, closed_at=_UNSET
) -> WorkOrder:
    """Patch a work order.

    ``closed_at`` left out keeps the current value, ``None`` closes the
    order now, and a datetime closes it at that time.
    """
    work_order = WorkOrder.objects.select_for_update().get(pk=work_order.pk)
    update_fields = []
    if tech is not None:
        work_order.tech = tech
        update_fields.append("tech")
    if notes is not None:
        work_order.notes = notes
        update_fields.append("notes")
    if closed_at is not _UNSET:
        work_order.closed_at = closed_at or timezone.now()
        update_fields.append("closed_at")
    if update_fields:
        work_order.save(update_fields=update_fields)
    return work_order


def _create_step(work_order, data):
    step = WorkOrderStep(
        work_order=work_order,
        **{k: v for k, v in data.items() if k in STEP_FIELDS},
    )
    step.full_clean()
    step.save()
    return step


@transaction.atomic
def add_step(work_order, **data) -> WorkOrderStep:
    """Append a step. Duplicate or non-contiguous sequences are allowed."""
    return _create_step(work_order, data)


@transaction.atomic
def update_step(work_order, step_id, **data) -> WorkOrderStep:
    """Partially update a step belonging to ``work_order``.

    Raises ``WorkOrderStep.DoesNotExist`` when the step belongs to a
    different work order.
    """
    step = WorkOrderStep.objects.select_for_update().get(
        pk=step_id, work_order=work_order
    )
    fields = [k for k in data if k in STEP_FIELDS]
    for name in fields:
        setattr(step, name, data[name])
    if fields:
        step.full_clean()
        step.save(update_fields=fields)
    return step
