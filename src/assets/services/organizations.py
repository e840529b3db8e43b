"""Organization (OrgParty) service."""

import logging

from django.db import transaction
from django.db.models import ProtectedError

from ..exceptions import ConflictError
from ..models import OrgParty

logger = logging.getLogger(__name__)

ORG_FIELDS = (
    "org_type",
    "name",
    "r2_scope",
    "risk_tier",
    "active",
    "email",
    "phone",
    "address",
    "city",
    "state",
    "zip_code",
    "country",
)


def create_organization(**fields) -> OrgParty:
    org = OrgParty(**{k: v for k, v in fields.items() if k in ORG_FIELDS})
    org.full_clean()
    org.save()
    logger.info("Organization %s (%s) created", org.pk, org.org_type)
    return org


@transaction.atomic
def update_organization(org, **fields) -> OrgParty:
    org = OrgParty.objects.select_for_update().get(pk=org.pk)
    changed = [k for k in fields if k in ORG_FIELDS]
    for name in changed:
        setattr(org, name, fields[name])
    if changed:
        org.full_clean()
        org.save(update_fields=[*changed, "updated_at"])
    return org


@transaction.atomic
def delete_organization(org) -> None:
    """Delete an organization that owns no assets.

    Raises ``ConflictError`` while assets, orders or custody records
    still reference it.
    """
    if org.assets.exists():
        raise ConflictError(
            "Cannot delete an organization that still owns assets."
        )
    org_pk = org.pk
    try:
        org.delete()
    except ProtectedError as exc:
        raise ConflictError(
            "Cannot delete an organization that is still referenced "
            "by orders or custody records."
        ) from exc
    logger.info("Organization %s deleted", org_pk)
