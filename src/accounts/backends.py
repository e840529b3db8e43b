"""Authentication backends for ITAD."""

import logging

from django.conf import settings
from django.contrib.auth import get_user_model
from django.contrib.auth.backends import ModelBackend, RemoteUserBackend
from django.db import IntegrityError, transaction

User = get_user_model()

logger = logging.getLogger(__name__)


class ExternalIdentityBackend(RemoteUserBackend):
    """Resolve the proxy-asserted external id to a local account.

    Unknown ids get a local account on first sight, seeded with the name
    and email headers sent alongside the id. The username is the external
    id unless a local account already uses it, in which case a numeric
    suffix is added.
    """

    def authenticate(self, request, remote_user):
        if not remote_user:
            return None
        external_id = self.clean_username(remote_user)
        created = False
        try:
            user = User._default_manager.get(external_id=external_id)
        except User.DoesNotExist:
            try:
                with transaction.atomic():
                    user = User._default_manager.create(
                        external_id=external_id,
                        username=self.unused_username(external_id),
                    )
                created = True
            except IntegrityError:
                # Another request created the account first.
                user = User._default_manager.filter(
                    external_id=external_id
                ).first()
                if user is None:
                    logger.warning(
                        "Could not create local account for external "
                        "identity %s",
                        external_id,
                    )
                    return None
        user = self.configure_user(request, user, created=created)
        return user if self.user_can_authenticate(user) else None

    def unused_username(self, external_id):
        base = external_id[:140]
        username = base
        suffix = 1
        while User._default_manager.filter(username=username).exists():
            suffix += 1
            username = f"{base}-{suffix}"
        return username

    def configure_user(self, request, user, created=True):
        if request is None:
            return user
        name = request.META.get(
            settings.EXTERNAL_IDENTITY_NAME_HEADER, ""
        ).strip()
        email = request.META.get(
            settings.EXTERNAL_IDENTITY_EMAIL_HEADER, ""
        ).strip()
        update_fields = []
        if name and name != user.display_name:
            user.display_name = name[:255]
            update_fields.append("display_name")
        if email and email != user.email:
            user.email = email
            update_fields.append("email")
        if update_fields:
            user.save(update_fields=update_fields)
        if created:
            logger.info(
                "Created local account for external identity %s",
                user.external_id,
            )
        return user


class EmailOrUsernameBackend(ModelBackend):
    """Allow admin login with either email address or username."""

    def authenticate(self, request, username=None, password=None, **kwargs):
        if username is None or password is None:
            return None

        if "@" in username:
            users = User.objects.filter(email__iexact=username)
            if users.count() != 1:
                return None
            user = users.first()
        else:
            try:
                user = User.objects.get(username=username)
            except User.DoesNotExist:
                return None

        if user.check_password(password) and self.user_can_authenticate(user):
            return user
        return None
