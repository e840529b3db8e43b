"""Request middleware for resolving the caller's identity."""

from django.conf import settings
from django.contrib.auth.middleware import PersistentRemoteUserMiddleware


class ExternalIdentityMiddleware(PersistentRemoteUserMiddleware):
    """Authenticate requests from the identity header set by the proxy.

    The session persists when the header is absent so that password
    logins to the admin site keep working.
    """

    @property
    def header(self):
        return settings.EXTERNAL_IDENTITY_HEADER
