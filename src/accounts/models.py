"""Custom user model for ITAD."""

from django.contrib.auth.models import AbstractUser
from django.db import models


class CustomUser(AbstractUser):
    """Local mirror of an externally authenticated identity.

    Accounts are created lazily by ``ExternalIdentityBackend`` the first
    time a request carries an unknown external id.  Staff accounts used
    for the admin site may have no external id at all.
    """

    ROLE_CHOICES = [
        ("ADMIN", "Admin"),
        ("MANAGER", "Manager"),
        ("TECH", "Technician"),
        ("VIEWER", "Viewer"),
    ]

    external_id = models.CharField(
        max_length=150,
        unique=True,
        null=True,
        blank=True,
        help_text="Identifier assigned by the external identity provider",
    )
    display_name = models.CharField(
        max_length=255,
        blank=True,
        help_text="Human-readable name shown in audit records",
    )
    role = models.CharField(
        max_length=10,
        choices=ROLE_CHOICES,
        default="TECH",
    )

    class Meta:
        verbose_name = "user"
        verbose_name_plural = "users"

    def get_display_name(self):
        """Return display_name if set, otherwise full name or username."""
        if self.display_name:
            return self.display_name
        full = self.get_full_name()
        return full if full else self.username

    def __str__(self):
        return self.get_display_name()
