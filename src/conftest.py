"""Shared pytest fixtures for ITAD tests."""

import pytest

from django.conf import settings

# Use local filesystem storage for tests (avoids S3 credential errors)
settings.STORAGES["default"] = {
    "BACKEND": "django.core.files.storage.FileSystemStorage",
}
settings.STORAGES["staticfiles"] = {
    "BACKEND": "django.contrib.staticfiles.storage.StaticFilesStorage",
}

# Use in-memory cache for tests (avoids Redis connection errors)
settings.CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
    }
}


@pytest.fixture(autouse=True)
def _clear_cache():
    """Clear the in-memory cache before each test.

    Prevents rate-limit counters (django_ratelimit) from bleeding
    across tests.
    """
    from django.core.cache import cache

    cache.clear()


@pytest.fixture(autouse=True)
def _media_root(tmp_path, settings):
    """Write uploaded files under a per-test temporary directory."""
    settings.MEDIA_ROOT = str(tmp_path / "media")


@pytest.fixture
def password():
    return "testpass123!"


@pytest.fixture
def user(db, password):
    from assets.factories import UserFactory

    return UserFactory(
        username="testuser",
        email="test@example.com",
        password=password,
        display_name="Test User",
    )


@pytest.fixture
def second_user(db, password):
    from assets.factories import UserFactory

    return UserFactory(
        username="seconduser",
        email="second@example.com",
        password=password,
        display_name="Second User",
    )


@pytest.fixture
def admin_user(db, password):
    from assets.factories import UserFactory

    return UserFactory(
        username="admin",
        email="admin@example.com",
        password=password,
        role="ADMIN",
        is_staff=True,
        is_superuser=True,
    )


@pytest.fixture
def client_logged_in(client, user, password):
    client.login(username=user.username, password=password)
    return client


@pytest.fixture
def admin_client(client, admin_user, password):
    client.login(username=admin_user.username, password=password)
    return client


# --- Core model fixtures ---


@pytest.fixture
def client_org(db):
    from assets.factories import OrgPartyFactory

    return OrgPartyFactory(name="Acme Corp", org_type="CUSTOMER")


@pytest.fixture
def buyer_org(db):
    from assets.factories import OrgPartyFactory

    return OrgPartyFactory(name="Refurb Buyers LLC", org_type="DOWNSTREAM")


@pytest.fixture
def location(db):
    from assets.factories import LocationFactory

    return LocationFactory(name="Receiving Dock")


@pytest.fixture
def second_location(location):
    from assets.factories import LocationFactory

    return LocationFactory(name="Bench A", org=location.org)


@pytest.fixture
def asset(client_org, location, user):
    from assets.factories import AssetFactory

    return AssetFactory(
        client=client_org,
        current_location=location,
        created_by=user,
        manufacturer="Dell",
        model="Latitude 5420",
        identifiers=[("SERIAL", "SN-0001")],
    )


@pytest.fixture
def hard_drive(asset):
    from assets.factories import HardDriveFactory

    return HardDriveFactory(asset=asset, serial_number="HD-0001")


@pytest.fixture
def work_order(asset, user):
    from assets.factories import WorkOrderFactory

    return WorkOrderFactory(asset=asset, tech=user, wo_type="TEST")
