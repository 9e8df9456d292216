"""
Test configuration for the marketplace server.
"""
import os

import pytest


def pytest_configure():
    """Point Django at the test settings before apps load."""
    os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'marketplace_server.settings.test')


@pytest.fixture
def buyer(db):
    from tests.factories import UserFactory
    return UserFactory()


@pytest.fixture
def vendor(db):
    from tests.factories import VendorFactory
    return VendorFactory()


@pytest.fixture
def admin_user(db):
    from tests.factories import AdminFactory
    return AdminFactory()


@pytest.fixture
def sample_product(vendor):
    from tests.factories import ProductFactory
    return ProductFactory(vendor=vendor)


@pytest.fixture
def api_client():
    from rest_framework.test import APIClient
    return APIClient()


@pytest.fixture
def auth_client(api_client):
    """Return a function that authenticates the API client as a user."""
    def _login(user):
        api_client.force_authenticate(user=user)
        return api_client
    return _login
