import pytest
from rest_framework.test import APIClient

from uams.tests.fixtures import *  # noqa: F401,F403


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def admin_api_client(system_admin):
    client = APIClient()
    client.force_authenticate(user=system_admin)
    return client
