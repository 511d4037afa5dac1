"""
Pytest configuration and shared fixtures for inventory tests.
"""
import uuid

import pytest
from rest_framework.test import APIClient

from inventory.models import Category, Item


@pytest.fixture
def org_id():
    return uuid.uuid4()


@pytest.fixture
def other_org_id():
    return uuid.uuid4()


@pytest.fixture
def user_id():
    return uuid.uuid4()


@pytest.fixture
def category(db, org_id):
    return Category.objects.create(organization_id=org_id, name="Dry Goods")


@pytest.fixture
def make_item(db, org_id, category):
    """Factory for items; quantities are base units."""

    def _make(**overrides):
        fields = {
            "organization_id": org_id,
            "category": category,
            "name": f"Item {uuid.uuid4().hex[:6]}",
            "unit_of_measurement": "pcs",
            "current_stock": 0,
            "minimum_threshold": 0,
        }
        fields.update(overrides)
        return Item.objects.create(**fields)

    return _make


@pytest.fixture
def item(make_item):
    return make_item(name="Flour", unit_of_measurement="kg", current_stock=100, minimum_threshold=10)


def _client(org_id, user_id, role):
    client = APIClient()
    client.credentials(
        HTTP_X_ORGANIZATION_ID=str(org_id),
        HTTP_X_USER_ID=str(user_id),
        HTTP_X_USER_ROLE=role,
    )
    return client


@pytest.fixture
def admin_api(org_id, user_id):
    return _client(org_id, user_id, "ADMIN")


@pytest.fixture
def user_api(org_id, user_id):
    return _client(org_id, user_id, "USER")


@pytest.fixture
def other_org_api(other_org_id, user_id):
    return _client(other_org_id, user_id, "ADMIN")
