import pytest
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient

from ..models import EntityMembership
from .helpers import make_company, make_item, make_party


@pytest.fixture
def company(db):
    return make_company("acme", state_code="27")


@pytest.fixture
def user(db, company):
    user = get_user_model().objects.create_user(username="clerk", password="pw")
    EntityMembership.objects.create(
        user=user, company=company, role="accountant", is_default=True
    )
    return user


@pytest.fixture
def api(user):
    # force_login goes through the session, so CurrentCompanyMiddleware runs
    client = APIClient()
    client.force_login(user)
    return client


@pytest.fixture
def widget(company):
    return make_item(company, "Widget", stock=20, gst_rate="18", hsn_code="8471")


@pytest.fixture
def party(company):
    return make_party(company, "Local Traders", gstin="27ABCDE1234F1Z5")
