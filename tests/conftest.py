import pytest
from django.core.cache import cache
from rest_framework.test import APIClient

from packstore.celery import app as celery_app
from factories import make_customer, make_product

# run queued tasks inline so emails land in mail.outbox
celery_app.conf.update(CELERY_TASK_ALWAYS_EAGER=True)


@pytest.fixture(autouse=True)
def clear_cache():
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def customer(db):
    return make_customer()


@pytest.fixture
def staff_user(db):
    return make_customer(email='staff@packstore.co.uk', staff=True)


@pytest.fixture
def customer_client(customer):
    client = APIClient()
    client.force_authenticate(user=customer)
    return client


@pytest.fixture
def staff_client(staff_user):
    client = APIClient()
    client.force_authenticate(user=staff_user)
    return client


@pytest.fixture
def product(db):
    """£10.00 base; 5% off from 100 units, 10% off from 500."""
    return make_product()
