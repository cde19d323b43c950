import pytest

from customers.models import Customer
from factories import make_order


@pytest.mark.integration
def test_register_returns_tokens(api_client, db):
    response = api_client.post('/api/customers/register/', {
        'email': 'new@example.com',
        'password': 'S3cure-packaging!',
        'password2': 'S3cure-packaging!',
        'company_name': 'Parcel Co',
    }, format='json')

    assert response.status_code == 201
    assert set(response.json()['tokens']) == {'access', 'refresh'}
    assert Customer.objects.get(email='new@example.com').company_name == 'Parcel Co'


@pytest.mark.integration
def test_register_rejects_mismatched_passwords(api_client, db):
    response = api_client.post('/api/customers/register/', {
        'email': 'new@example.com',
        'password': 'S3cure-packaging!',
        'password2': 'something-else-1',
    }, format='json')

    assert response.status_code == 400


@pytest.mark.integration
def test_login_then_profile_with_orders(api_client, customer):
    make_order(user=customer)
    tokens = api_client.post('/api/customers/login/', {
        'email': customer.email,
        'password': 'correct-horse-battery',
    }, format='json').json()

    api_client.credentials(HTTP_AUTHORIZATION=f"Bearer {tokens['access']}")
    body = api_client.get('/api/customers/me/').json()

    assert body['email'] == customer.email
    assert body['orders'][0]['item_count'] == 10


@pytest.mark.integration
def test_logout_blacklists_refresh_token(api_client, customer):
    tokens = api_client.post('/api/customers/login/', {
        'email': customer.email,
        'password': 'correct-horse-battery',
    }, format='json').json()
    api_client.credentials(HTTP_AUTHORIZATION=f"Bearer {tokens['access']}")

    logout = api_client.post('/api/customers/logout/', {'refresh_token': tokens['refresh']}, format='json')
    refresh = api_client.post('/api/customers/token/refresh/', {'refresh': tokens['refresh']}, format='json')

    assert logout.status_code == 200
    assert refresh.status_code == 401


ADDRESS = {
    'label': 'Warehouse',
    'full_name': 'Jo Buyer',
    'address': 'Unit 4, Trafford Park',
    'city': 'Manchester',
    'postal_code': 'M17 1AA',
    'country': 'gb',
}


@pytest.mark.integration
def test_first_saved_address_becomes_default(customer_client, customer):
    first = customer_client.post('/api/customers/addresses/', ADDRESS, format='json').json()
    second = customer_client.post('/api/customers/addresses/', {**ADDRESS, 'label': 'Office'}, format='json').json()

    assert first['is_default'] is True
    assert first['country'] == 'GB'
    assert second['is_default'] is False
    assert customer.default_address.pk == first['id']


@pytest.mark.integration
def test_only_one_default_address(customer_client, customer):
    first = customer_client.post('/api/customers/addresses/', ADDRESS, format='json').json()
    second = customer_client.post('/api/customers/addresses/', {**ADDRESS, 'is_default': True}, format='json').json()

    listed = customer_client.get('/api/customers/addresses/').json()

    assert [a['id'] for a in listed if a['is_default']] == [second['id']]
    assert customer.addresses.get(pk=first['id']).is_default is False


@pytest.mark.integration
def test_addresses_are_private(customer_client):
    other = Customer.objects.create_user(email='other@example.com', password='x')
    theirs = other.addresses.create(**{**ADDRESS, 'country': 'GB'})

    assert customer_client.get(f'/api/customers/addresses/{theirs.pk}/').status_code == 404
    assert customer_client.delete(f'/api/customers/addresses/{theirs.pk}/').status_code == 404
