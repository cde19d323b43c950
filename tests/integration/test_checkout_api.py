from decimal import Decimal
from unittest import mock

import pytest
import stripe
from django.db import DatabaseError

from cart.models import SavedCart
from factories import make_customer

URL = '/api/checkout/'
SESSION = {'id': 'cs_test_1', 'url': 'https://checkout.stripe.com/c/pay/cs_test_1'}


@pytest.fixture
def stripe_create():
    with mock.patch('orders.stripe_gateway.create_session', return_value=SESSION) as create:
        yield create


@pytest.mark.integration
def test_guest_checkout_prices_cart_server_side(api_client, product, stripe_create):
    response = api_client.post(URL, {
        'items': [{'product_id': product.pk, 'quantity': 750}],
        'email': 'guest@example.com',
        # stale client figures are ignored
        'subtotal': '7500.00',
        'total': '9000.00',
    }, format='json')

    assert response.status_code == 200
    assert response.json() == {'sessionId': 'cs_test_1', 'session_id': 'cs_test_1', 'url': SESSION['url']}

    params = stripe_create.call_args.args[0]
    assert params['customer_email'] == 'guest@example.com'
    assert [item['price_data']['unit_amount'] for item in params['line_items']] == [675000, 0, 135000]
    assert Decimal(params['metadata']['total_amount']) == Decimal('8100')
    assert 'user_id' not in params['metadata']


@pytest.mark.integration
def test_shipping_method_is_priced_from_catalogue(api_client, product, stripe_create):
    response = api_client.post(URL, {
        'items': [{'product_id': product.pk, 'quantity': 10}],
        'email': 'guest@example.com',
        'shipping_method_id': 'dhl-next-day',
        'shipping_cost': '0.00',
    }, format='json')

    assert response.status_code == 200
    params = stripe_create.call_args.args[0]
    assert params['line_items'][1]['price_data']['unit_amount'] == 599
    assert params['metadata']['shipping_method'] == 'dhl-next-day'


@pytest.mark.integration
def test_storefront_camel_case_body_is_understood(api_client, product, stripe_create):
    response = api_client.post(URL, {
        'items': [{'productId': product.pk, 'quantity': 10}],
        'email': 'guest@example.com',
        'shippingMethodId': 'dhl-next-day',
        'shippingCost': '5.99',
        'shippingAddress': {
            'fullName': 'Jo Buyer', 'address': '1 Mill Lane', 'city': 'Bolton',
            'zipCode': 'BL1 1AA', 'country': 'GB',
        },
    }, format='json')

    assert response.status_code == 200
    assert response.json()['sessionId'] == 'cs_test_1'
    params = stripe_create.call_args.args[0]
    assert params['line_items'][1]['price_data']['unit_amount'] == 599
    assert params['metadata']['shipping_method'] == 'dhl-next-day'
    assert 'shipping_address_collection' not in params
    assert '"full_name":"Jo Buyer"' in params['metadata']['shipping_address']


@pytest.mark.integration
def test_unknown_shipping_method_is_rejected(api_client, product, stripe_create):
    response = api_client.post(URL, {
        'items': [{'product_id': product.pk, 'quantity': 10}],
        'email': 'guest@example.com',
        'shipping_method_id': 'carrier-pigeon',
    }, format='json')

    assert response.status_code == 400
    assert 'shipping_method_id' in response.json()['details']
    stripe_create.assert_not_called()


@pytest.mark.integration
def test_empty_cart(api_client, db, stripe_create):
    response = api_client.post(URL, {'items': [], 'email': 'guest@example.com'}, format='json')

    assert response.status_code == 400
    assert response.json() == {'error': 'Cart is empty'}
    stripe_create.assert_not_called()


@pytest.mark.integration
def test_guest_needs_an_email(api_client, product, stripe_create):
    response = api_client.post(URL, {'items': [{'product_id': product.pk, 'quantity': 1}]}, format='json')

    assert response.status_code == 400
    assert response.json() == {'error': 'Email is required for checkout'}
    stripe_create.assert_not_called()


@pytest.mark.integration
def test_unavailable_product_is_rejected(api_client, product, stripe_create):
    product.available = False
    product.save()

    response = api_client.post(URL, {
        'items': [{'product_id': product.pk, 'quantity': 1}],
        'email': 'guest@example.com',
    }, format='json')

    assert response.status_code == 400
    stripe_create.assert_not_called()


@pytest.mark.integration
def test_stripe_failure_is_a_server_error(api_client, product):
    with mock.patch('orders.stripe_gateway.create_session', side_effect=stripe.APIConnectionError('timeout talking to api.stripe.com')):
        response = api_client.post(URL, {
            'items': [{'product_id': product.pk, 'quantity': 1}],
            'email': 'guest@example.com',
        }, format='json')

    assert response.status_code == 500
    assert 'stripe.com' not in response.json()['error']


@pytest.mark.integration
def test_signed_in_checkout_uses_account_email_and_snapshots_cart(customer_client, customer, product, stripe_create):
    response = customer_client.post(URL, {
        'items': [{'product_id': product.pk, 'quantity': 120}],
        'email': 'someone-else@example.com',
    }, format='json')

    assert response.status_code == 200
    metadata = stripe_create.call_args.args[0]['metadata']
    assert metadata['user_email'] == customer.email
    assert metadata['user_id'] == str(customer.pk)

    saved = SavedCart.objects.get(user=customer)
    assert saved.stripe_session_id == 'cs_test_1'
    assert saved.items[0]['quantity'] == 120
    assert Decimal(saved.items[0]['unit_price']) == Decimal('9.5')


@pytest.mark.integration
def test_cart_snapshot_failure_does_not_block_checkout(customer_client, product, stripe_create, caplog):
    with mock.patch('cart.services.save_cart', side_effect=DatabaseError('locked')):
        response = customer_client.post(URL, {
            'items': [{'product_id': product.pk, 'quantity': 1}],
        }, format='json')

    assert response.status_code == 200
    assert 'Could not snapshot cart' in caplog.text


@pytest.mark.integration
def test_shipping_options_endpoint(api_client):
    response = api_client.get('/api/shipping-options/')

    assert response.status_code == 200
    assert response.json()[1] == {
        'id': 'dhl-next-day',
        'name': 'DHL Next Day UK',
        'price': '5.99',
        'delivery_time': 'Next Working Day Delivery (Monday - Friday Delivery)',
        'carrier': 'DHL',
        'description': '£5.99',
    }


@pytest.mark.integration
def test_checkout_with_saved_address(customer_client, customer, product, stripe_create):
    saved = customer.addresses.create(
        full_name='Jo Buyer', address='Unit 4', city='Bolton', postal_code='BL1 1AA', country='GB',
    )

    response = customer_client.post(URL, {
        'items': [{'product_id': product.pk, 'quantity': 1}],
        'shipping_address_id': saved.pk,
    }, format='json')

    assert response.status_code == 200
    params = stripe_create.call_args.args[0]
    assert 'shipping_address_collection' not in params
    assert '"postal_code":"BL1 1AA"' in params['metadata']['shipping_address']


@pytest.mark.integration
def test_checkout_with_someone_elses_address(customer_client, product, stripe_create):
    other = make_customer(email='other@example.com')
    theirs = other.addresses.create(
        full_name='Sam', address='9 Far Rd', city='York', postal_code='YO1 1AA', country='GB',
    )

    response = customer_client.post(URL, {
        'items': [{'product_id': product.pk, 'quantity': 1}],
        'shipping_address_id': theirs.pk,
    }, format='json')

    assert response.status_code == 400
    stripe_create.assert_not_called()
