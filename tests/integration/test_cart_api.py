from decimal import Decimal

import pytest

from cart.models import SavedCart
from factories import make_product


@pytest.mark.integration
def test_cart_requires_login(api_client, db):
    assert api_client.get('/api/cart/').status_code == 401


@pytest.mark.integration
def test_empty_cart(customer_client):
    response = customer_client.get('/api/cart/')

    assert response.status_code == 200
    assert response.json()['items'] == []
    assert response.json()['item_count'] == 0


@pytest.mark.integration
def test_put_prices_items_from_catalogue(customer_client, customer, product):
    response = customer_client.put('/api/cart/', {
        'items': [{'product_id': product.pk, 'quantity': 150}],
    }, format='json')

    assert response.status_code == 200
    body = response.json()
    assert body['item_count'] == 150
    assert Decimal(body['items'][0]['unit_price']) == Decimal('9.5')
    assert Decimal(body['subtotal']) == Decimal('1425')
    assert Decimal(body['discount']) == Decimal('75')
    assert [item['quantity'] for item in SavedCart.objects.get(user=customer).items] == [150]


@pytest.mark.integration
def test_get_reprices_and_drops_withdrawn_products(customer_client, product):
    withdrawn = make_product(code='BX-OLD', tiers=())
    customer_client.put('/api/cart/', {
        'items': [
            {'product_id': product.pk, 'quantity': 10},
            {'product_id': withdrawn.pk, 'quantity': 2},
        ],
    }, format='json')
    withdrawn.available = False
    withdrawn.save()
    product.base_price = Decimal('12.00')
    product.save()

    body = customer_client.get('/api/cart/').json()

    assert [item['product_code'] for item in body['items']] == ['MB-C5']
    assert Decimal(body['items'][0]['unit_price']) == Decimal('12')


@pytest.mark.integration
def test_delete_clears_cart(customer_client, customer, product):
    customer_client.put('/api/cart/', {'items': [{'product_id': product.pk, 'quantity': 1}]}, format='json')

    response = customer_client.delete('/api/cart/')

    assert response.status_code == 200
    assert not SavedCart.objects.filter(user=customer).exists()
