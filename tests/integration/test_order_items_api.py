"""
Integration tests for the order item endpoints.
"""

import pytest
from decimal import Decimal
from app.models import StockItem


@pytest.fixture
def ids(order, burger, bread, cheese, soda):
    """Capture ids up front: each request closes the scoped session."""
    return {
        'order': order.id,
        'burger': burger.id,
        'soda': soda.id,
        'bread': bread.id,
        'cheese': cheese.id,
    }


def _add(client, ids, menu_item='burger', quantity=1, **extra):
    body = {'orderId': ids['order'], 'menuItemId': ids[menu_item], 'quantity': quantity}
    body.update(extra)
    return client.post('/order-items', json=body)


def test_add_order_item(client, ids):
    response = _add(client, ids, quantity=2, comments='No onions')

    assert response.status_code == 201
    data = response.get_json()
    assert data['orderItem']['quantity'] == 2
    assert data['orderItem']['comments'] == 'No onions'
    assert data['orderItem']['subtotal'] == 200.0
    assert data['orderItem']['quantityHistory'][0]['quantity'] == 2
    assert data['order']['total'] == 200.0


def test_add_order_item_with_promo(client, ids, half_price_promo):
    response = _add(client, ids, quantity=1)

    data = response.get_json()
    assert data['orderItem']['discountApplied'] == 50.0
    assert data['orderItem']['total'] == 50.0
    assert data['orderItem']['promoName'] == 'Half price burger'
    assert set(data['orderItem']['appliedPromos'][0]) == {
        'promoId', 'promoName', 'quantity', 'discountApplied', 'timestamp', 'type'
    }


def test_not_enough_stock(client, session, ids):
    response = _add(client, ids, quantity=11)

    assert response.status_code == 400
    data = response.get_json()
    assert data['status'] == 'error'
    short = {entry['name']: entry for entry in data['notEnoughStock']}
    assert set(short) == {'Bread', 'Cheese'}
    assert short['Bread']['required'] == 11.0
    assert short['Bread']['stock'] == 10.0
    assert session.get(StockItem, ids['bread']).stock == Decimal('10')


def test_inactive_ingredient(client, session, ids):
    session.get(StockItem, ids['cheese']).is_active = False
    session.commit()

    response = _add(client, ids)

    assert response.status_code == 400
    data = response.get_json()
    assert [entry['name'] for entry in data['notActiveItems']] == ['Cheese']


def test_missing_fields(client, ids):
    response = client.post('/order-items', json={'orderId': ids['order']})
    assert response.status_code == 400
    assert 'menuItemId' in response.get_json()['error']


def test_negative_quantity_is_rejected_by_field(client, session, ids):
    response = _add(client, ids, quantity=-1)

    assert response.status_code == 400
    assert response.get_json()['error'] == '"quantity" cannot be negative'
    assert session.get(StockItem, ids['bread']).stock == Decimal('10')


def test_unknown_menu_item(client, ids):
    response = client.post('/order-items', json={'orderId': ids['order'], 'menuItemId': 999, 'quantity': 1})
    assert response.status_code == 404


def test_update_quantity(client, session, ids):
    item_id = _add(client, ids, quantity=2).get_json()['orderItem']['id']

    response = client.put(f'/order-items/{item_id}/quantity', json={'quantity': -1})

    assert response.status_code == 200
    data = response.get_json()
    assert data['orderItem']['quantity'] == 1
    assert [entry['quantity'] for entry in data['orderItem']['quantityHistory']] == [2, -1]
    assert data['order']['subtotal'] == 100.0
    assert session.get(StockItem, ids['bread']).stock == Decimal('9')


def test_update_quantity_below_zero(client, ids):
    item_id = _add(client, ids, quantity=1).get_json()['orderItem']['id']

    response = client.put(f'/order-items/{item_id}/quantity', json={'quantity': -2})

    assert response.status_code == 400
    assert response.get_json()['status'] == 'error'


def test_get_order_item(client, ids):
    item_id = _add(client, ids).get_json()['orderItem']['id']

    response = client.get(f'/order-items/{item_id}')

    assert response.status_code == 200
    assert response.get_json()['orderItem']['menuItemId'] == ids['burger']


def test_delete_order_item(client, session, ids):
    item_id = _add(client, ids, quantity=3).get_json()['orderItem']['id']

    response = client.delete(f'/order-items/{item_id}')

    assert response.status_code == 200
    assert response.get_json()['order']['total'] == 0.0
    assert client.get(f'/order-items/{item_id}').status_code == 404
    assert session.get(StockItem, ids['bread']).stock == Decimal('10')
    assert session.get(StockItem, ids['cheese']).stock == Decimal('5')


def test_low_stock_listing(client, ids):
    _add(client, ids, quantity=9)

    response = client.get('/stock-items/low-stock')

    assert response.status_code == 200
    names = [item['name'] for item in response.get_json()['stockItems']]
    assert names == ['Bread', 'Cheese']
