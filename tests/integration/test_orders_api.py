"""
Integration tests for the order endpoints.
"""

from decimal import Decimal
from app.models import StockItem


def _create_order(client, customer='Table 1'):
    response = client.post('/orders', json={'customer': customer})
    assert response.status_code == 201
    return response.get_json()['order']['id']


def test_create_and_get_order(client):
    order_id = _create_order(client)

    response = client.get(f'/orders/{order_id}')

    assert response.status_code == 200
    data = response.get_json()['order']
    assert data['status'] == 'active'
    assert data['customer'] == 'Table 1'
    assert data['orderItems'] == []


def test_unknown_order_returns_json_404(client):
    response = client.get('/orders/999')

    assert response.status_code == 404
    data = response.get_json()
    assert data['status'] == 'error'
    assert 'Order #999' in data['error']


def test_unknown_route_returns_json_404(client):
    response = client.get('/nowhere')
    assert response.status_code == 404
    assert response.get_json()['status'] == 'error'


def test_list_active_orders(client):
    first = _create_order(client, 'A')
    second = _create_order(client, 'B')
    client.put(f'/orders/{first}/cancel', json={'cancelReason': 'test'})

    response = client.get('/orders/active')

    assert [order['id'] for order in response.get_json()['orders']] == [second]


def test_list_orders_rejects_unknown_status(client):
    response = client.get('/orders?status=lost')
    assert response.status_code == 400


def test_cancel_order_restores_stock(client, session, burger, bread, cheese):
    burger_id, bread_id, cheese_id = burger.id, bread.id, cheese.id
    order_id = _create_order(client)
    client.post('/order-items', json={'orderId': order_id, 'menuItemId': burger_id, 'quantity': 4})

    response = client.put(f'/orders/{order_id}/cancel', json={'cancelReason': 'Kitchen closed'})

    assert response.status_code == 200
    data = response.get_json()['order']
    assert data['status'] == 'cancelled'
    assert data['cancelReason'] == 'Kitchen closed'
    assert session.get(StockItem, bread_id).stock == Decimal('10')
    assert session.get(StockItem, cheese_id).stock == Decimal('5')

    # Cancelling again changes nothing
    again = client.put(f'/orders/{order_id}/cancel', json={'cancelReason': 'Twice'})
    assert again.status_code == 200
    assert again.get_json()['order']['cancelReason'] == 'Kitchen closed'
    assert session.get(StockItem, bread_id).stock == Decimal('10')


def test_list_order_items(client, soda):
    soda_id = soda.id
    order_id = _create_order(client)
    client.post('/order-items', json={'orderId': order_id, 'menuItemId': soda_id, 'quantity': 2})

    response = client.get(f'/orders/{order_id}/order-items')

    items = response.get_json()['orderItems']
    assert len(items) == 1
    assert items[0]['quantity'] == 2


def test_charge_and_tip(client, soda):
    soda_id = soda.id
    order_id = _create_order(client)
    client.post('/order-items', json={'orderId': order_id, 'menuItemId': soda_id, 'quantity': 2})

    tip = client.patch(f'/orders/{order_id}/tip', json={'tip': 3})
    assert tip.status_code == 200
    assert tip.get_json()['order']['tip'] == 3.0

    response = client.put(f'/orders/{order_id}/charge', json={'paymentMethod': 'cash'})

    assert response.status_code == 200
    data = response.get_json()['order']
    assert data['status'] == 'paid'
    assert data['paymentMethod'] == 'cash'
    assert data['total'] == 20.0
    assert data['tip'] == 3.0

    # A paid order is closed for changes
    blocked = client.post('/order-items', json={'orderId': order_id, 'menuItemId': soda_id, 'quantity': 1})
    assert blocked.status_code == 400


def test_tip_requires_a_number(client):
    order_id = _create_order(client)
    response = client.patch(f'/orders/{order_id}/tip', json={'tip': 'lots'})
    assert response.status_code == 400


def test_metrics_endpoint(client):
    _create_order(client)

    response = client.get('/metrics')

    assert response.status_code == 200
    assert b'http_requests_total' in response.data
