"""
Integration tests for the promo endpoints.
"""

import pytest


@pytest.fixture
def burger_id(burger):
    return burger.id


def _promo_body(burger_id, **extra):
    body = {
        'menuItemId': burger_id,
        'name': 'Late night 3x2',
        'type': 'buy_x_get_y',
        'buy_quantity': 3,
        'pay_quantity': 2,
        'recurrenceRules': [
            {'dayOfWeek': 'friday', 'startTime': '22:00', 'endTime': '02:00'},
        ],
    }
    body.update(extra)
    return body


def test_create_promo_with_rules(client, burger_id):
    response = client.post('/promos', json=_promo_body(burger_id))

    assert response.status_code == 201
    promo = response.get_json()['promo']
    assert promo['type'] == 'buy_x_get_y'
    assert promo['buy_quantity'] == 3
    assert promo['always'] is False
    assert promo['recurrenceRules'][0]['dayOfWeek'] == 'Friday'


def test_buy_must_exceed_pay(client, burger_id):
    response = client.post('/promos', json=_promo_body(burger_id, buy_quantity=2, pay_quantity=2))

    assert response.status_code == 400
    data = response.get_json()
    assert data['status'] == 'error'
    assert data['errors'] == ['buy_quantity must be greater than pay_quantity']


def test_invalid_rule_time(client, burger_id):
    body = _promo_body(burger_id, recurrenceRules=[{'dayOfWeek': 'Friday', 'startTime': '9pm', 'endTime': '02:00'}])
    response = client.post('/promos', json=body)
    assert response.status_code == 400


def test_promo_for_unknown_menu_item(client, burger_id):
    response = client.post('/promos', json=_promo_body(999))
    assert response.status_code == 404


def test_update_promo(client, burger_id):
    promo_id = client.post('/promos', json=_promo_body(burger_id)).get_json()['promo']['id']

    response = client.put(f'/promos/{promo_id}', json={'name': 'Renamed', 'isActive': False})

    assert response.status_code == 200
    promo = response.get_json()['promo']
    assert promo['name'] == 'Renamed'
    assert promo['isActive'] is False


def test_recurrence_rule_crud(client, burger_id):
    promo_id = client.post('/promos', json=_promo_body(burger_id, recurrenceRules=[])).get_json()['promo']['id']

    created = client.post(f'/promos/{promo_id}/recurrence-rules', json={
        'dayOfWeek': 'Monday', 'startTime': '12:00', 'endTime': '15:00'
    })
    assert created.status_code == 201
    rule_id = created.get_json()['recurrenceRule']['id']

    updated = client.put(f'/promos/recurrence-rules/{rule_id}', json={'endTime': '16:30'})
    assert updated.get_json()['recurrenceRule']['endTime'] == '16:30'

    listed = client.get(f'/promos/{promo_id}/recurrence-rules')
    assert len(listed.get_json()['recurrenceRules']) == 1

    assert client.delete(f'/promos/recurrence-rules/{rule_id}').status_code == 200
    assert client.get(f'/promos/{promo_id}/recurrence-rules').get_json()['recurrenceRules'] == []


def test_delete_promo_removes_its_rules(client, burger_id):
    promo_id = client.post('/promos', json=_promo_body(burger_id)).get_json()['promo']['id']

    assert client.delete(f'/promos/{promo_id}').status_code == 200
    assert client.get(f'/promos/{promo_id}').status_code == 404
    assert client.get('/promos').get_json()['promos'] == []


def test_active_promos_for_menu_item(client, burger_id):
    client.post('/promos', json={
        'menuItemId': burger_id, 'name': 'Always 10%', 'type': 'percentage_discount',
        'percentage': 10, 'always': True
    })
    client.post('/promos', json={
        'menuItemId': burger_id, 'name': 'Expired', 'type': 'percentage_discount',
        'percentage': 10, 'always': True, 'endDate': '2000-01-01T00:00:00'
    })
    client.post('/promos', json={
        'menuItemId': burger_id, 'name': 'Disabled', 'type': 'price_discount',
        'discount': 5, 'always': True, 'isActive': False
    })

    response = client.get(f'/promos/menu-item/{burger_id}/active')

    assert response.status_code == 200
    assert [promo['name'] for promo in response.get_json()['promos']] == ['Always 10%']


def test_flags_must_be_json_booleans(client, burger_id):
    response = client.post('/promos', json=_promo_body(burger_id, always='false'))

    assert response.status_code == 400
    assert '"always"' in response.get_json()['error']
    assert client.get('/promos').get_json()['promos'] == []


def test_update_rejects_string_is_active(client, burger_id):
    promo_id = client.post('/promos', json=_promo_body(burger_id)).get_json()['promo']['id']

    response = client.put(f'/promos/{promo_id}', json={'isActive': 'no'})

    assert response.status_code == 400
    assert '"isActive"' in response.get_json()['error']
    assert client.get(f'/promos/{promo_id}').get_json()['promo']['isActive'] is True
