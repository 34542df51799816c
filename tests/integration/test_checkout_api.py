"""
Integration tests for supplier selection and order creation.
"""

from datetime import datetime, timedelta

from mealhub.database import get_session
from mealhub.models import MenuItem, Order
from mealhub.services import cart_service


def _fill_cart(client, menu, owner='alice'):
    client.post('/cart', json={'owner': owner, 'itemRef': menu['burger'], 'quantity': 2})
    client.post('/cart', json={'owner': owner, 'itemRef': menu['fries'], 'quantity': 1})


class TestSupplierSelection:

    def test_supplier_cards(self, client, menu, supplier_id):
        _fill_cart(client, menu)

        cards = client.get('/checkout/suppliers?cartId=alice').get_json()

        assert cards == [{
            'id': supplier_id,
            'name': 'Burger Barn',
            'location': 'Main St 12',
            'phone': '555-0100',
            'eta': '20-30 minutes',
            'items_total_cents': 1300,
            'delivery_fee_cents': 200,
            'total_cents': 1500
        }]

    def test_expired_lines_not_offered(self, client, menu):
        session = get_session()
        cart_service.add_item(session, 'alice', menu['burger'], 1, now=datetime.now() - timedelta(hours=49))
        session.commit()

        assert client.get('/checkout/suppliers?cartId=alice').get_json() == []

    def test_cart_id_required(self, client):
        response = client.get('/checkout/suppliers')

        assert response.status_code == 400
        assert response.get_json() == {'error': 'cartId is required'}


class TestCreateOrder:

    def test_cash_on_delivery_end_to_end(self, client, menu, supplier_id):
        _fill_cart(client, menu)

        response = client.post('/checkout/create', json={
            'cartId': 'alice',
            'supplierId': supplier_id,
            'paymentMethod': 'cod',
            'deliveryAddress': '1 Elm St'
        })

        assert response.status_code == 201
        data = response.get_json()
        assert data['next'] == 'confirmation'
        assert data['payment'] == 'cod'
        assert data['total'] == 1500
        assert 'clientToken' not in data

        assert client.get('/cart/alice').get_json() == []

        queue = client.get('/orders').get_json()
        assert [(o['id'], o['status'], o['total_price']) for o in queue] == [(data['orderId'], 'Pending', 1500)]
        assert queue[0]['delivery_address'] == '1 Elm St'

        session = get_session()
        assert session.query(MenuItem).filter(MenuItem.id == menu['burger']).one().stock == 8

    def test_card_payment_returns_client_token(self, client, menu, supplier_id):
        _fill_cart(client, menu)

        data = client.post('/checkout/create', json={
            'owner': 'alice', 'supplierId': supplier_id, 'paymentMethod': 'card'
        }).get_json()

        assert data['next'] == 'pay'
        assert data['clientToken'].startswith('mock_')

    def test_explicit_items_with_aliases(self, client, menu, supplier_id):
        response = client.post('/checkout/create', json={
            'cartId': 'alice',
            'supplierId': supplier_id,
            'items': [
                {'meal_id': menu['burger'], 'quantity': 1},
                {'itemRef': menu['fries'], 'quantity': '2'}
            ],
            'coordinates': {'lat': 10.5, 'lng': 20.25}
        })

        assert response.status_code == 201
        assert response.get_json()['total'] == 500 + 600 + 200
        order = client.get(f"/orders/{response.get_json()['orderId']}").get_json()
        assert order['delivery_address'] == 'Lat: 10.5, Lng: 20.25'

    def test_empty_cart(self, client, menu):
        response = client.post('/checkout/create', json={'cartId': 'alice'})

        assert response.status_code == 400
        assert get_session().query(Order).count() == 0

    def test_missing_cart_id(self, client):
        response = client.post('/checkout/create', json={'paymentMethod': 'cod'})

        assert response.status_code == 400

    def test_mixed_suppliers_rejected(self, client, menu, supplier_id):
        _fill_cart(client, menu)
        client.post('/cart', json={'owner': 'alice', 'itemRef': menu['taco'], 'quantity': 1})

        response = client.post('/checkout/create', json={'cartId': 'alice', 'supplierId': supplier_id})

        assert response.status_code == 400
        assert len(client.get('/cart/alice').get_json()) == 3

    def test_last_unit_conflict(self, client, last_unit_id, supplier_id):
        for owner in ('alice', 'bob'):
            client.post('/cart', json={'owner': owner, 'itemRef': last_unit_id, 'quantity': 1})

        first = client.post('/checkout/create', json={'cartId': 'alice', 'supplierId': supplier_id})
        second = client.post('/checkout/create', json={'cartId': 'bob', 'supplierId': supplier_id})

        assert first.status_code == 201
        assert second.status_code == 400
        assert second.get_json()['item'] == 'Daily Special'
        session = get_session()
        assert session.query(MenuItem).filter(MenuItem.id == last_unit_id).one().stock == 0

    def test_unknown_supplier(self, client, menu):
        _fill_cart(client, menu)

        response = client.post('/checkout/create', json={'cartId': 'alice', 'supplierId': 424242})

        assert response.status_code == 404
