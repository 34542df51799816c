"""
Integration tests for the cart endpoints.
"""

from datetime import datetime, timedelta

from mealhub.database import get_session
from mealhub.services import cart_service


def _add(client, owner, item_ref, quantity):
    return client.post('/cart', json={'owner': owner, 'itemRef': item_ref, 'quantity': quantity})


class TestCartApi:

    def test_add_and_fetch(self, client, menu):
        response = _add(client, 'alice', menu['burger'], 2)

        assert response.status_code == 200
        data = response.get_json()
        assert data['message'] == 'Item added to cart successfully!'
        assert data['cart'][0]['item_ref'] == menu['burger']
        assert data['cart'][0]['quantity'] == 2

        lines = client.get('/cart/alice').get_json()
        assert [(line['name'], line['price_cents']) for line in lines] == [('Burger', 500)]

    def test_client_price_is_ignored(self, client, menu):
        client.post('/cart', json={
            'owner': 'alice', 'itemRef': menu['burger'], 'quantity': 1, 'name': 'Free', 'price': 1
        })

        line = client.get('/cart/alice').get_json()[0]
        assert line['name'] == 'Burger'
        assert line['price_cents'] == 500

    def test_repeat_add_merges(self, client, menu):
        _add(client, 'alice', menu['burger'], 1)
        response = _add(client, 'alice', menu['burger'], 1)

        assert [line['quantity'] for line in response.get_json()['cart']] == [2]

    def test_invalid_quantity(self, client, menu):
        response = _add(client, 'alice', menu['burger'], 0)

        assert response.status_code == 400
        assert 'error' in response.get_json()

    def test_missing_item_ref(self, client, menu):
        response = client.post('/cart', json={'owner': 'alice', 'quantity': 1})

        assert response.status_code == 400
        assert response.get_json() == {'error': 'itemRef is required'}

    def test_unknown_item(self, client, menu):
        assert _add(client, 'alice', 424242, 1).status_code == 400

    def test_expired_lines_not_returned(self, client, menu):
        session = get_session()
        cart_service.add_item(session, 'alice', menu['burger'], 1, now=datetime.now() - timedelta(hours=49))
        session.commit()

        assert client.get('/cart/alice').get_json() == []

    def test_update_quantity(self, client, menu):
        _add(client, 'alice', menu['burger'], 1)

        response = client.put(f"/cart/item/alice/{menu['burger']}", json={'quantity': 4})
        assert response.status_code == 200
        assert response.get_json()['cart'][0]['quantity'] == 4

        response = client.put(f"/cart/item/alice/{menu['burger']}", json={'quantity': 0})
        assert response.get_json()['cart'] == []

    def test_update_negative_quantity(self, client, menu):
        response = client.put(f"/cart/item/alice/{menu['burger']}", json={'quantity': -2})

        assert response.status_code == 400

    def test_remove_is_idempotent(self, client, menu):
        _add(client, 'alice', menu['burger'], 1)

        first = client.delete(f"/cart/item/alice/{menu['burger']}")
        second = client.delete(f"/cart/item/alice/{menu['burger']}")

        assert first.status_code == second.status_code == 200
        assert second.get_json() == {'message': 'Item removed from cart', 'cart': []}

    def test_clear_cart(self, client, menu):
        _add(client, 'alice', menu['burger'], 1)
        _add(client, 'alice', menu['fries'], 1)

        response = client.delete('/cart/alice')
        assert response.get_json() == {'message': 'Cart cleared successfully', 'deletedItems': 2}

        response = client.delete('/cart/alice')
        assert response.get_json()['deletedItems'] == 0

    def test_add_after_expiry_keeps_new_quantity(self, client, menu):
        session = get_session()
        cart_service.add_item(session, 'alice', menu['burger'], 1, now=datetime.now() - timedelta(hours=49))
        session.commit()

        response = _add(client, 'alice', menu['burger'], 2)

        assert [line['quantity'] for line in response.get_json()['cart']] == [2]

    def test_fractional_quantity_rejected(self, client, menu):
        response = _add(client, 'alice', menu['burger'], 2.7)

        assert response.status_code == 400
        assert response.get_json() == {'error': 'quantity must be an integer'}
        assert client.get('/cart/alice').get_json() == []
