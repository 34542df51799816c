"""
Integration tests for the payment provider webhook.
"""

import hashlib
import hmac
import json

import pytest


@pytest.fixture
def card_order_id(client, menu, supplier_id):
    client.post('/cart', json={'owner': 'alice', 'itemRef': menu['burger'], 'quantity': 1})
    response = client.post('/checkout/create', json={
        'cartId': 'alice', 'supplierId': supplier_id, 'paymentMethod': 'card'
    })
    return response.get_json()['orderId']


@pytest.fixture
def webhook_secret(app, monkeypatch):
    monkeypatch.setitem(app.config, 'PAYMENT_WEBHOOK_SECRET', 'whsec_test')
    return 'whsec_test'


def _signed_post(client, secret, payload):
    body = json.dumps(payload).encode('utf-8')
    signature = hmac.new(secret.encode('utf-8'), body, hashlib.sha256).hexdigest()
    return client.post(
        '/payments/webhook',
        data=body,
        headers={'Content-Type': 'application/json', 'X-Signature': signature}
    )


class TestPaymentWebhook:

    def test_succeeded_marks_paid(self, client, card_order_id):
        response = client.post('/payments/webhook', json={
            'orderId': card_order_id, 'provider_ref': 'pi_1', 'status': 'succeeded'
        })

        assert response.get_json() == {'ok': True}
        order = client.get(f'/orders/{card_order_id}').get_json()
        assert order['raw_status'] == 'Paid'
        assert order['status'] == 'Completed'

    def test_failure_marks_failed(self, client, card_order_id):
        client.post('/payments/webhook', json={'orderId': card_order_id, 'status': 'failed'})

        order = client.get(f'/orders/{card_order_id}').get_json()
        assert order['raw_status'] == 'Failed'
        assert order['status'] == 'Pending'

    def test_unknown_order(self, client):
        response = client.post('/payments/webhook', json={'orderId': 424242, 'status': 'succeeded'})

        assert response.status_code == 404

    def test_missing_order_id(self, client):
        response = client.post('/payments/webhook', json={'status': 'succeeded'})

        assert response.status_code == 400

    def test_signed_callback_accepted(self, client, card_order_id, webhook_secret):
        response = _signed_post(client, webhook_secret, {'orderId': card_order_id, 'status': 'succeeded'})

        assert response.status_code == 200

    def test_bad_signature_rejected(self, client, card_order_id, webhook_secret):
        response = _signed_post(client, 'wrong-secret', {'orderId': card_order_id, 'status': 'succeeded'})

        assert response.status_code == 401
        assert client.get(f'/orders/{card_order_id}').get_json()['raw_status'] == 'Pending'

    def test_unsigned_callback_rejected(self, client, card_order_id, webhook_secret):
        response = client.post('/payments/webhook', json={'orderId': card_order_id, 'status': 'succeeded'})

        assert response.status_code == 401
