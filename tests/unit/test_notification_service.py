"""
Unit tests for supplier notifications (webhook + email).
"""

import hashlib
import hmac
import json

import pytest
import requests

from mealhub.exceptions import ExternalServiceError
from mealhub.models import Supplier
from mealhub.services import cart_service, order_service, notification_service


class FakeResponse:
    def __init__(self, status_code=200):
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f'{self.status_code} error')


@pytest.fixture
def posted(monkeypatch):
    """Capture outgoing supplier webhook calls."""
    calls = []

    def fake_post(url, data=None, headers=None, timeout=None):
        calls.append({'url': url, 'data': data, 'headers': headers, 'timeout': timeout})
        return FakeResponse()

    monkeypatch.setattr(notification_service.requests, 'post', fake_post)
    return calls


@pytest.fixture
def webhook_supplier(session, supplier_id):
    supplier = session.query(Supplier).filter(Supplier.id == supplier_id).one()
    supplier.api_url = 'https://supplier.example/orders'
    supplier.api_secret = 's3cret'
    session.commit()
    return supplier_id


def _place_order(session, menu, supplier_id, payment_method='cod'):
    cart_service.add_item(session, 'alice', menu['burger'], 2)
    session.commit()
    return order_service.create_order(
        session, 'alice', supplier_id=supplier_id, payment_method=payment_method
    )['order_id']


def test_sign_payload_is_hmac_sha256():
    expected = hmac.new(b'key', b'body', hashlib.sha256).hexdigest()
    assert notification_service.sign_payload('key', b'body') == expected


def test_cod_order_is_dispatched_with_signature(session, menu, webhook_supplier, posted):
    order_id = _place_order(session, menu, webhook_supplier)

    assert len(posted) == 1
    call = posted[0]
    assert call['url'] == 'https://supplier.example/orders'
    assert call['headers']['X-Signature'] == notification_service.sign_payload('s3cret', call['data'])
    payload = json.loads(call['data'])
    assert payload['order_id'] == order_id
    assert payload['total_cents'] == 1200
    assert payload['items'][0]['name'] == 'Burger'


def test_card_order_waits_for_payment(session, menu, webhook_supplier, posted):
    _place_order(session, menu, webhook_supplier, payment_method='card')

    assert posted == []


def test_supplier_without_channels(session, menu, supplier_id, posted):
    order_id = _place_order(session, menu, supplier_id)

    assert notification_service.notify_supplier(session, order_id) is False
    assert posted == []


def test_endpoint_failure_raises(session, menu, webhook_supplier, monkeypatch):
    monkeypatch.setattr(notification_service.requests, 'post', lambda *a, **kw: FakeResponse(503))
    order_id = _place_order(session, menu, webhook_supplier)

    with pytest.raises(ExternalServiceError):
        notification_service.notify_supplier(session, order_id)


def test_dispatch_failure_does_not_break_checkout(session, menu, webhook_supplier, monkeypatch):
    def unreachable(*args, **kwargs):
        raise requests.ConnectionError('connection refused')

    monkeypatch.setattr(notification_service.requests, 'post', unreachable)

    order_id = _place_order(session, menu, webhook_supplier)

    assert order_id is not None
    assert notification_service.dispatch_order_notification(session, order_id) is False
