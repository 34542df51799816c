"""
Supplier notification service.
Dispatches new or paid orders to the supplier's endpoint and inbox.
"""

import hashlib
import hmac
import json
import logging
from typing import Dict, Any

import requests
from flask import current_app
from sqlalchemy.orm import Session

from mealhub.models import Order
from mealhub.exceptions import ExternalServiceError, NotFoundError
from mealhub.services.email_service import send_order_email

logger = logging.getLogger(__name__)


def build_order_payload(order: Order) -> Dict[str, Any]:
    """Serializable order payload sent to suppliers."""
    return {
        'order_id': order.id,
        'owner': order.owner,
        'status': order.status,
        'payment_method': order.payment_method,
        'items_total_cents': order.items_total_cents,
        'delivery_fee_cents': order.delivery_fee_cents,
        'total_cents': order.total_cents,
        'delivery_address': order.delivery_address,
        'delivery_lat': order.delivery_lat,
        'delivery_lng': order.delivery_lng,
        'items': [item.to_dict() for item in order.items]
    }


def sign_payload(secret: str, body: bytes) -> str:
    """HMAC-SHA256 hex digest of the request body."""
    return hmac.new(secret.encode('utf-8'), body, hashlib.sha256).hexdigest()


def _post_to_supplier(url: str, secret: str, payload: Dict[str, Any]) -> None:
    body = json.dumps(payload).encode('utf-8')
    headers = {'Content-Type': 'application/json'}
    if secret:
        headers['X-Signature'] = sign_payload(secret, body)

    timeout = current_app.config.get('SUPPLIER_NOTIFY_TIMEOUT', 5)
    try:
        response = requests.post(url, data=body, headers=headers, timeout=timeout)
        response.raise_for_status()
    except requests.RequestException as e:
        raise ExternalServiceError(f'Supplier endpoint failed: {e}')


def notify_supplier(session: Session, order_id: int) -> bool:
    """
    Send an order to its supplier by webhook and/or email.

    Returns:
        True if at least one channel delivered, False when the supplier has none.

    Raises:
        ExternalServiceError: if a configured channel failed.
    """
    order = session.query(Order).filter(Order.id == order_id).first()
    if not order:
        raise NotFoundError('order not found')

    supplier = order.supplier
    if not supplier:
        logger.info(f"Order {order_id} has no supplier, nothing to notify")
        return False

    payload = build_order_payload(order)
    delivered = False

    if supplier.api_url:
        _post_to_supplier(supplier.api_url, supplier.api_secret, payload)
        logger.info(f"Dispatched order {order_id} to supplier {supplier.name}")
        delivered = True

    if supplier.email:
        delivered = send_order_email(supplier.email, supplier.name, payload) or delivered

    return delivered


def dispatch_order_notification(session: Session, order_id: int) -> bool:
    """Best-effort wrapper: failures are logged and never propagate."""
    try:
        return notify_supplier(session, order_id)
    except Exception as e:
        logger.warning(f"Supplier notification failed for order {order_id}: {e}")
        return False
