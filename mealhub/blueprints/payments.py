"""
Payments blueprint - payment provider callbacks.
"""
import hashlib
import hmac
import logging

from flask import Blueprint, request, jsonify, current_app

from mealhub.database import get_session
from mealhub.exceptions import ValidationError
from mealhub.services.payment_service import apply_provider_callback
from mealhub.utils.request_parsing import json_body, first_of, parse_int
from mealhub.blueprints.metrics import payment_callbacks_total

logger = logging.getLogger(__name__)

payments_bp = Blueprint('payments', __name__, url_prefix='/payments')


def verify_signature(request_data: bytes, signature: str) -> bool:
    """
    Verify the provider's HMAC-SHA256 signature of the raw body.

    Verification is skipped when no webhook secret is configured.
    """
    secret = current_app.config.get('PAYMENT_WEBHOOK_SECRET')
    if not secret:
        logger.info("Skipping payment webhook signature verification (no secret configured)")
        return True

    if not signature:
        logger.warning("Missing X-Signature header in payment webhook")
        return False

    expected_signature = hmac.new(
        secret.encode('utf-8'),
        request_data,
        hashlib.sha256
    ).hexdigest()
    return hmac.compare_digest(signature, expected_signature)


@payments_bp.route('/webhook', methods=['POST'])
def payment_webhook():
    """
    Handle a provider callback: {orderId, provider_ref, status}.

    Duplicates are safe; the order status only moves forward.
    """
    signature = request.headers.get('X-Signature', '')
    if not verify_signature(request.get_data(), signature):
        logger.warning("Invalid payment webhook signature")
        return jsonify({'error': 'Invalid signature'}), 401

    data = json_body()
    if not data:
        raise ValidationError('Empty payload')

    order_id = parse_int(first_of(data, 'orderId', 'order_id'), 'orderId')
    result = apply_provider_callback(
        get_session(),
        order_id,
        data.get('status'),
        provider_ref=first_of(data, 'provider_ref', 'providerRef'),
        payload=data
    )

    payment_callbacks_total.labels(status=result['status']).inc()
    return jsonify({'ok': True})
