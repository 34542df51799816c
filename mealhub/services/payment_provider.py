"""
Payment provider clients.
The provider issues the client token used by the frontend to collect a card payment.
"""

import logging
import time
from typing import Optional

from flask import current_app

from mealhub.exceptions import ExternalServiceError

logger = logging.getLogger(__name__)


class MockPaymentProvider:
    """Offline provider; the callback is simulated by posting to the payments webhook."""

    name = 'mock'

    def create_intent(self, order_id: int, amount_cents: int) -> str:
        token = f"mock_{order_id}_{int(time.time() * 1000)}"
        logger.info(f"Mock payment intent for order {order_id}: {amount_cents} cents")
        return token


_PROVIDERS = {
    MockPaymentProvider.name: MockPaymentProvider,
}


def get_payment_provider(name: Optional[str] = None):
    """Build the provider configured by PAYMENT_PROVIDER."""
    name = name or current_app.config.get('PAYMENT_PROVIDER', 'mock')
    provider_cls = _PROVIDERS.get(name)
    if provider_cls is None:
        raise ExternalServiceError(f'Unknown payment provider: {name}')
    return provider_cls()
