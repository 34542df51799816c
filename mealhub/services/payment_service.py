"""
Payment service - reconciles provider callbacks with order status.
"""
import logging
from typing import Dict, Any, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from mealhub.models import Order, Payment, OrderStatus, PaymentStatus
from mealhub.exceptions import NotFoundError, StorageError
from mealhub.services.notification_service import dispatch_order_notification

logger = logging.getLogger(__name__)

# Order statuses the reconciler never overwrites
_LOCKED_STATUSES = {
    OrderStatus.PAID.value,
    OrderStatus.COMPLETED.value,
    OrderStatus.CANCELLED.value,
    OrderStatus.EXPIRED.value,
}


def map_provider_status(provider_status: Optional[str]) -> str:
    """'succeeded' means Paid; every other provider status means Failed."""
    if provider_status == PaymentStatus.SUCCEEDED:
        return OrderStatus.PAID.value
    return OrderStatus.FAILED.value


def apply_provider_callback(
    session: Session,
    order_id: int,
    provider_status: Optional[str],
    provider_ref: Optional[str] = None,
    payload: Optional[Dict[str, Any]] = None
) -> Dict[str, Any]:
    """
    Apply a payment provider callback to an order.

    Duplicate callbacks are accepted and rewrite the same status. Once an
    order is Paid (or in a fulfillment status) later callbacks are recorded
    on the payment row without changing the order.

    Returns:
        dict with order_id, status and whether the order transitioned.

    Raises:
        NotFoundError: unknown order; the provider may resend.
    """
    try:
        order = (
            session.query(Order)
            .filter(Order.id == order_id)
            .with_for_update()
            .first()
        )
        if not order:
            raise NotFoundError('order not found')

        new_status = map_provider_status(provider_status)
        previous_status = order.status

        payment = order.latest_payment
        if payment is None:
            payment = Payment(
                order_id=order.id,
                provider='unknown',
                amount_cents=order.total_cents
            )
            session.add(payment)

        payment.status = provider_status or 'unknown'
        payment.provider_ref = provider_ref
        payment.raw_response = payload

        if previous_status in _LOCKED_STATUSES and previous_status != new_status:
            logger.warning(
                f"Payment callback for order {order_id} ignored: "
                f"status stays {previous_status} (provider said {provider_status})"
            )
            final_status = previous_status
        else:
            order.status = new_status
            final_status = new_status

        session.commit()

    except NotFoundError:
        session.rollback()
        raise
    except SQLAlchemyError as e:
        session.rollback()
        logger.exception(f"Payment callback failed for order {order_id}: {e}")
        raise StorageError('Could not record payment, please retry')

    transitioned = final_status != previous_status
    logger.info(f"Payment callback for order {order_id}: {previous_status} -> {final_status}")

    if transitioned and final_status == OrderStatus.PAID.value:
        dispatch_order_notification(session, order_id)

    return {
        'order_id': order_id,
        'status': final_status,
        'transitioned': transitioned
    }
