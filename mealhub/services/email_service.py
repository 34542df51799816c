"""
Email service for supplier order notifications.
Uses Flask-Mail for SMTP integration with UTF-8 support.
"""
import logging
from flask import current_app
from flask_mail import Mail, Message

from mealhub.exceptions import ExternalServiceError

logger = logging.getLogger(__name__)

mail = Mail()


def init_mail(app):
    """Initialize Flask-Mail with app."""
    mail.init_app(app)


def _mail_enabled() -> bool:
    """
    Check if mail is properly configured and enabled.
    Prevents errors in dev or misconfigured environments.
    """
    cfg = current_app.config
    return bool(
        not cfg.get("MAIL_SUPPRESS_SEND", False)
        and cfg.get("MAIL_SERVER")
        and cfg.get("MAIL_USERNAME")
    )


def _format_cents(cents) -> str:
    return f"{(cents or 0) / 100:.2f}"


def send_order_email(to_email: str, supplier_name: str, payload: dict) -> bool:
    """
    Send a new-order email to a supplier.

    Returns:
        True if sent, False if mail is disabled.

    Raises:
        ExternalServiceError: if the SMTP server rejects or is unreachable.
    """
    if not _mail_enabled():
        logger.warning(f"[MAIL DISABLED] Order email skipped for {to_email}")
        return False

    order_id = payload.get('order_id')
    rows = "".join(
        f"<tr><td>{item['name']}</td><td>{item['quantity']}</td>"
        f"<td>{_format_cents(item['subtotal_cents'])}</td></tr>"
        for item in payload.get('items', [])
    )

    html_body = f"""
    <!DOCTYPE html>
    <html>
    <head><meta charset="UTF-8"></head>
    <body style="font-family: Arial, sans-serif; color: #333;">
        <h2>New order #{order_id}</h2>
        <p>Hello <strong>{supplier_name}</strong>, a customer placed a new order.</p>
        <table cellpadding="6" border="1" style="border-collapse: collapse;">
            <tr><th>Item</th><th>Qty</th><th>Subtotal</th></tr>
            {rows}
        </table>
        <p>Delivery fee: {_format_cents(payload.get('delivery_fee_cents'))}</p>
        <p><strong>Total: {_format_cents(payload.get('total_cents'))}</strong></p>
        <p>Payment: {payload.get('payment_method')} ({payload.get('status')})</p>
        <p>Deliver to: {payload.get('delivery_address') or 'Not provided'}</p>
    </body>
    </html>
    """

    text_body = (
        f"New order #{order_id}\n"
        f"Total: {_format_cents(payload.get('total_cents'))}\n"
        f"Payment: {payload.get('payment_method')} ({payload.get('status')})\n"
    )

    try:
        msg = Message(
            subject=f"New order #{order_id}",
            recipients=[to_email],
            body=text_body,
            html=html_body,
            charset='utf-8'
        )
        mail.send(msg)
        logger.info(f"[EMAIL] Order #{order_id} email sent to {to_email}")
        return True
    except Exception as e:
        logger.exception(f"[EMAIL] Failed sending order #{order_id} to {to_email}")
        raise ExternalServiceError(f'Could not email supplier: {e}')
