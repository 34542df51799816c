"""
Checkout blueprint.

Supplier selection for a cart and the order-creation endpoint.
"""
from flask import Blueprint, jsonify, request, current_app

from mealhub.database import get_session, commit_session
from mealhub.exceptions import MealHubError, ValidationError
from mealhub.services import order_service, catalog_service
from mealhub.utils.request_parsing import json_body, first_of, parse_int
from mealhub.blueprints.metrics import orders_created_total, checkout_failures_total

checkout_bp = Blueprint('checkout', __name__, url_prefix='/checkout')


@checkout_bp.route('/suppliers', methods=['GET'])
def cart_suppliers():
    """Supplier cards (eta, fee, totals) for the suppliers in a cart."""
    owner = request.args.get('cartId') or request.args.get('owner')
    if not owner:
        raise ValidationError('cartId is required')
    session = get_session()
    cards = catalog_service.list_cart_suppliers(
        session, owner, ttl_hours=current_app.config.get('CART_TTL_HOURS', 48)
    )
    # Persist the passive expiry
    commit_session(session, 'loading suppliers')
    return jsonify(cards)


def _parse_items(raw_items):
    """Explicit order lines; accepts the item-reference aliases older clients send."""
    if raw_items is None:
        return None
    if not isinstance(raw_items, list):
        raise ValidationError('items must be a list')

    items = []
    for raw in raw_items:
        if not isinstance(raw, dict):
            raise ValidationError('Every item must be an object')
        items.append({
            'menu_id': parse_int(
                first_of(raw, 'itemRef', 'item_ref', 'meal_id', 'menu_id', 'id'), 'itemRef'
            ),
            'quantity': parse_int(raw.get('quantity'), 'quantity'),
            'cart_line_id': parse_int(
                first_of(raw, 'cartLineId', 'cart_line_id', 'cart_id'), 'cartLineId', required=False
            )
        })
    return items


@checkout_bp.route('/create', methods=['POST'])
def create_order():
    """
    Create an order from a cart.

    Body:
        cartId | owner: cart owner (required)
        supplierId: supplier chosen on the selection screen
        paymentMethod: 'cod' (default) or 'card'
        items: optional explicit lines [{itemRef, quantity, cartLineId?}]
        deliveryAddress, lat, lng, coordinates: delivery details

    Returns 201 with {orderId, next, payment, total, clientToken?}.
    """
    data = json_body()
    owner = first_of(data, 'cartId', 'owner', 'username')
    if not owner:
        raise ValidationError('cartId is required')

    supplier_id = parse_int(first_of(data, 'supplierId', 'supplier_id'), 'supplierId', required=False)
    payment_method = first_of(data, 'paymentMethod', 'payment_method', default='cod')
    if not isinstance(payment_method, str):
        raise ValidationError('paymentMethod must be a string')

    delivery = order_service.resolve_delivery_details(
        address=first_of(data, 'deliveryAddress', 'delivery_address', 'address'),
        lat=data.get('lat'),
        lng=data.get('lng'),
        coordinates=data.get('coordinates')
    )

    try:
        result = order_service.create_order(
            get_session(),
            owner,
            items=_parse_items(data.get('items')),
            supplier_id=supplier_id,
            payment_method=payment_method,
            delivery=delivery,
            cart_ttl_hours=current_app.config.get('CART_TTL_HOURS', 48),
            expiry_hours=current_app.config.get('ORDER_EXPIRY_HOURS', 48)
        )
    except MealHubError as e:
        checkout_failures_total.labels(reason=type(e).__name__).inc()
        raise

    orders_created_total.labels(payment_method=result['payment_method']).inc()

    body = {
        'orderId': result['order_id'],
        'next': result['next'],
        'payment': result['payment_method'],
        'total': result['total_cents']
    }
    if result['client_token']:
        body['clientToken'] = result['client_token']
    return jsonify(body), 201
