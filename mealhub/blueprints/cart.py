"""Cart blueprint - per-owner persistent cart (JSON API)."""
from flask import Blueprint, jsonify, current_app

from mealhub.database import get_session, commit_session
from mealhub.services import cart_service
from mealhub.utils.request_parsing import json_body, first_of, parse_int

cart_bp = Blueprint('cart', __name__, url_prefix='/cart')


def _ttl_hours():
    return current_app.config.get('CART_TTL_HOURS', cart_service.DEFAULT_CART_TTL_HOURS)


def _cart_snapshot(session, owner):
    lines = cart_service.list_items(session, owner, ttl_hours=_ttl_hours())
    return [line.to_dict() for line in lines]


@cart_bp.route('', methods=['POST'])
def add_to_cart():
    """
    Add an item to a cart.

    Body: {owner, itemRef, quantity, name?, price?}. Name and price are
    accepted for compatibility but the catalog values are stored.
    """
    session = get_session()
    data = json_body()

    owner = first_of(data, 'owner', 'username')
    menu_id = parse_int(first_of(data, 'itemRef', 'item_ref', 'meal_id', 'menu_id'), 'itemRef')
    quantity = parse_int(data.get('quantity'), 'quantity')

    cart_service.add_item(session, owner, menu_id, quantity, ttl_hours=_ttl_hours())
    cart = _cart_snapshot(session, owner)
    commit_session(session, 'adding to cart')

    current_app.logger.info(f"Cart add: owner={owner} item={menu_id} qty={quantity}")
    return jsonify({'message': 'Item added to cart successfully!', 'cart': cart})


@cart_bp.route('/<owner>', methods=['GET'])
def get_cart(owner):
    """List the owner's cart, dropping lines past the TTL."""
    session = get_session()
    cart = _cart_snapshot(session, owner)
    # Persist the passive expiry
    commit_session(session, 'fetching cart')
    return jsonify(cart)


@cart_bp.route('/item/<owner>/<int:menu_id>', methods=['PUT'])
def update_cart_item(owner, menu_id):
    """Set an absolute quantity; 0 removes the line."""
    session = get_session()
    quantity = parse_int(json_body().get('quantity'), 'quantity')

    cart_service.set_quantity(session, owner, menu_id, quantity, ttl_hours=_ttl_hours())
    cart = _cart_snapshot(session, owner)
    commit_session(session, 'updating cart')

    return jsonify({'message': 'Cart updated', 'cart': cart})


@cart_bp.route('/item/<owner>/<int:menu_id>', methods=['DELETE'])
def remove_cart_item(owner, menu_id):
    session = get_session()
    cart_service.remove_item(session, owner, menu_id)
    cart = _cart_snapshot(session, owner)
    commit_session(session, 'removing item')

    return jsonify({'message': 'Item removed from cart', 'cart': cart})


@cart_bp.route('/<owner>', methods=['DELETE'])
def clear_cart(owner):
    session = get_session()
    deleted = cart_service.clear_cart(session, owner)
    commit_session(session, 'clearing cart')

    return jsonify({'message': 'Cart cleared successfully', 'deletedItems': deleted})
