"""Orders blueprint - supplier order queue and customer order history."""
from flask import Blueprint, jsonify, request, current_app

from mealhub.database import get_session, commit_session
from mealhub.services import order_service
from mealhub.utils.request_parsing import json_body

orders_bp = Blueprint('orders', __name__, url_prefix='/orders')


@orders_bp.route('', methods=['GET'])
def list_orders():
    """Order queue, newest first. ?status= filters on the normalized status."""
    orders = order_service.list_orders(
        get_session(),
        status=request.args.get('status'),
        limit=current_app.config.get('ORDERS_LIST_LIMIT', 500)
    )
    return jsonify([order.to_summary() for order in orders])


@orders_bp.route('/<int:order_id>', methods=['GET'])
def get_order(order_id):
    order = order_service.get_order(get_session(), order_id)
    return jsonify(order.to_summary())


@orders_bp.route('/<int:order_id>/track', methods=['GET'])
def track_order(order_id):
    """Customer tracking view: stage, delivery estimate and supplier contact."""
    return jsonify(order_service.track_order(get_session(), order_id))


@orders_bp.route('/<int:order_id>/status', methods=['PUT'])
def update_status(order_id):
    """Supplier status change: Pending, Completed or Cancelled."""
    session = get_session()
    order = order_service.update_order_status(session, order_id, json_body().get('status'))
    commit_session(session, 'updating order')

    current_app.logger.info(f"Order {order_id} status set to {order.status}")
    return jsonify({'ok': True, 'id': order.id, 'status': order.status})


@orders_bp.route('/<int:order_id>', methods=['DELETE'])
def delete_order(order_id):
    session = get_session()
    order_service.delete_order(session, order_id)
    commit_session(session, 'deleting order')

    current_app.logger.info(f"Order {order_id} deleted")
    return jsonify({'ok': True, 'id': order_id, 'message': 'Order deleted'})


@orders_bp.route('/user/<owner>', methods=['GET'])
def owner_orders(owner):
    orders = order_service.list_owner_orders(get_session(), owner)
    return jsonify([order.to_summary() for order in orders])


@orders_bp.route('/latest/<owner>', methods=['GET'])
def latest_order(owner):
    order = order_service.get_latest_order(get_session(), owner)
    return jsonify(order.to_summary())
