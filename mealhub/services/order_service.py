"""
Order service with transactional logic.
Handles checkout (cart -> order conversion), the supplier order queue and order expiry.
"""
import logging
from datetime import datetime, timedelta
from typing import List, Dict, Optional, Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from mealhub.models import (
    MenuItem, Supplier, CartItem, Order, OrderItem, Payment,
    OrderStatus, PaymentMethod, PaymentStatus
)
from mealhub.exceptions import (
    MealHubError, ValidationError, EmptyOrderError, NotFoundError, ConflictError,
    InsufficientStockError, MixedSupplierError, StorageError
)
from mealhub.services import cart_service
from mealhub.services.catalog_service import invalidate_menu_cache
from mealhub.services.notification_service import dispatch_order_notification
from mealhub.services.payment_provider import get_payment_provider
from mealhub.utils.order_status import DISPLAY_STATUSES, TrackingStage, display_status_clause, tracking_stage

logger = logging.getLogger(__name__)

DEFAULT_ORDER_EXPIRY_HOURS = 48


def resolve_delivery_details(address: Optional[str] = None, lat=None, lng=None,
                             coordinates: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """
    Normalize delivery input into address, lat and lng.

    Explicit lat/lng win over a coordinates object ({lat, lng} or
    {latitude, longitude}). Without an address, one is derived from the
    coordinates, falling back to "Not provided".
    """
    def _to_float(value):
        if value is None or value == '':
            return None
        try:
            return float(value)
        except (TypeError, ValueError):
            return None

    lat_f, lng_f = _to_float(lat), _to_float(lng)
    if (lat_f is None or lng_f is None) and isinstance(coordinates, dict):
        lat_f = _to_float(coordinates.get('lat', coordinates.get('latitude')))
        lng_f = _to_float(coordinates.get('lng', coordinates.get('longitude')))
    if lat_f is None or lng_f is None:
        lat_f = lng_f = None

    address = (address or '').strip() or None
    if not address:
        address = f"Lat: {lat_f}, Lng: {lng_f}" if lat_f is not None else 'Not provided'

    return {'address': address, 'lat': lat_f, 'lng': lng_f}


def _resolve_lines(session: Session, owner: str, items: Optional[List[Dict[str, Any]]],
                   now: datetime, cart_ttl_hours: int) -> Dict[int, Dict[str, Any]]:
    """
    Build {menu_id: {'quantity', 'cart_line_ids'}} from explicit items or the live cart.

    Explicit lines for the same menu item are merged.
    """
    lines: Dict[int, Dict[str, Any]] = {}

    if items:
        for raw in items:
            menu_id = raw.get('menu_id')
            quantity = raw.get('quantity')
            if menu_id is None:
                raise ValidationError('Every item needs an itemRef')
            if quantity is None or quantity <= 0:
                raise ValidationError('quantity must be greater than 0')
            line = lines.setdefault(menu_id, {'quantity': 0, 'cart_line_ids': set()})
            line['quantity'] += quantity
            if raw.get('cart_line_id') is not None:
                line['cart_line_ids'].add(raw['cart_line_id'])
        return lines

    for cart_line in cart_service.list_items(session, owner, now=now, ttl_hours=cart_ttl_hours):
        line = lines.setdefault(cart_line.menu_id, {'quantity': 0, 'cart_line_ids': set()})
        line['quantity'] += cart_line.quantity
    return lines


def create_order(
    session: Session,
    owner: str,
    items: Optional[List[Dict[str, Any]]] = None,
    supplier_id: Optional[int] = None,
    payment_method: str = PaymentMethod.COD,
    delivery: Optional[Dict[str, Any]] = None,
    now: Optional[datetime] = None,
    cart_ttl_hours: int = cart_service.DEFAULT_CART_TTL_HOURS,
    expiry_hours: int = DEFAULT_ORDER_EXPIRY_HOURS
) -> Dict[str, Any]:
    """
    Convert an owner's cart (or an explicit item list) into an order.

    Everything happens in one transaction: price and stock are re-read under
    row locks, the order and its item snapshot are inserted, stock is
    decremented and the consumed cart lines are deleted. Any failure rolls
    the whole unit back.

    Returns:
        dict with order_id, total_cents, payment_method, next and client_token.
    """
    owner = owner.strip() if isinstance(owner, str) else owner
    if not owner:
        raise ValidationError('owner is required')

    payment_method = (payment_method or PaymentMethod.COD).strip().lower()
    if payment_method not in PaymentMethod.ALL:
        raise ValidationError(f'Invalid payment method: {payment_method}')

    now = now or datetime.now()
    delivery = delivery or resolve_delivery_details()

    try:
        # 1. Resolve the item set
        lines = _resolve_lines(session, owner, items, now, cart_ttl_hours)
        if not lines:
            raise EmptyOrderError('Cart is empty')

        # 2. Lock menu rows in id order and re-read price and stock
        menu_ids = sorted(lines)
        menu_rows = (
            session.query(MenuItem)
            .filter(MenuItem.id.in_(menu_ids))
            .order_by(MenuItem.id)
            .with_for_update()
            .all()
        )
        menu = {row.id: row for row in menu_rows}

        for menu_id in menu_ids:
            item = menu.get(menu_id)
            if item is None:
                raise NotFoundError(f'Menu item {menu_id} not found')
            if not item.available:
                raise ConflictError(f'"{item.name}" is not available')
            quantity = lines[menu_id]['quantity']
            if item.stock < quantity:
                raise InsufficientStockError(item.name, quantity, item.stock)

        # 3. Supplier consistency
        if supplier_id is not None:
            supplier = session.query(Supplier).filter(Supplier.id == supplier_id).first()
            if not supplier:
                raise NotFoundError(f'Supplier {supplier_id} not found')
            if any(menu[mid].supplier_id != supplier.id for mid in menu_ids):
                raise MixedSupplierError()
            order_supplier_id = supplier.id
            delivery_fee = supplier.delivery_fee_cents or 0
        else:
            supplier_ids = {menu[mid].supplier_id for mid in menu_ids}
            if len(supplier_ids) > 1:
                raise MixedSupplierError('Order items belong to more than one supplier')
            order_supplier_id = supplier_ids.pop()
            delivery_fee = 0

        # 4. Totals from catalog prices only
        snapshot = []
        items_total = 0
        for menu_id in menu_ids:
            item = menu[menu_id]
            quantity = lines[menu_id]['quantity']
            subtotal = item.price_cents * quantity
            snapshot.append({
                'menu_id': menu_id,
                'name': item.name,
                'unit_price_cents': item.price_cents,
                'quantity': quantity,
                'subtotal_cents': subtotal
            })
            items_total += subtotal
        total = items_total + delivery_fee

        # 5. Order + item snapshot
        order = Order(
            owner=owner,
            supplier_id=order_supplier_id,
            status=OrderStatus.PENDING.value,
            items_total_cents=items_total,
            delivery_fee_cents=delivery_fee,
            total_cents=total,
            payment_method=payment_method,
            delivery_address=delivery.get('address'),
            delivery_lat=delivery.get('lat'),
            delivery_lng=delivery.get('lng'),
            created_at=now,
            expires_at=now + timedelta(hours=expiry_hours)
        )
        session.add(order)
        session.flush()
        order_id = order.id

        for line in snapshot:
            session.add(OrderItem(order_id=order_id, **line))

        # 6. Conditional decrement, guards against a concurrent writer
        for line in snapshot:
            updated = (
                session.query(MenuItem)
                .filter(MenuItem.id == line['menu_id'], MenuItem.stock >= line['quantity'])
                .update({MenuItem.stock: MenuItem.stock - line['quantity']}, synchronize_session=False)
            )
            if updated != 1:
                raise InsufficientStockError(line['name'], line['quantity'], menu[line['menu_id']].stock)

        # 7. Consume cart lines
        cart_line_ids = set()
        for line in lines.values():
            cart_line_ids |= line['cart_line_ids']
        cart_query = session.query(CartItem).filter(CartItem.owner == owner)
        if cart_line_ids:
            cart_query = cart_query.filter(CartItem.id.in_(cart_line_ids))
        cart_query.delete(synchronize_session='fetch')

        # 8. Card payments get a provider intent inside the same unit
        client_token = None
        if payment_method == PaymentMethod.CARD:
            provider = get_payment_provider()
            client_token = provider.create_intent(order_id, total)
            session.add(Payment(
                order_id=order_id,
                provider=provider.name,
                status=PaymentStatus.INITIATED,
                amount_cents=total,
                client_token=client_token
            ))

        session.commit()

    except MealHubError:
        session.rollback()
        raise
    except SQLAlchemyError as e:
        session.rollback()
        logger.exception(f"Checkout transaction failed for {owner}: {e}")
        raise StorageError('Could not create order, please retry')

    logger.info(f"Order {order_id} created for {owner}: total={total} method={payment_method}")

    invalidate_menu_cache()
    if payment_method == PaymentMethod.COD:
        dispatch_order_notification(session, order_id)

    return {
        'order_id': order_id,
        'total_cents': total,
        'payment_method': payment_method,
        'next': 'confirmation' if payment_method == PaymentMethod.COD else 'pay',
        'client_token': client_token
    }


# =====================================================
# ORDER QUEUE
# =====================================================

def list_orders(session: Session, status: Optional[str] = None, limit: int = 500) -> List[Order]:
    """
    Most recent orders first, optionally filtered by normalized status.

    The filter runs in SQL, so the limit caps matching orders only.
    """
    query = session.query(Order)
    if status and status.strip().lower() != 'all':
        query = query.filter(display_status_clause(Order.status, status))
    return (
        query
        .order_by(Order.created_at.desc(), Order.id.desc())
        .limit(limit)
        .all()
    )


def get_order(session: Session, order_id: int) -> Order:
    order = session.query(Order).filter(Order.id == order_id).first()
    if not order:
        raise NotFoundError('order not found')
    return order


def update_order_status(session: Session, order_id: int, status: str) -> Order:
    """Apply a supplier status change. Only display statuses are accepted."""
    if status not in DISPLAY_STATUSES:
        raise ValidationError('invalid status')

    order = get_order(session, order_id)
    order.status = status
    order.updated_at = datetime.now()
    session.flush()
    return order


def delete_order(session: Session, order_id: int) -> None:
    order = get_order(session, order_id)
    session.delete(order)
    session.flush()


def list_owner_orders(session: Session, owner: str, limit: int = 10) -> List[Order]:
    return (
        session.query(Order)
        .filter(Order.owner == owner)
        .order_by(Order.created_at.desc(), Order.id.desc())
        .limit(limit)
        .all()
    )


def get_latest_order(session: Session, owner: str) -> Order:
    orders = list_owner_orders(session, owner, limit=1)
    if not orders:
        raise NotFoundError('No orders found')
    return orders[0]


# =====================================================
# TRACKING
# =====================================================

DEFAULT_ETA_WINDOW = (15, 45)


def estimate_delivery_minutes(stage: str, minutes_since_order: float,
                              eta_min: Optional[int] = None, eta_max: Optional[int] = None) -> int:
    """
    Minutes until delivery for a tracking stage, from the supplier's ETA window.

    While preparing the estimate counts down from eta_max but never drops
    below eta_min; once on the way it never drops below 5 minutes.
    """
    if stage in (TrackingStage.DELIVERED.value, TrackingStage.CANCELLED.value):
        return 0

    eta_min = eta_min or DEFAULT_ETA_WINDOW[0]
    eta_max = max(eta_max or DEFAULT_ETA_WINDOW[1], eta_min)
    if stage == TrackingStage.READY.value:
        return eta_min

    floor = eta_min if stage == TrackingStage.PREPARING.value else 5
    return max(floor, round(eta_max - minutes_since_order))


def track_order(session: Session, order_id: int, now: Optional[datetime] = None) -> Dict[str, Any]:
    """Tracking view of an order: stage, delivery estimate and supplier contact."""
    order = get_order(session, order_id)
    supplier = order.supplier

    created_at = order.created_at
    now = now or datetime.now(created_at.tzinfo)
    minutes_since_order = max(0.0, (now - created_at).total_seconds() / 60)

    stage = tracking_stage(order.status)
    return {
        'orderId': order.id,
        'status': stage,
        'rawStatus': order.status,
        'items': [item.to_dict() for item in order.items],
        'total': order.total_cents,
        'deliveryAddress': order.delivery_address,
        'deliveryLat': order.delivery_lat,
        'deliveryLng': order.delivery_lng,
        'supplierName': supplier.name if supplier else None,
        'supplierPhone': supplier.phone if supplier else None,
        'supplierLocation': supplier.location if supplier else None,
        'estimatedDeliveryTime': estimate_delivery_minutes(
            stage,
            minutes_since_order,
            supplier.eta_min if supplier else None,
            supplier.eta_max if supplier else None
        ),
        'orderTime': created_at.isoformat(),
        'minutesSinceOrder': round(minutes_since_order)
    }


# =====================================================
# EXPIRY
# =====================================================

def expire_stale_orders(session: Session, now: Optional[datetime] = None) -> int:
    """
    Cancel card orders still awaiting payment after their expiry window and
    return their stock. Cash-on-delivery orders are left to the supplier.

    Returns the number of expired orders.
    """
    now = now or datetime.now()
    try:
        stale = (
            session.query(Order)
            .filter(
                Order.status == OrderStatus.PENDING.value,
                Order.payment_method == PaymentMethod.CARD,
                Order.expires_at < now
            )
            .order_by(Order.id)
            .with_for_update()
            .all()
        )

        for order in stale:
            for item in order.items:
                if item.menu_id is None:
                    continue
                session.query(MenuItem).filter(MenuItem.id == item.menu_id).update(
                    {MenuItem.stock: MenuItem.stock + item.quantity}, synchronize_session=False
                )
            order.status = OrderStatus.EXPIRED.value
            order.updated_at = now

        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        logger.exception(f"Order expiry failed: {e}")
        raise StorageError('Could not expire orders, please retry')

    if stale:
        logger.info(f"Expired {len(stale)} stale orders")
        invalidate_menu_cache()
    return len(stale)
