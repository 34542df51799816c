"""Catalog service - menu and supplier lookups."""
import logging
from datetime import datetime
from typing import List, Dict, Any, Optional

from flask import current_app
from sqlalchemy.orm import Session

from mealhub.models import MenuItem, Supplier, CartItem
from mealhub.exceptions import NotFoundError
from mealhub.services import cart_service

logger = logging.getLogger(__name__)


def get_menu_item(session: Session, menu_id: int) -> MenuItem:
    """Fetch a menu item or raise NotFoundError."""
    item = session.query(MenuItem).filter(MenuItem.id == menu_id).first()
    if not item:
        raise NotFoundError(f'Menu item {menu_id} not found')
    return item


def get_supplier(session: Session, supplier_id: int) -> Supplier:
    """Fetch a supplier or raise NotFoundError."""
    supplier = session.query(Supplier).filter(Supplier.id == supplier_id).first()
    if not supplier:
        raise NotFoundError(f'Supplier {supplier_id} not found')
    return supplier


def _load_menu(session: Session, supplier_id: Optional[int]) -> List[Dict[str, Any]]:
    query = session.query(MenuItem).filter(MenuItem.available.is_(True))
    if supplier_id is not None:
        query = query.filter(MenuItem.supplier_id == supplier_id)
    return [item.to_dict() for item in query.order_by(MenuItem.name, MenuItem.id).all()]


def list_menu(session: Session, supplier_id: Optional[int] = None) -> List[Dict[str, Any]]:
    """
    List available menu items, optionally for a single supplier.

    Listings go through the cache when it is available. Checkout never reads
    from here.
    """
    key = f'supplier:{supplier_id}' if supplier_id is not None else 'all'

    try:
        from mealhub.services.cache_service import get_cache
        cache = get_cache()
    except RuntimeError:
        return _load_menu(session, supplier_id)

    ttl = current_app.config.get('CACHE_MENU_TTL', 30)
    return cache.memoize('menu', key, lambda: _load_menu(session, supplier_id), ttl=ttl)


def invalidate_menu_cache() -> None:
    """Gracefully attempt to invalidate cached menu listings."""
    try:
        from mealhub.services.cache_service import get_cache
        get_cache().invalidate_namespace('menu')
    except Exception as e:
        logger.warning(f"Menu cache invalidation failed: {e}")


def list_cart_suppliers(session: Session, owner: str, now: Optional[datetime] = None,
                        ttl_hours: int = cart_service.DEFAULT_CART_TTL_HOURS) -> List[Dict[str, Any]]:
    """
    Supplier cards for the suppliers present in an owner's cart.

    Expired lines are purged first, as on every cart read. Totals use
    current menu prices, not the prices captured in the cart.
    """
    cart_service.purge_expired_lines(session, owner=owner, now=now, ttl_hours=ttl_hours)
    rows = (
        session.query(CartItem, MenuItem, Supplier)
        .join(MenuItem, MenuItem.id == CartItem.menu_id)
        .join(Supplier, Supplier.id == MenuItem.supplier_id)
        .filter(CartItem.owner == owner)
        .order_by(CartItem.created_at, CartItem.id)
        .all()
    )

    cards: Dict[int, Dict[str, Any]] = {}
    for line, item, supplier in rows:
        card = cards.get(supplier.id)
        if card is None:
            card = {
                'id': supplier.id,
                'name': supplier.name,
                'location': supplier.location,
                'phone': supplier.phone,
                'eta': supplier.eta,
                'items_total_cents': 0,
                'delivery_fee_cents': supplier.delivery_fee_cents or 0
            }
            cards[supplier.id] = card
        card['items_total_cents'] += item.price_cents * line.quantity

    for card in cards.values():
        card['total_cents'] = card['items_total_cents'] + card['delivery_fee_cents']

    return list(cards.values())
