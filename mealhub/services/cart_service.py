"""Cart service - persistent per-owner cart operations."""

from datetime import datetime, timedelta
from typing import List, Optional

from sqlalchemy.orm import Session

from mealhub.models import CartItem, MenuItem
from mealhub.exceptions import ValidationError

DEFAULT_CART_TTL_HOURS = 48


def _require_owner(owner: str) -> str:
    owner = (owner or '').strip() if isinstance(owner, str) else owner
    if not owner:
        raise ValidationError('owner is required')
    return owner


def _cutoff(now: Optional[datetime], ttl_hours: int) -> datetime:
    return (now or datetime.now()) - timedelta(hours=ttl_hours)


def _get_line(session: Session, owner: str, menu_id: int) -> Optional[CartItem]:
    return session.query(CartItem).filter(
        CartItem.owner == owner,
        CartItem.menu_id == menu_id
    ).first()


def _lookup_item(session: Session, menu_id: int) -> MenuItem:
    item = session.query(MenuItem).filter(MenuItem.id == menu_id).first()
    if not item:
        raise ValidationError(f'Menu item {menu_id} does not exist')
    return item


def add_item(session: Session, owner: str, menu_id: int, quantity: int, now: Optional[datetime] = None,
             ttl_hours: int = DEFAULT_CART_TTL_HOURS) -> CartItem:
    """
    Add a menu item to the owner's cart.

    A repeat add sums quantities on the existing line. Name and price are
    captured from the catalog; client-supplied values are never stored.
    """
    owner = _require_owner(owner)
    if quantity is None or quantity <= 0:
        raise ValidationError('quantity must be greater than 0')

    item = _lookup_item(session, menu_id)

    # An expired line is gone; never merge into it
    purge_expired_lines(session, owner=owner, now=now, ttl_hours=ttl_hours)

    line = _get_line(session, owner, menu_id)
    if line:
        line.quantity = line.quantity + quantity
    else:
        line = CartItem(
            owner=owner,
            menu_id=item.id,
            name=item.name,
            unit_price_cents=item.price_cents,
            quantity=quantity,
            created_at=now or datetime.now()
        )
        session.add(line)

    session.flush()
    return line


def purge_expired_lines(session: Session, owner: Optional[str] = None, now: Optional[datetime] = None,
                        ttl_hours: int = DEFAULT_CART_TTL_HOURS) -> int:
    """Delete cart lines older than the TTL, for one owner or for everyone."""
    query = session.query(CartItem).filter(CartItem.created_at < _cutoff(now, ttl_hours))
    if owner is not None:
        query = query.filter(CartItem.owner == owner)
    deleted = query.delete(synchronize_session='fetch')
    session.flush()
    return deleted


def list_items(session: Session, owner: str, now: Optional[datetime] = None,
               ttl_hours: int = DEFAULT_CART_TTL_HOURS) -> List[CartItem]:
    """
    Return the owner's live cart lines in insertion order.

    Lines past the TTL are physically deleted as part of the read.
    """
    owner = _require_owner(owner)
    purge_expired_lines(session, owner=owner, now=now, ttl_hours=ttl_hours)
    return (
        session.query(CartItem)
        .filter(CartItem.owner == owner)
        .order_by(CartItem.created_at, CartItem.id)
        .all()
    )


def remove_item(session: Session, owner: str, menu_id: int) -> None:
    """Remove one line. Removing a missing line is a no-op."""
    owner = _require_owner(owner)
    session.query(CartItem).filter(
        CartItem.owner == owner,
        CartItem.menu_id == menu_id
    ).delete(synchronize_session='fetch')
    session.flush()


def clear_cart(session: Session, owner: str) -> int:
    """Remove every line of the owner's cart and return how many were removed."""
    owner = _require_owner(owner)
    deleted = session.query(CartItem).filter(CartItem.owner == owner).delete(synchronize_session='fetch')
    session.flush()
    return deleted


def set_quantity(session: Session, owner: str, menu_id: int, quantity: int,
                 now: Optional[datetime] = None, ttl_hours: int = DEFAULT_CART_TTL_HOURS) -> Optional[CartItem]:
    """
    Set an absolute quantity for a line.

    Zero removes the line, negative values are rejected. Returns the line,
    or None when it was removed.
    """
    owner = _require_owner(owner)
    if quantity is None or quantity < 0:
        raise ValidationError('quantity cannot be negative')

    if quantity == 0:
        remove_item(session, owner, menu_id)
        return None

    purge_expired_lines(session, owner=owner, now=now, ttl_hours=ttl_hours)
    line = _get_line(session, owner, menu_id)
    if line is None:
        return add_item(session, owner, menu_id, quantity, now=now, ttl_hours=ttl_hours)

    line.quantity = quantity
    session.flush()
    return line
