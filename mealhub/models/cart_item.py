"""Cart item model for persistent per-owner carts."""
from datetime import datetime

from sqlalchemy import Column, BigInteger, String, DateTime, ForeignKey, CheckConstraint, UniqueConstraint
from sqlalchemy.orm import relationship
from mealhub.database import Base, BigIntId


class CartItem(Base):
    """
    Cart line - one row per (owner, menu item).

    Name and price are captured when the line is added for display only;
    checkout always re-reads them from the menu.
    """

    __tablename__ = 'cart_items'
    __table_args__ = (
        UniqueConstraint('owner', 'menu_id', name='uq_cart_items_owner_menu'),
        CheckConstraint('quantity >= 1', name='ck_cart_items_quantity_positive'),
    )

    id = Column(BigIntId, primary_key=True, autoincrement=True)
    owner = Column(String, nullable=False, index=True)
    menu_id = Column(BigInteger, ForeignKey('menu.id', ondelete='CASCADE'), nullable=False)
    name = Column(String, nullable=False)
    unit_price_cents = Column(BigInteger, nullable=False)
    quantity = Column(BigInteger, nullable=False)

    # TTL is measured from creation; merges do not refresh it
    created_at = Column(DateTime(timezone=True), nullable=False, default=datetime.now)

    # Relationships
    menu_item = relationship('MenuItem')

    def __repr__(self):
        return f"<CartItem(id={self.id}, owner='{self.owner}', menu_id={self.menu_id}, quantity={self.quantity})>"

    def to_dict(self):
        return {
            'id': self.id,
            'owner': self.owner,
            'item_ref': self.menu_id,
            'name': self.name,
            'price_cents': self.unit_price_cents,
            'quantity': self.quantity,
            'created_at': self.created_at.isoformat() if self.created_at else None
        }
