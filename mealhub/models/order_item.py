"""Order item model."""
from sqlalchemy import Column, BigInteger, String, ForeignKey
from sqlalchemy.orm import relationship
from mealhub.database import Base, BigIntId


class OrderItem(Base):
    """Snapshot of one ordered menu item, immune to later catalog changes."""

    __tablename__ = 'order_items'

    id = Column(BigIntId, primary_key=True, autoincrement=True)
    order_id = Column(BigInteger, ForeignKey('orders.id', ondelete='CASCADE'), nullable=False, index=True)
    menu_id = Column(BigInteger, ForeignKey('menu.id', ondelete='SET NULL'), nullable=True)
    name = Column(String, nullable=False)
    unit_price_cents = Column(BigInteger, nullable=False)
    quantity = Column(BigInteger, nullable=False)
    subtotal_cents = Column(BigInteger, nullable=False)

    # Relationships
    order = relationship('Order', back_populates='items')

    def __repr__(self):
        return f"<OrderItem(id={self.id}, menu_id={self.menu_id}, quantity={self.quantity})>"

    def to_dict(self):
        return {
            'menu_id': self.menu_id,
            'name': self.name,
            'unit_price_cents': self.unit_price_cents,
            'quantity': self.quantity,
            'subtotal_cents': self.subtotal_cents
        }
