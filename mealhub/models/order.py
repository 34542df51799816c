"""Order model."""
from datetime import datetime

from sqlalchemy import Column, BigInteger, String, Float, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from mealhub.database import Base, BigIntId
from mealhub.utils.order_status import OrderStatus, normalize_order_status


class PaymentMethod:
    """Accepted checkout payment methods."""
    COD = 'cod'
    CARD = 'card'

    ALL = (COD, CARD)


class Order(Base):
    """
    Customer order.

    Totals are fixed at creation. Only status, updated_at and the payment
    history change afterwards.
    """

    __tablename__ = 'orders'

    id = Column(BigIntId, primary_key=True, autoincrement=True)
    owner = Column(String, nullable=False, index=True)
    supplier_id = Column(BigInteger, ForeignKey('suppliers.id'), nullable=True, index=True)

    # Free text; see normalize_order_status for the display mapping
    status = Column(String(40), nullable=False, default=OrderStatus.PENDING.value, index=True)

    items_total_cents = Column(BigInteger, nullable=False)
    delivery_fee_cents = Column(BigInteger, nullable=False, default=0)
    total_cents = Column(BigInteger, nullable=False)
    payment_method = Column(String(20), nullable=False, default=PaymentMethod.COD)

    delivery_address = Column(String, nullable=True)
    delivery_lat = Column(Float, nullable=True)
    delivery_lng = Column(Float, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=datetime.now, index=True)
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=datetime.now)
    expires_at = Column(DateTime(timezone=True), nullable=True)

    # Relationships
    supplier = relationship('Supplier')
    items = relationship('OrderItem', back_populates='order', cascade='all, delete-orphan',
                         order_by='OrderItem.id')
    payments = relationship('Payment', back_populates='order', cascade='all, delete-orphan',
                            order_by='Payment.id')

    @property
    def normalized_status(self):
        return normalize_order_status(self.status)

    @property
    def latest_payment(self):
        return self.payments[-1] if self.payments else None

    def __repr__(self):
        return f"<Order(id={self.id}, owner='{self.owner}', total_cents={self.total_cents}, status='{self.status}')>"

    def to_summary(self):
        """Order shape used by the supplier queue and customer history."""
        return {
            'id': self.id,
            'customer': self.owner,
            'supplier_id': self.supplier_id,
            'supplier': self.supplier.name if self.supplier else None,
            'items': [item.to_dict() for item in self.items],
            'subtotal': self.items_total_cents,
            'delivery_fee': self.delivery_fee_cents,
            'total_price': self.total_cents,
            'payment_method': self.payment_method,
            'raw_status': self.status,
            'status': normalize_order_status(self.status),
            'delivery_address': self.delivery_address,
            'delivery_lat': self.delivery_lat,
            'delivery_lng': self.delivery_lng,
            'created_at': self.created_at.isoformat() if self.created_at else None
        }
