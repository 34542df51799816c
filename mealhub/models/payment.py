"""Payment attempt model."""
from datetime import datetime

from sqlalchemy import Column, BigInteger, String, DateTime, ForeignKey, JSON
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import relationship
from mealhub.database import Base, BigIntId


class PaymentStatus:
    """Payment row statuses; provider statuses are stored as received."""
    INITIATED = 'initiated'
    SUCCEEDED = 'succeeded'


class Payment(Base):
    """Payment attempt for an order, updated by provider callbacks."""

    __tablename__ = 'payments'

    id = Column(BigIntId, primary_key=True, autoincrement=True)
    order_id = Column(BigInteger, ForeignKey('orders.id', ondelete='CASCADE'), nullable=False, index=True)
    provider = Column(String(40), nullable=False)
    provider_ref = Column(String(120), nullable=True, index=True)
    status = Column(String(40), nullable=False, default=PaymentStatus.INITIATED)
    amount_cents = Column(BigInteger, nullable=False)
    client_token = Column(String(120), nullable=True)
    raw_response = Column(JSON().with_variant(JSONB, 'postgresql'), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=datetime.now)
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=datetime.now)

    # Relationships
    order = relationship('Order', back_populates='payments')

    def __repr__(self):
        return f"<Payment(id={self.id}, order_id={self.order_id}, status='{self.status}')>"

    def to_dict(self):
        return {
            'id': self.id,
            'order_id': self.order_id,
            'provider': self.provider,
            'provider_ref': self.provider_ref,
            'status': self.status,
            'amount_cents': self.amount_cents
        }
