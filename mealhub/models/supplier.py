"""Supplier model."""
from sqlalchemy import Column, BigInteger, String, Text, DateTime
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from mealhub.database import Base, BigIntId


class Supplier(Base):
    """Meal supplier (restaurant or kitchen)."""

    __tablename__ = 'suppliers'

    id = Column(BigIntId, primary_key=True, autoincrement=True)
    name = Column(String, nullable=False)
    location = Column(String, nullable=True)
    phone = Column(String, nullable=True)
    email = Column(String, nullable=True)
    delivery_fee_cents = Column(BigInteger, nullable=False, default=0, server_default='0')
    eta_min = Column(BigInteger, nullable=True)
    eta_max = Column(BigInteger, nullable=True)

    # Order dispatch endpoint
    api_url = Column(String, nullable=True)
    api_secret = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    # Relationships
    menu_items = relationship('MenuItem', back_populates='supplier')

    def __repr__(self):
        return f"<Supplier(id={self.id}, name='{self.name}')>"

    @property
    def eta(self):
        """ETA window as display text, e.g. '20-35 minutes'."""
        if self.eta_min is None or self.eta_max is None:
            return None
        return f"{self.eta_min}-{self.eta_max} minutes"

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'location': self.location,
            'phone': self.phone,
            'eta': self.eta,
            'delivery_fee_cents': self.delivery_fee_cents
        }
