"""Menu item model."""
from sqlalchemy import Column, BigInteger, String, Boolean, DateTime, ForeignKey, CheckConstraint, true
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from mealhub.database import Base, BigIntId


class MenuItem(Base):
    """Menu item sold by a supplier. Prices are integer cents."""

    __tablename__ = 'menu'
    __table_args__ = (
        CheckConstraint('stock >= 0', name='ck_menu_stock_non_negative'),
        CheckConstraint('price_cents >= 0', name='ck_menu_price_non_negative'),
    )

    id = Column(BigIntId, primary_key=True, autoincrement=True)
    supplier_id = Column(BigInteger, ForeignKey('suppliers.id'), nullable=True, index=True)
    name = Column(String, nullable=False)
    description = Column(String, nullable=True)
    price_cents = Column(BigInteger, nullable=False)
    stock = Column(BigInteger, nullable=False, default=0, server_default='0')
    available = Column(Boolean, nullable=False, default=True, server_default=true())
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    # Relationships
    supplier = relationship('Supplier', back_populates='menu_items')

    def __repr__(self):
        return f"<MenuItem(id={self.id}, name='{self.name}', stock={self.stock})>"

    def to_dict(self):
        return {
            'id': self.id,
            'supplier_id': self.supplier_id,
            'name': self.name,
            'description': self.description,
            'price_cents': self.price_cents,
            'stock': self.stock,
            'available': self.available
        }
