"""Models package - exports all SQLAlchemy models."""
from mealhub.models.supplier import Supplier
from mealhub.models.menu_item import MenuItem
from mealhub.models.cart_item import CartItem
from mealhub.models.order import Order, PaymentMethod
from mealhub.models.order_item import OrderItem
from mealhub.models.payment import Payment, PaymentStatus
from mealhub.utils.order_status import OrderStatus, normalize_order_status

__all__ = [
    'Supplier', 'MenuItem', 'CartItem',
    'Order', 'PaymentMethod', 'OrderItem',
    'Payment', 'PaymentStatus',
    'OrderStatus', 'normalize_order_status',
]
