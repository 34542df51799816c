"""Order status values, the display-status normalizer and tracking stages."""
import enum

from sqlalchemy import func, or_, and_, not_, false


class OrderStatus(str, enum.Enum):
    """Raw status values written by this application."""
    PENDING = 'Pending'
    PAID = 'Paid'
    FAILED = 'Failed'
    COMPLETED = 'Completed'
    CANCELLED = 'Cancelled'
    EXPIRED = 'Cancelled (expired)'


class TrackingStage(str, enum.Enum):
    """Delivery progress shown to the customer."""
    PREPARING = 'preparing'
    READY = 'ready'
    ON_THE_WAY = 'on_the_way'
    DELIVERED = 'delivered'
    CANCELLED = 'cancelled'


# Statuses a supplier may set through the orders API
DISPLAY_STATUSES = ('Pending', 'Completed', 'Cancelled')

_COMPLETED_MARKERS = ('complete', 'deliv', 'paid', 'received', 'confirm')


def normalize_order_status(raw) -> str:
    """
    Map a free-text status onto Pending, Completed or Cancelled.

    Rules are evaluated in order:
    - contains "cancel" -> Cancelled
    - contains complete/deliv/paid/received/confirm -> Completed
    - anything else, including None or empty -> Pending

    The stored raw value stays authoritative; this is for display only.
    """
    if raw is None:
        return 'Pending'

    if isinstance(raw, enum.Enum):
        raw = raw.value

    value = str(raw).strip().lower()
    if not value:
        return 'Pending'

    if 'cancel' in value:
        return 'Cancelled'

    if any(marker in value for marker in _COMPLETED_MARKERS):
        return 'Completed'

    return 'Pending'


def display_status_clause(column, display_status: str):
    """
    SQL condition matching the raw statuses that normalize to display_status.

    Mirrors normalize_order_status so filtering can happen before LIMIT.
    An unknown display status matches nothing.
    """
    value = func.lower(func.coalesce(column, ''))
    cancelled = value.contains('cancel')
    completed = or_(*(value.contains(marker) for marker in _COMPLETED_MARKERS))

    wanted = (display_status or '').strip().lower()
    if wanted == 'cancelled':
        return cancelled
    if wanted == 'completed':
        return and_(not_(cancelled), completed)
    if wanted == 'pending':
        return and_(not_(cancelled), not_(completed))
    return false()


def tracking_stage(raw) -> str:
    """
    Map a raw status onto a delivery tracking stage.

    Supplier workflow words (ready, picked_up, delivered) move the stage
    forward; anything not yet handed over is still being prepared.
    """
    if isinstance(raw, enum.Enum):
        raw = raw.value
    value = str(raw or '').strip().lower()

    if 'cancel' in value:
        return TrackingStage.CANCELLED.value
    if any(marker in value for marker in ('delivered', 'complete', 'received')):
        return TrackingStage.DELIVERED.value
    if 'picked' in value or 'on_the_way' in value or 'on the way' in value:
        return TrackingStage.ON_THE_WAY.value
    if 'ready' in value:
        return TrackingStage.READY.value
    return TrackingStage.PREPARING.value
