"""
Unit tests for order status normalization and tracking stages.
"""

import pytest

from mealhub.models import Order, OrderStatus, normalize_order_status
from mealhub.utils.order_status import TrackingStage, display_status_clause, tracking_stage


RAW_STATUSES = [
    'Pending', 'Paid', 'Failed', 'Completed', 'Cancelled', 'Cancelled (expired)',
    'delivered', 'Confirmed by kitchen', 'picked_up', 'ready', ''
]


class TestNormalizeOrderStatus:

    @pytest.mark.parametrize('raw', [None, '', 'Pending', 'Failed', 'whatever'])
    def test_unknown_and_empty_are_pending(self, raw):
        assert normalize_order_status(raw) == 'Pending'

    @pytest.mark.parametrize('raw', ['Cancelled', 'canceled', 'Cancelled (expired)', 'CANCEL'])
    def test_cancel_variants(self, raw):
        assert normalize_order_status(raw) == 'Cancelled'

    @pytest.mark.parametrize('raw', ['Paid', 'Delivered', 'delivering', 'Completed', 'Received', 'confirmed'])
    def test_completed_variants(self, raw):
        assert normalize_order_status(raw) == 'Completed'

    def test_accepts_enum_members(self):
        assert normalize_order_status(OrderStatus.PAID) == 'Completed'
        assert normalize_order_status(OrderStatus.EXPIRED) == 'Cancelled'
        assert normalize_order_status(OrderStatus.FAILED) == 'Pending'


class TestDisplayStatusClause:

    @pytest.fixture
    def orders(self, session):
        ids = {}
        for raw in RAW_STATUSES:
            order = Order(owner='alice', status=raw, items_total_cents=100, total_cents=100)
            session.add(order)
            session.flush()
            ids[order.id] = raw
        session.commit()
        return ids

    @pytest.mark.parametrize('display', ['Pending', 'Completed', 'Cancelled'])
    def test_matches_the_normalizer(self, session, orders, display):
        matched = {
            order.id for order in
            session.query(Order).filter(display_status_clause(Order.status, display)).all()
        }

        assert matched == {oid for oid, raw in orders.items() if normalize_order_status(raw) == display}

    def test_display_status_is_case_insensitive(self, session, orders):
        query = session.query(Order).filter(display_status_clause(Order.status, 'cancelled'))

        assert sorted(order.status for order in query.all()) == ['Cancelled', 'Cancelled (expired)']

    def test_unknown_display_status_matches_nothing(self, session, orders):
        assert session.query(Order).filter(display_status_clause(Order.status, 'Shipped')).count() == 0


class TestTrackingStage:

    @pytest.mark.parametrize('raw,stage', [
        ('Pending', 'preparing'),
        ('Paid', 'preparing'),
        ('Failed', 'preparing'),
        (None, 'preparing'),
        ('ready', 'ready'),
        ('Ready for pickup', 'ready'),
        ('picked_up', 'on_the_way'),
        ('On the way', 'on_the_way'),
        ('Delivered', 'delivered'),
        ('Completed', 'delivered'),
        ('Received', 'delivered'),
        ('Cancelled', 'cancelled'),
        ('Cancelled (expired)', 'cancelled'),
    ])
    def test_stage_mapping(self, raw, stage):
        assert tracking_stage(raw) == stage

    def test_accepts_enum_members(self):
        assert tracking_stage(OrderStatus.COMPLETED) == TrackingStage.DELIVERED.value
        assert tracking_stage(OrderStatus.EXPIRED) == TrackingStage.CANCELLED.value
