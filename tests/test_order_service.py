import pytest

from errors import ValidationError
from schemas import OrderStatus, OrderUpdate


@pytest.fixture()
def orders(container):
    return container.orders


class TestGetOrders:
    def test_group_filters(self, orders, container, order_request):
        pending = orders.create_order(order_request())
        preparing = orders.create_order(order_request())
        container.fulfillment.set_status(preparing.id, OrderStatus.PREPARING)
        confirmed = orders.create_order(order_request())
        container.fulfillment.confirm_paid(confirmed.id)

        assert [o.id for o in orders.get_orders("pending")] == [pending.id]
        assert {o.id for o in orders.get_orders("preparing")} == {preparing.id, confirmed.id}
        assert [o.id for o in orders.get_orders("confirmed")] == [confirmed.id]
        assert {o.id for o in orders.get_orders("pending, preparing")} == {
            pending.id, preparing.id, confirmed.id,
        }

    def test_unknown_filter(self, orders):
        with pytest.raises(ValidationError):
            orders.get_orders("somewhere")

    def test_paging(self, orders, order_request):
        for _ in range(5):
            orders.create_order(order_request())
        assert len(orders.get_orders(skip=1, limit=3)) == 3
        assert len(orders.get_orders(skip=4)) == 1


class TestUpdateOrder:
    def test_blank_name_rejected(self, orders, order_request):
        order = orders.create_order(order_request())
        with pytest.raises(ValidationError):
            orders.update_order(order.id, OrderUpdate(customer_name="  "))

    def test_delivery_address_cannot_be_cleared(self, orders, order_request):
        order = orders.create_order(order_request())
        with pytest.raises(ValidationError):
            orders.update_order(order.id, OrderUpdate(delivery_address=""))

    def test_empty_update_returns_order(self, orders, order_request):
        order = orders.create_order(order_request())
        assert orders.update_order(order.id, OrderUpdate()) == order


class TestDashboardStats:
    def test_counts_and_revenue(self, orders, container, order_request):
        first = orders.create_order(order_request())
        second = orders.create_order(order_request(order_type="pickup", delivery_address=None))
        third = orders.create_order(order_request())
        for _ in range(4):
            container.fulfillment.advance(second.id)
        container.fulfillment.cancel(third.id)
        container.fulfillment.set_status(first.id, OrderStatus.READY)

        stats = orders.get_dashboard_stats()
        assert stats == {
            "total_orders": 3,
            "pending_orders": 0,
            "preparing_orders": 0,
            "ready_orders": 1,
            "out_for_delivery_orders": 0,
            "completed_orders": 2,
            "total_revenue": 4500.0,
        }
