"""Order and payment stores, run against both the memory and SQL backends."""

import re

import pytest

from errors import NotFoundError, ValidationError
from schemas import OrderStatus, OrderType, PaymentStatus


class TestOrderStore:
    def test_create_then_get_returns_same_order(self, stores, order_fields):
        order_store, _ = stores
        created = order_store.create(order_fields())
        assert order_store.get(created.id) == created

    def test_create_sets_defaults(self, stores, order_fields):
        order_store, _ = stores
        order = order_store.create(order_fields())
        assert order.status == OrderStatus.PENDING
        assert order.order_type == OrderType.DELIVERY
        assert order.total == 5500
        assert order.items[0].unit_price == 4500
        assert re.fullmatch(r"CM\d{8}", order.order_number)
        assert [entry.status for entry in order.status_history] == [OrderStatus.PENDING]

    def test_order_numbers_and_ids_are_unique(self, stores, order_fields):
        order_store, _ = stores
        orders = [order_store.create(order_fields()) for _ in range(20)]
        assert len({o.id for o in orders}) == 20
        assert len({o.order_number for o in orders}) == 20

    @pytest.mark.parametrize("missing", ["customer_name", "customer_phone", "items", "total", "order_type"])
    def test_missing_required_field(self, stores, order_fields, missing):
        order_store, _ = stores
        fields = order_fields()
        del fields[missing]
        with pytest.raises(ValidationError, match=missing):
            order_store.create(fields)

    def test_empty_items_rejected(self, stores, order_fields):
        order_store, _ = stores
        with pytest.raises(ValidationError):
            order_store.create(order_fields(items=[]))

    @pytest.mark.parametrize("address", [None, "", "   "])
    def test_delivery_requires_address(self, stores, order_fields, address):
        order_store, _ = stores
        with pytest.raises(ValidationError, match="delivery_address"):
            order_store.create(order_fields(delivery_address=address))

    def test_pickup_without_address(self, stores, order_fields):
        order_store, _ = stores
        order = order_store.create(order_fields(order_type="pickup", delivery_address=None, total=4500))
        assert order.order_type == OrderType.PICKUP
        assert order.delivery_address is None

    def test_legacy_order_type_accepted(self, stores, order_fields):
        order_store, _ = stores
        order = order_store.create(order_fields(order_type="livraison"))
        assert order.order_type == OrderType.DELIVERY

    def test_zero_quantity_rejected(self, stores, order_fields):
        order_store, _ = stores
        items = [{"product_name": "Menu Classique", "quantity": 0, "unit_price": 4500}]
        with pytest.raises(ValidationError):
            order_store.create(order_fields(items=items))

    def test_get_unknown(self, stores):
        order_store, _ = stores
        with pytest.raises(NotFoundError):
            order_store.get("order-missing")

    def test_update_merges_fields(self, stores, order_fields):
        order_store, _ = stores
        order = order_store.create(order_fields())
        updated = order_store.update(order.id, {"customer_phone": "78 000 00 00"})
        assert updated.customer_phone == "78 000 00 00"
        assert updated.customer_name == order.customer_name
        assert updated.updated_at >= order.updated_at
        assert order_store.get(order.id) == updated

    def test_update_unknown(self, stores):
        order_store, _ = stores
        with pytest.raises(NotFoundError):
            order_store.update("order-missing", {"customer_name": "X"})

    @pytest.mark.parametrize("field", ["id", "order_number", "created_at", "items"])
    def test_update_rejects_immutable_fields(self, stores, order_fields, field):
        order_store, _ = stores
        order = order_store.create(order_fields())
        with pytest.raises(ValidationError):
            order_store.update(order.id, {field: getattr(order, field)})

    def test_update_rejects_unknown_fields(self, stores, order_fields):
        order_store, _ = stores
        order = order_store.create(order_fields())
        with pytest.raises(ValidationError, match="payment"):
            order_store.update(order.id, {"payment": {"id": "x"}})

    def test_returned_orders_are_copies(self, stores, order_fields):
        order_store, _ = stores
        order = order_store.create(order_fields())
        order.items[0].quantity = 99
        assert order_store.get(order.id).items[0].quantity == 1

    def test_list_filters_by_status_and_search(self, stores, order_fields):
        order_store, _ = stores
        first = order_store.create(order_fields())
        second = order_store.create(order_fields())
        order_store.update(second.id, {"status": OrderStatus.CONFIRMED})

        assert [o.id for o in order_store.list([OrderStatus.CONFIRMED])] == [second.id]
        assert {o.id for o in order_store.list()} == {first.id, second.id}
        assert [o.id for o in order_store.list(search=f"#{first.order_number}")] == [first.id]


class TestPaymentStore:
    def test_create_and_index(self, stores, order_fields):
        order_store, payment_store = stores
        order = order_store.create(order_fields())
        payment = payment_store.create({"order_id": order.id, "amount": 5500, "payment_method": "wave"})

        assert payment.status == PaymentStatus.PENDING
        assert payment.gateway_token is None
        assert payment_store.get(payment.id) == payment
        assert payment_store.get_by_order_id(order.id) == payment

    @pytest.mark.parametrize("missing", ["order_id", "amount", "payment_method"])
    def test_missing_required_field(self, stores, order_fields, missing):
        order_store, payment_store = stores
        order = order_store.create(order_fields())
        fields = {"order_id": order.id, "amount": 5500, "payment_method": "wave"}
        del fields[missing]
        with pytest.raises(ValidationError, match=missing):
            payment_store.create(fields)

    def test_unknown_order_rejected(self, stores):
        _, payment_store = stores
        with pytest.raises(NotFoundError):
            payment_store.create({"order_id": "order-missing", "amount": 5500, "payment_method": "wave"})

    def test_unknown_method_rejected(self, stores, order_fields):
        order_store, payment_store = stores
        order = order_store.create(order_fields())
        with pytest.raises(ValidationError):
            payment_store.create({"order_id": order.id, "amount": 5500, "payment_method": "cash"})

    def test_index_follows_latest_write(self, stores, order_fields):
        order_store, payment_store = stores
        order = order_store.create(order_fields())
        first = payment_store.create({"order_id": order.id, "amount": 5500, "payment_method": "wave"})
        second = payment_store.create({"order_id": order.id, "amount": 5500, "payment_method": "orange-money"})
        assert payment_store.get_by_order_id(order.id).id == second.id

        payment_store.update(first.id, {"status": PaymentStatus.CANCELLED})
        indexed = payment_store.get_by_order_id(order.id)
        assert indexed.id == first.id
        assert indexed.status == PaymentStatus.CANCELLED

    def test_index_stays_on_completed_payment(self, stores, order_fields):
        order_store, payment_store = stores
        order = order_store.create(order_fields())
        paid = payment_store.create({"order_id": order.id, "amount": 5500, "payment_method": "wave"})
        payment_store.update(paid.id, {"status": PaymentStatus.COMPLETED})

        other = payment_store.create({"order_id": order.id, "amount": 5500, "payment_method": "wave"})
        payment_store.update(other.id, {"status": PaymentStatus.FAILED})
        assert payment_store.get_by_order_id(order.id).id == paid.id

    def test_by_order_unknown(self, stores):
        _, payment_store = stores
        with pytest.raises(NotFoundError):
            payment_store.get_by_order_id("order-missing")

    def test_update_unknown(self, stores):
        _, payment_store = stores
        with pytest.raises(NotFoundError):
            payment_store.update("payment-missing", {"status": PaymentStatus.FAILED})

    def test_update_rejects_order_reassignment(self, stores, order_fields):
        order_store, payment_store = stores
        order = order_store.create(order_fields())
        payment = payment_store.create({"order_id": order.id, "amount": 5500, "payment_method": "wave"})
        with pytest.raises(ValidationError):
            payment_store.update(payment.id, {"order_id": "order-other"})
