"""Transition rules for payments and order fulfillment."""

from typing import List

from schemas import OrderStatus, OrderType, PaymentStatus
from errors import InvalidStateTransitionError

PAYMENT_TERMINAL_STATES = {PaymentStatus.COMPLETED, PaymentStatus.FAILED, PaymentStatus.CANCELLED}

PAYMENT_TRANSITIONS = {
    # pending -> failed covers an initialize call that never got an invoice
    PaymentStatus.PENDING: {PaymentStatus.PROCESSING, PaymentStatus.FAILED, PaymentStatus.CANCELLED},
    # processing -> processing is a re-initialized invoice
    PaymentStatus.PROCESSING: {
        PaymentStatus.PROCESSING,
        PaymentStatus.COMPLETED,
        PaymentStatus.FAILED,
        PaymentStatus.CANCELLED,
    },
}

ORDER_TERMINAL_STATES = {OrderStatus.DELIVERED, OrderStatus.CANCELLED}

FULFILLMENT_SEQUENCES = {
    OrderType.DELIVERY: [
        OrderStatus.PENDING,
        OrderStatus.CONFIRMED,
        OrderStatus.PREPARING,
        OrderStatus.READY,
        OrderStatus.OUT_FOR_DELIVERY,
        OrderStatus.DELIVERED,
    ],
    OrderType.PICKUP: [
        OrderStatus.PENDING,
        OrderStatus.CONFIRMED,
        OrderStatus.PREPARING,
        OrderStatus.READY,
        OrderStatus.DELIVERED,
    ],
}


def is_payment_terminal(status) -> bool:
    return PaymentStatus(status) in PAYMENT_TERMINAL_STATES


def check_payment_transition(current, target):
    current, target = PaymentStatus(current), PaymentStatus(target)
    if target not in PAYMENT_TRANSITIONS.get(current, set()):
        raise InvalidStateTransitionError("payment", current.value, target.value)


def is_order_terminal(status) -> bool:
    return OrderStatus(status) in ORDER_TERMINAL_STATES


def fulfillment_sequence(order_type) -> List[OrderStatus]:
    return FULFILLMENT_SEQUENCES[OrderType(order_type)]


def next_order_status(order_type, current) -> OrderStatus:
    current = OrderStatus(current)
    sequence = fulfillment_sequence(order_type)
    if current in ORDER_TERMINAL_STATES or current not in sequence:
        raise InvalidStateTransitionError("order", current.value, "next")
    return sequence[sequence.index(current) + 1]
