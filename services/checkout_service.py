"""Order/payment lifecycle coordination.

Checkout runs in four steps: create the order, create its payment, open a
PayDunya invoice, then wait for the customer to come back or for PayDunya to
call us. Everything that touches a payment happens under the order's lock,
so a callback and a cancel return-path for the same order never interleave.

Only the gateway (callback or a server-side confirm) may complete a payment.
The success return-path reads state; it never writes ``completed`` itself.
"""

from typing import Optional

import structlog

from schemas import (
    CallbackAck,
    CheckoutResult,
    GatewayCallback,
    OrderCreate,
    Payment,
    PaymentMethod,
    PaymentStatus,
    ReturnOutcome,
)
from stores import PaymentStore
from stores.base import PAYMENT_REQUIRED_FIELDS, require_fields, utcnow
from errors import ConflictError, GatewayError, NotFoundError, ValidationError
from .fulfillment_service import FulfillmentService
from .locks import LockRegistry
from .order_service import OrderService
from .paydunya_service import PaydunyaService
from .state_machines import check_payment_transition, is_payment_terminal

logger = structlog.get_logger(__name__)

CANCELLED_BY_USER = "cancelled by user"

# Only these gateway statuses move a payment. Anything else, PayDunya's own
# "cancelled" included, is logged and left alone: cancelling is the
# customer's cancel return-path.
GATEWAY_STATUSES = {
    "completed": PaymentStatus.COMPLETED,
    "failed": PaymentStatus.FAILED,
}

GATEWAY_MESSAGES = {
    PaymentStatus.FAILED: "Payment failed at PayDunya",
}


class CheckoutService:
    def __init__(self, order_service: OrderService, payment_store: PaymentStore,
                 gateway: PaydunyaService, fulfillment: FulfillmentService, locks: LockRegistry):
        self.order_service = order_service
        self.payment_store = payment_store
        self.gateway = gateway
        self.fulfillment = fulfillment
        self.locks = locks

    def _lock(self, order_id: str):
        return self.locks.hold(f"checkout:{order_id}")

    def _indexed_payment(self, order_id: str) -> Optional[Payment]:
        try:
            return self.payment_store.get_by_order_id(order_id)
        except NotFoundError:
            return None

    def _refuse_if_paid(self, order_id: str, payment_id: str, target: PaymentStatus):
        """An order paid through one payment cannot be touched through another."""
        indexed = self._indexed_payment(order_id)
        if indexed is not None and indexed.id != payment_id and indexed.status == PaymentStatus.COMPLETED:
            raise ConflictError(indexed.id, indexed.status.value, target.value)

    # ------------------------------------------------------------------
    # Checkout
    # ------------------------------------------------------------------

    def checkout(self, order_data: OrderCreate, payment_method: PaymentMethod) -> CheckoutResult:
        """Create the order and its payment, then open the gateway invoice.

        A gateway failure does not undo the order: the result carries the
        failed payment so the storefront can offer a retry.
        """
        order = self.order_service.create_order(order_data)
        payment = self.create_payment({
            "order_id": order.id,
            "amount": order.total,
            "payment_method": payment_method,
        })
        try:
            payment = self.initialize_payment(order.id, payment.id)
        except GatewayError:
            return CheckoutResult(order=order, payment=self.payment_store.get(payment.id))
        return CheckoutResult(order=order, payment=payment, payment_url=payment.gateway_invoice_url)

    def create_payment(self, fields: dict) -> Payment:
        require_fields(fields, PAYMENT_REQUIRED_FIELDS)
        order = self.order_service.get_order(fields["order_id"])
        if abs(float(fields["amount"]) - order.total) > 0.005:
            raise ValidationError(
                f"Payment amount {float(fields['amount']):g} does not match order total {order.total:g}"
            )
        with self._lock(order.id):
            existing = self._indexed_payment(order.id)
            if existing is not None:
                if existing.status == PaymentStatus.PENDING:
                    # Nothing was sent to the gateway yet; keep a single open payment
                    if fields["payment_method"] != existing.payment_method:
                        existing = self.payment_store.update(
                            existing.id, {"payment_method": fields["payment_method"]}
                        )
                    logger.info("payment.reused", payment_id=existing.id, order_id=order.id)
                    return existing
                if existing.status in (PaymentStatus.PROCESSING, PaymentStatus.COMPLETED):
                    raise ConflictError(existing.id, existing.status.value, PaymentStatus.PENDING.value)
            return self.payment_store.create({
                "order_id": order.id,
                "amount": order.total,
                "payment_method": fields["payment_method"],
            })

    def initialize_payment(self, order_id: str, payment_id: Optional[str] = None,
                           payment_method: Optional[PaymentMethod] = None,
                           expected_total: Optional[float] = None) -> Payment:
        """Open (or re-open) the PayDunya invoice for a payment.

        A cancelled or failed payment is reused: it goes back to ``pending``
        and its attempt counter is bumped before the new invoice is created.
        """
        order = self.order_service.get_order(order_id)
        if expected_total is not None and abs(expected_total - order.total) > 0.005:
            raise ValidationError(
                f"Order total {expected_total:g} does not match stored total {order.total:g}"
            )

        with self._lock(order.id):
            if payment_id:
                payment = self.payment_store.get(payment_id)
            else:
                payment = self.payment_store.get_by_order_id(order.id)
            if payment.order_id != order.id:
                raise ValidationError("Payment does not belong to this order")

            if payment.status == PaymentStatus.COMPLETED:
                check_payment_transition(payment.status, PaymentStatus.PROCESSING)
            self._refuse_if_paid(order.id, payment.id, PaymentStatus.PROCESSING)

            changes = {"attempts": payment.attempts + 1}
            if payment_method is not None:
                changes["payment_method"] = payment_method
            if is_payment_terminal(payment.status):
                changes.update(
                    status=PaymentStatus.PENDING,
                    error_message=None,
                    gateway_token=None,
                    gateway_invoice_url=None,
                    transaction_id=None,
                )
                logger.info("payment.retry", payment_id=payment.id, order_id=order.id,
                            previous_status=payment.status.value, attempt=changes["attempts"])
            payment = self.payment_store.update(payment.id, changes)

            try:
                invoice = self.gateway.initialize(order, payment)
            except GatewayError as e:
                check_payment_transition(payment.status, PaymentStatus.FAILED)
                self.payment_store.update(payment.id, {
                    "status": PaymentStatus.FAILED,
                    "error_message": e.message,
                })
                logger.warning("payment.initialize_failed", payment_id=payment.id,
                               order_id=order.id, error=e.message)
                raise

            check_payment_transition(payment.status, PaymentStatus.PROCESSING)
            payment = self.payment_store.update(payment.id, {
                "status": PaymentStatus.PROCESSING,
                "gateway_token": invoice.token,
                "gateway_invoice_url": invoice.redirect_url,
                "transaction_id": invoice.transaction_id,
                "error_message": None,
            })
            logger.info("payment.initialized", payment_id=payment.id, order_id=order.id,
                        transaction_id=invoice.transaction_id, attempt=payment.attempts)
            return payment

    def update_payment(self, payment_id: str, changes: dict) -> Payment:
        """Generic patch, still bound by the payment state machine."""
        payment = self.payment_store.get(payment_id)
        if not changes:
            return payment
        with self._lock(payment.order_id):
            payment = self.payment_store.get(payment_id)
            target = changes.get("status")
            if target is not None:
                target = PaymentStatus(target)
                if target == PaymentStatus.COMPLETED:
                    raise ValidationError("Only the payment gateway can complete a payment")
                if target == payment.status:
                    changes = {k: v for k, v in changes.items() if k != "status"}
                elif is_payment_terminal(payment.status) and is_payment_terminal(target):
                    raise ConflictError(payment.id, payment.status.value, target.value)
                else:
                    check_payment_transition(payment.status, target)
            if "payment_method" in changes and payment.status == PaymentStatus.COMPLETED:
                raise ValidationError("Cannot change the method of a completed payment")
            if not changes:
                return payment
            self._refuse_if_paid(payment.order_id, payment.id, target or payment.status)
            return self.payment_store.update(payment_id, changes)

    # ------------------------------------------------------------------
    # Coming back from the gateway
    # ------------------------------------------------------------------

    def _apply_gateway_status(self, payment: Payment, target: PaymentStatus, source: str) -> CallbackAck:
        if payment.status == target:
            logger.info("payment.duplicate_status", payment_id=payment.id,
                        status=target.value, source=source)
            return CallbackAck(applied=False, detail="Already recorded", order_id=payment.order_id,
                               payment_status=payment.status)
        if is_payment_terminal(payment.status):
            logger.warning("payment.conflict", payment_id=payment.id, stored=payment.status.value,
                           incoming=target.value, source=source)
            raise ConflictError(payment.id, payment.status.value, target.value)
        check_payment_transition(payment.status, target)

        changes = {"status": target}
        if target == PaymentStatus.COMPLETED:
            changes.update(paid_at=utcnow(), error_message=None)
        else:
            changes["error_message"] = GATEWAY_MESSAGES[target]
        payment = self.payment_store.update(payment.id, changes)
        logger.info("payment.finalized", payment_id=payment.id, order_id=payment.order_id,
                    status=target.value, source=source)

        if target == PaymentStatus.COMPLETED:
            self.fulfillment.confirm_paid(payment.order_id)
        return CallbackAck(applied=True, detail=f"Payment {target.value}", order_id=payment.order_id,
                           payment_status=payment.status)

    def _payment_for_callback(self, callback: GatewayCallback) -> Payment:
        """The payment the invoice was opened for, falling back to the order's latest."""
        if not callback.payment_id:
            return self.payment_store.get_by_order_id(callback.order_id)
        payment = self.payment_store.get(callback.payment_id)
        if payment.order_id != callback.order_id:
            raise ValidationError("Payment does not belong to this order")
        return payment

    def handle_callback(self, callback: GatewayCallback) -> CallbackAck:
        """Apply a PayDunya callback.

        Raises ``ConflictError`` when a different terminal status is already
        stored; an identical one is a no-op.
        """
        with self._lock(callback.order_id):
            payment = self._payment_for_callback(callback)
            if callback.token and payment.gateway_token and callback.token != payment.gateway_token:
                logger.warning("callback.token_mismatch", order_id=callback.order_id,
                               payment_id=payment.id)
                return CallbackAck(applied=False, detail="Token does not match the current invoice",
                                   order_id=callback.order_id, payment_status=payment.status)

            target = GATEWAY_STATUSES.get(callback.status or "")
            if target is None:
                logger.info("callback.ignored", order_id=callback.order_id, status=callback.status)
                return CallbackAck(applied=False, detail=f"Status '{callback.status}' ignored",
                                   order_id=callback.order_id, payment_status=payment.status)
            return self._apply_gateway_status(payment, target, "callback")

    def cancel_return(self, order_id: str) -> Payment:
        """Customer came back through the cancel URL."""
        self.order_service.get_order(order_id)
        with self._lock(order_id):
            payment = self.payment_store.get_by_order_id(order_id)
            if is_payment_terminal(payment.status):
                logger.info("return.cancel_ignored", order_id=order_id, payment_id=payment.id,
                            status=payment.status.value)
                return payment
            check_payment_transition(payment.status, PaymentStatus.CANCELLED)
            payment = self.payment_store.update(payment.id, {
                "status": PaymentStatus.CANCELLED,
                "error_message": CANCELLED_BY_USER,
            })
            logger.info("payment.cancelled", payment_id=payment.id, order_id=order_id)
            return payment

    def _reconcile(self, order_id: str) -> Payment:
        payment = self.payment_store.get_by_order_id(order_id)
        if payment.status != PaymentStatus.PROCESSING or not payment.gateway_token:
            return payment
        try:
            remote_status = self.gateway.confirm(payment.gateway_token)
        except GatewayError as e:
            logger.warning("payment.confirm_failed", payment_id=payment.id, error=e.message)
            return payment
        target = GATEWAY_STATUSES.get(remote_status)
        if target is None:
            return payment
        self._apply_gateway_status(payment, target, "confirm")
        return self.payment_store.get(payment.id)

    def success_return(self, order_id: str) -> ReturnOutcome:
        """Customer came back through the success URL.

        Arrival alone proves nothing; success is reported only when the
        stored payment is ``completed`` after checking with PayDunya.
        """
        self.order_service.get_order(order_id)
        with self._lock(order_id):
            payment = self._reconcile(order_id)
        confirmed = payment.status == PaymentStatus.COMPLETED
        if not confirmed:
            logger.info("return.success_unconfirmed", order_id=order_id, payment_id=payment.id,
                        status=payment.status.value)
        return ReturnOutcome(confirmed=confirmed, payment=payment)

    def refresh_status(self, order_id: str) -> Payment:
        with self._lock(order_id):
            return self._reconcile(order_id)
