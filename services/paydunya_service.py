import requests
import os
import uuid
from typing import Optional

import structlog

from schemas import GatewayCallback, GatewayInvoice, Order, Payment, PaymentMethod
from errors import GatewayError, ValidationError

logger = structlog.get_logger(__name__)

# PayDunya channel names used to preselect the wallet on the hosted page
PAYMENT_CHANNELS = {
    PaymentMethod.WAVE: "wave-senegal",
    PaymentMethod.ORANGE_MONEY: "orange-money-senegal",
}


class PaydunyaService:
    """Client for the PayDunya checkout-invoice API."""

    LIVE_URL = "https://app.paydunya.com/api/v1"
    SANDBOX_URL = "https://app.paydunya.com/sandbox-api/v1"

    def __init__(self, master_key: Optional[str] = None, private_key: Optional[str] = None,
                 token: Optional[str] = None, mode: Optional[str] = None,
                 timeout: Optional[float] = None, session: Optional[requests.Session] = None):
        self.master_key = master_key or os.getenv("PAYDUNYA_MASTER_KEY")
        self.private_key = private_key or os.getenv("PAYDUNYA_PRIVATE_KEY")
        self.token = token or os.getenv("PAYDUNYA_TOKEN")
        self.mode = (mode or os.getenv("PAYDUNYA_MODE", "test")).lower()
        self.timeout = timeout or float(os.getenv("PAYDUNYA_TIMEOUT", "15"))
        self.store_name = os.getenv("PAYDUNYA_STORE_NAME", "Chicken Master")
        # Where the customer lands after the hosted page, and where PayDunya posts callbacks
        self.public_base_url = os.getenv("PUBLIC_BASE_URL", "http://localhost:8080").rstrip("/")
        self.api_base_url = os.getenv("API_BASE_URL", "http://localhost:8000").rstrip("/")
        self.base_url = self.LIVE_URL if self.mode == "live" else self.SANDBOX_URL
        self.session = session or requests.Session()

        if not self.is_configured:
            logger.warning("paydunya.not_configured")

    @property
    def is_configured(self) -> bool:
        return bool(self.master_key and self.private_key and self.token)

    def _get_headers(self):
        return {
            "PAYDUNYA-MASTER-KEY": self.master_key,
            "PAYDUNYA-PRIVATE-KEY": self.private_key,
            "PAYDUNYA-TOKEN": self.token,
            "Content-Type": "application/json"
        }

    def _build_invoice(self, order: Order, payment: Payment) -> dict:
        items = {
            f"item_{index}": {
                "name": item.product_name,
                "quantity": item.quantity,
                "unit_price": item.unit_price,
                "total_price": item.quantity * item.unit_price,
                "description": f"Boisson: {item.selected_drink}" if item.selected_drink else "",
            }
            for index, item in enumerate(order.items)
        }
        return_query = f"order_id={order.id}&payment_id={payment.id}"
        return {
            "invoice": {
                "items": items,
                "total_amount": payment.amount,
                "description": f"Commande {order.order_number}",
                "channels": [PAYMENT_CHANNELS[payment.payment_method]],
            },
            "store": {"name": self.store_name},
            "custom_data": {
                "order_id": order.id,
                "payment_id": payment.id,
                "order_number": order.order_number,
                "customer_name": order.customer_name,
                "customer_phone": order.customer_phone,
            },
            "actions": {
                "cancel_url": f"{self.public_base_url}/payment-cancel?{return_query}",
                "return_url": f"{self.public_base_url}/payment-success?{return_query}",
                "callback_url": f"{self.api_base_url}/api/paydunya/callback",
            },
        }

    def _send(self, method: str, path: str, **kwargs) -> dict:
        if not self.is_configured:
            raise GatewayError("PayDunya not configured")

        url = f"{self.base_url}{path}"
        try:
            response = self.session.request(
                method, url, headers=self._get_headers(), timeout=self.timeout, **kwargs
            )
        except requests.Timeout:
            logger.warning("paydunya.timeout", path=path, timeout=self.timeout)
            raise GatewayError("PayDunya request timed out")
        except requests.RequestException as e:
            logger.warning("paydunya.request_failed", path=path, error=str(e))
            raise GatewayError(f"PayDunya request failed: {e}")

        try:
            response_data = response.json()
        except ValueError:
            raise GatewayError(f"PayDunya returned an invalid response (HTTP {response.status_code})")

        if response.status_code != 200 or response_data.get("response_code") != "00":
            message = response_data.get("response_text") or "PayDunya rejected the request"
            logger.warning("paydunya.rejected", path=path, status_code=response.status_code,
                           response_code=response_data.get("response_code"))
            raise GatewayError(message)
        return response_data

    def initialize(self, order: Order, payment: Payment) -> GatewayInvoice:
        """Create the hosted checkout invoice the customer is redirected to."""
        response_data = self._send(
            "POST", "/checkout-invoice/create", json=self._build_invoice(order, payment)
        )
        if not response_data.get("token") or not response_data.get("response_text"):
            raise GatewayError("PayDunya response is missing the invoice token or URL")

        invoice = GatewayInvoice(
            redirect_url=response_data["response_text"],
            token=response_data["token"],
            transaction_id=f"txn_{uuid.uuid4().hex[:16]}",
        )
        logger.info("paydunya.invoice_created", order_id=order.id, payment_id=payment.id,
                    transaction_id=invoice.transaction_id)
        return invoice

    def confirm(self, token: str) -> str:
        """Current status PayDunya reports for an invoice token."""
        response_data = self._send("GET", f"/checkout-invoice/confirm/{token}")
        return (response_data.get("status") or "").lower()

    @staticmethod
    def parse_callback(payload) -> GatewayCallback:
        """Accept both the flat storefront shape and PayDunya's ``data`` envelope."""
        if not isinstance(payload, dict):
            raise ValidationError("Callback body must be a JSON object")
        data = payload.get("data") if isinstance(payload.get("data"), dict) else payload

        custom_data = data.get("custom_data") or {}
        if not isinstance(custom_data, dict):
            raise ValidationError("custom_data must be an object")
        order_id = custom_data.get("order_id")
        if not order_id:
            raise ValidationError("Order ID missing")

        token = data.get("token")
        if not token and isinstance(data.get("invoice"), dict):
            token = data["invoice"].get("token")

        status = data.get("status")
        return GatewayCallback(
            status=str(status).lower() if status is not None else None,
            token=token,
            order_id=str(order_id),
            payment_id=custom_data.get("payment_id"),
        )
