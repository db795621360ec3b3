from __future__ import annotations

import logging

import razorpay
import requests

from restopos.config import settings

logger = logging.getLogger(__name__)

_FAILURES = (
    razorpay.errors.BadRequestError,
    razorpay.errors.ServerError,
    razorpay.errors.GatewayError,
    requests.RequestException,
)


class GatewayError(Exception):
    pass


class RazorpayGateway:
    """Thin wrapper over the Razorpay client: orders and signature checks."""

    def __init__(self, key_id: str, key_secret: str, webhook_secret: str = "") -> None:
        self.key_id = key_id
        self.key_secret = key_secret
        self.webhook_secret = webhook_secret
        self._client = razorpay.Client(auth=(key_id, key_secret))

    def create_order(self, amount: int, currency: str, receipt: str, notes: dict) -> dict:
        if not self.key_id or not self.key_secret:
            raise GatewayError("Razorpay credentials missing")
        try:
            return self._client.order.create(
                {"amount": amount, "currency": currency, "receipt": receipt, "notes": notes}
            )
        except _FAILURES as exc:
            raise GatewayError(str(exc)) from exc

    def fetch_order(self, order_id: str) -> dict:
        try:
            return self._client.order.fetch(order_id)
        except _FAILURES as exc:
            raise GatewayError(str(exc)) from exc

    def verify_payment_signature(self, order_id: str, payment_id: str, signature: str) -> bool:
        # HMAC-SHA256 of "order_id|payment_id" with the key secret
        if not self.key_secret:
            return False
        try:
            self._client.utility.verify_payment_signature({
                "razorpay_order_id": order_id,
                "razorpay_payment_id": payment_id,
                "razorpay_signature": signature,
            })
        except razorpay.errors.SignatureVerificationError:
            return False
        return True

    def verify_webhook_signature(self, body: bytes, signature: str) -> bool:
        # HMAC-SHA256 of the raw request body with the webhook secret
        if not self.webhook_secret or not signature:
            return False
        try:
            self._client.utility.verify_webhook_signature(
                body.decode("utf-8"), signature, self.webhook_secret
            )
        except (razorpay.errors.SignatureVerificationError, UnicodeDecodeError):
            return False
        return True


_gateway: RazorpayGateway | None = None


def get_gateway() -> RazorpayGateway:
    global _gateway
    if _gateway is None:
        _gateway = RazorpayGateway(
            settings.RAZORPAY_KEY_ID,
            settings.RAZORPAY_KEY_SECRET,
            settings.RAZORPAY_WEBHOOK_SECRET,
        )
    return _gateway
