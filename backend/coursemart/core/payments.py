"""
Payment gateway integration for CourseMart.

Wraps the Razorpay client behind a small interface so routers depend on
``get_payment_gateway`` rather than on the SDK directly.
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Any, Optional
import logging

import razorpay
import requests

from .config import settings


logger = logging.getLogger(__name__)


class PaymentGatewayError(Exception):
    """The gateway rejected a request or could not be reached."""


class PaymentVerificationError(Exception):
    """A payment or webhook signature did not match."""


def to_minor_units(amount: float | Decimal) -> int:
    """Convert an amount in major currency units to the gateway's minor units (paise, cents)."""
    return int((Decimal(str(amount)) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class RazorpayGateway:
    """
    Thin wrapper over ``razorpay.Client``.
    """

    def __init__(self, key_id: str, key_secret: str, webhook_secret: str = ""):
        self.key_id = key_id
        self.webhook_secret = webhook_secret
        self.client = razorpay.Client(auth=(key_id, key_secret))

    def create_order(
        self,
        amount: int,
        currency: str,
        receipt: str,
        notes: Optional[Dict[str, str]] = None
    ) -> Dict[str, Any]:
        """
        Create a gateway order.

        Args:
            amount: Amount in minor units
            currency: ISO currency code
            receipt: Our reference for the order (the purchase id)
            notes: Free-form metadata echoed back in webhooks

        Returns:
            Dict[str, Any]: The order as returned by the gateway
        """
        try:
            return self.client.order.create(data={
                "amount": amount,
                "currency": currency,
                "receipt": receipt,
                "payment_capture": 1,
                "notes": notes or {},
            })
        except (
            razorpay.errors.BadRequestError,
            razorpay.errors.ServerError,
            razorpay.errors.GatewayError,
            requests.exceptions.RequestException,
        ) as e:
            logger.error(f"Razorpay error creating order for receipt {receipt}: {e}")
            raise PaymentGatewayError(str(e)) from e

    def verify_payment_signature(self, order_id: str, payment_id: str, signature: str) -> None:
        """Raise PaymentVerificationError unless the checkout signature is valid."""
        try:
            self.client.utility.verify_payment_signature({
                "razorpay_order_id": order_id,
                "razorpay_payment_id": payment_id,
                "razorpay_signature": signature,
            })
        except razorpay.errors.SignatureVerificationError as e:
            raise PaymentVerificationError("Invalid payment signature") from e

    def verify_webhook_signature(self, body: str, signature: str) -> None:
        """Raise PaymentVerificationError unless the webhook body was signed with our secret."""
        if not self.webhook_secret:
            raise PaymentVerificationError("Webhook secret is not configured")

        try:
            self.client.utility.verify_webhook_signature(body, signature, self.webhook_secret)
        except razorpay.errors.SignatureVerificationError as e:
            raise PaymentVerificationError("Invalid webhook signature") from e


_gateway: Optional[RazorpayGateway] = None


def get_payment_gateway() -> Optional[RazorpayGateway]:
    """
    Dependency returning the process-wide gateway client, or None when
    no credentials are configured.
    """
    global _gateway

    if not settings.payments_enabled:
        return None

    if _gateway is None:
        _gateway = RazorpayGateway(
            settings.RAZORPAY_KEY_ID,
            settings.RAZORPAY_KEY_SECRET,
            settings.RAZORPAY_WEBHOOK_SECRET
        )
    return _gateway
