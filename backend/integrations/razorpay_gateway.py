"""
Razorpay payment gateway adapter
"""
import hashlib
import hmac
import logging

import razorpay
import requests
from razorpay.errors import BadRequestError, GatewayError as RazorpayGatewayError, ServerError

from services.errors import GatewayError

logger = logging.getLogger(__name__)


class RazorpayGateway:
    def __init__(self, key_id: str, key_secret: str, timeout: float = 10.0, client=None):
        self.key_id = key_id
        self._secret = key_secret.encode()
        self.timeout = timeout
        self.client = client or razorpay.Client(auth=(key_id, key_secret))

    def create_order(self, amount: int, currency: str) -> dict:
        """Create a remote order. ``amount`` is already in the unit Razorpay expects."""
        try:
            order = self.client.order.create(
                data={"amount": amount, "currency": currency},
                timeout=self.timeout,
            )
        except (BadRequestError, ServerError, RazorpayGatewayError, requests.RequestException) as e:
            logger.error("Razorpay order creation failed: %s", e)
            raise GatewayError("Payment creation failed") from e

        logger.info("Razorpay order created: %s", order.get("id"))
        return order

    def verify_signature(self, order_id: str, payment_id: str, signature: str) -> bool:
        """
        Verify Razorpay payment signature.
        HMAC-SHA256 of ``order_id|payment_id`` keyed with the account secret.
        """
        body = f"{order_id}|{payment_id}"
        expected_signature = hmac.new(self._secret, body.encode(), hashlib.sha256).hexdigest()
        return hmac.compare_digest(expected_signature, signature or "")
