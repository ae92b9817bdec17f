"""
Razorpay REST client.

Only the two calls the marketplace needs: creating an order and checking the
checkout signature returned to the browser.
"""

import hashlib
import hmac
import logging
from typing import Any, Dict, Optional

import requests

from config import Settings

logger = logging.getLogger(__name__)

RAZORPAY_API_URL = "https://api.razorpay.com/v1"


class GatewayError(Exception):
    pass


class RazorpayGateway:
    def __init__(self, key_id: str, key_secret: str, base_url: str = RAZORPAY_API_URL, timeout: float = 10.0):
        self.key_id = key_id
        self.key_secret = key_secret
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def create_order(self, data: Dict[str, Any]) -> Dict[str, Any]:
        try:
            response = requests.post(
                f"{self.base_url}/orders",
                json=data,
                auth=(self.key_id, self.key_secret),
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise GatewayError(f"Razorpay unreachable: {exc}") from exc
        if response.status_code != 200:
            raise GatewayError(f"Razorpay order creation failed ({response.status_code}): {response.text[:200]}")
        return response.json()

    def verify_signature(self, order_id: str, payment_id: str, signature: str) -> bool:
        expected = hmac.new(
            self.key_secret.encode(),
            f"{order_id}|{payment_id}".encode(),
            hashlib.sha256,
        ).hexdigest()
        return hmac.compare_digest(expected.encode(), signature.encode())


def build_gateway(settings: Settings) -> Optional[RazorpayGateway]:
    if not settings.razorpay_key_id or not settings.razorpay_key_secret:
        logger.warning("Razorpay credentials missing; payments disabled")
        return None
    return RazorpayGateway(settings.razorpay_key_id, settings.razorpay_key_secret)
