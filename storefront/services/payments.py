"""Payment gateway client (Razorpay REST API)."""
import hashlib
import hmac
import time
from abc import ABC, abstractmethod
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Dict, Optional

import requests

from ..app.errors import UpstreamError, ValidationError
from ..utils.logger import get_logger

logger = get_logger(__name__)

RAZORPAY_ORDERS_URL = "https://api.razorpay.com/v1/orders"


def amount_to_paise(amount_in_rupees=None, amount_in_paise=None) -> int:
    """Minor currency units; an explicit paise amount wins."""
    if amount_in_paise is not None:
        try:
            value = int(Decimal(str(amount_in_paise)))
        except (InvalidOperation, ValueError):
            raise ValidationError("Invalid amountInPaise", code="InvalidAmount")
        if value <= 0:
            raise ValidationError("Invalid amountInPaise", code="InvalidAmount")
        return value
    try:
        rupees = Decimal(str(amount_in_rupees))
    except (InvalidOperation, ValueError):
        raise ValidationError("Invalid amountInRupees", code="InvalidAmount")
    if not rupees.is_finite() or rupees <= 0:
        raise ValidationError("Invalid amountInRupees", code="InvalidAmount")
    return int((rupees * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def signature_for(secret: str, order_id: str, payment_id: str) -> str:
    body = f"{order_id}|{payment_id}".encode("utf-8")
    return hmac.new((secret or "").encode("utf-8"), body, hashlib.sha256).hexdigest()


class PaymentGateway(ABC):
    @abstractmethod
    def create_order(self, amount_in_paise: int, notes: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        ...

    @abstractmethod
    def verify_signature(self, order_id: str, payment_id: str, signature: str) -> bool:
        ...


class RazorpayGateway(PaymentGateway):
    def __init__(self, key_id: Optional[str], key_secret: Optional[str], currency: str = "INR",
                 timeout: float = 15, session: Optional[requests.Session] = None):
        self.key_id = key_id
        self.key_secret = key_secret
        self.currency = currency
        self.timeout = timeout
        self.session = session or requests.Session()

    def create_order(self, amount_in_paise: int, notes: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        if not self.key_id or not self.key_secret:
            raise UpstreamError("Payment gateway is not configured", code="PaymentGatewayUnavailable")
        payload = {
            "amount": amount_in_paise,
            "currency": self.currency,
            "receipt": f"rcpt_{int(time.time() * 1000)}",
            "notes": dict({"purpose": "storefront checkout"}, **(notes or {})),
        }
        try:
            response = self.session.post(RAZORPAY_ORDERS_URL, json=payload,
                                         auth=(self.key_id, self.key_secret), timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except (requests.RequestException, ValueError) as e:
            logger.error("Create payment order failed: %s", e)
            raise UpstreamError("Failed to create order", code="PaymentGatewayError", detail=str(e)) from e
        return {"id": data.get("id"), "amount": data.get("amount"), "currency": data.get("currency")}

    def verify_signature(self, order_id: str, payment_id: str, signature: str) -> bool:
        if not order_id or not payment_id or not signature:
            raise ValidationError(
                "Missing required fields: razorpay_order_id, razorpay_payment_id, razorpay_signature",
                code="MissingFields")
        if not self.key_secret:
            raise UpstreamError("Payment gateway is not configured", code="PaymentGatewayUnavailable")
        expected = signature_for(self.key_secret, order_id, payment_id)
        return hmac.compare_digest(expected.encode("utf-8"), str(signature).encode("utf-8"))
