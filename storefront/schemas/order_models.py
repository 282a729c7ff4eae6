"""Order related pydantic models.

Item fields are loosely typed on purpose: the lifecycle manager owns the
business rules (quantity >= 1, non-negative price, matching total) and reports
them with its own error codes.
"""
from typing import List, Optional

from .base import CamelModel


class OrderItemIn(CamelModel):
    product_id: str
    title: Optional[str] = None
    quantity: int
    price: float


class OrderCreate(CamelModel):
    user_id: Optional[str] = None
    items: List[OrderItemIn]
    total_amount: Optional[float] = None
    status: Optional[str] = None
    shipping_address: str


class CheckoutRequest(CamelModel):
    shipping_address: Optional[str] = None
    address_index: Optional[int] = None


class StatusUpdate(CamelModel):
    status: str


class VerifyOtpRequest(CamelModel):
    user_otp: str


class CancelItemRequest(CamelModel):
    product_id: str
