"""Catalog, cart, review, address and payment payloads."""
from typing import Any, Dict, List, Optional

from pydantic import BaseModel

from .base import CamelModel


class ProductIn(CamelModel):
    title: Optional[str] = None
    category: Optional[str] = None
    sub_category: Optional[str] = None
    company: Optional[str] = None
    color: Optional[str] = None
    new_price: Optional[float] = None
    prev_price: Optional[float] = None
    img: Optional[str] = None
    sku: Optional[str] = None
    slug: Optional[str] = None
    product_number: Optional[str] = None

    def to_fields(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class CartItemIn(CamelModel):
    product_id: Optional[str] = None
    title: Optional[str] = None
    price: Optional[float] = None
    quantity_delta: Optional[int] = None
    img: Optional[str] = None


class CartAddRequest(CamelModel):
    items: List[CartItemIn] = []


class ReviewIn(CamelModel):
    review: Optional[str] = None
    rating: Optional[float] = None
    user_name: Optional[str] = None


class AddressIn(CamelModel):
    name: Optional[str] = None
    phone: Optional[str] = None
    address_line1: Optional[str] = None
    address_line2: Optional[str] = None
    city: Optional[str] = None
    pin_code: Optional[str] = None
    state: Optional[str] = None

    def to_fields(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "phone": self.phone,
            "addressLine1": self.address_line1,
            "addressLine2": self.address_line2,
            "city": self.city,
            "pinCode": self.pin_code,
            "state": self.state,
        }


class PaymentOrderRequest(CamelModel):
    amount_in_rupees: Optional[float] = None
    amount_in_paise: Optional[int] = None
    receipt_notes: Optional[Dict[str, Any]] = None


class PaymentVerification(BaseModel):
    # gateway callback names are snake_case already
    razorpay_order_id: Optional[str] = None
    razorpay_payment_id: Optional[str] = None
    razorpay_signature: Optional[str] = None
