import enum
import re
import secrets

from sqlalchemy import (JSON, Boolean, Column, DateTime, Enum, Float, ForeignKey,
                        Integer, String, Text)
from sqlalchemy.orm import relationship

from ..utils.clock import utcnow
from .database import Base

_REFERENCE_RE = re.compile(r"^[0-9a-f]{24}$")


def new_id() -> str:
    """24-character lowercase hex identifier."""
    return secrets.token_hex(12)


def is_reference(value) -> bool:
    return isinstance(value, str) and bool(_REFERENCE_RE.match(value.lower()))


class OrderStatus(str, enum.Enum):
    pending = "Pending"
    processing = "Processing"
    shipped = "Shipped"
    delivered = "Delivered"
    cancelled = "Cancelled"
    refunded = "Refunded"
    return_requested = "Return Requested"
    returned_refunded = "Returned & Refunded"

    @classmethod
    def parse(cls, value):
        """Return the member whose value matches ``value`` exactly, or None."""
        for member in cls:
            if member.value == value:
                return member
        return None


class UserRole(str, enum.Enum):
    user = "user"
    admin = "admin"


def _enum_values(enum_cls):
    return [m.value for m in enum_cls]


class User(Base):
    __tablename__ = "users"

    id = Column(String(24), primary_key=True, default=new_id)
    username = Column(String, unique=True, index=True, nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    password_hash = Column(String, nullable=False)
    role = Column(String, nullable=False, default=UserRole.user.value)
    # {otpHash, otpExpires, otpAttempts, verified, resetTokenUsed}
    reset_password = Column(JSON, nullable=True)
    # free-form document fields; older clients kept carts and recent searches here
    attributes = Column(JSON, nullable=False, default=dict)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    orders = relationship("Order", back_populates="user")

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.admin.value

    def to_document(self):
        doc = dict(self.attributes or {})
        doc.update({
            "id": self.id,
            "username": self.username,
            "email": self.email,
            "role": self.role,
            "createdAt": self.created_at,
        })
        return doc

    def to_public(self):
        return {
            "id": self.id,
            "username": self.username,
            "email": self.email,
            "role": self.role,
            "createdAt": self.created_at,
        }


class Product(Base):
    __tablename__ = "products"

    id = Column(String(24), primary_key=True, default=new_id)
    title = Column(String, index=True, nullable=False)
    category = Column(String, index=True, nullable=False)
    sub_category = Column(String, nullable=True)
    company = Column(String, nullable=True)
    color = Column(String, nullable=True)
    new_price = Column(Float, nullable=False)
    prev_price = Column(Float, nullable=True)
    img = Column(String, nullable=True)
    sku = Column(String, unique=True, index=True, nullable=True)
    slug = Column(String, unique=True, index=True, nullable=True)
    product_number = Column(String, unique=True, index=True, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    def to_document(self):
        return {
            "id": self.id,
            "title": self.title,
            "category": self.category,
            "subCategory": self.sub_category,
            "company": self.company,
            "color": self.color,
            "newPrice": self.new_price,
            "prevPrice": self.prev_price,
            "img": self.img,
            "sku": self.sku,
            "slug": self.slug,
            "productNumber": self.product_number,
        }


class Order(Base):
    __tablename__ = "orders"

    id = Column(String(24), primary_key=True, default=new_id)
    user_id = Column(String(24), ForeignKey("users.id"), index=True, nullable=False)
    # [{productId, title, quantity, price}]
    items = Column(JSON, nullable=False, default=list)
    total_amount = Column(Float, nullable=False, default=0.0)
    status = Column(Enum(OrderStatus, values_callable=_enum_values, native_enum=False, length=32),
                    nullable=False, default=OrderStatus.pending)
    order_date = Column(DateTime, index=True, nullable=False, default=utcnow)
    shipping_address = Column(Text, nullable=False)
    delivery_otp = Column(String, nullable=True)  # bcrypt hash, never the plaintext code
    otp_expires_at = Column(DateTime, nullable=True)
    otp_verified = Column(Boolean, nullable=False, default=False)
    otp_attempts = Column(Integer, nullable=False, default=0)
    order_number = Column(String, index=True, nullable=True)
    tracking_number = Column(String, index=True, nullable=True)
    estimated_delivery_date = Column(DateTime, nullable=True)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    user = relationship("User", back_populates="orders")

    def clear_otp(self):
        self.delivery_otp = None
        self.otp_expires_at = None

    def to_document(self):
        return {
            "id": self.id,
            "userId": self.user_id,
            "items": list(self.items or []),
            "totalAmount": self.total_amount,
            "status": self.status.value if self.status else None,
            "orderDate": self.order_date,
            "shippingAddress": self.shipping_address,
            "otpExpiresAt": self.otp_expires_at,
            "otpVerified": bool(self.otp_verified),
            "orderNumber": self.order_number,
            "trackingNumber": self.tracking_number,
            "estimatedDeliveryDate": self.estimated_delivery_date,
        }


class Cart(Base):
    __tablename__ = "carts"

    id = Column(String(24), primary_key=True, default=new_id)
    user_id = Column(String(24), ForeignKey("users.id"), unique=True, nullable=False)
    # [{productId, quantity, price, title, img}]
    items = Column(JSON, nullable=False, default=list)
    # imported documents may carry their lines under other keys (cart, products, ...)
    attributes = Column(JSON, nullable=False, default=dict)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    def to_document(self):
        doc = dict(self.attributes or {})
        doc.update({"id": self.id, "userId": self.user_id, "items": list(self.items or [])})
        return doc


class Review(Base):
    __tablename__ = "reviews"

    id = Column(String(24), primary_key=True, default=new_id)
    product_id = Column(String(24), ForeignKey("products.id"), unique=True, nullable=False)
    # [{userId, userName, review, rating, reviewDate}]
    reviews = Column(JSON, nullable=False, default=list)

    def to_document(self):
        return {"id": self.id, "productId": self.product_id, "reviews": list(self.reviews or [])}


class Wishlist(Base):
    __tablename__ = "wishlists"

    id = Column(String(24), primary_key=True, default=new_id)
    user_id = Column(String(24), ForeignKey("users.id"), unique=True, nullable=False)
    products = Column(JSON, nullable=False, default=list)

    def to_document(self):
        return {"id": self.id, "userId": self.user_id, "products": list(self.products or [])}


class AddressBook(Base):
    __tablename__ = "addresses"

    id = Column(String(24), primary_key=True, default=new_id)
    user_id = Column(String(24), ForeignKey("users.id"), unique=True, nullable=False)
    addresses = Column(JSON, nullable=False, default=list)

    def to_document(self):
        return {"id": self.id, "userId": self.user_id, "addresses": list(self.addresses or [])}
