"""Order lifecycle and delivery confirmation.

Status graph::

    Pending -> Processing -> Shipped -> Delivered
                    \\-> Cancelled / Refunded / Return Requested / Returned & Refunded

``Delivered`` is only reachable through ``verify_delivery_otp``. Moving an
order to ``Shipped`` always issues a fresh code; leaving ``Shipped`` by any
route clears it. Every operation validates before it mutates, commits, and
only then notifies the owner.
"""
from typing import Any, Dict, List, Mapping, Optional

from ..app.errors import (NotFoundError, OtpAttemptsExceeded, StateConflictError,
                          ValidationError)
from ..data.models import Order, OrderStatus
from ..data.stores import CartStore, OrderStore, ProductStore, UserStore
from ..utils.logger import get_logger
from . import emails
from .cart_normalizer import locate_cart_items, normalize_items, product_resolver
from .notifier import Notifier
from .otp import OtpGenerator

logger = get_logger(__name__)

CREATABLE_STATUSES = (OrderStatus.pending, OrderStatus.processing)
SORTABLE_FIELDS = ("orderDate", "totalAmount", "status", "id")
TOTAL_TOLERANCE = 0.01


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


class OrderLifecycleManager:
    def __init__(self, db, notifier: Notifier, otp: OtpGenerator, max_otp_attempts: int = 5):
        self.orders = OrderStore(db)
        self.users = UserStore(db)
        self.products = ProductStore(db)
        self.carts = CartStore(db)
        self.notifier = notifier
        self.otp = otp
        self.max_otp_attempts = max_otp_attempts

    # ------------------------------------------------------------------ helpers

    def get_order(self, order_id) -> Order:
        order = self.orders.get(order_id)
        if order is None:
            raise NotFoundError("Order not found", code="OrderNotFound")
        return order

    def _owner(self, order: Order):
        return self.users.get(order.user_id)

    def _notify(self, notification):
        # the mutation is already committed; delivery problems are recorded, not raised
        self.notifier.notify(notification)

    def _validate_lines(self, items) -> List[Dict[str, Any]]:
        if not isinstance(items, list) or not items:
            raise ValidationError("Missing required fields", code="MissingFields")
        lines = []
        for raw in items:
            if not isinstance(raw, Mapping):
                raise ValidationError("Each item must be an object", code="InvalidItem")
            product_id = raw.get("productId")
            if not product_id:
                raise ValidationError("Each item needs a productId", code="InvalidItem")
            quantity = raw.get("quantity")
            if not isinstance(quantity, int) or isinstance(quantity, bool) or quantity < 1:
                raise ValidationError("Item quantity must be a whole number of at least 1", code="InvalidQuantity")
            price = raw.get("price")
            if not _is_number(price) or price < 0:
                raise ValidationError("Item price must be a non-negative number", code="InvalidPrice")
            title = raw.get("title")
            if not title:
                product = self.products.resolve(product_id)
                if product is None:
                    raise ValidationError("Item title is required", code="InvalidItem")
                title = product.title
            lines.append({
                "productId": str(product_id),
                "title": title,
                "quantity": quantity,
                "price": float(price),
            })
        return lines

    @staticmethod
    def _line_total(lines) -> float:
        return round(sum(line["price"] * line["quantity"] for line in lines), 2)

    # --------------------------------------------------------------- operations

    def create_order(self, user_id, items, shipping_address, total_amount=None, status=None) -> Order:
        if not user_id or not isinstance(shipping_address, str) or not shipping_address.strip():
            raise ValidationError("Missing required fields", code="MissingFields")
        lines = self._validate_lines(items)
        total = self._line_total(lines)
        if total_amount is not None:
            if not _is_number(total_amount) or abs(float(total_amount) - total) > TOTAL_TOLERANCE:
                raise ValidationError(
                    f"totalAmount does not match the sum of the items ({total:.2f})", code="TotalMismatch")

        initial = OrderStatus.pending
        if status is not None:
            initial = OrderStatus.parse(status)
            if initial not in CREATABLE_STATUSES:
                raise ValidationError("Orders can only be created as Pending or Processing", code="InvalidStatus")

        user = self.users.get(user_id)
        if user is None:
            raise NotFoundError("User not found", code="UserNotFound")

        order = Order(
            user_id=user.id,
            items=lines,
            total_amount=total,
            status=initial,
            shipping_address=shipping_address.strip(),
            otp_verified=False,
            otp_attempts=0,
        )
        self.orders.save(order)
        logger.info("Order %s created for user %s (%d items, total %.2f)", order.id, user.id, len(lines), total)
        self._notify(emails.order_confirmation(user, order))
        return order

    def checkout(self, user_id, shipping_address) -> Order:
        """Turn the caller's cart into an order and remove the cart."""
        if not isinstance(shipping_address, str) or not shipping_address.strip():
            raise ValidationError("Shipping address is required", code="MissingFields")
        user = self.users.get(user_id)
        if user is None:
            raise NotFoundError("User not found", code="UserNotFound")

        cart = self.carts.get_for_user(user.id)
        source = locate_cart_items(cart.to_document() if cart else None, user.attributes or {})
        lines = normalize_items(source.items, product_resolver(self.products))
        if not lines:
            raise ValidationError("Cart is empty", code="EmptyCart")
        if any(line["productId"] is None or line["price"] is None for line in lines):
            raise ValidationError("Some cart items can no longer be priced. Please refresh your cart.",
                                  code="UnpricedItem")

        order_lines = [{"productId": line["productId"], "title": line["title"],
                        "quantity": line["quantity"], "price": line["price"]} for line in lines]
        total = self._line_total(order_lines)
        order = Order(
            user_id=user.id,
            items=order_lines,
            total_amount=total,
            status=OrderStatus.pending,
            shipping_address=shipping_address.strip(),
            otp_verified=False,
            otp_attempts=0,
        )
        self.orders.add(order)
        if cart is not None:
            self.carts.delete(cart)
        if source.shape and source.shape.startswith("user."):
            attributes = dict(user.attributes or {})
            attributes.pop(source.shape.split(".")[1], None)
            user.attributes = attributes
        self.orders.commit()
        logger.info("Checkout for user %s produced order %s (cart shape %s)", user.id, order.id, source.shape)
        self._notify(emails.order_confirmation(user, order))
        return order

    def update_status(self, order_id, status) -> Order:
        new_status = OrderStatus.parse(status)
        if new_status is None:
            raise ValidationError(f"Unknown status: {status}", code="InvalidStatus")
        if new_status is OrderStatus.delivered:
            raise StateConflictError(
                "Direct delivery is not allowed. Use OTP verification to mark the order as Delivered.",
                code="UseOtpVerification")
        order = self.get_order(order_id)

        if new_status is OrderStatus.shipped:
            issued = self.otp.issue()
            order.status = OrderStatus.shipped
            order.delivery_otp = issued.hashed
            order.otp_expires_at = issued.expires_at
            order.otp_attempts = 0
            order.otp_verified = False
            self.orders.commit()
            logger.info("Order %s shipped, delivery OTP issued (expires %s)", order.id, issued.expires_at)
            ttl_minutes = int(self.otp.ttl.total_seconds() // 60)
            self._notify(emails.delivery_otp(self._owner(order), order, issued.code, ttl_minutes))
            return order

        order.status = new_status
        order.clear_otp()
        self.orders.commit()
        logger.info("Order %s moved to %s", order.id, new_status.value)
        self._notify(emails.status_update(self._owner(order), order))
        return order

    def verify_delivery_otp(self, order_id, code) -> Order:
        if code is None or not str(code).strip():
            raise ValidationError("OTP is required", code="MissingOtp")
        order = self.get_order(order_id)
        if order.status is not OrderStatus.shipped:
            raise StateConflictError("OTP can only be verified for Shipped orders.", code="NotShippedState")
        if not order.delivery_otp or not order.otp_expires_at:
            raise StateConflictError("No OTP generated", code="NoOtpIssued")
        if self.otp.is_expired(order.otp_expires_at):
            raise StateConflictError("OTP expired", code="OtpExpired")
        if (order.otp_attempts or 0) >= self.max_otp_attempts:
            raise OtpAttemptsExceeded("Too many failed attempts. Ask for a new OTP.")
        if not self.otp.matches(code, order.delivery_otp):
            order.otp_attempts = (order.otp_attempts or 0) + 1
            self.orders.commit()
            logger.warning("Wrong delivery OTP for order %s (attempt %d)", order.id, order.otp_attempts)
            raise StateConflictError("Invalid OTP", code="OtpMismatch")

        order.status = OrderStatus.delivered
        order.otp_verified = True
        order.clear_otp()
        self.orders.commit()
        logger.info("Order %s delivered", order.id)
        self._notify(emails.delivered(self._owner(order), order))
        return order

    def cancel_item(self, order_id, product_id) -> Order:
        if not product_id:
            raise ValidationError("productId is required", code="MissingFields")
        order = self.get_order(order_id)
        items = list(order.items or [])
        index = next((i for i, item in enumerate(items) if str(item.get("productId")) == str(product_id)), None)
        if index is None:
            raise NotFoundError("Product not in order", code="ProductNotInOrder")

        removed = items.pop(index)
        remaining = round((order.total_amount or 0.0) - removed["price"] * removed["quantity"], 2)
        order.items = items
        if not items:
            order.total_amount = 0.0
            order.status = OrderStatus.cancelled
            order.clear_otp()
        else:
            order.total_amount = max(remaining, 0.0)
        self.orders.commit()
        logger.info("Removed %s from order %s, new total %.2f", product_id, order.id, order.total_amount)
        self._notify(emails.item_removed(self._owner(order), order, removed))
        return order

    def request_return(self, order_id) -> Order:
        order = self.get_order(order_id)
        order.status = OrderStatus.return_requested
        order.clear_otp()
        self.orders.commit()
        logger.info("Return requested for order %s", order.id)
        self._notify(emails.return_requested(self._owner(order), order))
        return order

    def get_status(self, order_id) -> str:
        return self.get_order(order_id).status.value

    def list_for_user(self, user_id) -> List[Dict[str, Any]]:
        orders = self.orders.list_for_user(user_id)
        product_ids = [item.get("productId") for o in orders for item in (o.items or [])]
        products = self.products.get_many(product_ids)
        formatted = []
        for order in orders:
            lines = []
            for item in order.items or []:
                product = products.get(item.get("productId"))
                lines.append({
                    "productId": item.get("productId"),
                    "title": product.title if product else item.get("title"),
                    "quantity": item.get("quantity"),
                    "price": item.get("price"),
                    "image": product.img if product else None,
                })
            formatted.append({
                "id": order.id,
                "date": order.order_date,
                "totalAmount": order.total_amount,
                "status": order.status.value,
                "items": lines,
            })
        return formatted

    def list_all(self, page=1, limit=10, sort_by="orderDate", sort_order="desc") -> Dict[str, Any]:
        page = max(self._as_int(page, 1), 1)
        limit = max(self._as_int(limit, 10), 1)
        sort_by = sort_by if sort_by in SORTABLE_FIELDS else "orderDate"
        sort_order = "asc" if str(sort_order or "desc").lower() == "asc" else "desc"
        rows, total = self.orders.list_page(page, limit, sort_by, sort_order)
        owners = {}
        documents = []
        for order in rows:
            if order.user_id not in owners:
                owners[order.user_id] = self.users.get(order.user_id)
            owner = owners[order.user_id]
            doc = order.to_document()
            doc["user"] = {"id": owner.id, "username": owner.username, "email": owner.email} if owner else None
            documents.append(doc)
        return {"orders": documents, "totalOrders": total}

    @staticmethod
    def _as_int(value, default: int) -> int:
        try:
            return int(value)
        except (TypeError, ValueError):
            return default
