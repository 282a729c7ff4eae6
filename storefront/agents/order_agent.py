"""Order agent: track one order, pick from recent orders, summarize history.

Replies never include a full shipping address; only the last two
comma-separated segments are shown.
"""
from typing import Any, Dict, List, Optional

from ..data.models import Order
from ..data.stores import OrderStore
from ..utils.logger import get_logger
from ..utils.security import redact_address
from .base_agent import BaseAgent, ChatContext
from .general_info_agent import system_instruction

logger = get_logger(__name__)

TRACK_LIMIT = 10
RECENT_LIMIT = 5


def _date(value) -> str:
    return value.strftime("%m/%d/%Y") if value else "unknown"


def _money(value) -> str:
    return f"${value:.2f}" if isinstance(value, (int, float)) else "$unknown"


def _titles(order: Order, limit: Optional[int] = 3) -> str:
    titles = [i.get("title") or "Item" for i in (order.items or [])]
    if limit:
        titles = titles[:limit]
    return ", ".join(titles) or "No items"


def status_reply(order: Order, support_email: str = "support@myawesomeshop.com") -> str:
    """Deterministic status message with next-step guidance for the order's status."""
    label = order.status.value if order.status else "Unknown"
    status = label.lower()
    reply = f"Current order status: {label}."

    if "shipped" in status or "out for delivery" in status or "in transit" in status:
        eta = (f" Estimated delivery: {_date(order.estimated_delivery_date)}."
               if order.estimated_delivery_date else "")
        reply += (f" Your package is on the way.{eta} "
                  f"You can track it with tracking number {order.tracking_number or 'N/A'}.")
    elif "processing" in status or "confirmed" in status or "pending" in status:
        reply += " Your order is being processed. We'll notify you when it ships."
    elif "delivered" in status:
        reply += (" It shows delivered. If you didn't receive it, reply \"missing delivery\" "
                  f"or contact {support_email}.")
    elif "cancel" in status:
        reply += (" This order was cancelled. If you think that's a mistake, reply \"dispute\" "
                  f"or contact {support_email}.")
    elif "returned" in status:
        reply += (" The items have been returned. If you need more details about the refund, "
                  f"contact {support_email}.")
    elif "refund" in status:
        reply += (" This order has been refunded. If you have questions about the refund timing, "
                  f"contact {support_email}.")
    else:
        reply += f" For more details, contact {support_email} or reply with more questions."

    reply += (f"\n\nOrder summary: {_titles(order)} - Total: {_money(order.total_amount)}"
              f" - Delivery location: {redact_address(order.shipping_address)}")
    return reply


def order_choice(order: Order) -> Dict[str, Any]:
    return {
        "id": order.id,
        "orderNumber": order.order_number,
        "status": order.status.value if order.status else "unknown",
        "itemsSummary": _titles(order),
        "totalAmount": order.total_amount or 0,
        "orderedAt": _date(order.order_date),
    }


def recent_orders_text(orders: List[Order]) -> str:
    return "\n".join(
        f"- {_titles(o, limit=None)} - {o.status.value if o.status else 'status unknown'} - "
        f"{_money(o.total_amount)} - {_date(o.order_date)} - id: {o.id}"
        for o in orders
    )


class OrderAgent(BaseAgent):
    name = "order"

    def __init__(self, db, completion_client=None, shop_name: str = "MyAwesomeShop",
                 support_email: str = "support@myawesomeshop.com"):
        self.orders = OrderStore(db)
        self.client = completion_client
        self.shop_name = shop_name
        self.support_email = support_email

    def handle(self, ctx: ChatContext):
        if ctx.classification.intent == "recent_orders":
            return self.recent(ctx)
        return self.track(ctx)

    def _visible(self, order: Optional[Order], user_id: Optional[str]) -> Optional[Order]:
        # a signed-in caller only sees their own orders
        if order is not None and user_id and order.user_id != user_id:
            return None
        return order

    def track(self, ctx: ChatContext):
        intent = "track_order"
        token = ctx.classification.order_id
        if token:
            order = self._visible(self.orders.find_by_reference(token), ctx.user_id)
            if order is None:
                return self._clarify(intent, (
                    f"I couldn't find an order with ID/tracking \"{token}\". Please double-check the ID or, "
                    "if you're logged in, I can show your recent orders to select from."))
            return self._ok(intent, status_reply(order, self.support_email), orders=[order_choice(order)])

        if not ctx.user_id:
            return self._clarify(intent, (
                "Please provide your order ID (e.g., 'Order #12345ABC') or log in so I can show "
                "your recent orders to select from."))

        recent = self.orders.recent_for_user(ctx.user_id, TRACK_LIMIT)
        if not recent:
            return self._clarify(intent, (
                "I couldn't find any recent orders under your account. If you think this is a mistake, "
                f"please check your account page or contact {self.support_email}."))

        index = ctx.classification.index
        if index is not None:
            if 1 <= index <= len(recent):
                order = recent[index - 1]
                return self._ok(intent, status_reply(order, self.support_email), orders=[order_choice(order)])
            return self._clarify(intent, (
                f"I don't have an order at position {index}. I found {len(recent)} recent orders. "
                f"Please reply with the correct index (1-{len(recent)}) or an order id."))

        choices = [order_choice(o) for o in recent]
        listing = "\n".join(
            f"{n}. {c['itemsSummary']} - {c['status']} - {_money(c['totalAmount'])} - {c['orderedAt']} (id: {c['id']})"
            for n, c in enumerate(choices, start=1))
        return self._clarify("select_order", (
            "I found the following recent orders. Which one would you like me to track? "
            f"Reply with the index (e.g., '1') or the order id.\n\n{listing}"), orders=choices)

    def recent(self, ctx: ChatContext):
        intent = "recent_orders"
        if not ctx.user_id:
            return self._clarify(intent, "To view your orders, please log in to your account on our website.")
        orders = self.orders.recent_for_user(ctx.user_id, RECENT_LIMIT)
        if not orders:
            return self._clarify(intent, (
                "You don't seem to have any recent orders. If you think this is an error, "
                f"please contact {self.support_email}."))

        summary = recent_orders_text(orders)
        choices = [order_choice(o) for o in orders]
        if self.client is not None:
            prompt = (f"Relevant context (user recent orders, PII redacted):\n{summary}\n\n"
                      f"User's message: {ctx.message}\n\n"
                      "Please respond concisely, e.g., list the recent orders and next steps "
                      "(tracking, contact support) or ask clarifying questions.")
            try:
                text = self.client.complete(system_instruction(self.shop_name, self.support_email), prompt,
                                            temperature=0.12, max_tokens=400)
                if text:
                    return self._ok(intent, text, orders=choices)
            except Exception as e:
                logger.error("Recent orders formatting failed, using plain list: %s", e)
        return self._ok(intent, f"Here are your recent orders:\n\n{summary}", orders=choices)
