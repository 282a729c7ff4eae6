"""Cart agent: show the caller's cart, remove a line, point to checkout."""
from ..app.errors import ValidationError
from ..services.cart_normalizer import render_cart_text
from ..services.cart_service import CartService
from .base_agent import BaseAgent, ChatContext

LOGIN_PROMPT = "To view your cart please log in to your account on our website."


def _public_lines(summary):
    return [{
        "idx": line["index"],
        "id": line["productId"],
        "title": line["title"],
        "price": line["price"],
        "qty": line["quantity"],
        "image": line["image"],
        "lineTotal": line["lineTotal"],
    } for line in summary["items"]]


class CartAgent(BaseAgent):
    name = "cart"

    def __init__(self, db):
        self.db = db

    def handle(self, ctx: ChatContext):
        intent = ctx.classification.intent
        if not ctx.user_id:
            # identity first: no lookup of any kind for anonymous callers
            return self._clarify(intent, LOGIN_PROMPT)
        service = CartService(self.db)
        if intent == "remove_item":
            return self._remove(service, ctx)
        if intent == "checkout":
            return self._checkout(service, ctx)
        return self._show(service, ctx)

    def _show(self, service: CartService, ctx: ChatContext):
        summary = service.view(ctx.user_id)
        return self._ok("cart", render_cart_text(summary), cart=_public_lines(summary),
                        subtotal=summary["subtotal"])

    def _remove(self, service: CartService, ctx: ChatContext):
        index = ctx.classification.index
        if index is None:
            return self._clarify("remove_item", 'Which item should I remove? Reply "remove <index>", e.g. "remove 2".')
        try:
            removed, summary = service.remove_line(ctx.user_id, index)
        except ValidationError as e:
            return self._clarify("remove_item", f"{e.message} Reply \"my cart\" to see the numbered list.")
        text = f"Removed {removed['title']} from your cart.\n\n{render_cart_text(summary)}"
        return self._ok("remove_item", text, cart=_public_lines(summary), subtotal=summary["subtotal"])

    def _checkout(self, service: CartService, ctx: ChatContext):
        summary = service.view(ctx.user_id)
        if not summary["items"]:
            return self._clarify("checkout", render_cart_text(summary))
        text = (f"You have {len(summary['items'])} item(s) in your cart, subtotal ${summary['subtotal']:.2f}. "
                "To complete your purchase, open the checkout page, confirm your shipping address "
                "and choose a payment method.")
        return self._ok("checkout", text, cart=_public_lines(summary), subtotal=summary["subtotal"])
