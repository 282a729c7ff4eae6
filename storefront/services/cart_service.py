"""Cart operations with quantity-delta semantics.

A stored cart never holds a line with quantity below 1 and is deleted as
soon as its last line goes.
"""
from typing import Any, Dict, List, Optional, Tuple

from ..app.errors import NotFoundError, ValidationError
from ..data.models import Cart
from ..data.stores import CartStore, ProductStore, UserStore
from ..utils.logger import get_logger
from .cart_normalizer import UNKNOWN_TITLE, locate_cart_items, normalize_items, product_resolver, summarize

logger = get_logger(__name__)


def _stored_line(item: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "productId": item["productId"],
        "quantity": item["quantity"],
        "price": item["price"],
        # unresolved lines keep no title so a later read retries the lookup
        "title": None if item["title"] == UNKNOWN_TITLE else item["title"],
        "img": item.get("image") if "image" in item else item.get("img"),
    }


class CartService:
    def __init__(self, db):
        self.carts = CartStore(db)
        self.users = UserStore(db)
        self.products = ProductStore(db)

    def _require_cart(self, user_id) -> Cart:
        cart = self.carts.get_for_user(user_id)
        if cart is None:
            raise NotFoundError("Cart not found", code="CartNotFound")
        return cart

    def _store_items(self, cart: Cart, items) -> Optional[Cart]:
        """Persist ``items`` on ``cart``; an empty list deletes the cart."""
        if not items:
            self.carts.delete(cart)
            self.carts.commit()
            return None
        cart.items = items
        self.carts.commit()
        return cart

    @staticmethod
    def _checked_line(line) -> Dict[str, Any]:
        product_id, title, price = line.get("productId"), line.get("title"), line.get("price")
        quantity_delta = line.get("quantityDelta")
        if not product_id or not title:
            raise ValidationError("Missing required fields for cart operation.", code="MissingFields")
        if isinstance(price, bool) or not isinstance(price, (int, float)) or price < 0:
            raise ValidationError("price must be a non-negative number", code="InvalidPrice")
        if isinstance(quantity_delta, bool) or not isinstance(quantity_delta, int):
            raise ValidationError("quantityDelta must be a whole number", code="InvalidQuantity")
        return {"productId": str(product_id), "title": title, "price": float(price),
                "quantityDelta": quantity_delta, "img": line.get("img")}

    def add_item(self, user_id, product_id, title, price, quantity_delta, img=None) -> Tuple[Optional[Cart], bool]:
        """Apply ``quantity_delta`` to one product line. Returns ``(cart, created)``."""
        return self.add_items(user_id, [{"productId": product_id, "title": title, "price": price,
                                         "quantityDelta": quantity_delta, "img": img}])

    def add_items(self, user_id, lines: List[Dict[str, Any]]) -> Tuple[Optional[Cart], bool]:
        """Apply several quantity deltas in one write. Returns ``(cart, created)``.

        Every line is checked before anything is stored, so one bad line
        leaves the cart exactly as it was.
        """
        if not user_id or not lines:
            raise ValidationError("Missing required fields for cart operation.", code="MissingFields")
        checked = [self._checked_line(line) for line in lines]

        cart = self.carts.get_for_user(user_id)
        items = [dict(i) for i in (cart.items or [])] if cart is not None else []
        for line in checked:
            product_id, quantity_delta = line["productId"], line["quantityDelta"]
            index = next((i for i, item in enumerate(items) if str(item.get("productId")) == product_id), None)
            if index is not None:
                items[index]["quantity"] = int(items[index].get("quantity") or 0) + quantity_delta
                if items[index]["quantity"] <= 0:
                    items.pop(index)
            elif quantity_delta > 0:
                items.append({
                    "productId": product_id,
                    "quantity": quantity_delta,
                    "price": line["price"],
                    "title": line["title"],
                    "img": line["img"],
                })
            elif cart is None and not items:
                raise NotFoundError("Cart not found for user, cannot decrease quantity.", code="CartNotFound")

        if cart is None:
            if not items:
                return None, False
            cart = Cart(user_id=user_id, items=items, attributes={})
            self.carts.save(cart)
            logger.info("Cart created for user %s", user_id)
            return cart, True
        return self._store_items(cart, items), False

    def remove_item(self, user_id, product_id) -> Optional[Cart]:
        cart = self._require_cart(user_id)
        items = [i for i in (cart.items or []) if str(i.get("productId")) != str(product_id)]
        return self._store_items(cart, items)

    def get_cart(self, user_id) -> Dict[str, Any]:
        cart = self.carts.get_for_user(user_id)
        if cart is None:
            return {"userId": user_id, "items": []}
        return cart.to_document()

    def delete_cart(self, user_id) -> Dict[str, Any]:
        cart = self._require_cart(user_id)
        doc = cart.to_document()
        self.carts.delete(cart)
        self.carts.commit()
        return doc

    # -------------------------------------------------------- normalized views

    def view(self, user_id) -> Dict[str, Any]:
        """Normalized cart for display, whichever shape it is stored in."""
        cart = self.carts.get_for_user(user_id)
        user = self.users.get(user_id)
        source = locate_cart_items(cart.to_document() if cart else None,
                                   user.to_document() if user else None)
        items = normalize_items(source.items, product_resolver(self.products))
        summary = summarize(items)
        summary["source"] = source.shape
        return summary

    def remove_line(self, user_id, index: int) -> Tuple[Dict[str, Any], Dict[str, Any]]:
        """Remove the ``index``-th (1-based) normalized line. Returns ``(removed, summary)``."""
        cart = self.carts.get_for_user(user_id)
        user = self.users.get(user_id)
        source = locate_cart_items(cart.to_document() if cart else None,
                                   user.to_document() if user else None)
        items = normalize_items(source.items, product_resolver(self.products))
        if not 1 <= index <= len(items):
            raise ValidationError(f"There is no item at position {index}.", code="InvalidIndex")
        removed = items.pop(index - 1)

        if source.shape and source.shape.startswith("user.") and user is not None:
            # rewrite the legacy cart into the carts table
            attributes = dict(user.attributes or {})
            attributes.pop(source.shape.split(".")[1], None)
            user.attributes = attributes
            stored = [_stored_line(i) for i in items]
            if cart is not None:
                cart.attributes = {}
                self._store_items(cart, stored)
            else:
                if stored:
                    self.carts.add(Cart(user_id=user_id, items=stored, attributes={}))
                self.carts.commit()
        elif cart is not None:
            # other legacy containers on the cart row are folded into ``items``
            cart.attributes = {}
            self._store_items(cart, [_stored_line(i) for i in items])
        return removed, summarize(items)
