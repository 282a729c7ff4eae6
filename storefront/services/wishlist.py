"""Wishlists: a set of product ids per user."""
from typing import Any, Dict, List

from ..app.errors import NotFoundError, StateConflictError
from ..data.models import Wishlist
from ..data.stores import ProductStore, WishlistStore


class WishlistService:
    def __init__(self, db):
        self.wishlists = WishlistStore(db)
        self.products = ProductStore(db)

    def _populate(self, wishlist) -> List[Dict[str, Any]]:
        ids = list(wishlist.products or []) if wishlist else []
        found = self.products.get_many(ids)
        populated = []
        for product_id in ids:
            product = found.get(product_id)
            if product is None:
                continue
            populated.append({
                "id": product.id,
                "title": product.title,
                "img": product.img,
                "newPrice": product.new_price,
                "prevPrice": product.prev_price,
                "category": product.category,
            })
        return populated

    def get_items(self, user_id) -> List[Dict[str, Any]]:
        return self._populate(self.wishlists.get_for_user(user_id))

    def add(self, user_id, product_id):
        """Returns ``(products, created)``."""
        if self.products.get(product_id) is None:
            raise NotFoundError("Product not found for the given ID", code="ProductNotFound")
        wishlist = self.wishlists.get_for_user(user_id)
        if wishlist is None:
            wishlist = Wishlist(user_id=user_id, products=[product_id])
            self.wishlists.save(wishlist)
            return self._populate(wishlist), True
        if product_id in (wishlist.products or []):
            raise StateConflictError("Product already exists in the wishlist!", code="AlreadyInWishlist")
        wishlist.products = list(wishlist.products or []) + [product_id]
        self.wishlists.commit()
        return self._populate(wishlist), False

    def remove(self, user_id, product_id) -> List[Dict[str, Any]]:
        wishlist = self.wishlists.get_for_user(user_id)
        if wishlist is None:
            raise NotFoundError("Wishlist not found for this user.", code="WishlistNotFound")
        remaining = [p for p in (wishlist.products or []) if p != product_id]
        if len(remaining) == len(wishlist.products or []):
            raise NotFoundError("Product not found in wishlist.", code="NotInWishlist")
        wishlist.products = remaining
        self.wishlists.commit()
        return self._populate(wishlist)
