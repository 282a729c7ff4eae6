"""Admin dashboard figures."""
from typing import Any, Dict, List

from ..data.stores import (CartStore, OrderStore, ProductStore, ReviewStore, UserStore,
                           WishlistStore)


def _chart(pairs) -> Dict[str, list]:
    pairs = list(pairs)
    return {"labels": [label for label, _ in pairs], "data": [value for _, value in pairs]}


class AnalyticsService:
    def __init__(self, db):
        self.orders = OrderStore(db)
        self.products = ProductStore(db)
        self.users = UserStore(db)
        self.carts = CartStore(db)
        self.wishlists = WishlistStore(db)
        self.reviews = ReviewStore(db)

    def monthly_sales(self) -> Dict[str, list]:
        return _chart((f"Month {month}", round(total, 2)) for month, total in self.orders.monthly_totals())

    def order_distribution(self) -> Dict[str, list]:
        return _chart(self.orders.status_counts())

    def category_sales(self) -> Dict[str, list]:
        return _chart(self.products.category_price_totals())

    def stats(self) -> Dict[str, Any]:
        return {
            "totalOrders": self.orders.count(),
            "totalProducts": self.products.count(),
            "totalUsers": self.users.count(),
            "totalRevenue": round(self.orders.revenue(), 2),
        }

    def users_activity(self) -> List[Dict[str, Any]]:
        product_titles = {}
        reviews_by_user: Dict[str, list] = {}
        for aggregate in self.reviews.list_all():
            if aggregate.product_id not in product_titles:
                product = self.products.get(aggregate.product_id)
                product_titles[aggregate.product_id] = product.title if product else "Unknown Product"
            for entry in aggregate.reviews or []:
                reviews_by_user.setdefault(entry.get("userId"), []).append({
                    "productTitle": product_titles[aggregate.product_id],
                    "rating": entry.get("rating"),
                    "text": entry.get("review"),
                    "createdAt": entry.get("reviewDate"),
                })

        activity = []
        for user in self.users.list_all():
            orders = self.orders.list_for_user(user.id)
            order_lines = [item for order in orders for item in (order.items or []) if item.get("productId")]
            images = self.products.get_many(item["productId"] for item in order_lines)
            purchased = [{
                "id": item["productId"],
                "title": item.get("title"),
                "img": images[item["productId"]].img if item["productId"] in images else "",
                "price": item.get("price"),
            } for item in order_lines]

            cart = self.carts.get_for_user(user.id)
            cart_products = [{
                "id": item.get("productId"),
                "title": item.get("title"),
                "img": item.get("img"),
                "price": item.get("price"),
            } for item in (cart.items if cart else []) if item.get("productId")]

            wishlist = self.wishlists.get_for_user(user.id)
            wished = self.products.get_many(wishlist.products if wishlist else [])
            wishlist_products = [{
                "id": p.id,
                "title": p.title,
                "img": p.img,
                "price": p.new_price,
            } for p in wished.values()]

            activity.append({
                "userId": user.id,
                "name": user.username,
                "email": user.email,
                "createdAt": user.created_at,
                "recentSearches": (user.attributes or {}).get("recentSearches", []),
                "purchasedProducts": purchased,
                "cartProducts": cart_products,
                "wishlistProducts": wishlist_products,
                "reviews": reviews_by_user.get(user.id, []),
            })
        return activity
