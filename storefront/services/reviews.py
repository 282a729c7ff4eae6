"""Product reviews: one aggregate per product, one entry per user."""
from typing import Any, Dict, List, Tuple

from ..app.errors import NotFoundError, ValidationError
from ..data.models import Review
from ..data.stores import ProductStore, ReviewStore
from ..utils.clock import utcnow


class ReviewService:
    def __init__(self, db, clock=utcnow):
        self.reviews = ReviewStore(db)
        self.products = ProductStore(db)
        self.clock = clock

    def upsert(self, product_id, user_id, user_name, text, rating=None) -> Tuple[Dict[str, Any], bool]:
        """Add or replace the caller's review. Returns ``(entry, updated)``."""
        if not product_id or not text or not user_name:
            raise ValidationError("Product ID, review text, and user name are required.", code="MissingFields")
        if rating is not None and not 1 <= rating <= 5:
            raise ValidationError("rating must be between 1 and 5", code="InvalidRating")
        if self.products.get(product_id) is None:
            raise NotFoundError("Product not found for the given ID", code="ProductNotFound")

        aggregate = self.reviews.get_for_product(product_id)
        if aggregate is None:
            aggregate = self.reviews.add(Review(product_id=product_id, reviews=[]))

        entries = [dict(e) for e in (aggregate.reviews or [])]
        index = next((i for i, e in enumerate(entries) if e.get("userId") == user_id), None)
        if index is not None:
            entry = entries[index]
            entry.update({"userName": user_name, "review": text, "rating": rating})
            entry["reviewDate"] = entry.get("reviewDate") or self.clock().isoformat()
            updated = True
        else:
            entry = {
                "userId": user_id,
                "userName": user_name,
                "review": text,
                "rating": rating,
                "reviewDate": self.clock().isoformat(),
            }
            entries.append(entry)
            updated = False
        aggregate.reviews = entries
        self.reviews.commit()
        return entry, updated

    def list_for_product(self, product_id) -> List[Dict[str, Any]]:
        aggregate = self.reviews.get_for_product(product_id)
        return list(aggregate.reviews or []) if aggregate else []

    def delete(self, product_id, user_id) -> List[Dict[str, Any]]:
        aggregate = self.reviews.get_for_product(product_id)
        if aggregate is None:
            raise NotFoundError("No reviews found for this product", code="ReviewsNotFound")
        remaining = [e for e in (aggregate.reviews or []) if e.get("userId") != user_id]
        if len(remaining) == len(aggregate.reviews or []):
            raise NotFoundError("Review not found for this user", code="ReviewNotFound")
        aggregate.reviews = remaining
        self.reviews.commit()
        return remaining
