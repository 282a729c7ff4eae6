"""Thin persistence layer over a SQLAlchemy session.

Services never build queries themselves; they ask a store. Every write path
goes through ``commit`` so database failures surface as ``UpstreamError``.
"""
from typing import Iterable, List, Optional, Tuple

from sqlalchemy import asc, desc, extract, func, or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..app.errors import StateConflictError, UpstreamError
from ..utils.logger import get_logger
from .models import (AddressBook, Cart, Order, Product, Review, User, Wishlist,
                     is_reference)

logger = get_logger(__name__)


class BaseStore:
    model = None

    def __init__(self, db: Session):
        self.db = db

    def get(self, record_id) -> Optional[object]:
        if not record_id:
            return None
        return self.db.get(self.model, str(record_id))

    def add(self, record):
        self.db.add(record)
        return record

    def delete(self, record):
        self.db.delete(record)

    def commit(self):
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            logger.warning("Integrity error on %s: %s", self.model.__name__, e.orig)
            raise StateConflictError("Record conflicts with an existing one", code="Conflict") from e
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.exception("Database error on %s", self.model.__name__)
            raise UpstreamError("Database operation failed", code="DatabaseError", detail=str(e)) from e

    def save(self, record):
        self.add(record)
        self.commit()
        return record


class UserStore(BaseStore):
    model = User

    def get_by_email(self, email: str) -> Optional[User]:
        if not email:
            return None
        return self.db.query(User).filter(User.email == email.strip().lower()).first()

    def get_by_username(self, username: str) -> Optional[User]:
        if not username:
            return None
        return self.db.query(User).filter(User.username == username.strip()).first()

    def find_admin(self) -> Optional[User]:
        return self.db.query(User).filter(User.role == "admin").first()

    def list_all(self) -> List[User]:
        return self.db.query(User).order_by(User.created_at.desc()).all()

    def count(self) -> int:
        return self.db.query(func.count(User.id)).scalar() or 0


class ProductStore(BaseStore):
    model = Product

    def resolve(self, reference) -> Optional[Product]:
        """Primary id when ``reference`` looks like one, otherwise sku/slug/productNumber."""
        if reference is None:
            return None
        ref = str(reference).strip()
        if not ref:
            return None
        if is_reference(ref):
            return self.get(ref.lower())
        return (self.db.query(Product)
                .filter(or_(Product.sku == ref, Product.slug == ref, Product.product_number == ref))
                .first())

    def get_many(self, ids: Iterable[str]) -> dict:
        ids = [i for i in set(ids) if i]
        if not ids:
            return {}
        rows = self.db.query(Product).filter(Product.id.in_(ids)).all()
        return {p.id: p for p in rows}

    def filter(self, category=None, sub_category=None, min_price=None, max_price=None) -> List[Product]:
        query = self.db.query(Product)
        if category:
            query = query.filter(Product.category.ilike(f"%{category}%"))
        if sub_category:
            query = query.filter(Product.sub_category.ilike(f"%{sub_category}%"))
        if min_price is not None:
            query = query.filter(Product.new_price >= min_price)
        if max_price is not None:
            query = query.filter(Product.new_price <= max_price)
        return query.order_by(Product.created_at.desc()).all()

    def category_price_totals(self) -> List[Tuple[str, float]]:
        rows = (self.db.query(Product.category, func.sum(Product.new_price))
                .group_by(Product.category)
                .all())
        return [(category, float(total or 0.0)) for category, total in rows]

    def search(self, text: str) -> List[Product]:
        pattern = f"%{text.strip()}%"
        return (self.db.query(Product)
                .filter(or_(Product.title.ilike(pattern),
                            Product.category.ilike(pattern),
                            Product.sub_category.ilike(pattern),
                            Product.company.ilike(pattern),
                            Product.color.ilike(pattern)))
                .all())

    def count(self) -> int:
        return self.db.query(func.count(Product.id)).scalar() or 0


class OrderStore(BaseStore):
    model = Order

    SORTABLE = {
        "orderDate": Order.order_date,
        "totalAmount": Order.total_amount,
        "status": Order.status,
        "id": Order.id,
    }

    def find_by_reference(self, token: str) -> Optional[Order]:
        """Look an order up by id, then by order number or tracking number."""
        if not token:
            return None
        order = self.get(token.lower()) if is_reference(token) else None
        if order is None:
            order = (self.db.query(Order)
                     .filter(or_(Order.order_number == token, Order.tracking_number == token))
                     .first())
        return order

    def recent_for_user(self, user_id: str, limit: int) -> List[Order]:
        return (self.db.query(Order)
                .filter(Order.user_id == user_id)
                .order_by(Order.order_date.desc())
                .limit(limit)
                .all())

    def list_for_user(self, user_id: str) -> List[Order]:
        return (self.db.query(Order)
                .filter(Order.user_id == user_id)
                .order_by(Order.order_date.desc())
                .all())

    def list_page(self, page: int, limit: int, sort_by: str, sort_order: str) -> Tuple[List[Order], int]:
        column = self.SORTABLE.get(sort_by, Order.order_date)
        direction = asc if sort_order == "asc" else desc
        total = self.db.query(func.count(Order.id)).scalar() or 0
        rows = (self.db.query(Order)
                .order_by(direction(column))
                .offset((page - 1) * limit)
                .limit(limit)
                .all())
        return rows, total

    def monthly_totals(self) -> List[Tuple[int, float]]:
        month = extract("month", Order.order_date)
        rows = (self.db.query(month, func.sum(Order.total_amount))
                .group_by(month)
                .order_by(month)
                .all())
        return [(int(m), float(total or 0.0)) for m, total in rows]

    def status_counts(self) -> List[Tuple[str, int]]:
        rows = self.db.query(Order.status, func.count(Order.id)).group_by(Order.status).all()
        return [(status.value if hasattr(status, "value") else status, count) for status, count in rows]

    def count(self) -> int:
        return self.db.query(func.count(Order.id)).scalar() or 0

    def revenue(self) -> float:
        total = self.db.query(func.sum(Order.total_amount)).scalar()
        return float(total or 0.0)


class CartStore(BaseStore):
    model = Cart

    def get_for_user(self, user_id: str) -> Optional[Cart]:
        if not user_id:
            return None
        return self.db.query(Cart).filter(Cart.user_id == user_id).first()


class ReviewStore(BaseStore):
    model = Review

    def get_for_product(self, product_id: str) -> Optional[Review]:
        return self.db.query(Review).filter(Review.product_id == product_id).first()

    def list_all(self) -> List[Review]:
        return self.db.query(Review).all()


class WishlistStore(BaseStore):
    model = Wishlist

    def get_for_user(self, user_id: str) -> Optional[Wishlist]:
        return self.db.query(Wishlist).filter(Wishlist.user_id == user_id).first()


class AddressStore(BaseStore):
    model = AddressBook

    def get_for_user(self, user_id: str) -> Optional[AddressBook]:
        return self.db.query(AddressBook).filter(AddressBook.user_id == user_id).first()
