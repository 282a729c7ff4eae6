"""Saved shipping addresses."""
from typing import Any, Dict, List, Mapping

from ..app.errors import NotFoundError, ValidationError
from ..data.models import AddressBook
from ..data.stores import AddressStore, UserStore

REQUIRED_FIELDS = ("name", "phone", "addressLine1", "city", "pinCode", "state")


def format_address(entry: Mapping[str, Any]) -> str:
    """Single-line form used as an order's shipping address."""
    parts = [entry.get("name"), entry.get("addressLine1"), entry.get("addressLine2"),
             entry.get("city"), entry.get("state"), entry.get("pinCode")]
    return ", ".join(str(p).strip() for p in parts if p and str(p).strip())


class AddressService:
    def __init__(self, db):
        self.addresses = AddressStore(db)
        self.users = UserStore(db)

    def list_for_user(self, user_id) -> List[Dict[str, Any]]:
        book = self.addresses.get_for_user(user_id)
        return list(book.addresses or []) if book else []

    def add(self, user_id, data: Mapping[str, Any]):
        """Returns ``(addresses, created_book)``."""
        missing = [f for f in REQUIRED_FIELDS if not data.get(f)]
        if missing:
            raise ValidationError(
                "Missing required address fields (name, phone, addressLine1, city, pinCode, state).",
                code="MissingFields")
        if self.users.get(user_id) is None:
            raise NotFoundError("User not found", code="UserNotFound")
        entry = {
            "name": str(data["name"]).strip(),
            "phone": str(data["phone"]).strip(),
            "addressLine1": str(data["addressLine1"]).strip(),
            "addressLine2": str(data.get("addressLine2") or "").strip(),
            "city": str(data["city"]).strip(),
            "pinCode": str(data["pinCode"]).strip(),
            "state": str(data["state"]).strip(),
        }
        book = self.addresses.get_for_user(user_id)
        if book is None:
            book = AddressBook(user_id=user_id, addresses=[entry])
            self.addresses.save(book)
            return list(book.addresses), True
        book.addresses = list(book.addresses or []) + [entry]
        self.addresses.commit()
        return list(book.addresses), False
