"""Very small rule-based entity extractor for support chat messages."""
import re
from typing import Any, Dict, Optional

# longest phrases first so "order id X" doesn't stop at "order"
ORDER_ID_RE = re.compile(
    r"(?:track order|order id|order number|order #|order#|tracking number|tracking|order)"
    r"\s*[:#]?\s*([A-Za-z0-9\-_]{4,})",
    re.IGNORECASE,
)
BARE_INDEX_RE = re.compile(r"^\s*#?(\d{1,2})\s*\.?\s*$")
TRACK_INDEX_RE = re.compile(
    r"^\s*(?:track|select|open|show|check)(?:\s+(?:my|the))?(?:\s+order)?\s+(?:no\.?\s*|number\s+|#)?(\d{1,2})\s*$",
    re.IGNORECASE,
)
REMOVE_RE = re.compile(r"^\s*(?:remove|delete|drop)\s+(?:item\s+|line\s+)?(?:no\.?\s*|number\s+|#)?(\d{1,2})\b",
                       re.IGNORECASE)
ORDINALS = {
    "first": 1, "second": 2, "third": 3, "fourth": 4, "fifth": 5,
    "sixth": 6, "seventh": 7, "eighth": 8, "ninth": 9, "tenth": 10,
}
ORDINAL_RE = re.compile(r"\b(" + "|".join(ORDINALS) + r")\s+(?:one|order|item)\b", re.IGNORECASE)

CART_WORDS = ["my cart", "show cart", "view cart", "cart"]
CHECKOUT_WORDS = ["checkout", "check out", "place my order", "place order"]
TRACK_WORDS = ["track", "where is my order", "order status", "status of my order"]
RECENT_WORDS = ["my order", "purchase history", "order history", "recent orders", "recent purchases", "past orders"]


def find_order_id(text: str) -> Optional[str]:
    """First order-like token after an order keyword. Tokens without a digit are ignored."""
    for match in ORDER_ID_RE.finditer(text or ""):
        candidate = match.group(1)
        if any(ch.isdigit() for ch in candidate):
            return candidate
    return None


def find_index(text: str) -> Optional[int]:
    for pattern in (BARE_INDEX_RE, TRACK_INDEX_RE):
        m = pattern.match(text or "")
        if m:
            value = int(m.group(1))
            return value if value >= 1 else None
    m = ORDINAL_RE.search(text or "")
    if m:
        return ORDINALS[m.group(1).lower()]
    return None


def find_remove_index(text: str) -> Optional[int]:
    m = REMOVE_RE.match(text or "")
    if m and int(m.group(1)) >= 1:
        return int(m.group(1))
    return None


def guess_intent(text: str, entities: Optional[Dict[str, Any]] = None) -> str:
    t = (text or "").strip().lower()
    entities = entities if entities is not None else EntityExtractor().extract(text)
    if entities.get("action") == "remove":
        return "remove_item"
    if any(w in t for w in CHECKOUT_WORDS):
        return "checkout"
    if any(w in t for w in CART_WORDS):
        return "cart"
    if entities.get("orderId") or any(w in t for w in TRACK_WORDS):
        return "track_order"
    if entities.get("index") is not None:
        return "select_order"
    if any(w in t for w in RECENT_WORDS):
        return "recent_orders"
    return "openai_answer"


class EntityExtractor:
    def extract(self, text: str) -> Dict[str, Any]:
        entities: Dict[str, Any] = {"orderId": None, "index": None, "action": None}
        remove_index = find_remove_index(text)
        if remove_index is not None:
            entities["action"] = "remove"
            entities["index"] = remove_index
            return entities
        entities["orderId"] = find_order_id(text)
        if entities["orderId"] is None:
            entities["index"] = find_index(text)
        return entities
