"""Cart normalization.

Carts reach us in several historical shapes: the current ``carts`` table, carts
imported under other keys, and carts that older clients kept on the user
document. Everything here turns those into one canonical line item::

    {"productId", "title", "price", "quantity", "image"}

Normalizing an already-canonical list returns an identical list. Lines whose
quantity is 0 or below are gone from the cart and are dropped.
"""
from collections import namedtuple
from typing import Any, Callable, Dict, List, Mapping, Optional

from ..utils.logger import get_logger

logger = get_logger(__name__)

CANONICAL_KEYS = ("productId", "title", "price", "quantity", "image")
UNKNOWN_TITLE = "Unknown product"

# Checked in this order on a cart document.
CART_CONTAINER_FIELDS = ("items", "cart", "products")

# Checked in this order on a user document when no cart document yields items.
USER_CART_PATHS = (
    ("cart",),
    ("cart", "items"),
    ("currentCart",),
    ("basket", "items"),
)

CartSource = namedtuple("CartSource", ["shape", "items"])

Resolver = Callable[[str], Optional[Mapping[str, Any]]]


def _non_empty_list(value) -> bool:
    return isinstance(value, list) and len(value) > 0


def _dig(doc, path):
    value = doc
    for key in path:
        if not isinstance(value, Mapping):
            return None
        value = value.get(key)
    return value


def locate_cart_items(cart_doc: Optional[Mapping] = None, user_doc: Optional[Mapping] = None) -> CartSource:
    """Find the raw item list and report which shape it came from."""
    if isinstance(cart_doc, Mapping):
        for field in CART_CONTAINER_FIELDS:
            if _non_empty_list(cart_doc.get(field)):
                return CartSource(f"cart.{field}", list(cart_doc[field]))
        for field, value in cart_doc.items():
            if field not in CART_CONTAINER_FIELDS and _non_empty_list(value):
                return CartSource(f"cart.{field}", list(value))

    if isinstance(user_doc, Mapping):
        for path in USER_CART_PATHS:
            value = _dig(user_doc, path)
            if _non_empty_list(value):
                return CartSource("user." + ".".join(path), list(value))

    return CartSource(None, [])


def extract_cart_items(cart_doc: Optional[Mapping] = None, user_doc: Optional[Mapping] = None) -> List[Any]:
    return locate_cart_items(cart_doc, user_doc).items


def _as_price(value) -> Optional[float]:
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            return None
    return None


def _as_quantity(raw: Mapping) -> Optional[int]:
    """Missing or unreadable counts as 1; None when the stored quantity is 0 or less."""
    value = raw.get("quantity")
    if value is None:
        value = raw.get("qty")
    if value is None:
        return 1
    try:
        qty = int(value)
    except (TypeError, ValueError):
        return 1
    return qty if qty >= 1 else None


def _ref(value) -> Optional[str]:
    if isinstance(value, Mapping):
        value = value.get("_id") or value.get("id")
    if value is None or value == "":
        return None
    return str(value)


def _reference_of(raw: Mapping) -> Optional[str]:
    return (_ref(raw.get("productId")) or _ref(raw.get("product"))
            or _ref(raw.get("_id")) or _ref(raw.get("product_id")))


def _canonical(product_id, title, price, quantity, image) -> Dict[str, Any]:
    return {
        "productId": product_id,
        "title": title,
        "price": price,
        "quantity": quantity,
        "image": image,
    }


def _product_price(product: Mapping) -> Optional[float]:
    price = _as_price(product.get("price"))
    if price is None:
        price = _as_price(product.get("newPrice"))
    return price


def normalize_item(raw, resolver: Optional[Resolver] = None) -> Optional[Dict[str, Any]]:
    """Convert one stored or supplied cart line into the canonical shape.

    Embedded product data wins; otherwise the reference is resolved through
    ``resolver``; if that fails the partial data supplied is kept.
    Returns None for a line whose quantity has dropped to 0 or below.
    """
    if raw is None:
        return None
    if not isinstance(raw, Mapping):
        # bare product id
        raw = {"productId": str(raw)}

    quantity = _as_quantity(raw)
    if quantity is None:
        return None
    embedded = raw.get("product") if isinstance(raw.get("product"), Mapping) else None

    if raw.get("title") or embedded is not None:
        embedded = embedded or {}
        price = _as_price(raw.get("price"))
        if price is None:
            price = _product_price(embedded)
        return _canonical(
            _reference_of(raw),
            raw.get("title") or embedded.get("title") or embedded.get("name") or UNKNOWN_TITLE,
            price,
            quantity,
            raw.get("image") or raw.get("img") or embedded.get("image") or embedded.get("img"),
        )

    reference = _reference_of(raw)
    if reference is None:
        return _canonical(None, UNKNOWN_TITLE, _as_price(raw.get("price")), quantity,
                          raw.get("image") or raw.get("img"))

    product = None
    if resolver is not None:
        try:
            product = resolver(reference)
        except Exception as e:
            logger.error("Product lookup failed for %s: %s", reference, e)
            product = None

    if product:
        return _canonical(
            _ref(product.get("id")) or reference,
            product.get("title") or product.get("name") or UNKNOWN_TITLE,
            _product_price(product),
            quantity,
            product.get("img") or product.get("image"),
        )

    return _canonical(reference, UNKNOWN_TITLE, _as_price(raw.get("price")), quantity,
                      raw.get("image") or raw.get("img"))


def normalize_items(raw_items, resolver: Optional[Resolver] = None) -> List[Dict[str, Any]]:
    normalized = []
    for raw in raw_items or []:
        item = normalize_item(raw, resolver)
        if item is not None:
            normalized.append(item)
    return normalized


def normalize_cart(cart_doc=None, user_doc=None, resolver: Optional[Resolver] = None) -> List[Dict[str, Any]]:
    return normalize_items(extract_cart_items(cart_doc, user_doc), resolver)


def summarize(items: List[Mapping]) -> Dict[str, Any]:
    """Attach ``lineTotal`` to each line and compute the cart subtotal."""
    lines = []
    subtotal = 0.0
    for index, item in enumerate(items, start=1):
        price = item.get("price")
        qty = item.get("quantity") or 1
        line_total = round(price * qty, 2) if price is not None else None
        if line_total is not None:
            subtotal += line_total
        line = dict(item)
        line["index"] = index
        line["lineTotal"] = line_total
        lines.append(line)
    return {"items": lines, "subtotal": round(subtotal, 2)}


def render_cart_text(summary: Mapping) -> str:
    lines = summary.get("items") or []
    if not lines:
        return "Your cart is empty. Browse our products and add items to your cart. If you need help, ask me!"
    rows = []
    for line in lines:
        price = f"${line['price']:.2f}" if line.get("price") is not None else "N/A"
        total = f" = ${line['lineTotal']:.2f}" if line.get("lineTotal") is not None else ""
        rows.append(f"{line['index']}. {line['title']} - {line['quantity']} x {price}{total}")
    return (f"You have {len(lines)} item(s) in your cart:\n\n" + "\n".join(rows) +
            f"\n\nSubtotal: ${summary.get('subtotal', 0.0):.2f}. "
            'Reply "checkout" to proceed or "remove <index>" to remove an item.')


def product_resolver(product_store) -> Resolver:
    """Adapt a ``ProductStore`` to the resolver callable used above."""
    def resolve(reference: str):
        product = product_store.resolve(reference)
        return product.to_document() if product is not None else None
    return resolve
