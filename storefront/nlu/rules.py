"""Rule-based quick answers for the support bot.

Checked in order before anything else; a match short-circuits with a canned
reply and never touches the database or the completion service.
"""
import re
from collections import namedtuple
from typing import Optional

RuleMatch = namedtuple("RuleMatch", ["intent", "reply"])

RETURNS = ["return policy", "returns"]
SHIPPING = ["shipping cost", "shipping costs", "shipping"]
PAYMENTS = ["payment methods", "payment"]
GREETING_RE = re.compile(r"^(hello|hi|hey)\b", re.IGNORECASE)

DEFAULT_SHOP = "MyAwesomeShop"
DEFAULT_SUPPORT = "support@myawesomeshop.com"


def canned_reply(intent: str, shop_name: str = DEFAULT_SHOP, support_email: str = DEFAULT_SUPPORT) -> Optional[str]:
    if intent == "returns":
        return ("Our return policy allows returns within 30 days of purchase for a full refund. "
                "Some exclusions may apply to sale or digital items. "
                f"For specifics, see the product page or contact {support_email}.")
    if intent == "shipping":
        return ("Standard shipping is free on orders over $50. Exact costs are shown at checkout "
                "based on your address and selected shipping speed.")
    if intent == "payments":
        return "We accept Visa, MasterCard, Amex, Discover, PayPal, and Google Pay."
    if intent == "greeting":
        return f"Hello! How can I help you with your {shop_name} products, orders, or account today?"
    return None


def _contains_any(text: str, vocab) -> bool:
    return any(phrase in text for phrase in vocab)


def quick_intent(message: str) -> Optional[str]:
    text = (message or "").strip().lower()
    if not text:
        return None
    if _contains_any(text, RETURNS):
        return "returns"
    if _contains_any(text, SHIPPING):
        return "shipping"
    if _contains_any(text, PAYMENTS):
        return "payments"
    if GREETING_RE.match(text):
        return "greeting"
    return None


def match_quick_rule(message: str, shop_name: str = DEFAULT_SHOP,
                     support_email: str = DEFAULT_SUPPORT) -> Optional[RuleMatch]:
    intent = quick_intent(message)
    if intent is None:
        return None
    return RuleMatch(intent, canned_reply(intent, shop_name, support_email))
