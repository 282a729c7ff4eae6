"""LLM-based intent classifier with a local heuristic fallback.

``classify_message`` always returns a ``ChatClassification``. When the
completion service is missing, fails, or answers with something that isn't the
expected JSON object, the regex/keyword heuristic fills the same shape with a
lower confidence.
"""
import json
import re
from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional

from ..utils.logger import get_logger
from .entity_extractor import EntityExtractor, guess_intent

logger = get_logger(__name__)

INTENTS = (
    "track_order", "cart", "recent_orders", "remove_item", "checkout", "greeting",
    "returns", "shipping", "payments", "select_order", "openai_answer", "unknown",
)
HEURISTIC_CONFIDENCE = 0.35

CLASSIFIER_PROMPT = '''You are a strict intent classifier for an e-commerce support assistant.
Return ONLY a JSON object with exactly these keys:
- intent: one of ["track_order","cart","recent_orders","remove_item","checkout","greeting","returns","shipping","payments","select_order","openai_answer","unknown"]
- orderId: order id or tracking number mentioned by the user, else null
- index: 1-based position the user picked from a list (e.g. "2", "the second one"), else null
- action: "remove" when the user wants to remove a cart item, else null
- confidence: number between 0 and 1
- normalizedText: the user message rewritten in plain lowercase English
Use "openai_answer" for product or shop questions that need a written answer and "unknown" for anything else.
No prose, no code fences.'''

_JSON_RE = re.compile(r"\{.*\}", re.DOTALL)


@dataclass
class ChatClassification:
    intent: str
    order_id: Optional[str] = None
    index: Optional[int] = None
    action: Optional[str] = None
    confidence: float = HEURISTIC_CONFIDENCE
    normalized_text: str = ""
    source: str = "heuristic"

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def heuristic_classify(message: str) -> ChatClassification:
    entities = EntityExtractor().extract(message)
    return ChatClassification(
        intent=guess_intent(message, entities),
        order_id=entities.get("orderId"),
        index=entities.get("index"),
        action=entities.get("action"),
        confidence=HEURISTIC_CONFIDENCE,
        normalized_text=(message or "").strip().lower(),
        source="heuristic",
    )


def parse_classifier_output(text: str) -> Optional[Dict[str, Any]]:
    """Pull the first JSON object out of ``text``; None when there isn't a usable one."""
    if not text:
        return None
    match = _JSON_RE.search(text)
    if not match:
        return None
    try:
        parsed = json.loads(match.group())
    except ValueError:
        return None
    return parsed if isinstance(parsed, dict) else None


def _as_index(value) -> Optional[int]:
    if isinstance(value, bool) or value is None:
        return None
    try:
        index = int(value)
    except (TypeError, ValueError):
        return None
    return index if index >= 1 else None


def _as_confidence(value) -> float:
    try:
        conf = float(value)
    except (TypeError, ValueError):
        return 0.5
    return min(max(conf, 0.0), 1.0)


def _as_text(value) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def classify_message(message: str, client=None) -> ChatClassification:
    fallback = heuristic_classify(message)
    if client is None or not getattr(client, "available", True):
        return fallback
    try:
        out = client.complete(CLASSIFIER_PROMPT, message, temperature=0.0, max_tokens=200)
        parsed = parse_classifier_output(out)
        if parsed is None:
            logger.warning("Classifier returned unparseable output, using heuristic")
            return fallback
        intent = parsed.get("intent")
        if intent not in INTENTS:
            logger.warning("Classifier returned unknown intent %r, using heuristic", intent)
            return fallback
        order_id = _as_text(parsed.get("orderId")) or fallback.order_id
        index = _as_index(parsed.get("index"))
        if index is None:
            index = fallback.index
        action = _as_text(parsed.get("action")) or fallback.action
        return ChatClassification(
            intent=intent,
            order_id=order_id,
            index=index,
            action=action.lower() if action else None,
            confidence=_as_confidence(parsed.get("confidence", 0.5)),
            normalized_text=_as_text(parsed.get("normalizedText")) or fallback.normalized_text,
            source="classifier",
        )
    except Exception as e:
        logger.warning("Classifier unavailable (%s), using heuristic", e)
        return fallback
