"""Controller / Orchestrator to route chat messages to agents.

One message in, one reply out. Quick keyword rules answer first; everything
else is classified (completion service, heuristic fallback) and handed to the
agent that owns the intent.
"""
from typing import Optional

from ..agents.base_agent import ChatContext
from ..agents.cart_agent import CartAgent
from ..agents.general_info_agent import GeneralInfoAgent
from ..agents.order_agent import OrderAgent
from ..nlu.llm_router import ChatClassification, classify_message
from ..nlu.rules import match_quick_rule
from ..schemas.io_models import ChatReply
from ..utils.logger import get_logger
from ..utils.security import preview
from .config import Config
from .errors import ValidationError

logger = get_logger(__name__)

CART_INTENTS = ("cart", "remove_item", "checkout")
ORDER_INTENTS = ("track_order", "select_order", "recent_orders")


class ChatController:
    def __init__(self, db, completion_client=None, config=Config):
        self.config = config
        self.client = completion_client if config.USE_LLM else None
        shop, support = config.SHOP_NAME, config.SUPPORT_EMAIL
        self.agents = {
            "cart": CartAgent(db),
            "order": OrderAgent(db, self.client, shop, support),
            "general_info": GeneralInfoAgent(self.client, shop, support,
                                             expose_errors=not config.is_production()),
        }

    def _agent_for(self, intent: str):
        if intent in CART_INTENTS:
            return self.agents["cart"]
        if intent in ORDER_INTENTS:
            return self.agents["order"]
        return self.agents["general_info"]

    def handle_message(self, message: Optional[str], user_id: Optional[str] = None) -> ChatReply:
        text = (message or "").strip()
        if not text:
            raise ValidationError("Please provide a message", code="MissingMessage")
        logger.info("[CHAT] user=%s message=%r", user_id or "anonymous", preview(text))

        quick = match_quick_rule(text, self.config.SHOP_NAME, self.config.SUPPORT_EMAIL)
        if quick is not None:
            logger.debug("[CHAT] quick rule matched: %s", quick.intent)
            return ChatReply(reply=quick.reply, intent=quick.intent, context_provided=False, confidence=1.0)

        classification: ChatClassification = classify_message(text, self.client)
        logger.info("[CHAT] intent=%s source=%s confidence=%.2f",
                    classification.intent, classification.source, classification.confidence)

        agent = self._agent_for(classification.intent)
        reply = agent.handle(ChatContext(message=text, user_id=user_id, classification=classification))
        if reply.confidence is None:
            reply.confidence = classification.confidence
        return reply
