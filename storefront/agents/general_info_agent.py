"""General Info Agent: canned policy answers and free-form shop questions."""
from ..app.errors import UpstreamError
from ..nlu.rules import canned_reply
from ..utils.logger import get_logger
from .base_agent import BaseAgent, ChatContext

logger = get_logger(__name__)

SYSTEM_INSTRUCTION = """
You are ShopBot, a helpful and friendly e-commerce customer support assistant for "{shop}".
Your primary goal is to assist users with:
1. Order Tracking
2. Displaying User's Orders
3. Abandoned Cart Recovery
4. Product Details & Reviews
5. General FAQs
6. Handover to Human Support

Rules:
- Stay on topic (orders, products, shop services).
- If outside scope, say: "I'm sorry, I can only assist with inquiries related to {shop}'s products, orders, and services. For other questions, please contact our human support team at {support}."
- Keep responses concise & clear.
"""

ANSWER_PROMPT = """User's message: {message}

Please answer the user's question as best as you can but remain within the shop domain. If the question is outside {shop}'s scope, reply with the short scope-referral message."""


def system_instruction(shop_name: str, support_email: str) -> str:
    return SYSTEM_INSTRUCTION.format(shop=shop_name, support=support_email).strip()


class GeneralInfoAgent(BaseAgent):
    name = "general_info"

    def __init__(self, completion_client=None, shop_name: str = "MyAwesomeShop",
                 support_email: str = "support@myawesomeshop.com", expose_errors: bool = False):
        self.client = completion_client
        self.shop_name = shop_name
        self.support_email = support_email
        self.expose_errors = expose_errors

    def handle(self, ctx: ChatContext):
        intent = ctx.classification.intent
        text = canned_reply(intent, self.shop_name, self.support_email)
        if text is not None:
            return self._clarify(intent, text)
        return self.answer(ctx.message)

    def answer(self, message: str):
        intent = "openai_answer"
        fallback = (f"Sorry, I couldn't generate a smart reply right now. "
                    f"Please try again or contact {self.support_email}.")
        if self.client is None:
            return self._clarify(intent, fallback)
        try:
            text = self.client.complete(
                system_instruction(self.shop_name, self.support_email),
                ANSWER_PROMPT.format(message=message, shop=self.shop_name),
                temperature=0.25,
                max_tokens=350,
            )
        except Exception as e:
            detail = (e.detail or e.message) if isinstance(e, UpstreamError) else repr(e)
            logger.error("Free-form answer failed: %s", detail)
            return self._clarify(intent, fallback, debug=str(detail) if self.expose_errors else None)
        if not text:
            text = "Sorry, I couldn't generate a response right now. Please try again or contact support."
        return self._clarify(intent, text)
