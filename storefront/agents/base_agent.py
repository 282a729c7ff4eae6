"""BaseAgent interface for all chat agents."""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from ..nlu.llm_router import ChatClassification
from ..schemas.io_models import ChatReply
from ..utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class ChatContext:
    """Everything an agent may look at for one message. Nothing survives the request."""
    message: str
    user_id: Optional[str]
    classification: ChatClassification


class BaseAgent(ABC):
    name: str = "base"

    @abstractmethod
    def handle(self, ctx: ChatContext) -> ChatReply:
        ...

    def _ok(self, intent: str, reply: str, **extras) -> ChatReply:
        return ChatReply(reply=reply, intent=intent, context_provided=True, **extras)

    def _clarify(self, intent: str, question: str, **extras) -> ChatReply:
        logger.debug("[CLARIFY] for intent '%s': %s", intent, question)
        return ChatReply(reply=question, intent=intent, context_provided=False, **extras)
