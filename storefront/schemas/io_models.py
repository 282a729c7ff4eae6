"""Pydantic models for the chat endpoint and agent contracts."""
from typing import Any, Dict, List, Optional

from pydantic import Field

from .base import CamelModel


class ChatRequest(CamelModel):
    message: Optional[str] = None
    user_id: Optional[str] = None


class ChatReply(CamelModel):
    reply: str
    intent: str
    context_provided: bool = False
    confidence: Optional[float] = None
    cart: Optional[List[Dict[str, Any]]] = None
    subtotal: Optional[float] = None
    orders: Optional[List[Dict[str, Any]]] = None
    debug: Optional[str] = None


class MessageResponse(CamelModel):
    message: str
    data: Dict[str, Any] = Field(default_factory=dict)
