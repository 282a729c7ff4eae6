"""Support chatbot endpoint."""
from typing import Optional

from fastapi import APIRouter, Depends

from ...data.models import User
from ...schemas.io_models import ChatRequest
from ..controller import ChatController
from ..dependencies import get_chat_controller, get_optional_user
from ..errors import ForbiddenError

router = APIRouter(prefix="/api", tags=["chatbot"])


@router.post("/chatbot")
def chatbot(body: ChatRequest, caller: Optional[User] = Depends(get_optional_user),
            controller: ChatController = Depends(get_chat_controller)):
    # identity comes from the bearer token; a body userId is only a consistency check
    if caller is not None and body.user_id and body.user_id != caller.id:
        raise ForbiddenError("userId does not match the signed-in user", code="UserMismatch")
    reply = controller.handle_message(body.message, caller.id if caller else None)
    return reply.model_dump(by_alias=True, exclude_none=True)
