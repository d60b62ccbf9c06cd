from fastapi import APIRouter, Depends

from ..logging_setup import get_logger
from ..schema import ChatIn, ConversationContext
from ..services import Services, get_services, result_response

logger = get_logger("newsdesk.routes.chat")

router = APIRouter(prefix="/chat", tags=["Assistant"])


@router.post("")
def chat(body: ChatIn, svc: Services = Depends(get_services)):
    """One assistant turn. The caller keeps the history and sends it back with the next turn."""
    conversation = ConversationContext()
    for message in body.history:
        conversation = conversation.add_message(message)
    res = svc.assistant.ask(body.utterance, conversation)
    if not res.ok:
        return result_response(res)
    return res.value
