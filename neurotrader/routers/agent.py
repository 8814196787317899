from fastapi import APIRouter, Depends, Request
from typing import Optional
import logging

from neurotrader.config import settings
from neurotrader.exceptions import NotFoundError
from neurotrader.limiter import limiter
from neurotrader.models.schemas import ChatRequest, CreateSessionRequest
from neurotrader.routers.deps import get_agent_relay, get_chat_service
from neurotrader.services.agent_relay import AgentRelay
from neurotrader.services.chat_service import ChatService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/agent", tags=["Agent"])


@router.post("/chat")
@limiter.limit(settings.RATE_LIMIT_CHAT)
def chat(
    request: Request,
    body: ChatRequest,
    relay: AgentRelay = Depends(get_agent_relay),
):
    """Send a message to the agent, creating a session when needed"""
    logger.info(f"Chat message received for session {body.session_id or '<new>'}")
    return relay.chat(body.message, body.session_id)


@router.get("/session/{session_id}/history")
def get_session_history(
    session_id: str,
    chat_service: ChatService = Depends(get_chat_service),
):
    session = chat_service.get_session(session_id)
    if not session:
        raise NotFoundError("Session not found")

    messages = chat_service.get_messages(session_id)
    return {
        "sessionId": session_id,
        "history": [message.to_dict() for message in messages],
        "session": session.to_dict(),
    }


@router.post("/session")
def create_session(
    body: Optional[CreateSessionRequest] = None,
    chat_service: ChatService = Depends(get_chat_service),
):
    session = chat_service.create_session(body.metadata if body else None)
    return {
        "sessionId": session.id,
        "createdAt": session.created_at.isoformat(),
    }


@router.delete("/session/{session_id}")
def delete_session(
    session_id: str,
    chat_service: ChatService = Depends(get_chat_service),
):
    """Clear a chat: deletes the session together with its messages"""
    if not chat_service.delete_session(session_id):
        raise NotFoundError("Session not found")
    return {"success": True}
