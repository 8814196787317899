from fastapi import Depends
from sqlalchemy.orm import Session

from neurotrader.config import settings
from neurotrader.db.database import get_db
from neurotrader.services.agent_relay import AgentRelay, get_agent
from neurotrader.services.chat_service import ChatService
from neurotrader.services.user_service import UserService
from neurotrader.services.waitlist_service import WaitlistService


def get_chat_service(db: Session = Depends(get_db)) -> ChatService:
    return ChatService(db)


def get_agent_relay(
    chat_service: ChatService = Depends(get_chat_service),
    agent=Depends(get_agent),
) -> AgentRelay:
    return AgentRelay(chat_service, agent, history_limit=settings.HISTORY_MAX_TURNS)


def get_user_service(db: Session = Depends(get_db)) -> UserService:
    return UserService(db)


def get_waitlist_service(db: Session = Depends(get_db)) -> WaitlistService:
    return WaitlistService(db)
