from datetime import datetime
from functools import lru_cache
from typing import Optional
import logging

from neurotrader.config import settings
from neurotrader.exceptions import UpstreamUnavailable, ValidationError
from neurotrader.services.agent_process import ProcessAgent
from neurotrader.services.chat_service import ChatService, USER_ROLE, ASSISTANT_ROLE
from neurotrader.services.hosted_agent import HostedAgent
from neurotrader.services.market_data import MarketData

logger = logging.getLogger(__name__)

STRATEGIES = ("hosted", "process")


def build_agent(config=settings):
    """Create the reply strategy named by ``AGENT_STRATEGY``"""
    strategy = (config.AGENT_STRATEGY or "").strip().lower()
    if strategy == "process":
        return ProcessAgent(
            script_dir=config.AGENT_SCRIPT_DIR,
            command=config.AGENT_COMMAND,
            fallback_command=config.AGENT_FALLBACK_COMMAND,
            timeout=config.AGENT_TIMEOUT_SECONDS,
            max_concurrent=config.AGENT_MAX_CONCURRENT,
        )
    if strategy == "hosted":
        market_data = None
        if config.MARKET_CONTEXT_ENABLED:
            market_data = MarketData(
                url=config.COINGECKO_URL,
                coins=config.MARKET_COINS,
                timeout=config.MARKET_TIMEOUT_SECONDS,
            )
        return HostedAgent(
            api_key=config.OPENAI_API_KEY,
            model=config.OPENAI_MODEL,
            system_prompt=config.SYSTEM_PROMPT,
            temperature=config.OPENAI_TEMPERATURE,
            max_tokens=config.OPENAI_MAX_TOKENS,
            max_turns=config.HISTORY_MAX_TURNS,
            timeout=config.OPENAI_TIMEOUT_SECONDS,
            base_url=config.OPENAI_BASE_URL,
            market_data=market_data,
        )
    raise ValueError(f"Unknown AGENT_STRATEGY {config.AGENT_STRATEGY!r}, expected one of {STRATEGIES}")


@lru_cache(maxsize=1)
def get_agent():
    return build_agent(settings)


class AgentRelay:
    """Runs one chat turn: resolve the session, persist the user message,
    obtain a reply and persist it.

    When no reply can be obtained the user message stays in the history and
    ``UpstreamUnavailable`` propagates to the caller.
    """

    def __init__(self, chat_service: ChatService, agent, history_limit: Optional[int] = None):
        self.chat_service = chat_service
        self.agent = agent
        self.history_limit = history_limit

    def resolve_session(self, session_id: Optional[str]):
        session = self.chat_service.get_session(session_id) if session_id else None
        if session is None:
            session = self.chat_service.create_session()
            if session_id:
                logger.info(f"Unknown session {session_id}, started {session.id} instead")
        return session

    def chat(self, message: Optional[str], session_id: Optional[str] = None) -> dict:
        if not message or not message.strip():
            raise ValidationError("Message is required")

        session = self.resolve_session(session_id)
        history = [
            {"role": m.role, "content": m.content}
            for m in self.chat_service.get_messages(session.id, limit=self.history_limit)
        ]
        self.chat_service.add_message(session.id, USER_ROLE, message)

        try:
            reply = self.agent.reply(message, history)
        except UpstreamUnavailable as e:
            logger.error(f"No reply for session {session.id}: {e.reason}")
            raise

        self.chat_service.add_message(session.id, ASSISTANT_ROLE, reply)
        return {
            "sessionId": session.id,
            "response": {
                "content": reply,
                "timestamp": datetime.utcnow().isoformat() + "Z",
            },
        }
