import pytest

from neurotrader.exceptions import UpstreamUnavailable, ValidationError
from neurotrader.services.agent_relay import AgentRelay, build_agent
from neurotrader.services.agent_process import ProcessAgent
from neurotrader.services.chat_service import ChatService
from neurotrader.services.hosted_agent import HostedAgent
from neurotrader.config import Settings

from conftest import FakeAgent


@pytest.fixture
def chat_service(db):
    return ChatService(db)


def test_chat_creates_session_when_none_given(chat_service, agent):
    relay = AgentRelay(chat_service, agent)

    result = relay.chat("What is BTC doing?")

    assert chat_service.get_session(result["sessionId"]) is not None
    assert result["response"]["content"] == "NeuroTrader says: What is BTC doing?"
    assert result["response"]["timestamp"].endswith("Z")
    roles = [m.role for m in chat_service.get_messages(result["sessionId"])]
    assert roles == ["user", "assistant"]


def test_chat_replaces_unknown_session_id(chat_service, agent):
    relay = AgentRelay(chat_service, agent)

    result = relay.chat("hello", session_id="stale-id-from-browser")

    assert result["sessionId"] != "stale-id-from-browser"
    assert len(chat_service.get_messages(result["sessionId"])) == 2


def test_chat_continues_existing_session_and_passes_history(chat_service, agent):
    relay = AgentRelay(chat_service, agent)
    first = relay.chat("first question")

    relay.chat("second question", session_id=first["sessionId"])

    history = agent.calls[-1]["history"]
    assert [turn["content"] for turn in history] == ["first question", "NeuroTrader says: first question"]
    assert len(chat_service.get_messages(first["sessionId"])) == 4


def test_history_passed_to_agent_is_limited(chat_service, agent):
    relay = AgentRelay(chat_service, agent, history_limit=2)
    first = relay.chat("first question")
    relay.chat("second question", session_id=first["sessionId"])

    relay.chat("third question", session_id=first["sessionId"])

    history = agent.calls[-1]["history"]
    assert [turn["content"] for turn in history] == ["second question", "NeuroTrader says: second question"]


@pytest.mark.parametrize("message", [None, "", "   "])
def test_chat_requires_message(chat_service, agent, message):
    relay = AgentRelay(chat_service, agent)
    with pytest.raises(ValidationError):
        relay.chat(message)
    assert agent.calls == []


def test_user_message_survives_reply_failure(chat_service):
    session = chat_service.create_session()
    relay = AgentRelay(chat_service, FakeAgent(error=UpstreamUnavailable(reason="upstream down")))

    with pytest.raises(UpstreamUnavailable):
        relay.chat("are you there?", session_id=session.id)

    messages = chat_service.get_messages(session.id)
    assert [(m.role, m.content) for m in messages] == [("user", "are you there?")]


def test_build_agent_selects_strategy():
    hosted = build_agent(Settings(AGENT_STRATEGY="hosted", OPENAI_API_KEY="", DB_PATH=":memory:"))
    process = build_agent(Settings(AGENT_STRATEGY="process", DB_PATH=":memory:"))

    assert isinstance(hosted, HostedAgent)
    assert hosted.available is False
    assert isinstance(process, ProcessAgent)
    assert process.commands[0] == ["bun", "run", "index.ts"]
    assert process.commands[1] == ["node", "index.js"]


def test_build_agent_rejects_unknown_strategy():
    with pytest.raises(ValueError):
        build_agent(Settings(AGENT_STRATEGY="carrier-pigeon", DB_PATH=":memory:"))
