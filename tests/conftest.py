import os

# Must be set before neurotrader.config is imported
os.environ["DB_PATH"] = ":memory:"
os.environ["AGENT_STRATEGY"] = "hosted"
os.environ["OPENAI_API_KEY"] = ""
os.environ["MARKET_CONTEXT_ENABLED"] = "false"
os.environ["RATE_LIMIT_ENABLED"] = "true"
os.environ["LOG_LEVEL"] = "WARNING"

import pytest
from fastapi.testclient import TestClient

from neurotrader.db.database import Base, SessionLocal, engine, init_db
from neurotrader.exceptions import UpstreamUnavailable
from neurotrader.limiter import limiter
from neurotrader.main import app
from neurotrader.services.agent_relay import get_agent


class FakeAgent:
    """Reply strategy double that records what it was asked"""

    def __init__(self, reply_text=None, error=None):
        self.reply_text = reply_text
        self.error = error
        self.calls = []

    def reply(self, message, history=()):
        self.calls.append({"message": message, "history": list(history)})
        if self.error is not None:
            raise self.error
        return self.reply_text or f"NeuroTrader says: {message}"


@pytest.fixture
def fresh_database():
    Base.metadata.drop_all(bind=engine)
    init_db()
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db(fresh_database):
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def agent():
    return FakeAgent()


@pytest.fixture
def failing_agent():
    return FakeAgent(error=UpstreamUnavailable(reason="simulated outage"))


def _client_for(agent):
    app.dependency_overrides[get_agent] = lambda: agent
    limiter.reset()
    return TestClient(app)


@pytest.fixture
def client(fresh_database, agent):
    with _client_for(agent) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def failing_client(fresh_database, failing_agent):
    with _client_for(failing_agent) as test_client:
        yield test_client
    app.dependency_overrides.clear()
