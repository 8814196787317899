from pydantic_settings import BaseSettings
from typing import Optional, List
import os


DEFAULT_SYSTEM_PROMPT = (
    "You are NeuroTrader, a sophisticated AI cryptocurrency analyst and trading advisor. "
    "When discussing price trends or making recommendations, be clear about your confidence level, "
    "explain your reasoning briefly and keep answers concise and focused on cryptocurrency "
    "trading, investing and market analysis."
)


class Settings(BaseSettings):
    # Server Settings
    PORT: int = 3002
    LOG_LEVEL: str = "INFO"
    DEBUG: bool = False

    # Database Settings
    DB_PATH: str = "./data/neurotrader.db"
    STRICT_STORAGE: bool = True

    # Agent Relay Settings
    AGENT_STRATEGY: str = "hosted"  # 'hosted' or 'process'
    AGENT_SCRIPT_DIR: str = "./agentkit"
    AGENT_COMMAND: str = "bun run index.ts"
    AGENT_FALLBACK_COMMAND: str = "node index.js"
    AGENT_TIMEOUT_SECONDS: float = 60.0
    AGENT_MAX_CONCURRENT: int = 4
    HISTORY_MAX_TURNS: int = 12
    SYSTEM_PROMPT: str = DEFAULT_SYSTEM_PROMPT

    # OpenAI Settings
    OPENAI_API_KEY: Optional[str] = None
    OPENAI_MODEL: str = "gpt-4o-mini"
    OPENAI_BASE_URL: Optional[str] = None
    OPENAI_TEMPERATURE: float = 0.7
    OPENAI_MAX_TOKENS: int = 1024
    OPENAI_TIMEOUT_SECONDS: float = 30.0

    # Market Data Settings
    MARKET_CONTEXT_ENABLED: bool = False
    COINGECKO_URL: str = "https://api.coingecko.com/api/v3/simple/price"
    MARKET_COINS: List[str] = ["bitcoin", "ethereum", "solana", "cardano", "binancecoin"]
    MARKET_TIMEOUT_SECONDS: float = 5.0

    # CORS Settings
    FRONTEND_URL: str = "http://localhost:5173"
    BACKEND_CORS_ORIGINS: List[str] = []

    # Rate Limit Settings
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_DEFAULT: str = "100/15minutes"
    RATE_LIMIT_CHAT: str = "10/minute"

    @property
    def cors_origins(self) -> List[str]:
        """Frontend origin plus its 127.0.0.1 twin, followed by any extra origins"""
        origins = [self.FRONTEND_URL, self.FRONTEND_URL.replace("http://localhost", "http://127.0.0.1")]
        for origin in self.BACKEND_CORS_ORIGINS:
            if origin not in origins:
                origins.append(origin)
        return origins

    @property
    def database_url(self) -> str:
        if self.DB_PATH == ":memory:":
            return "sqlite://"
        return f"sqlite:///{self.DB_PATH}"

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        # Create the database directory if it doesn't exist
        db_dir = os.path.dirname(self.DB_PATH)
        if self.DB_PATH != ":memory:" and db_dir:
            os.makedirs(db_dir, exist_ok=True)

    class Config:
        env_file = ".env"
        extra = "ignore"

settings = Settings()
