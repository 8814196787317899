import logging
from typing import Dict, List, Optional, Sequence

from openai import OpenAI, OpenAIError

from neurotrader.exceptions import UpstreamUnavailable
from neurotrader.services.market_data import MarketData

logger = logging.getLogger(__name__)


def build_context(
    system_prompt: Optional[str],
    history: Sequence,
    message: str,
    max_turns: int = 12,
) -> List[Dict[str, str]]:
    """Build the chat completion message list for one turn.

    ``history`` holds prior turns as ``{"role", "content"}`` dicts. Keeps the
    system prompt (if any) plus the ``max_turns`` most recent of them, oldest first,
    and appends the new user message last.
    """
    context = []
    if system_prompt:
        context.append({"role": "system", "content": system_prompt})

    prior = [m for m in history if m["role"] in ("user", "assistant")]
    prior = prior[-max_turns:] if max_turns > 0 else []
    context.extend({"role": m["role"], "content": m["content"]} for m in prior)

    context.append({"role": "user", "content": message})
    return context


class HostedAgent:
    """Obtains replies from an OpenAI-compatible chat completion API"""

    def __init__(
        self,
        api_key: Optional[str],
        model: str,
        system_prompt: str = "",
        temperature: float = 0.7,
        max_tokens: int = 1024,
        max_turns: int = 12,
        timeout: float = 30.0,
        base_url: Optional[str] = None,
        market_data: Optional[MarketData] = None,
        client=None,
    ):
        self.model = model
        self.system_prompt = system_prompt
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.max_turns = max_turns
        self.market_data = market_data
        self.client = client
        if self.client is None and api_key:
            self.client = OpenAI(api_key=api_key, base_url=base_url, timeout=timeout, max_retries=1)

    @property
    def available(self) -> bool:
        return self.client is not None

    def _system_message(self) -> str:
        if self.market_data is None:
            return self.system_prompt
        return f"{self.system_prompt}\n\n{self.market_data.snapshot()}"

    def reply(self, message: str, history: Sequence = ()) -> str:
        if self.client is None:
            raise UpstreamUnavailable(reason="OPENAI_API_KEY is not configured")

        messages = build_context(self._system_message(), history, message, self.max_turns)
        logger.info(f"Sending {len(messages)} messages to {self.model}")
        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=messages,
                temperature=self.temperature,
                max_tokens=self.max_tokens,
            )
        except OpenAIError as e:
            raise UpstreamUnavailable(reason=f"chat completion failed: {str(e)}") from e

        try:
            content = response.choices[0].message.content
        except (AttributeError, IndexError, TypeError) as e:
            raise UpstreamUnavailable(reason="unexpected chat completion response shape") from e

        if not content or not content.strip():
            raise UpstreamUnavailable(reason="chat completion returned no content")
        return content.strip()
