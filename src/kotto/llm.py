"""Model clients: one list of messages in, one completion out."""

from __future__ import annotations

import json
import logging
from collections import deque
from pathlib import Path
from typing import Any, Awaitable, Iterable, Protocol, Union

import openai
from openai import AsyncOpenAI
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from kotto.config import ModelConfig, get_model_config, settings
from kotto.errors import Interrupt

logger = logging.getLogger(__name__)

TRANSIENT_ERRORS = (
    openai.APIConnectionError,
    openai.RateLimitError,
    openai.InternalServerError,
)


class ModelClient(Protocol):
    def complete(self, messages: list[dict[str, str]]) -> Union[str, Awaitable[str]]: ...


def _create_openai_client(base_url: str = "", api_key: str = "") -> AsyncOpenAI:
    return AsyncOpenAI(
        api_key=api_key or settings.llm_api_key,
        base_url=base_url or settings.llm_base_url,
    )


class OpenAIChatCompletion:
    """Chat-completions backend (OpenAI or any compatible endpoint).

    The controller sends one message per tick; the client keeps the
    transcript so the model sees the whole conversation. Use one client per
    run.
    """

    def __init__(self, config: ModelConfig | None = None, api_key: str = "") -> None:
        if config is None:
            config = get_model_config()
        self._config = config
        self.client = _create_openai_client(config.base_url, api_key)
        self.model = config.model or settings.llm_model
        self._temperature = config.temperature
        self._max_tokens = config.max_tokens
        self.messages: list[dict[str, str]] = []

    def _get_temperature(self) -> float:
        return self._temperature if self._temperature is not None else 0.2

    @retry(
        retry=retry_if_exception_type(TRANSIENT_ERRORS),
        stop=stop_after_attempt(3),
        wait=wait_exponential(min=2, max=30),
        reraise=True,
    )
    async def _create(self, messages: list[dict[str, str]]) -> str:
        kwargs: dict[str, Any] = {
            "model": self.model,
            "messages": messages,
            "temperature": self._get_temperature(),
        }
        if self._max_tokens is not None:
            kwargs["max_tokens"] = self._max_tokens

        logger.debug("Requesting completion from %s (%d messages)", self.model, len(messages))
        response = await self.client.chat.completions.create(**kwargs)
        return response.choices[0].message.content or ""

    async def complete(self, messages: list[dict[str, str]]) -> str:
        self.messages.extend(messages)
        completion = await self._create(list(self.messages))
        self.messages.append({"role": "assistant", "content": completion})
        return completion


class StaticModel:
    """Replays canned completions in order. Useful offline and in tests."""

    def __init__(self, completions: Iterable[str]) -> None:
        self._completions = deque(completions)
        self.received: list[list[dict[str, str]]] = []

    @classmethod
    def from_file(cls, path: Path) -> StaticModel:
        """Load a JSON list of replies; non-string entries are dumped back to JSON."""
        data = json.loads(path.read_text(encoding="utf-8"))
        return cls(item if isinstance(item, str) else json.dumps(item) for item in data)

    async def complete(self, messages: list[dict[str, str]]) -> str:
        self.received.append(messages)
        if not self._completions:
            raise Interrupt(RuntimeError("no more canned completions"))
        return self._completions.popleft()
