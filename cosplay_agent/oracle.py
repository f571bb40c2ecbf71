"""Text oracle adapters.

Provides:
- AbstractOracle: interface used by the suggestion agent
- OpenAIOracle: chat-completions adapter with timing and token usage"""

import time
from typing import Any, Optional

from openai import AsyncOpenAI

from .config import OPENAI_MODEL
from .models import OracleAnswer, OracleFailure


class AbstractOracle:
    """Interface for text oracles."""
    async def ask(self, prompt: str, system_instruction: str) -> OracleAnswer:
        #Return the oracle's raw answer for a user prompt and system instruction
        raise NotImplementedError

    async def aclose(self) -> None:
        return None


class OpenAIOracle(AbstractOracle):
    """Async OpenAI chat-completions adapter."""

    def __init__(self, client: Optional[AsyncOpenAI] = None, model: str = OPENAI_MODEL) -> None:
        # Created lazily so the app can start without an API key.
        self._client = client
        self.model = model

    def _get_client(self) -> AsyncOpenAI:
        if self._client is None:
            self._client = AsyncOpenAI()
        return self._client

    async def ask(self, prompt: str, system_instruction: str) -> OracleAnswer:
        started = time.monotonic()
        try:
            response = await self._get_client().chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": system_instruction},
                    {"role": "user", "content": prompt},
                ],
            )
        except Exception as e:
            raise OracleFailure(f"Oracle call failed: {e}") from e
        elapsed_ms = int((time.monotonic() - started) * 1000)
        return _to_answer(response, elapsed_ms)

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.close()


def _to_answer(response: Any, elapsed_ms: int) -> OracleAnswer:
    if not response.choices:
        raise OracleFailure("Oracle returned no choices")
    choice = response.choices[0]
    text = choice.message.content or ""
    if not text.strip():
        raise OracleFailure("Oracle returned an empty answer")

    usage = getattr(response, "usage", None)
    return OracleAnswer(
        text=text,
        model=getattr(response, "model", None),
        elapsed_ms=elapsed_ms,
        prompt_tokens=getattr(usage, "prompt_tokens", None),
        completion_tokens=getattr(usage, "completion_tokens", None),
        total_tokens=getattr(usage, "total_tokens", None),
        finish_reason=getattr(choice, "finish_reason", None),
    )
