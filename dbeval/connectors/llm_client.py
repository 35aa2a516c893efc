"""
Completion API client.

Groq exposes an OpenAI-compatible chat completions endpoint, so the `openai`
SDK is used with a custom base URL.
"""

import logging
from typing import Any, Optional

from openai import AsyncOpenAI

from dbeval.config import Settings
from dbeval.errors import CompletionError

logger = logging.getLogger(__name__)


class CompletionClient:
    """Thin wrapper around `chat.completions.create` returning plain text."""

    def __init__(self, client: Any, model: str):
        self._client = client
        self.model = model

    @classmethod
    def from_settings(cls, settings: Settings) -> "CompletionClient":
        settings.require("GROQ_API_KEY")
        client = AsyncOpenAI(
            api_key=settings.GROQ_API_KEY,
            base_url=settings.GROQ_BASE_URL,
            # Failures are reported, never retried
            max_retries=0,
        )
        return cls(client, settings.GROQ_MODEL)

    async def complete(
        self,
        system: str,
        prompt: str,
        *,
        temperature: float,
        max_tokens: int,
    ) -> str:
        """
        Send one system+user exchange and return the completion text.

        Raises:
            CompletionError: if the response carries no text
        """
        logger.debug(
            "Completion request: model=%s, prompt_len=%d, temperature=%s, max_tokens=%d",
            self.model,
            len(prompt),
            temperature,
            max_tokens,
        )
        resp = await self._client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": system},
                {"role": "user", "content": prompt},
            ],
            temperature=temperature,
            max_tokens=max_tokens,
        )

        text = _extract_text(resp)
        if not text:
            raise CompletionError(f"No response from {self.model}")
        return text


def _extract_text(resp: Any) -> Optional[str]:
    choices = getattr(resp, "choices", None) or []
    if not choices:
        return None
    message = getattr(choices[0], "message", None)
    return getattr(message, "content", None)
