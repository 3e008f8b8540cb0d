from __future__ import annotations

import logging

import httpx
import openai
from openai import AsyncOpenAI

from ...config import ProviderConfig
from .base import LLMProvider, ProviderError

logger = logging.getLogger(__name__)


class OpenAIProvider(LLMProvider):
    """OpenAI chat completions provider (GPT-4.1-nano, GPT-4o-mini, etc.)."""

    name = "openai"
    display_name = "OpenAI"

    def __init__(self, config: ProviderConfig, http_client: httpx.AsyncClient | None = None, base_url: str | None = None):
        super().__init__(config)
        self._client: AsyncOpenAI | None = None
        if self.is_available():
            # Failover happens across providers, never by retrying the same one.
            self._client = AsyncOpenAI(
                api_key=config.api_key,
                base_url=base_url,
                timeout=config.timeout_seconds,
                max_retries=0,
                http_client=http_client,
            )

    async def _generate(self, system_prompt: str, user_message: str) -> str:
        try:
            response = await self._client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_message},
                ],
                max_tokens=self._config.max_tokens,
                temperature=self._config.temperature,
            )
        except openai.APITimeoutError as e:
            raise ProviderError(
                f"OpenAI request timed out after {self._config.timeout_seconds}s", provider=self.name
            ) from e
        except openai.APIStatusError as e:
            self._log_http_error(e.status_code, e.response.text)
            raise ProviderError(
                f"OpenAI API returned status {e.status_code}", provider=self.name, status_code=e.status_code
            ) from e
        except openai.APIError as e:
            raise ProviderError(f"OpenAI request failed: {type(e).__name__}", provider=self.name) from e

        try:
            return response.choices[0].message.content
        except (AttributeError, IndexError, TypeError) as e:
            raise ProviderError("Unexpected OpenAI response format", provider=self.name) from e

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.close()
            self._client = None
