from __future__ import annotations

import httpx
import anthropic
from anthropic import AsyncAnthropic

from ...config import ProviderConfig
from .base import LLMProvider, ProviderError


class AnthropicProvider(LLMProvider):
    """Anthropic Claude LLM provider."""

    name = "anthropic"
    display_name = "Anthropic"

    def __init__(self, config: ProviderConfig, http_client: httpx.AsyncClient | None = None):
        super().__init__(config)
        self._client: AsyncAnthropic | None = None
        if self.is_available():
            self._client = AsyncAnthropic(
                api_key=config.api_key,
                timeout=config.timeout_seconds,
                max_retries=0,
                http_client=http_client,
            )

    async def _generate(self, system_prompt: str, user_message: str) -> str:
        try:
            response = await self._client.messages.create(
                model=self.model,
                max_tokens=self._config.max_tokens,
                temperature=self._config.temperature,
                system=system_prompt,
                messages=[{"role": "user", "content": user_message}],
            )
        except anthropic.APITimeoutError as e:
            raise ProviderError(
                f"Anthropic request timed out after {self._config.timeout_seconds}s", provider=self.name
            ) from e
        except anthropic.APIStatusError as e:
            self._log_http_error(e.status_code, e.response.text)
            raise ProviderError(
                f"Anthropic API returned status {e.status_code}", provider=self.name, status_code=e.status_code
            ) from e
        except anthropic.APIError as e:
            raise ProviderError(f"Anthropic request failed: {type(e).__name__}", provider=self.name) from e

        try:
            return "".join(block.text for block in response.content if getattr(block, "type", None) == "text")
        except (AttributeError, TypeError) as e:
            raise ProviderError("Unexpected Anthropic response format", provider=self.name) from e

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.close()
            self._client = None
