from __future__ import annotations

import httpx

from ...config import ProviderConfig
from .base import HttpProvider, ProviderError

DEFAULT_BASE_URL = "https://openrouter.ai/api/v1"


class OpenRouterProvider(HttpProvider):
    name = "openrouter"
    display_name = "OpenRouter"

    def __init__(
        self,
        config: ProviderConfig,
        base_url: str = DEFAULT_BASE_URL,
        http_client: httpx.AsyncClient | None = None,
    ):
        super().__init__(config, base_url=base_url, http_client=http_client)

    def _auth_headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self._config.api_key}"}

    async def _generate(self, system_prompt: str, user_message: str) -> str:
        data = await self._post_json(
            "chat/completions",
            {
                "model": self.model,
                "messages": [
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_message},
                ],
                "max_tokens": self._config.max_tokens,
                "temperature": self._config.temperature,
            },
        )
        try:
            return data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise ProviderError("Unexpected OpenRouter response format", provider=self.name) from e
