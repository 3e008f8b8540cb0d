from __future__ import annotations

import httpx

from ...config import ProviderConfig
from .base import HttpProvider, ProviderError

DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"


class GeminiProvider(HttpProvider):
    """Google Gemini provider using the AI Studio generateContent REST endpoint."""

    name = "gemini"
    display_name = "Gemini"

    def __init__(
        self,
        config: ProviderConfig,
        base_url: str = DEFAULT_BASE_URL,
        http_client: httpx.AsyncClient | None = None,
    ):
        super().__init__(config, base_url=base_url, http_client=http_client)

    def _auth_headers(self) -> dict[str, str]:
        return {"x-goog-api-key": self._config.api_key}

    async def _generate(self, system_prompt: str, user_message: str) -> str:
        data = await self._post_json(
            f"models/{self.model}:generateContent",
            {
                "systemInstruction": {"parts": [{"text": system_prompt}]},
                "contents": [{"role": "user", "parts": [{"text": user_message}]}],
                "generationConfig": {
                    "maxOutputTokens": self._config.max_tokens,
                    "temperature": self._config.temperature,
                },
            },
        )

        try:
            parts = data["candidates"][0]["content"]["parts"]
            return "\n".join(p["text"] for p in parts if p.get("text"))
        except (KeyError, IndexError, TypeError, AttributeError) as e:
            finish_reason = "unknown"
            candidates = data.get("candidates")
            if isinstance(candidates, list) and candidates and isinstance(candidates[0], dict):
                finish_reason = str(candidates[0].get("finishReason", "unknown"))
            raise ProviderError(
                f"Unexpected Gemini response format (finish_reason={finish_reason})", provider=self.name
            ) from e
