from __future__ import annotations

import abc
import logging
from enum import Enum
from typing import Optional

import httpx

from ...config import ProviderConfig

logger = logging.getLogger(__name__)

MAX_LOGGED_BODY_CHARS = 500


class ProviderChoice(str, Enum):
    """Explicit provider override, or AUTO for priority-ordered selection."""

    AUTO = "auto"
    OPENAI = "openai"
    GEMINI = "gemini"
    ANTHROPIC = "anthropic"
    OPENROUTER = "openrouter"

    @classmethod
    def parse(cls, value: "ProviderChoice | str | None") -> "ProviderChoice":
        if isinstance(value, cls):
            return value
        if value is None or not str(value).strip():
            return cls.AUTO
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValueError(
                f"Unknown provider: '{value}'. Supported: {', '.join(c.value for c in cls)}"
            ) from None


class ProviderError(Exception):
    """A single provider attempt failed (timeout, error status or malformed response)."""

    def __init__(self, message: str, provider: str = "", status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.provider = provider
        self.status_code = status_code


class ProviderUnavailableError(ProviderError):
    """The provider is disabled or missing required configuration."""


class LLMProvider(abc.ABC):
    """Abstract base class for summary-generation providers.

    Concrete providers hold one long-lived client created at construction and
    released by aclose(). Instances are shared across concurrent requests.
    """

    name: str = "base"
    display_name: str = "Base"

    def __init__(self, config: ProviderConfig):
        self._config = config

    def config(self) -> ProviderConfig:
        return self._config

    @property
    def enabled(self) -> bool:
        return self._config.enabled

    @property
    def model(self) -> str:
        return self._config.model

    def is_configured(self) -> bool:
        return bool((self._config.api_key or "").strip())

    def is_available(self) -> bool:
        return self.enabled and self.is_configured()

    def unavailable_reason(self) -> Optional[str]:
        if not self.enabled:
            return f"{self.display_name} provider is disabled"
        if not self.is_configured():
            return f"{self.display_name} API key is not configured"
        return None

    async def generate(self, system_prompt: str, user_message: str) -> str:
        """Send one generation request and return the generated text.

        Raises:
            ProviderUnavailableError: provider disabled or not configured.
            ProviderError: timeout, non-success status, or unexpected response shape.
        """
        reason = self.unavailable_reason()
        if reason:
            raise ProviderUnavailableError(reason, provider=self.name)

        logger.info(f"[{self.display_name}] Requesting summary from model {self.model}")
        text = await self._generate(system_prompt, user_message)
        text = (text or "").strip()
        if not text:
            raise ProviderError(f"{self.display_name} returned an empty response", provider=self.name)
        return text

    @abc.abstractmethod
    async def _generate(self, system_prompt: str, user_message: str) -> str:
        ...

    @abc.abstractmethod
    async def aclose(self) -> None:
        """Release the provider's long-lived client."""
        ...

    def _log_http_error(self, status_code: int, body: str) -> None:
        logger.error(
            f"[{self.display_name}] API error: status={status_code}, "
            f"body={(body or '')[:MAX_LOGGED_BODY_CHARS]}"
        )


class HttpProvider(LLMProvider):
    """Provider that talks to a JSON REST endpoint through a shared httpx.AsyncClient."""

    def __init__(self, config: ProviderConfig, base_url: str, http_client: httpx.AsyncClient | None = None):
        super().__init__(config)
        self.base_url = base_url.rstrip("/")
        self._client: httpx.AsyncClient | None = None
        if self.is_available():
            self._client = http_client or httpx.AsyncClient(
                timeout=httpx.Timeout(config.timeout_seconds, connect=config.timeout_seconds),
            )

    @abc.abstractmethod
    def _auth_headers(self) -> dict[str, str]:
        ...

    async def _post_json(self, path: str, payload: dict) -> dict:
        url = f"{self.base_url}/{path.lstrip('/')}"
        try:
            response = await self._client.post(
                url,
                json=payload,
                headers={"Content-Type": "application/json", **self._auth_headers()},
                timeout=self._config.timeout_seconds,
            )
        except httpx.TimeoutException as e:
            logger.warning(f"[{self.display_name}] Request timed out after {self._config.timeout_seconds}s")
            raise ProviderError(
                f"{self.display_name} request timed out after {self._config.timeout_seconds}s",
                provider=self.name,
            ) from e
        except httpx.RequestError as e:
            logger.warning(f"[{self.display_name}] Connection error: {type(e).__name__}")
            raise ProviderError(f"{self.display_name} connection error: {type(e).__name__}", provider=self.name) from e

        if response.status_code != 200:
            self._log_http_error(response.status_code, response.text)
            raise ProviderError(
                f"{self.display_name} API returned status {response.status_code}",
                provider=self.name,
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as e:
            self._log_http_error(response.status_code, response.text)
            raise ProviderError(f"Unexpected {self.display_name} response format", provider=self.name) from e
        if not isinstance(data, dict):
            raise ProviderError(f"Unexpected {self.display_name} response format", provider=self.name)
        return data

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
