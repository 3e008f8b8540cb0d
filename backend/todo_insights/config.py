from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

PROVIDER_NAMES = ("openai", "gemini", "anthropic", "openrouter")


@dataclass(frozen=True)
class ProviderConfig:
    name: str
    enabled: bool
    api_key: str
    model: str
    max_tokens: int
    temperature: float
    timeout_seconds: float


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        # Always load the backend-local env file, regardless of where the process is started from.
        env_file=str(Path(__file__).resolve().parent.parent / ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Automatic selection order, comma separated
    llm_provider_priority: str = "openai,gemini,anthropic,openrouter"

    # OpenAI
    openai_enabled: bool = True
    openai_api_key: str = ""
    openai_model: str = "gpt-4.1-nano"
    openai_max_tokens: int = 500
    openai_temperature: float = 0.7
    openai_timeout_seconds: float = 30

    # Gemini (AI Studio REST API)
    gemini_enabled: bool = True
    gemini_api_key: str = ""
    gemini_model: str = "gemini-2.0-flash"
    gemini_max_tokens: int = 500
    gemini_temperature: float = 0.7
    gemini_timeout_seconds: float = 30
    gemini_base_url: str = "https://generativelanguage.googleapis.com/v1beta"

    # Anthropic
    anthropic_enabled: bool = False
    anthropic_api_key: str = ""
    anthropic_model: str = "claude-sonnet-4-20250514"
    anthropic_max_tokens: int = 500
    anthropic_temperature: float = 0.7
    anthropic_timeout_seconds: float = 30

    # OpenRouter
    openrouter_enabled: bool = False
    openrouter_api_key: str = ""
    openrouter_model: str = "meta-llama/llama-3.3-70b-instruct:free"
    openrouter_max_tokens: int = 500
    openrouter_temperature: float = 0.7
    openrouter_timeout_seconds: float = 30
    openrouter_base_url: str = "https://openrouter.ai/api/v1"

    # Database
    database_url: str = "sqlite+aiosqlite:///./data/insights.db"

    log_level: str = "INFO"

    def provider_priority(self) -> list[str]:
        """Return the configured automatic-selection order, dropping unknown or repeated names."""
        order: list[str] = []
        for raw in self.llm_provider_priority.split(","):
            name = raw.strip().lower()
            if name in PROVIDER_NAMES and name not in order:
                order.append(name)
        return order

    def provider_config(self, name: str) -> ProviderConfig:
        if name not in PROVIDER_NAMES:
            raise ValueError(f"Unknown provider: '{name}'. Supported: {', '.join(PROVIDER_NAMES)}")
        return ProviderConfig(
            name=name,
            enabled=getattr(self, f"{name}_enabled"),
            api_key=getattr(self, f"{name}_api_key"),
            model=getattr(self, f"{name}_model"),
            max_tokens=getattr(self, f"{name}_max_tokens"),
            temperature=getattr(self, f"{name}_temperature"),
            timeout_seconds=getattr(self, f"{name}_timeout_seconds"),
        )


def configure_logging(level: str | None = None) -> None:
    logging.basicConfig(
        level=(level or settings.log_level).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


settings = Settings()

DATA_DIR = Path(__file__).parent.parent / "data"
DATA_DIR.mkdir(exist_ok=True)
