from __future__ import annotations

import logging

from ...config import Settings
from .anthropic_provider import AnthropicProvider
from .base import LLMProvider
from .gemini_provider import GeminiProvider
from .openai_provider import OpenAIProvider
from .openrouter_provider import OpenRouterProvider

logger = logging.getLogger(__name__)


def build_providers(settings: Settings) -> list[LLMProvider]:
    """Create one provider per name in LLM_PROVIDER_PRIORITY, in that order.

    Each provider opens its long-lived client here; the caller owns the list and
    must aclose() every provider at shutdown.
    """
    providers: list[LLMProvider] = []

    for name in settings.provider_priority():
        config = settings.provider_config(name)

        if name == "openai":
            provider = OpenAIProvider(config)
        elif name == "gemini":
            provider = GeminiProvider(config, base_url=settings.gemini_base_url)
        elif name == "anthropic":
            provider = AnthropicProvider(config)
        elif name == "openrouter":
            provider = OpenRouterProvider(config, base_url=settings.openrouter_base_url)
        else:
            continue

        reason = provider.unavailable_reason()
        if reason:
            logger.info(f"[LLM] {provider.display_name} registered but unavailable: {reason}")
        else:
            logger.info(f"[LLM] {provider.display_name} ready (model={provider.model})")
        providers.append(provider)

    if not providers:
        logger.warning("[LLM] LLM_PROVIDER_PRIORITY names no known providers; all insights will use fallback")
    return providers


async def close_providers(providers: list[LLMProvider]) -> None:
    for provider in providers:
        try:
            await provider.aclose()
        except Exception as e:
            logger.warning(f"[LLM] Failed to close {provider.display_name} client: {type(e).__name__}: {e}")
