from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from .insight_view import GenerationResult
from .metrics import DailyMetrics, render_metrics_message
from .personas import PersonaCode, get_persona
from .providers.base import LLMProvider, ProviderChoice, ProviderError

logger = logging.getLogger(__name__)

ALL_DISABLED_REASON = "All AI providers are disabled"
NO_PROVIDERS_REASON = "No AI providers are configured"
GENERIC_FAILURE_REASON = "AI service encountered an error"


@dataclass(frozen=True)
class ProviderInfo:
    provider: str
    display_name: str
    model: str
    enabled: bool
    configured: bool
    available: bool


class ProviderSelector:
    """Tries summary providers in priority order and reports a uniform result.

    generate_summary() never raises: every attempt failure is recorded and the
    next candidate is tried, each provider at most once per call.
    """

    def __init__(self, providers: Sequence[LLMProvider]):
        self._providers = list(providers)
        self._by_name = {p.name: p for p in self._providers}

    def _candidates(self, choice: ProviderChoice) -> list[LLMProvider]:
        if choice == ProviderChoice.AUTO:
            return self._providers
        provider = self._by_name.get(choice.value)
        return [provider] if provider is not None else []

    def is_provider_available(self, choice: ProviderChoice | str = ProviderChoice.AUTO) -> bool:
        return any(p.is_available() for p in self._candidates(ProviderChoice.parse(choice)))

    def is_any_provider_available(self) -> bool:
        return self.is_provider_available(ProviderChoice.AUTO)

    def get_aggregated_unavailable_reason(self) -> str:
        """Explain why automatic selection could not produce a summary."""
        if not self._providers:
            return NO_PROVIDERS_REASON
        if all(not p.enabled for p in self._providers):
            return ALL_DISABLED_REASON
        if self.is_any_provider_available():
            return GENERIC_FAILURE_REASON
        return "; ".join(p.unavailable_reason() for p in self._providers)

    def get_unavailable_reason(self, choice: ProviderChoice | str = ProviderChoice.AUTO) -> str:
        choice = ProviderChoice.parse(choice)
        if choice == ProviderChoice.AUTO:
            return self.get_aggregated_unavailable_reason()
        provider = self._by_name.get(choice.value)
        if provider is None:
            return f"{choice.value} provider is not configured for selection"
        return provider.unavailable_reason() or GENERIC_FAILURE_REASON

    def get_provider_info(self) -> list[ProviderInfo]:
        return [
            ProviderInfo(
                provider=p.name,
                display_name=p.display_name,
                model=p.model,
                enabled=p.enabled,
                configured=p.is_configured(),
                available=p.is_available(),
            )
            for p in self._providers
        ]

    async def generate_summary(
        self,
        metrics: DailyMetrics,
        persona: PersonaCode | str,
        choice: ProviderChoice | str = ProviderChoice.AUTO,
    ) -> GenerationResult:
        try:
            choice = ProviderChoice.parse(choice)
            system_prompt = get_persona(persona).prompt
            user_message = render_metrics_message(metrics)
        except ValueError as e:
            return GenerationResult.failed(str(e))

        candidates = [p for p in self._candidates(choice) if p.is_available()]
        if not candidates:
            reason = self.get_unavailable_reason(choice)
            logger.info(f"[LLM] No provider available for {choice.value}: {reason}")
            return GenerationResult.failed(reason)

        errors: list[tuple[str, str]] = []
        for provider in candidates:
            try:
                logger.info(f"[LLM] Trying {provider.display_name} ({provider.model})")
                text = await provider.generate(system_prompt, user_message)
                logger.info(f"[LLM] Success with {provider.display_name}")
                return GenerationResult.succeeded(text, provider.model, provider.name)
            except ProviderError as e:
                error_msg = e.message or type(e).__name__
            except Exception as e:
                # Any other exception also counts as a failed attempt.
                logger.exception(f"[LLM] {provider.display_name} raised unexpectedly")
                error_msg = f"{type(e).__name__}: {str(e)[:200]}"

            logger.warning(f"[LLM] {provider.display_name} failed: {error_msg}")
            errors.append((provider.display_name, error_msg))

        if len(errors) == 1:
            return GenerationResult.failed(errors[0][1])
        return GenerationResult.failed(
            "All AI providers failed: " + "; ".join(f"{name}: {msg}" for name, msg in errors)
        )
