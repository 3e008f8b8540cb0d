from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable, Optional

from .insight_cache import InsightCache
from .insight_view import InsightView
from .metrics import MetricsProvider
from .personas import Persona, PersonaCode, get_persona, list_personas
from .provider_selector import ProviderInfo, ProviderSelector
from .providers.base import ProviderChoice

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class InsightService:
    """Coordinates cached lookup, AI generation and persistence of owner insights.

    Provider failures never raise from here: callers always get a view, and
    tell degraded results apart by `ai_generated` / `fallback_reason`.
    Storage errors do propagate.

    Cached insights are not tied to the owner's task data. Whoever mutates
    that data must call invalidate_insight_cache(), otherwise a persona-matched
    lookup keeps returning the stale insight.
    """

    def __init__(
        self,
        cache: InsightCache,
        selector: ProviderSelector,
        metrics_provider: MetricsProvider,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self._cache = cache
        self._selector = selector
        self._metrics_provider = metrics_provider
        self._clock = clock

    async def get_cached_insight(self, owner_id: str) -> Optional[InsightView]:
        return await self._cache.get_cached_insight(owner_id)

    async def get_insight(
        self,
        owner_id: str,
        persona: PersonaCode | str,
        provider: ProviderChoice | str = ProviderChoice.AUTO,
    ) -> InsightView:
        """Return the owner's insight for `persona`, generating it only on a miss or persona mismatch."""
        persona = get_persona(persona).code
        provider = ProviderChoice.parse(provider)

        cached = await self._cache.get_cached_insight(owner_id)
        if cached is not None and cached.persona == persona:
            logger.debug(f"[Insights] Returning cached insight for owner {owner_id}, persona {persona.value}")
            return cached

        return await self.generate_new_insight(owner_id, persona, provider)

    async def generate_new_insight(
        self,
        owner_id: str,
        persona: PersonaCode | str,
        provider: ProviderChoice | str = ProviderChoice.AUTO,
    ) -> InsightView:
        """Generate a fresh insight and replace whatever the owner had stored."""
        persona = get_persona(persona).code
        provider = ProviderChoice.parse(provider)

        view = await self._generate(owner_id, persona, provider)
        await self._cache.save_insight(owner_id, view, view.provider_used)

        logger.info(
            f"[Insights] New insight stored for owner {owner_id}, persona {persona.value}, "
            f"ai_generated={view.ai_generated}"
        )
        return view

    async def invalidate_insight_cache(self, owner_id: str) -> None:
        await self._cache.invalidate_cache(owner_id)
        logger.debug(f"[Insights] Insight invalidated for owner {owner_id}")

    def get_available_personas(self) -> list[Persona]:
        return list_personas()

    def is_ai_available(self) -> bool:
        return self._selector.is_any_provider_available()

    def get_provider_info(self) -> list[ProviderInfo]:
        return self._selector.get_provider_info()

    async def _generate(self, owner_id: str, persona: PersonaCode, provider: ProviderChoice) -> InsightView:
        now = self._clock()
        today = now.date()
        metrics = await self._metrics_provider.snapshot(owner_id, now)

        if not self._selector.is_provider_available(provider):
            reason = self._selector.get_unavailable_reason(provider)
            logger.info(
                f"[Insights] AI unavailable for provider {provider.value}, returning fallback for owner {owner_id}: {reason}"
            )
            return InsightView.fallback(today, persona, reason, metrics)

        result = await self._selector.generate_summary(metrics, persona, provider)
        if result.success:
            logger.info(
                f"[Insights] AI summary generated for owner {owner_id}, persona {persona.value}, "
                f"provider {result.provider_used}"
            )
            return InsightView.generated(
                today, persona, result.summary_text, result.model_name, result.provider_used, metrics
            )

        logger.warning(f"[Insights] AI summary failed for owner {owner_id}, returning fallback: {result.failure_reason}")
        return InsightView.fallback(today, persona, result.failure_reason, metrics)
