"""
Tests for InsightService: cache-first lookup, regeneration, fallback and persistence.

Uses the real two-tier cache on SQLite and scripted providers.
"""

import asyncio
from datetime import date
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy import select
from sqlalchemy.exc import OperationalError

from todo_insights.models import AiInsight
from todo_insights.services.insight_cache import InsightCache
from todo_insights.services.insight_service import InsightService
from todo_insights.services.personas import PersonaCode, list_personas
from todo_insights.services.provider_selector import ALL_DISABLED_REASON, ProviderSelector
from todo_insights.services.providers.base import ProviderChoice, ProviderError

OWNER = "user-1"


@pytest.fixture
def build_service(session_factory, metrics_provider, fixed_clock):
    def _build(*providers):
        cache = InsightCache(session_factory, metrics_provider, clock=fixed_clock)
        return InsightService(cache, ProviderSelector(list(providers)), metrics_provider, clock=fixed_clock)

    return _build


async def _rows(session_factory):
    async with session_factory() as session:
        return (await session.execute(select(AiInsight).where(AiInsight.owner_id == OWNER))).scalars().all()


class TestGetInsight:

    @pytest.mark.asyncio
    async def test_generated_insight(self, build_service, make_provider):
        service = build_service(make_provider("openai", text="Standup ready summary", model="gpt-4.1-nano"))

        view = await service.get_insight(OWNER, PersonaCode.DEVELOPER)

        assert view.ai_generated is True
        assert view.summary_text == "Standup ready summary"
        assert view.model_name == "gpt-4.1-nano"
        assert view.provider_used == "openai"
        assert view.fallback_reason is None
        assert view.persona == PersonaCode.DEVELOPER
        assert view.persona_name == "Software Engineer / Developer"
        assert view.summary_date == date(2026, 1, 9)
        assert view.metrics.total_todos == 25

    @pytest.mark.asyncio
    async def test_all_providers_disabled_falls_back(self, build_service, make_provider, session_factory):
        openai = make_provider("openai", enabled=False)
        gemini = make_provider("gemini", enabled=False)
        service = build_service(openai, gemini)

        view = await service.get_insight(OWNER, PersonaCode.DEVELOPER)

        assert view.ai_generated is False
        assert view.fallback_reason == ALL_DISABLED_REASON
        assert view.summary_text is None
        assert view.model_name is None
        assert view.metrics.total_todos == 25
        assert view.metrics.completed_count == 10
        assert openai.calls == [] and gemini.calls == []
        assert len(await _rows(session_factory)) == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize("persona", [p.code for p in list_personas()])
    async def test_fallback_for_every_persona(self, build_service, make_provider, persona):
        service = build_service(make_provider("openai", api_key=""))

        view = await service.get_insight(OWNER, persona)

        assert view.ai_generated is False
        assert view.fallback_reason
        assert view.summary_text is None
        assert view.model_name is None
        assert view.metrics is not None

    @pytest.mark.asyncio
    async def test_generation_failure_falls_back(self, build_service, make_provider):
        service = build_service(make_provider("openai", error=ProviderError("OpenAI API returned status 500")))

        view = await service.get_insight(OWNER, PersonaCode.STUDENT)

        assert view.ai_generated is False
        assert view.fallback_reason == "OpenAI API returned status 500"
        assert view.model_name is None
        assert view.provider_used is None

    @pytest.mark.asyncio
    async def test_second_call_is_served_from_cache(self, build_service, make_provider):
        provider = make_provider("openai")
        service = build_service(provider)

        first = await service.get_insight(OWNER, PersonaCode.DEVELOPER)
        second = await service.get_insight(OWNER, PersonaCode.DEVELOPER)

        assert second == first
        assert len(provider.calls) == 1

    @pytest.mark.asyncio
    async def test_persona_mismatch_regenerates_and_overwrites(self, build_service, make_provider, session_factory):
        provider = make_provider("openai", text="Developer summary")
        service = build_service(provider)
        await service.get_insight(OWNER, PersonaCode.DEVELOPER)
        provider.text = "Executive summary"

        view = await service.get_insight(OWNER, PersonaCode.EXECUTIVE)

        assert view.summary_text == "Executive summary"
        assert view.persona == PersonaCode.EXECUTIVE
        assert len(provider.calls) == 2
        rows = await _rows(session_factory)
        assert len(rows) == 1
        assert rows[0].persona_code == "EXECUTIVE"

    @pytest.mark.asyncio
    async def test_failover_reports_second_provider(self, build_service, make_provider):
        first = make_provider("openai", error=ProviderError("timed out"))
        second = make_provider("gemini", text="From Gemini", model="gemini-2.0-flash")
        service = build_service(first, second)

        view = await service.get_insight(OWNER, PersonaCode.OPERATIONS)

        assert view.provider_used == "gemini"
        assert view.model_name == "gemini-2.0-flash"

    @pytest.mark.asyncio
    async def test_explicit_unavailable_provider_falls_back_without_calls(self, build_service, make_provider):
        openai = make_provider("openai", enabled=False)
        gemini = make_provider("gemini")
        service = build_service(openai, gemini)

        view = await service.get_insight(OWNER, PersonaCode.PERSONAL, ProviderChoice.OPENAI)

        assert view.ai_generated is False
        assert view.fallback_reason == "Openai provider is disabled"
        assert gemini.calls == []

    @pytest.mark.asyncio
    async def test_cached_fallback_is_replayed(self, build_service, make_provider):
        provider = make_provider("openai", error=ProviderError("timed out"))
        service = build_service(provider)

        await service.get_insight(OWNER, PersonaCode.MINIMAL)
        provider.error = None
        view = await service.get_insight(OWNER, PersonaCode.MINIMAL)

        assert view.ai_generated is False
        assert len(provider.calls) == 1


class TestGenerateNewInsight:

    @pytest.mark.asyncio
    async def test_forces_generation_despite_cache(self, build_service, make_provider):
        provider = make_provider("openai", text="v1")
        service = build_service(provider)
        await service.get_insight(OWNER, PersonaCode.DEVELOPER)
        provider.text = "v2"

        view = await service.generate_new_insight(OWNER, PersonaCode.DEVELOPER)

        assert view.summary_text == "v2"
        assert len(provider.calls) == 2
        assert (await service.get_cached_insight(OWNER)).summary_text == "v2"

    @pytest.mark.asyncio
    async def test_storage_failure_propagates(self, make_provider, metrics_provider):
        cache = MagicMock(spec=InsightCache)
        cache.save_insight = AsyncMock(side_effect=OperationalError("INSERT", {}, Exception("disk I/O error")))
        service = InsightService(cache, ProviderSelector([make_provider("openai")]), metrics_provider)

        with pytest.raises(OperationalError):
            await service.generate_new_insight(OWNER, PersonaCode.DEVELOPER)


class TestInvalidateInsightCache:

    @pytest.mark.asyncio
    async def test_next_lookup_regenerates(self, build_service, make_provider, session_factory):
        provider = make_provider("openai")
        service = build_service(provider)
        await service.get_insight(OWNER, PersonaCode.DEVELOPER)

        await service.invalidate_insight_cache(OWNER)
        assert await service.get_cached_insight(OWNER) is None
        assert await _rows(session_factory) == []

        await service.get_insight(OWNER, PersonaCode.DEVELOPER)
        assert len(provider.calls) == 2

    @pytest.mark.asyncio
    async def test_delegates_to_cache(self, make_provider, metrics_provider):
        cache = MagicMock(spec=InsightCache)
        cache.invalidate_cache = AsyncMock()
        service = InsightService(cache, ProviderSelector([]), metrics_provider)

        await service.invalidate_insight_cache(OWNER)

        cache.invalidate_cache.assert_awaited_once_with(OWNER)


class TestMetadata:

    @pytest.mark.asyncio
    async def test_personas_and_availability(self, build_service, make_provider):
        service = build_service(make_provider("openai", enabled=False), make_provider("gemini"))

        assert len(service.get_available_personas()) == 10
        assert service.is_ai_available() is True
        assert [i.provider for i in service.get_provider_info()] == ["openai", "gemini"]

    @pytest.mark.asyncio
    async def test_no_ai_available(self, build_service, make_provider):
        service = build_service(make_provider("openai", enabled=False))
        assert service.is_ai_available() is False


class TestConcurrentRequests:

    @pytest.mark.asyncio
    async def test_concurrent_misses_for_one_owner_store_one_row(self, build_service, make_provider, session_factory):
        class SlowProvider(make_provider):
            async def _generate(self, system_prompt, user_message):
                await asyncio.sleep(0.05)
                return await super()._generate(system_prompt, user_message)

        provider = SlowProvider("openai", text="Concurrent summary")
        service = build_service(provider)

        views = await asyncio.gather(*(service.get_insight(OWNER, PersonaCode.DEVELOPER) for _ in range(5)))

        assert all(v.summary_text == "Concurrent summary" for v in views)
        assert len(provider.calls) == 5
        rows = await _rows(session_factory)
        assert len(rows) == 1
        assert rows[0].persona_code == "DEVELOPER"
        assert (await service.get_cached_insight(OWNER)).summary_text == "Concurrent summary"
