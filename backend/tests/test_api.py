"""
API tests for the insights router, run through the app lifespan with
scripted providers and a temporary SQLite database.
"""

import httpx
import pytest
import pytest_asyncio

from todo_insights.main import create_app

HEADERS = {"X-User-Id": "user-1"}


@pytest_asyncio.fixture
async def api(db_engine, metrics_provider, make_provider):
    providers = [
        make_provider("openai", error=None, text="Exec update", model="gpt-4.1-nano"),
        make_provider("gemini", enabled=False),
    ]
    app = create_app(
        metrics_provider=metrics_provider,
        providers_factory=lambda settings: providers,
        db_engine=db_engine,
    )
    async with app.router.lifespan_context(app):
        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
            yield client, providers
    assert all(p.closed for p in providers)


class TestInsightEndpoints:

    @pytest.mark.asyncio
    async def test_get_insight(self, api):
        client, providers = api

        resp = await client.get("/api/insights", params={"persona": "EXECUTIVE"}, headers=HEADERS)

        assert resp.status_code == 200
        body = resp.json()
        assert body["ai_generated"] is True
        assert body["summary"] == "Exec update"
        assert body["model"] == "gpt-4.1-nano"
        assert body["fallback_reason"] is None
        assert body["persona"] == "EXECUTIVE"
        assert body["persona_name"] == "Executive / Manager"
        assert body["metrics"]["total_todos"] == 25
        assert body["metrics"]["by_priority"]["HIGH"] == 5

    @pytest.mark.asyncio
    async def test_repeat_request_uses_cache(self, api):
        client, providers = api

        await client.get("/api/insights", params={"persona": "developer"}, headers=HEADERS)
        await client.get("/api/insights", params={"persona": "developer"}, headers=HEADERS)

        assert len(providers[0].calls) == 1

    @pytest.mark.asyncio
    async def test_explicit_disabled_provider_returns_fallback(self, api):
        client, _ = api

        resp = await client.get(
            "/api/insights", params={"persona": "MINIMAL", "provider": "gemini"}, headers=HEADERS
        )

        assert resp.status_code == 200
        body = resp.json()
        assert body["ai_generated"] is False
        assert body["summary"] is None
        assert body["model"] is None
        assert body["fallback_reason"] == "Gemini provider is disabled"

    @pytest.mark.asyncio
    async def test_missing_owner_header(self, api):
        client, _ = api
        resp = await client.get("/api/insights", params={"persona": "EXECUTIVE"})
        assert resp.status_code == 401

    @pytest.mark.asyncio
    async def test_unknown_persona(self, api):
        client, _ = api
        resp = await client.get("/api/insights", params={"persona": "POET"}, headers=HEADERS)
        assert resp.status_code == 422

    @pytest.mark.asyncio
    async def test_unknown_provider(self, api):
        client, _ = api
        resp = await client.get(
            "/api/insights", params={"persona": "EXECUTIVE", "provider": "cohere"}, headers=HEADERS
        )
        assert resp.status_code == 422

    @pytest.mark.asyncio
    async def test_regenerate_invalidate_and_cached(self, api):
        client, providers = api

        resp = await client.get("/api/insights/cached", headers=HEADERS)
        assert resp.status_code == 404

        resp = await client.post("/api/insights/regenerate", json={"persona": "STANDUP"}, headers=HEADERS)
        assert resp.status_code == 200
        assert resp.json()["persona"] == "STANDUP"

        resp = await client.get("/api/insights/cached", headers=HEADERS)
        assert resp.status_code == 200
        assert resp.json()["persona"] == "STANDUP"

        resp = await client.delete("/api/insights", headers=HEADERS)
        assert resp.json() == {"status": "invalidated"}

        resp = await client.get("/api/insights/cached", headers=HEADERS)
        assert resp.status_code == 404


class TestMetadataEndpoints:

    @pytest.mark.asyncio
    async def test_personas(self, api):
        client, _ = api

        resp = await client.get("/api/insights/personas")

        assert resp.status_code == 200
        values = [p["value"] for p in resp.json()]
        assert len(values) == 10
        assert "FOCUS_SUPPORT" in values

    @pytest.mark.asyncio
    async def test_status(self, api):
        client, _ = api

        resp = await client.get("/api/insights/status")

        body = resp.json()
        assert body["ai_available"] is True
        assert [p["provider"] for p in body["providers"]] == ["openai", "gemini"]
        assert body["providers"][1]["available"] is False

    @pytest.mark.asyncio
    async def test_health(self, api):
        client, _ = api
        resp = await client.get("/api/health")
        assert resp.json() == {"status": "ok"}
