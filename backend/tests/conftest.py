"""
Shared fixtures for insight tests.

- sample_metrics: the 25-todo snapshot used across scenarios
- make_provider: factory for scripted in-process providers
- session_factory: async sessions on a temporary SQLite file
"""

from datetime import date, datetime, timezone

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from todo_insights.config import ProviderConfig
from todo_insights.database import init_db
from todo_insights.services.metrics import DailyMetrics, StaticMetricsProvider
from todo_insights.services.providers.base import LLMProvider

FIXED_NOW = datetime(2026, 1, 9, 12, 0, tzinfo=timezone.utc)


class FakeProvider(LLMProvider):
    """Scripted provider: returns `text` or raises `error`, recording every call."""

    def __init__(self, name, *, enabled=True, api_key="test-key", text="Generated summary", error=None, model=None):
        super().__init__(
            ProviderConfig(
                name=name,
                enabled=enabled,
                api_key=api_key,
                model=model or f"{name}-model",
                max_tokens=100,
                temperature=0.5,
                timeout_seconds=5,
            )
        )
        self.name = name
        self.display_name = name.capitalize()
        self.text = text
        self.error = error
        self.calls = []
        self.closed = False

    async def _generate(self, system_prompt, user_message):
        self.calls.append((system_prompt, user_message))
        if self.error is not None:
            raise self.error
        return self.text

    async def aclose(self):
        self.closed = True


@pytest.fixture
def fixed_clock():
    return lambda: FIXED_NOW


@pytest.fixture
def sample_metrics():
    return DailyMetrics(
        date=date(2026, 1, 9),
        total_todos=25,
        completed_count=10,
        in_progress_count=8,
        not_started_count=5,
        cancelled_count=2,
        overdue_count=3,
        due_today_count=4,
        upcoming_count=6,
        completion_rate=43.48,
        by_priority={"HIGH": 5, "MEDIUM": 12, "LOW": 6, "NONE": 2},
        by_status={"COMPLETED": 10, "IN_PROGRESS": 8, "NOT_STARTED": 5, "CANCELLED": 2},
    )


@pytest.fixture
def metrics_provider(sample_metrics):
    return StaticMetricsProvider({"user-1": sample_metrics, "user-2": sample_metrics})


@pytest.fixture
def make_provider():
    return FakeProvider


@pytest.fixture
def provider_config():
    def _make(name="test", **overrides):
        values = dict(
            name=name,
            enabled=True,
            api_key="sk-secret-123",
            model="test-model",
            max_tokens=200,
            temperature=0.3,
            timeout_seconds=5,
        )
        values.update(overrides)
        return ProviderConfig(**values)

    return _make


@pytest_asyncio.fixture
async def db_engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'insights.db'}")
    await init_db(engine)
    try:
        yield engine
    finally:
        await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)
