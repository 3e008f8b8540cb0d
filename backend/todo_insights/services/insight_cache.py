from __future__ import annotations

import logging
import threading
from datetime import date, datetime, timezone
from typing import Callable, Optional
from uuid import uuid4

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..models import AiInsight
from .insight_view import InsightView
from .metrics import MetricsProvider
from .personas import UnknownPersonaError, get_persona

logger = logging.getLogger(__name__)

AI_INSIGHT_PREFIX = "ai-insight:"


def cache_key(owner_id: str) -> str:
    return f"{AI_INSIGHT_PREFIX}{owner_id}"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class MemoryInsightStore:
    """Thread-safe in-memory tier. Values are immutable views, replaced or removed whole.

    Every put/remove bumps the key's version so a slow reader can avoid
    re-populating an entry that was invalidated while it was reading.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._entries: dict[str, InsightView] = {}
        self._versions: dict[str, int] = {}

    def get(self, key: str) -> Optional[InsightView]:
        with self._lock:
            return self._entries.get(key)

    def version(self, key: str) -> int:
        with self._lock:
            return self._versions.get(key, 0)

    def put(self, key: str, view: InsightView) -> None:
        with self._lock:
            self._entries[key] = view
            self._versions[key] = self._versions.get(key, 0) + 1

    def put_if_unchanged(self, key: str, view: InsightView, version: int) -> bool:
        with self._lock:
            if self._versions.get(key, 0) != version:
                return False
            self._entries[key] = view
            self._versions[key] = version + 1
            return True

    def remove(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)
            self._versions[key] = self._versions.get(key, 0) + 1

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._versions.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class InsightCache:
    """Two-tier insight store: in-memory accelerator over the ai_insights table.

    The table is the source of truth. Memory is only written after a durable
    write commits, or after a durable read hits. Storage errors propagate.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        metrics_provider: MetricsProvider,
        memory: MemoryInsightStore | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self._session_factory = session_factory
        self._metrics_provider = metrics_provider
        self._memory = memory if memory is not None else MemoryInsightStore()
        self._clock = clock

    @property
    def memory(self) -> MemoryInsightStore:
        return self._memory

    async def get_cached_insight(self, owner_id: str) -> Optional[InsightView]:
        key = cache_key(owner_id)

        cached = self._memory.get(key)
        if cached is not None:
            logger.debug(f"[InsightCache] Memory hit for owner {owner_id}")
            return cached

        version = self._memory.version(key)
        async with self._session_factory() as session:
            row = await self._find(session, owner_id)

        if row is None:
            logger.debug(f"[InsightCache] No stored insight for owner {owner_id}")
            return None

        metrics = await self._metrics_provider.snapshot(owner_id, self._clock())
        view = _to_view(row, metrics)
        if view is None:
            return None

        logger.debug(f"[InsightCache] Database hit for owner {owner_id}")
        self._memory.put_if_unchanged(key, view, version)
        return view

    async def save_insight(self, owner_id: str, view: InsightView, provider_used: Optional[str] = None) -> None:
        """Replace the owner's stored insight (or create it), then write through to memory."""
        if provider_used is None:
            provider_used = view.provider_used

        key = cache_key(owner_id)
        version = self._memory.version(key)
        async with self._session_factory() as session:
            try:
                await self._upsert(session, owner_id, view, provider_used)
                await session.commit()
            except IntegrityError:
                # A concurrent insert for this owner won; overwrite it.
                await session.rollback()
                logger.info(f"[InsightCache] Concurrent insert for owner {owner_id}; updating existing row")
                await self._upsert(session, owner_id, view, provider_used)
                await session.commit()

        if not self._memory.put_if_unchanged(key, view, version):
            # Another save or an invalidation touched the entry meanwhile; reads fall back to the table.
            self._memory.remove(key)
            logger.debug(f"[InsightCache] Memory entry for owner {owner_id} changed during save; evicted")
            return
        logger.debug(f"[InsightCache] Insight saved for owner {owner_id} ({view.persona.value})")

    async def invalidate_cache(self, owner_id: str) -> None:
        async with self._session_factory() as session:
            await session.execute(delete(AiInsight).where(AiInsight.owner_id == owner_id))
            await session.commit()

        self._memory.remove(cache_key(owner_id))
        logger.debug(f"[InsightCache] Insight invalidated for owner {owner_id}")

    def clear_memory(self) -> None:
        self._memory.clear()
        logger.info("[InsightCache] Memory tier cleared")

    async def _find(self, session: AsyncSession, owner_id: str) -> Optional[AiInsight]:
        result = await session.execute(select(AiInsight).where(AiInsight.owner_id == owner_id))
        return result.scalar_one_or_none()

    async def _upsert(
        self, session: AsyncSession, owner_id: str, view: InsightView, provider_used: Optional[str]
    ) -> AiInsight:
        now = self._clock().isoformat()
        row = await self._find(session, owner_id)
        if row is None:
            row = AiInsight(id=str(uuid4()), owner_id=owner_id, created_at=now)
            session.add(row)

        row.persona_code = view.persona.value
        row.summary_date = view.summary_date.isoformat()
        row.ai_generated = view.ai_generated
        row.summary_text = view.summary_text
        row.model_name = view.model_name
        row.fallback_reason = view.fallback_reason
        row.provider_used = provider_used if view.ai_generated else None
        row.updated_at = now
        await session.flush()
        return row


def _to_view(row: AiInsight, metrics) -> Optional[InsightView]:
    try:
        persona = get_persona(row.persona_code).code
    except UnknownPersonaError:
        logger.warning(f"[InsightCache] Stored insight {row.id} has unknown persona '{row.persona_code}'; ignoring")
        return None

    summary_date = date.fromisoformat(row.summary_date)
    if row.ai_generated:
        return InsightView.generated(
            summary_date, persona, row.summary_text or "", row.model_name or "", row.provider_used or "", metrics
        )
    return InsightView.fallback(summary_date, persona, row.fallback_reason or "", metrics)
