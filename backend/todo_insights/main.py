from contextlib import asynccontextmanager
from typing import Callable, List, Optional

from fastapi import FastAPI
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from .config import Settings, configure_logging, settings
from .database import engine, init_db
from .services.insight_cache import InsightCache
from .services.insight_service import InsightService
from .services.metrics import MetricsProvider, StaticMetricsProvider
from .services.provider_selector import ProviderSelector
from .services.providers.base import LLMProvider
from .services.providers.factory import build_providers, close_providers


def create_app(
    metrics_provider: Optional[MetricsProvider] = None,
    providers_factory: Callable[[Settings], List[LLMProvider]] = build_providers,
    db_engine: Optional[AsyncEngine] = None,
) -> FastAPI:
    """Build the API. Provider clients live for the app's lifespan and are closed on shutdown."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        bind = db_engine or engine
        await init_db(bind)
        session_factory = async_sessionmaker(bind, class_=AsyncSession, expire_on_commit=False)
        metrics = metrics_provider or StaticMetricsProvider()

        providers = providers_factory(settings)
        try:
            app.state.insight_service = InsightService(
                cache=InsightCache(session_factory, metrics),
                selector=ProviderSelector(providers),
                metrics_provider=metrics,
            )
            yield
        finally:
            await close_providers(providers)

    app = FastAPI(title="Todo Insights", version="1.0.0", lifespan=lifespan)

    from .routers import insights

    app.include_router(insights.router, prefix="/api/insights", tags=["Insights"])

    @app.get("/api/health")
    async def health_check():
        return {"status": "ok"}

    return app


configure_logging()
app = create_app()
