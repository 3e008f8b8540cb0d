from datetime import date as Date
from typing import Dict, List, Optional

from pydantic import BaseModel

from .services.insight_view import InsightView
from .services.metrics import DailyMetrics
from .services.personas import Persona
from .services.provider_selector import ProviderInfo


class MetricsResponse(BaseModel):
    date: Date
    total_todos: int
    completed_count: int
    in_progress_count: int
    not_started_count: int
    cancelled_count: int
    overdue_count: int
    due_today_count: int
    upcoming_count: int
    completion_rate: float
    by_priority: Dict[str, int] = {}
    by_status: Dict[str, int] = {}

    @classmethod
    def from_metrics(cls, m: DailyMetrics) -> "MetricsResponse":
        return cls(
            date=m.date, total_todos=m.total_todos, completed_count=m.completed_count,
            in_progress_count=m.in_progress_count, not_started_count=m.not_started_count,
            cancelled_count=m.cancelled_count, overdue_count=m.overdue_count,
            due_today_count=m.due_today_count, upcoming_count=m.upcoming_count,
            completion_rate=m.completion_rate, by_priority=dict(m.by_priority),
            by_status=dict(m.by_status),
        )


class InsightResponse(BaseModel):
    date: Date
    persona: str
    persona_name: str
    ai_generated: bool
    summary: Optional[str] = None
    model: Optional[str] = None
    fallback_reason: Optional[str] = None
    metrics: MetricsResponse

    @classmethod
    def from_view(cls, view: InsightView) -> "InsightResponse":
        return cls(
            date=view.summary_date, persona=view.persona.value, persona_name=view.persona_name,
            ai_generated=view.ai_generated, summary=view.summary_text, model=view.model_name,
            fallback_reason=view.fallback_reason, metrics=MetricsResponse.from_metrics(view.metrics),
        )


class RegenerateRequest(BaseModel):
    persona: str
    provider: Optional[str] = None


class PersonaResponse(BaseModel):
    value: str
    display_name: str
    description: str

    @classmethod
    def from_persona(cls, p: Persona) -> "PersonaResponse":
        return cls(value=p.code.value, display_name=p.display_name, description=p.description)


class ProviderInfoResponse(BaseModel):
    provider: str
    display_name: str
    model: str
    enabled: bool
    configured: bool
    available: bool

    @classmethod
    def from_info(cls, info: ProviderInfo) -> "ProviderInfoResponse":
        return cls(**info.__dict__)


class AiStatusResponse(BaseModel):
    ai_available: bool
    providers: List[ProviderInfoResponse]
