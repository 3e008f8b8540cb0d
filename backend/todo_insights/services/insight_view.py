from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional, Union

from .metrics import DailyMetrics
from .personas import PersonaCode, get_persona


@dataclass(frozen=True)
class GeneratedContent:
    summary_text: str
    model_name: str
    provider_used: str


@dataclass(frozen=True)
class FallbackContent:
    reason: str


InsightContent = Union[GeneratedContent, FallbackContent]


@dataclass(frozen=True)
class GenerationResult:
    """Outcome of one selector run. Build with succeeded() / failed()."""

    success: bool
    summary_text: Optional[str] = None
    model_name: Optional[str] = None
    provider_used: Optional[str] = None
    failure_reason: Optional[str] = None

    @classmethod
    def succeeded(cls, summary_text: str, model_name: str, provider_used: str) -> "GenerationResult":
        return cls(True, summary_text=summary_text, model_name=model_name, provider_used=provider_used)

    @classmethod
    def failed(cls, reason: str) -> "GenerationResult":
        return cls(False, failure_reason=reason or "AI service encountered an error")

    def to_content(self) -> InsightContent:
        if self.success:
            return GeneratedContent(self.summary_text, self.model_name, self.provider_used)
        return FallbackContent(self.failure_reason)


@dataclass(frozen=True)
class InsightView:
    """Owner-facing insight: generated text or a fallback reason, plus the metrics it was built from."""

    summary_date: date
    persona: PersonaCode
    content: InsightContent
    metrics: DailyMetrics

    @classmethod
    def generated(
        cls,
        summary_date: date,
        persona: PersonaCode,
        summary_text: str,
        model_name: str,
        provider_used: str,
        metrics: DailyMetrics,
    ) -> "InsightView":
        return cls(summary_date, persona, GeneratedContent(summary_text, model_name, provider_used), metrics)

    @classmethod
    def fallback(cls, summary_date: date, persona: PersonaCode, reason: str, metrics: DailyMetrics) -> "InsightView":
        return cls(summary_date, persona, FallbackContent(reason), metrics)

    @property
    def ai_generated(self) -> bool:
        return isinstance(self.content, GeneratedContent)

    @property
    def summary_text(self) -> Optional[str]:
        return self.content.summary_text if self.ai_generated else None

    @property
    def model_name(self) -> Optional[str]:
        return self.content.model_name if self.ai_generated else None

    @property
    def provider_used(self) -> Optional[str]:
        return self.content.provider_used if self.ai_generated else None

    @property
    def fallback_reason(self) -> Optional[str]:
        return None if self.ai_generated else self.content.reason

    @property
    def persona_name(self) -> str:
        return get_persona(self.persona).display_name
