from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Mapping


class PersonaCode(str, Enum):
    EXECUTIVE = "EXECUTIVE"
    DEVELOPER = "DEVELOPER"
    STUDENT = "STUDENT"
    FOCUS_SUPPORT = "FOCUS_SUPPORT"
    CREATIVE = "CREATIVE"
    OPERATIONS = "OPERATIONS"
    PERSONAL = "PERSONAL"
    STANDUP = "STANDUP"
    WEEKLY_REVIEW = "WEEKLY_REVIEW"
    MINIMAL = "MINIMAL"


class UnknownPersonaError(ValueError):
    """Raised when a persona code is not part of the catalog."""


@dataclass(frozen=True)
class Persona:
    code: PersonaCode
    display_name: str
    description: str
    prompt: str


_CATALOG = (
    Persona(
        PersonaCode.EXECUTIVE,
        "Executive / Manager",
        "High-level, outcome-focused, no task noise.",
        "Summarize today's todo list into a high-level progress update. Focus on outcomes, risks, "
        "and what still needs attention. Keep it concise and suitable for leadership review.",
    ),
    Persona(
        PersonaCode.DEVELOPER,
        "Software Engineer / Developer",
        "Structured, technical, standup-ready.",
        "Convert my todo list into a daily engineering summary. Separate completed work, in-progress "
        "tasks, and carry-overs. Highlight blockers, decisions made, and next technical steps.",
    ),
    Persona(
        PersonaCode.STUDENT,
        "Student",
        "Learning-oriented, clarity-first.",
        "Summarize my daily tasks with a focus on learning progress. Identify what was completed, what "
        "needs review, and what should be prioritized tomorrow. Keep the language simple and clear.",
    ),
    Persona(
        PersonaCode.FOCUS_SUPPORT,
        "Focus Support",
        "Low cognitive load, actionable.",
        "Simplify my todo list into a clear and calm daily summary. Reduce it to the most important "
        "tasks only. Suggest the next single action to start tomorrow.",
    ),
    Persona(
        PersonaCode.CREATIVE,
        "Creative (Designer, Writer, Artist)",
        "Flow-oriented, non-rigid.",
        "Summarize my daily tasks in a way that reflects creative progress. Highlight what was created, "
        "what is evolving, and what ideas should be revisited. Avoid rigid structure.",
    ),
    Persona(
        PersonaCode.OPERATIONS,
        "Operations / Support / Logistics",
        "Process, throughput, accountability.",
        "Turn my todo list into an operational daily report. Show completed tasks, pending items, and "
        "any delays or dependencies. Keep it factual and process-focused.",
    ),
    Persona(
        PersonaCode.PERSONAL,
        "Personal Life / Home Tasks",
        "Friendly but practical.",
        "Summarize my personal todo list for the day. Highlight what got done, what can wait, and the "
        "top priorities for tomorrow. Keep it short and encouraging.",
    ),
    Persona(
        PersonaCode.STANDUP,
        "Team Standup (Shared)",
        "Collaborative and transparent.",
        "Create a standup-style summary from my todo list. Include what was completed, what I'm working "
        "on, and anything blocking progress. Keep it brief and team-friendly.",
    ),
    Persona(
        PersonaCode.WEEKLY_REVIEW,
        "Weekly Review (Individual)",
        "Reflective but concrete.",
        "Review my todo list for the week and summarize progress. Identify patterns, recurring delays, "
        "and key accomplishments. Suggest one improvement for next week.",
    ),
    Persona(
        PersonaCode.MINIMAL,
        "Ultra-Minimal",
        "For dashboards or notifications.",
        "Summarize my todo list in under 5 bullet points. Prioritize clarity and action over detail.",
    ),
)

PERSONAS: Mapping[PersonaCode, Persona] = MappingProxyType({p.code: p for p in _CATALOG})


def get_persona(code: PersonaCode | str) -> Persona:
    """Look up a persona by code. Plain strings are matched case-insensitively."""
    try:
        key = code if isinstance(code, PersonaCode) else PersonaCode(str(code).strip().upper())
    except ValueError:
        raise UnknownPersonaError(
            f"Unknown persona: '{code}'. Supported: {', '.join(c.value for c in PersonaCode)}"
        ) from None
    return PERSONAS[key]


def list_personas() -> list[Persona]:
    return list(PERSONAS.values())
