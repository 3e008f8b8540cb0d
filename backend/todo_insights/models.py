from sqlalchemy import Boolean, Column, Text
from .database import Base


class AiInsight(Base):
    """Most recent generated-or-fallback summary for one owner.

    Each owner has at most one row; a new generation replaces the row in place.
    """

    __tablename__ = "ai_insights"

    id = Column(Text, primary_key=True)
    owner_id = Column(Text, nullable=False, unique=True, index=True)
    persona_code = Column(Text, nullable=False)
    provider_used = Column(Text)
    summary_text = Column(Text)
    ai_generated = Column(Boolean, nullable=False, default=False)
    fallback_reason = Column(Text)
    model_name = Column(Text)
    summary_date = Column(Text, nullable=False)
    created_at = Column(Text, nullable=False)
    updated_at = Column(Text, nullable=False)
