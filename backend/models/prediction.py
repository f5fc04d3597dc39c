from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, Float, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, new_uuid, utcnow


class Prediction(Base):
    """AI-generated score prediction for an upcoming fixture."""

    __tablename__ = "predictions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_uuid)
    # Upstream fixture id (API-Football), not a FK into matches.
    match_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    predicted_score: Mapped[str] = mapped_column(String(16), nullable=False)
    confidence_score: Mapped[int] = mapped_column(Integer, nullable=False)
    reasoning: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    ai_model_used: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)

    home_win_odds: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    draw_odds: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    away_win_odds: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    home_team: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    away_team: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    league: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    match_date: Mapped[Optional[str]] = mapped_column(String(40), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )
