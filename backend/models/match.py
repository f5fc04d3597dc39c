from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, new_uuid, utcnow

MANUAL_MATCH_STATUSES = ("upcoming", "live", "ft")


class Match(Base):
    """Fixture or result, entered by an admin or synced from API-Football."""

    __tablename__ = "matches"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_uuid)
    api_match_id: Mapped[Optional[str]] = mapped_column(
        String(64), nullable=True, unique=True
    )
    home_team: Mapped[str] = mapped_column(String(255), nullable=False)
    away_team: Mapped[str] = mapped_column(String(255), nullable=False)
    league: Mapped[str] = mapped_column(String(255), nullable=False)
    competition_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)

    # Stored as the composed ISO-8601 string the client submitted ("2025-08-02T17:00:00Z").
    match_date: Mapped[str] = mapped_column(String(40), nullable=False)
    start_time: Mapped[Optional[str]] = mapped_column(String(40), nullable=True)

    status: Mapped[Optional[str]] = mapped_column(String(16), nullable=True)
    venue: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    minute: Mapped[Optional[str]] = mapped_column(String(16), nullable=True)
    home_score: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    away_score: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    __table_args__ = (
        Index("ix_match_league_date", "league", "match_date"),
        Index("ix_match_status_date", "status", "match_date"),
    )
