from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, Float, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, new_uuid, utcnow

AFFILIATE_STATUSES = ("pending", "approved", "rejected", "suspended")


class Affiliate(Base):
    """Registered partner earning commission on referred conversions."""

    __tablename__ = "affiliates"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_uuid)
    user_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True, index=True)
    company_name: Mapped[str] = mapped_column(String(255), nullable=False)
    contact_email: Mapped[str] = mapped_column(String(255), nullable=False)
    affiliate_code: Mapped[str] = mapped_column(String(32), nullable=False, unique=True)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="pending")
    commission_rate: Mapped[float] = mapped_column(Float, nullable=False, default=0.05)

    total_clicks: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_conversions: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_earnings: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)

    website: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)
    marketing_channels: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    expected_traffic: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )
