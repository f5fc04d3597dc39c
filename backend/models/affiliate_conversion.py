from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, Float, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, new_uuid, utcnow

CONVERSION_STATUSES = ("pending", "approved", "rejected")


class AffiliateConversion(Base):
    """Conversion attributed to a click; only approved rows count toward earnings."""

    __tablename__ = "affiliate_conversions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_uuid)
    affiliate_id: Mapped[str] = mapped_column(
        ForeignKey("affiliates.id", ondelete="CASCADE"), nullable=False, index=True
    )
    affiliate_click_id: Mapped[str] = mapped_column(
        ForeignKey("affiliate_clicks.id", ondelete="CASCADE"), nullable=False, index=True
    )
    conversion_type: Mapped[str] = mapped_column(String(32), nullable=False, default="signup")
    conversion_value: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    commission_amount: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="pending")
    converted_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    processed_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
