"""Shared numeric helpers for displayed scores."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal


def percentage(part: int, whole: int) -> int:
    """Whole-number percentage with halves rounded up (1/8 -> 13, 5/8 -> 63); 0 when whole is 0."""
    if whole <= 0:
        return 0
    exact = Decimal(part) * 100 / Decimal(whole)
    return int(exact.quantize(Decimal(1), rounding=ROUND_HALF_UP))
