"""
AI match predictions: upcoming API-Football fixtures scored by Gemini,
stored with indicative 1X2 odds; accuracy tracked against actual results.
"""

from __future__ import annotations

import json
import logging
import random
import re
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from core.config import Settings, get_settings
from core.errors import (
    ConfigurationError,
    ConflictError,
    InvalidInputError,
    NotFoundError,
    UpstreamError,
)
from integrations.api_football import ApiFootballClient
from integrations.gemini import GeminiClient
from models.prediction import Prediction
from models.prediction_accuracy import PredictionAccuracy
from ops.ops_events import log_predictions_generated
from repositories.prediction_repo import PredictionRepository
from services import metrics

logger = logging.getLogger(__name__)

AI_MODEL_NAME = "gemini-1.5-flash"
UPCOMING_FETCH_COUNT = 10
PREDICTIONS_PER_RUN = 5

FALLBACK_PREDICTION: Dict[str, Any] = {
    "prediction": "1-1",
    "confidence": 60,
    "reasoning": "Unable to generate detailed analysis",
}

_SCORE_RE = re.compile(r"^\s*(\d{1,2})\s*-\s*(\d{1,2})\s*$")
_FENCE_RE = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL)


def build_prompt(home_team: str, away_team: str, league: str, date: Optional[str]) -> str:
    return (
        "You are an expert football analyst. Analyze this football match and provide a prediction:\n\n"
        f"Home Team: {home_team}\n"
        f"Away Team: {away_team}\n"
        f"Competition: {league}\n"
        f"Date: {date}\n\n"
        "Based on team form, head-to-head records, and current standings, provide:\n"
        '1. Score prediction (format: "X-Y")\n'
        "2. Confidence percentage (0-100)\n"
        "3. Brief reasoning (max 50 words)\n\n"
        'Respond in JSON format: {"prediction": "2-1", "confidence": 75, '
        '"reasoning": "Home team advantage..."}'
    )


def parse_prediction_reply(text: Optional[str]) -> tuple[Dict[str, Any], bool]:
    """Parse Gemini's JSON reply; returns (prediction, used_fallback).

    A ```json fenced block is unwrapped first. Anything that is not an object
    with an ``X-Y`` score yields the fallback prediction.
    """
    raw = (text or "").strip()
    fenced = _FENCE_RE.match(raw)
    if fenced:
        raw = fenced.group(1).strip()
    try:
        data = json.loads(raw)
    except ValueError:
        return dict(FALLBACK_PREDICTION), True
    if not isinstance(data, dict):
        return dict(FALLBACK_PREDICTION), True

    score = _SCORE_RE.match(str(data.get("prediction") or ""))
    if not score:
        return dict(FALLBACK_PREDICTION), True
    try:
        confidence = int(round(float(data.get("confidence"))))
    except (TypeError, ValueError):
        return dict(FALLBACK_PREDICTION), True
    return {
        "prediction": f"{int(score.group(1))}-{int(score.group(2))}",
        "confidence": max(0, min(100, confidence)),
        "reasoning": str(data.get("reasoning") or FALLBACK_PREDICTION["reasoning"]),
    }, False


def draw_odds(rng: Optional[random.Random] = None) -> Dict[str, float]:
    """Indicative odds: home [1.5, 3.5), draw [2.5, 4.5), away [2, 5)."""
    rng = rng or random.Random()
    return {
        "home": rng.random() * 2 + 1.5,
        "draw": rng.random() * 2 + 2.5,
        "away": rng.random() * 3 + 2,
    }


def _display_date(value: Optional[str]) -> str:
    if not value:
        return ""
    try:
        dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return value
    return dt.strftime("%A %H:%M")


def prediction_to_display(prediction: Prediction) -> Dict[str, Any]:
    def _odd(value: Optional[float], default: str) -> str:
        return f"{value:.1f}" if value is not None else default

    return {
        "id": prediction.id,
        "matchId": prediction.match_id,
        "homeTeam": prediction.home_team or "Unknown",
        "awayTeam": prediction.away_team or "Unknown",
        "prediction": prediction.predicted_score,
        "confidence": prediction.confidence_score,
        "reasoning": prediction.reasoning,
        "league": prediction.league or "Unknown",
        "date": _display_date(prediction.match_date),
        "odds": {
            "home": _odd(prediction.home_win_odds, "2.1"),
            "draw": _odd(prediction.draw_odds, "3.2"),
            "away": _odd(prediction.away_win_odds, "3.8"),
        },
    }


async def generate_predictions(
    session: AsyncSession,
    football_client: Optional[ApiFootballClient] = None,
    gemini_client: Optional[GeminiClient] = None,
    settings: Optional[Settings] = None,
    rng: Optional[random.Random] = None,
) -> List[Dict[str, Any]]:
    """Predict the next five fixtures; a failure on one fixture skips it."""
    settings = settings or get_settings()
    if (football_client is None and not settings.api_football_key) or (
        gemini_client is None and not settings.gemini_api_key
    ):
        raise ConfigurationError("Missing required API keys")

    owned: List[Any] = []
    if football_client is None:
        football_client = ApiFootballClient(
            settings.api_football_key, timeout=settings.http_timeout_seconds
        )
        owned.append(football_client)
    if gemini_client is None:
        gemini_client = GeminiClient(settings.gemini_api_key, timeout=settings.http_timeout_seconds)
        owned.append(gemini_client)

    repo = PredictionRepository(session)
    saved: List[Prediction] = []
    fallbacks = 0
    try:
        fixtures = (await football_client.next_fixtures(UPCOMING_FETCH_COUNT))[:PREDICTIONS_PER_RUN]
        for fixture in fixtures:
            fx = fixture.get("fixture") or {}
            teams = fixture.get("teams") or {}
            home = (teams.get("home") or {}).get("name") or "Unknown"
            away = (teams.get("away") or {}).get("name") or "Unknown"
            league = (fixture.get("league") or {}).get("name") or "Unknown"
            if fx.get("id") is None:
                logger.warning("Skipping fixture without id: %s vs %s", home, away)
                continue
            try:
                reply = await gemini_client.generate_text(
                    build_prompt(home, away, league, fx.get("date")),
                    temperature=0.7,
                    max_output_tokens=1000,
                )
            except UpstreamError as e:
                logger.warning("AI prediction error for fixture %s: %s", fx.get("id"), e.detail)
                continue
            parsed, used_fallback = parse_prediction_reply(reply)
            fallbacks += int(used_fallback)
            odds = draw_odds(rng)
            prediction = Prediction(
                match_id=str(fx["id"]),
                predicted_score=parsed["prediction"],
                confidence_score=parsed["confidence"],
                reasoning=parsed["reasoning"],
                ai_model_used=AI_MODEL_NAME,
                home_win_odds=odds["home"],
                draw_odds=odds["draw"],
                away_win_odds=odds["away"],
                home_team=home,
                away_team=away,
                league=league,
                match_date=fx.get("date"),
            )
            saved.append(await repo.add(prediction))
    finally:
        for client in owned:
            await client.aclose()

    log_predictions_generated(PREDICTIONS_PER_RUN, len(saved), fallbacks)
    return [prediction_to_display(p) for p in saved]


async def list_predictions(session: AsyncSession, limit: int = 20) -> List[Prediction]:
    return await PredictionRepository(session).list_recent(limit=limit)


async def record_accuracy(
    session: AsyncSession,
    prediction_id: str,
    actual_score: str,
) -> PredictionAccuracy:
    repo = PredictionRepository(session)
    prediction = await repo.get_by_id(prediction_id)
    if prediction is None:
        raise NotFoundError("Prediction not found")
    score = _SCORE_RE.match(actual_score or "")
    if not score:
        raise InvalidInputError("actual_score must look like X-Y")
    if await repo.get_accuracy(prediction_id) is not None:
        raise ConflictError("Accuracy already recorded for this prediction")
    normalized = f"{int(score.group(1))}-{int(score.group(2))}"
    row = PredictionAccuracy(
        prediction_id=prediction.id,
        actual_score=normalized,
        was_correct=normalized == prediction.predicted_score.replace(" ", ""),
        confidence_score=prediction.confidence_score,
        match_date=prediction.match_date or prediction.created_at.isoformat(),
    )
    return await repo.add_accuracy(row)


async def accuracy_summary(session: AsyncSession) -> Dict[str, int]:
    total, correct = await PredictionRepository(session).accuracy_counts()
    return {"total": total, "correct": correct, "percentage": metrics.percentage(correct, total)}
