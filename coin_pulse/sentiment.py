from __future__ import annotations

import logging
from typing import List, Optional, Protocol, Sequence

from .models import ClassifiedNewsPoint, NewsItem

logger = logging.getLogger(__name__)

_BULLISH = {
    "surge",
    "soar",
    "rally",
    "gain",
    "record",
    "high",
    "bull",
    "adoption",
    "approval",
    "approve",
    "inflow",
    "partnership",
    "launch",
    "upgrade",
    "breakout",
    "buy",
}

_BEARISH = {
    "drop",
    "plunge",
    "crash",
    "slump",
    "fall",
    "bear",
    "hack",
    "exploit",
    "lawsuit",
    "sue",
    "ban",
    "outflow",
    "liquidation",
    "fraud",
    "selloff",
    "sell-off",
    "warning",
}

_PRICE_WORDS = ("price", "%", "$", "rally", "surge", "drop", "plunge", "crash", "all-time high", "ath")


class Classifier(Protocol):
    """Labels news items for a coin; may raise on failure."""

    def classify(self, coin: str, items: Sequence[NewsItem]) -> List[ClassifiedNewsPoint]:
        ...


def score_sentiment(text: Optional[str]) -> tuple[str, float]:
    if not text:
        return "neutral", 0.0
    lowered = text.lower()
    bull_hits = sum(lowered.count(token) for token in _BULLISH)
    bear_hits = sum(lowered.count(token) for token in _BEARISH)
    total = bull_hits + bear_hits
    if total == 0:
        return "neutral", 0.0
    score = (bull_hits - bear_hits) / max(total, 1)
    if score > 0.2:
        return "bullish", score
    if score < -0.2:
        return "bearish", score
    return "neutral", score


def is_price_news(title: str) -> bool:
    lowered = (title or "").lower()
    return any(word in lowered for word in _PRICE_WORDS)


class KeywordClassifier:
    """Offline lexicon classifier used when no model-backed classifier is wired in."""

    def classify(self, coin: str, items: Sequence[NewsItem]) -> List[ClassifiedNewsPoint]:
        logger.info("Classifying %d items for %s", len(items), coin)
        points: List[ClassifiedNewsPoint] = []
        for item in items:
            label, score = score_sentiment(item.title)
            points.append(
                ClassifiedNewsPoint(
                    t=item.t,
                    title=item.title,
                    link=item.link,
                    source=item.source,
                    sentiment=label,
                    confidence=0.5 + abs(score) / 2 if label != "neutral" else 0.5,
                    reason=f"keyword score {score:+.2f}",
                    is_price_news=is_price_news(item.title),
                    timeframe="short_term" if is_price_news(item.title) else "medium_term",
                )
            )
        return points


def fallback_points(items: Sequence[NewsItem]) -> List[ClassifiedNewsPoint]:
    return [
        ClassifiedNewsPoint(
            t=item.t,
            title=item.title,
            link=item.link,
            source=item.source,
            sentiment="neutral",
            confidence=0.5,
            reason="fallback",
        )
        for item in items
    ]
