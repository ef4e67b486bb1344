from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Tuple

SENTIMENTS = ("bullish", "bearish", "neutral")
_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def ms_to_datetime(value: int) -> datetime:
    return _EPOCH + timedelta(milliseconds=value)


def datetime_to_ms(value: datetime) -> int:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return (value - _EPOCH) // timedelta(milliseconds=1)


def iso_z(value: datetime) -> str:
    """Render an aware datetime as ``YYYY-MM-DDTHH:MM:SS.mmmZ``."""
    return value.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass(frozen=True, slots=True)
class TimeWindow:
    """Closed UTC interval ``[from_ms, to_ms]``."""

    from_ms: int
    to_ms: int
    kind: str

    @property
    def from_date(self) -> datetime:
        return ms_to_datetime(self.from_ms)

    @property
    def to_date(self) -> datetime:
        return ms_to_datetime(self.to_ms)

    @property
    def span_ms(self) -> int:
        return max(0, self.to_ms - self.from_ms)

    def contains(self, moment: datetime) -> bool:
        return self.from_ms <= datetime_to_ms(moment) <= self.to_ms

    def cache_key(self, coin: str) -> str:
        return f"{coin}:{self.kind}:{iso_z(self.from_date)}:{iso_z(self.to_date)}"


@dataclass(frozen=True, slots=True)
class PricePoint:
    t: int
    price: float

    def to_dict(self) -> Dict[str, Any]:
        return {"t": self.t, "price": self.price}


@dataclass(slots=True)
class CurveSummary:
    """OHLC reduction of a single provider's price series."""

    coin: str
    open: float
    close: float
    high: float
    low: float
    return_: float
    samples: int
    window_start: str
    window_end: str
    source: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "coin": self.coin,
            "open": self.open,
            "close": self.close,
            "high": self.high,
            "low": self.low,
            "return": self.return_,
            "samples": self.samples,
            "window_start": self.window_start,
            "window_end": self.window_end,
            "source": self.source,
        }


@dataclass(slots=True)
class CurveError:
    """Per-coin failure record; never raised past a batch."""

    coin: str
    error: str
    source: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"coin": self.coin, "error": self.error}
        if self.source:
            data["source"] = self.source
        return data


@dataclass(slots=True)
class Series:
    coin: str
    source: str
    window_start: str
    window_end: str
    points: List[PricePoint] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "coin": self.coin,
            "source": self.source,
            "window_start": self.window_start,
            "window_end": self.window_end,
            "points": [point.to_dict() for point in self.points],
        }


@dataclass(slots=True)
class NewsItem:
    """Normalized news item produced by every provider adapter."""

    title: str
    link: str
    pub_date: datetime
    source: str

    @property
    def t(self) -> int:
        return datetime_to_ms(self.pub_date)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "link": self.link,
            "pubDate": iso_z(self.pub_date),
            "source": self.source,
        }


def clamp_confidence(value: Any, default: float = 0.5) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return default
    return max(0.0, min(1.0, float(value)))


@dataclass(slots=True)
class ClassifiedNewsPoint:
    t: int
    title: str
    link: str
    source: str
    sentiment: str = "neutral"
    confidence: float = 0.5
    reason: str = ""
    is_price_news: bool = False
    timeframe: str = "medium_term"

    def __post_init__(self) -> None:
        if self.sentiment not in SENTIMENTS:
            self.sentiment = "neutral"
        self.confidence = clamp_confidence(self.confidence)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "t": self.t,
            "title": self.title,
            "link": self.link,
            "source": self.source,
            "sentiment": self.sentiment,
            "confidence": self.confidence,
            "reason": self.reason,
            "isPriceNews": self.is_price_news,
            "timeframe": self.timeframe,
        }


@dataclass(frozen=True, slots=True)
class CacheEntry:
    ts: float
    data: Tuple[ClassifiedNewsPoint, ...]
