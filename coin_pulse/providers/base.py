from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Iterable, List, Optional

from ..models import NewsItem, PricePoint, TimeWindow, datetime_to_ms


class BaseCurveProvider(ABC):
    """A market-data source able to return a price series for a window."""

    name: str = "unknown"

    @abstractmethod
    def supports(self, coin: str) -> bool:
        """Whether the provider has an identifier for ``coin``."""

    @abstractmethod
    def fetch_points(self, coin: str, window: TimeWindow) -> List[PricePoint]:
        """Return the raw price series; raise ``FetchFailed`` on transport errors."""


class BaseNewsProvider(ABC):
    """A news source normalizing its payloads into ``NewsItem``."""

    name: str = "unknown"

    @abstractmethod
    def fetch(
        self,
        window: Optional[TimeWindow] = None,
        since_hours: float = 72,
        coin: Optional[str] = None,
    ) -> List[NewsItem]:
        """Return items inside the window (or younger than ``since_hours``), newest first."""


def sort_newest_first(items: Iterable[NewsItem]) -> List[NewsItem]:
    return sorted(items, key=lambda item: item.pub_date, reverse=True)


def filter_window(
    items: Iterable[NewsItem],
    window: Optional[TimeWindow] = None,
    since_hours: float = 72,
    now: Optional[datetime] = None,
) -> List[NewsItem]:
    if window is not None:
        return [item for item in items if window.contains(item.pub_date)]
    now_ms = datetime_to_ms(now or datetime.now(timezone.utc))
    return [item for item in items if (now_ms - item.t) / 3_600_000 <= since_hours]


def as_text(*values: object, default: str = "") -> str:
    """First non-empty string or number among ``values``, as text."""
    for value in values:
        if isinstance(value, bool) or value is None:
            continue
        if isinstance(value, (str, int, float)):
            text = str(value).strip()
            if text:
                return text
    return default
