from __future__ import annotations

from collections import OrderedDict
import logging
import threading
import time
from typing import Callable, Dict, List, Optional, Sequence

from .errors import ClassificationFailed
from .models import CacheEntry, ClassifiedNewsPoint, NewsItem, TimeWindow
from .sentiment import Classifier, fallback_points

logger = logging.getLogger(__name__)

MAX_POINTS = 50

NewsSource = Callable[[str, TimeWindow], Sequence[NewsItem]]


class SentimentCache:
    """TTL cache of classified news per ``(coin, window)``.

    Entries are replaced wholesale once stale, the oldest entries are evicted
    past ``max_entries``, and at most one classification runs per key.
    """

    def __init__(
        self,
        classifier: Classifier,
        news_source: NewsSource,
        ttl_seconds: float = 300.0,
        clock: Callable[[], float] = time.monotonic,
        max_entries: int = 256,
        classify_limit: int = 30,
    ) -> None:
        self._classifier = classifier
        self._news_source = news_source
        self._ttl = ttl_seconds
        self._clock = clock
        self._max_entries = max(1, max_entries)
        self._classify_limit = classify_limit
        self._entries: "OrderedDict[str, CacheEntry]" = OrderedDict()
        self._key_locks: Dict[str, threading.Lock] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def _fresh(self, key: str) -> Optional[CacheEntry]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None or self._clock() - entry.ts >= self._ttl:
                return None
            self._entries.move_to_end(key)
            return entry

    def _store(self, key: str, entry: CacheEntry) -> None:
        with self._lock:
            self._entries[key] = entry
            self._entries.move_to_end(key)
            while len(self._entries) > self._max_entries:
                evicted, _ = self._entries.popitem(last=False)
                lock = self._key_locks.get(evicted)
                if lock is not None and not lock.locked():
                    del self._key_locks[evicted]

    def _key_lock(self, key: str) -> threading.Lock:
        with self._lock:
            return self._key_locks.setdefault(key, threading.Lock())

    def get(self, coin: str, window: TimeWindow) -> List[ClassifiedNewsPoint]:
        coin = coin.upper()
        key = window.cache_key(coin)
        entry = self._fresh(key)
        if entry is not None:
            return list(entry.data)
        with self._key_lock(key):
            entry = self._fresh(key)
            if entry is not None:
                return list(entry.data)
            items = sorted(self._news_source(coin, window), key=lambda item: item.pub_date, reverse=True)
            limited = items[: self._classify_limit]
            points = self._classify(coin, limited)
            ordered = sorted(points, key=lambda point: point.t)[:MAX_POINTS]
            self._store(key, CacheEntry(ts=self._clock(), data=tuple(ordered)))
            return ordered

    def _classify(self, coin: str, items: List[NewsItem]) -> List[ClassifiedNewsPoint]:
        if not items:
            return []
        try:
            labels = self._classifier.classify(coin, items)
            if labels is None:
                raise ClassificationFailed("classifier returned nothing")
            return _align(items, list(labels))
        except Exception as exc:
            logger.warning("Classification failed for %s, labelling %d items neutral: %s", coin, len(items), exc)
            return fallback_points(items)


def _align(items: Sequence[NewsItem], labels: Sequence[ClassifiedNewsPoint]) -> List[ClassifiedNewsPoint]:
    """Join classifier output back onto the input items by timestamp."""
    by_ts = {label.t: label for label in labels}
    points: List[ClassifiedNewsPoint] = []
    for item in items:
        label = by_ts.get(item.t)
        points.append(
            ClassifiedNewsPoint(
                t=item.t,
                title=item.title,
                link=item.link,
                source=item.source,
                sentiment=label.sentiment if label else "neutral",
                confidence=label.confidence if label else 0.5,
                reason=label.reason if label else "",
                is_price_news=label.is_price_news if label else False,
                timeframe=label.timeframe if label else "medium_term",
            )
        )
    return points
