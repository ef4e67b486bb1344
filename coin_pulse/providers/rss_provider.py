from __future__ import annotations

from datetime import datetime, timezone
import logging
from typing import Dict, List, Mapping, Optional

import feedparser

from ..errors import PulseError
from ..fetcher import ResilientFetcher
from ..models import NewsItem, TimeWindow
from .base import BaseNewsProvider, as_text, filter_window, sort_newest_first

logger = logging.getLogger(__name__)

DEFAULT_FEEDS: Dict[str, str] = {
    "CoinDesk": "https://www.coindesk.com/arc/outboundfeeds/rss/",
    "CoinTelegraph": "https://cointelegraph.com/rss",
}


class RSSFeedProvider(BaseNewsProvider):
    """Fetches each feed in full and keeps the newest ``per_feed`` items of each."""

    name = "rss"

    def __init__(
        self,
        fetcher: ResilientFetcher,
        feeds: Mapping[str, str] | None = None,
        per_feed: int = 10,
    ) -> None:
        self._fetcher = fetcher
        self._feeds = dict(feeds or DEFAULT_FEEDS)
        self._per_feed = per_feed

    @property
    def feeds(self) -> Dict[str, str]:
        return dict(self._feeds)

    def fetch(
        self,
        window: Optional[TimeWindow] = None,
        since_hours: float = 72,
        coin: Optional[str] = None,
    ) -> List[NewsItem]:
        results: List[NewsItem] = []
        for source, url in self._feeds.items():
            try:
                items = self._fetch_feed(source, url)
            except PulseError as exc:
                logger.warning("Skipping feed %s (%s): %s", source, url, exc)
                continue
            kept = sort_newest_first(filter_window(items, window, since_hours))
            results.extend(kept[: self._per_feed])
        return sort_newest_first(results)

    def _fetch_feed(self, source: str, url: str) -> List[NewsItem]:
        content = self._fetcher.fetch_bytes(url)
        feed = feedparser.parse(content)
        entries = feed.entries or []
        if getattr(feed, "bozo", False) and not entries:
            raise PulseError(f"unparseable feed: {getattr(feed, 'bozo_exception', 'unknown error')}")
        items: List[NewsItem] = []
        for entry in entries:
            published = _parse_published(entry)
            if published is None:
                continue
            items.append(
                NewsItem(
                    title=as_text(entry.get("title")),
                    link=as_text(entry.get("link"), entry.get("id")),
                    pub_date=published,
                    source=source,
                )
            )
        return items


def _parse_published(entry: Mapping[str, object]) -> datetime | None:
    for key in ("published_parsed", "updated_parsed"):
        parsed = entry.get(key)
        if parsed:
            try:
                return datetime(*parsed[:6], tzinfo=timezone.utc)
            except (TypeError, ValueError):
                continue
    return None
