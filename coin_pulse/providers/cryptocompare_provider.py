from __future__ import annotations

from datetime import datetime, timezone
from functools import partial
from typing import Any, Iterable, List, Mapping, Optional

from ..fetcher import ResilientFetcher
from ..models import NewsItem, TimeWindow, datetime_to_ms, ms_to_datetime
from ..pagination import Page, paginate, timestamp_step
from .base import BaseNewsProvider, as_text, filter_window, sort_newest_first
from .rss_provider import DEFAULT_FEEDS


class CryptoCompareProvider(BaseNewsProvider):
    """Timestamp-cursor pagination over the CryptoCompare latest-news endpoint."""

    name = "cryptocompare"
    BASE_URL = "https://min-api.cryptocompare.com/data/v2/news/"

    def __init__(
        self,
        fetcher: ResilientFetcher,
        api_key: Optional[str] = None,
        feeds: Iterable[str] | None = None,
        per_page: int = 50,
        max_pages: int = 4,
    ) -> None:
        self._fetcher = fetcher
        self._api_key = api_key
        self._feeds = [feed_name(name) for name in (feeds if feeds is not None else DEFAULT_FEEDS) if name]
        self._per_page = per_page
        self._max_pages = max_pages

    def fetch(
        self,
        window: Optional[TimeWindow] = None,
        since_hours: float = 72,
        coin: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> List[NewsItem]:
        now = now or datetime.now(timezone.utc)
        step = partial(
            timestamp_step,
            window=window,
            per_page=self._per_page,
            max_pages=self._max_pages,
            since_hours=since_hours,
            now_ms=datetime_to_ms(now),
        )
        items = paginate(self._fetch_page, step, first_cursor=None, label=self.name)
        return sort_newest_first(filter_window(items, window, since_hours, now=now))

    def _fetch_page(self, before_ms: Optional[int]) -> Page:
        params = {"lang": "EN", "sortOrder": "latest"}
        if self._feeds:
            params["feeds"] = ",".join(self._feeds)
        if before_ms:
            params["lTs"] = str(before_ms // 1000)
        headers = {"Apikey": self._api_key} if self._api_key else None
        payload = self._fetcher.fetch_json(self.BASE_URL, params=params, headers=headers)
        data = payload.get("Data") if isinstance(payload, Mapping) else None
        if not isinstance(data, list):
            raise ValueError("CryptoCompare payload has no Data list")
        return Page(items=[item for item in map(_normalize, data) if item is not None])


def feed_name(source: str) -> str:
    """Map a feed display name onto CryptoCompare's feed identifier."""
    lowered = str(source or "").strip().lower()
    if "coindesk" in lowered:
        return "coindesk"
    if "cointelegraph" in lowered:
        return "cointelegraph"
    return lowered


def _normalize(raw: Any) -> Optional[NewsItem]:
    if not isinstance(raw, Mapping):
        return None
    published = raw.get("published_on")
    if not isinstance(published, (int, float)) or isinstance(published, bool) or published <= 0:
        return None
    return NewsItem(
        title=as_text(raw.get("title")),
        link=as_text(raw.get("url"), raw.get("guid")),
        pub_date=ms_to_datetime(int(published) * 1000),
        source=as_text(raw.get("source"), default="CryptoCompare"),
    )
