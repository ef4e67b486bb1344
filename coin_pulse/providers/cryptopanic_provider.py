from __future__ import annotations

from datetime import datetime, timezone
from functools import partial
from typing import Any, List, Mapping, Optional

from ..fetcher import ResilientFetcher
from ..models import NewsItem, TimeWindow
from ..pagination import Page, page_number_step, paginate
from .base import BaseNewsProvider, as_text, filter_window, sort_newest_first


class CryptoPanicProvider(BaseNewsProvider):
    """Page-number pagination over the CryptoPanic posts API (newest first)."""

    name = "cryptopanic"
    BASE_URL = "https://cryptopanic.com/api/v1/posts/"

    def __init__(self, fetcher: ResilientFetcher, token: str, per_page: int = 50, max_pages: int = 6) -> None:
        if not token:
            raise ValueError("CryptoPanicProvider requires an auth token")
        self._fetcher = fetcher
        self._token = token
        self._per_page = per_page
        self._max_pages = max_pages

    def fetch(
        self,
        window: Optional[TimeWindow] = None,
        since_hours: float = 72,
        coin: Optional[str] = None,
    ) -> List[NewsItem]:
        step = partial(page_number_step, window=window, per_page=self._per_page, max_pages=self._max_pages)
        items = paginate(partial(self._fetch_page, coin=coin), step, first_cursor=1, label=self.name)
        return sort_newest_first(filter_window(items, window, since_hours))

    def _fetch_page(self, page: int, coin: Optional[str] = None) -> Page:
        params = {"auth_token": self._token, "kind": "news", "filter": "all", "page": page}
        if coin:
            params["currencies"] = coin.lower()
        payload = self._fetcher.fetch_json(self.BASE_URL, params=params)
        results = payload.get("results") if isinstance(payload, Mapping) else None
        if not isinstance(results, list):
            raise ValueError("CryptoPanic payload has no results list")
        return Page(items=[item for item in map(_normalize, results) if item is not None])


def _normalize(raw: Any) -> Optional[NewsItem]:
    if not isinstance(raw, Mapping):
        return None
    published = _parse_date(raw.get("published_at"))
    if published is None:
        return None
    source = raw.get("source") if isinstance(raw.get("source"), Mapping) else {}
    return NewsItem(
        title=as_text(raw.get("title")),
        link=as_text(raw.get("url"), source.get("url")),
        pub_date=published,
        source=as_text(source.get("title"), default="CryptoPanic"),
    )


def _parse_date(value: Any) -> Optional[datetime]:
    if not value or not isinstance(value, str):
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed
