from __future__ import annotations

from functools import partial
from typing import Any, Dict, List, Mapping, Optional

from ..fetcher import ResilientFetcher
from ..models import NewsItem, TimeWindow, ms_to_datetime
from ..pagination import Page, continuation_step, paginate
from .base import BaseNewsProvider, as_text, filter_window, sort_newest_first
from .rss_provider import DEFAULT_FEEDS


class FeedlyProvider(BaseNewsProvider):
    """Continuation-token pagination over Feedly streams, one stream per feed."""

    name = "feedly"
    BASE_URL = "https://cloud.feedly.com/v3/streams/contents"

    def __init__(
        self,
        fetcher: ResilientFetcher,
        token: str,
        feeds: Mapping[str, str] | None = None,
        per_page: int = 50,
        max_pages: int = 6,
    ) -> None:
        if not token:
            raise ValueError("FeedlyProvider requires an OAuth token")
        self._fetcher = fetcher
        self._token = token
        self._feeds: Dict[str, str] = dict(feeds or DEFAULT_FEEDS)
        self._per_page = per_page
        self._max_pages = max_pages

    def fetch(
        self,
        window: Optional[TimeWindow] = None,
        since_hours: float = 72,
        coin: Optional[str] = None,
    ) -> List[NewsItem]:
        results: List[NewsItem] = []
        step = partial(continuation_step, max_pages=self._max_pages)
        for source, url in self._feeds.items():
            fetch_page = partial(self._fetch_page, stream_id=f"feed/{url}", source=source)
            items = paginate(fetch_page, step, first_cursor=None, label=f"{self.name}:{source}")
            results.extend(filter_window(items, window, since_hours))
        return sort_newest_first(results)

    def _fetch_page(self, continuation: Optional[str], stream_id: str, source: str) -> Page:
        params = {"streamId": stream_id, "count": self._per_page}
        if continuation:
            params["continuation"] = continuation
        payload = self._fetcher.fetch_json(
            self.BASE_URL,
            params=params,
            headers={"Authorization": f"OAuth {self._token}"},
        )
        if not isinstance(payload, Mapping) or not isinstance(payload.get("items"), list):
            raise ValueError("Feedly payload has no items list")
        items = [item for item in (_normalize(raw, source) for raw in payload["items"]) if item is not None]
        return Page(items=items, next_cursor=payload.get("continuation") or None)


def _normalize(raw: Any, source: str) -> Optional[NewsItem]:
    if not isinstance(raw, Mapping):
        return None
    published = raw.get("published")
    if not isinstance(published, (int, float)) or isinstance(published, bool) or published <= 0:
        return None
    link = ""
    alternate = raw.get("alternate")
    if isinstance(alternate, list) and alternate and isinstance(alternate[0], Mapping):
        link = as_text(alternate[0].get("href"))
    link = as_text(raw.get("canonicalUrl"), default=link)
    origin = raw.get("origin") if isinstance(raw.get("origin"), Mapping) else {}
    return NewsItem(
        title=as_text(raw.get("title")),
        link=link,
        pub_date=ms_to_datetime(int(published)),
        source=as_text(source, origin.get("title"), default="Feedly"),
    )
