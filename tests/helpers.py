from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Callable, List, Optional

from coin_pulse.models import NewsItem


class FakeFetcher:
    """Stands in for ResilientFetcher; ``handler(url, params)`` returns a payload or raises."""

    def __init__(self, handler: Callable[[str, dict], Any]):
        self._handler = handler
        self.calls: List[dict] = []

    def fetch_json(self, url, params=None, headers=None, max_attempts=None):
        self.calls.append({"url": url, "params": dict(params or {}), "headers": dict(headers or {})})
        return self._handler(url, dict(params or {}))

    def fetch_bytes(self, url, headers=None):
        self.calls.append({"url": url, "params": {}, "headers": dict(headers or {})})
        return self._handler(url, {})


def utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


def news(title: str, when: datetime, source: str = "Test", link: Optional[str] = None) -> NewsItem:
    return NewsItem(title=title, link=link or f"https://example.com/{title.replace(' ', '-')}", pub_date=when, source=source)
