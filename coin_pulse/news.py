from __future__ import annotations

import logging
from typing import List, Optional

from .coins import is_news_about_coin
from .config import PulseConfig
from .fetcher import ResilientFetcher
from .models import NewsItem, TimeWindow
from .providers.base import BaseNewsProvider, sort_newest_first
from .providers.cryptocompare_provider import CryptoCompareProvider
from .providers.cryptopanic_provider import CryptoPanicProvider
from .providers.feedly_provider import FeedlyProvider
from .providers.rss_provider import RSSFeedProvider

logger = logging.getLogger(__name__)

# page-number and continuation walks are not tuned by NEWS_MAX_PAGES
FIXED_MAX_PAGES = 6


def build_news_provider(config: PulseConfig, fetcher: ResilientFetcher, per_feed: int = 60) -> BaseNewsProvider:
    """Pick the single configured news strategy, falling back to plain RSS."""
    choice = config.news_provider
    if choice == "cryptopanic":
        if config.cryptopanic_token:
            return CryptoPanicProvider(
                fetcher,
                config.cryptopanic_token,
                per_page=max(per_feed, 50),
                max_pages=FIXED_MAX_PAGES,
            )
        logger.warning("NEWS_PROVIDER=cryptopanic but CRYPTOPANIC_TOKEN is unset; using RSS feeds")
    elif choice == "feedly":
        if config.feedly_token:
            return FeedlyProvider(
                fetcher,
                config.feedly_token,
                per_page=max(per_feed, 50),
                max_pages=FIXED_MAX_PAGES,
            )
        logger.warning("NEWS_PROVIDER=feedly but FEEDLY_TOKEN is unset; using RSS feeds")
    elif choice == "cryptocompare":
        return CryptoCompareProvider(
            fetcher,
            api_key=config.cryptocompare_api_key,
            per_page=max(config.news_per_page, per_feed * 5),
            max_pages=config.news_max_pages,
        )
    return RSSFeedProvider(fetcher, per_feed=per_feed)


class NewsService:
    """Front door to the configured news strategy."""

    def __init__(self, provider: BaseNewsProvider, since_hours: float = 72) -> None:
        self.provider = provider
        self._since_hours = since_hours

    @classmethod
    def from_config(cls, config: PulseConfig, fetcher: ResilientFetcher) -> "NewsService":
        return cls(build_news_provider(config, fetcher), since_hours=config.news_since_hours)

    def fetch_news(
        self,
        window: Optional[TimeWindow] = None,
        since_hours: Optional[float] = None,
        coin: Optional[str] = None,
    ) -> List[NewsItem]:
        items = self.provider.fetch(window=window, since_hours=since_hours or self._since_hours, coin=coin)
        logger.info("%s returned %d news items", self.provider.name, len(items))
        return sort_newest_first(items)

    def fetch_coin_news(self, coin: str, window: Optional[TimeWindow] = None) -> List[NewsItem]:
        return [item for item in self.fetch_news(window=window, coin=coin) if is_news_about_coin(item.title, coin)]
