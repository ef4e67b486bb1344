from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional

from .cache import SentimentCache
from .config import PulseConfig
from .curves import CurveChain, CurveResult, SeriesResult
from .fetcher import ResilientFetcher
from .interpolate import overlay
from .models import ClassifiedNewsPoint, CurveError, TimeWindow
from .news import NewsService
from .providers.base import BaseCurveProvider
from .providers.binance_provider import BinanceProvider
from .providers.coingecko_provider import CoinGeckoProvider
from .sentiment import Classifier, KeywordClassifier


def _build_curve_providers(config: PulseConfig, fetcher: ResilientFetcher) -> List[BaseCurveProvider]:
    return [
        CoinGeckoProvider(fetcher, api_key=config.coingecko_api_key, demo_api_key=config.coingecko_demo_api_key),
        BinanceProvider(fetcher),
    ]


class PulseAgent:
    """Wires the curve chain, the news strategy and the sentiment cache together."""

    def __init__(
        self,
        config: Optional[PulseConfig] = None,
        fetcher: Optional[ResilientFetcher] = None,
        curve_providers: Optional[Iterable[BaseCurveProvider]] = None,
        news: Optional[NewsService] = None,
        classifier: Optional[Classifier] = None,
        cache: Optional[SentimentCache] = None,
    ) -> None:
        self.config = config or PulseConfig.from_env()
        self.fetcher = fetcher or ResilientFetcher(
            user_agent=self.config.user_agent,
            timeout=self.config.request_timeout,
            max_attempts=self.config.max_attempts,
        )
        providers = list(curve_providers) if curve_providers is not None else _build_curve_providers(self.config, self.fetcher)
        self.curves = CurveChain(providers, max_workers=self.config.max_workers)
        self.news = news or NewsService.from_config(self.config, self.fetcher)
        self.cache = cache or SentimentCache(
            classifier or KeywordClassifier(),
            self.news.fetch_coin_news,
            ttl_seconds=self.config.news_cache_ttl_seconds,
            max_entries=self.config.news_cache_max_entries,
            classify_limit=self.config.news_classify_limit,
        )

    def curves_for(self, coins: List[str], window: TimeWindow) -> List[CurveResult]:
        return self.curves.get_curves(coins, window)

    def series(self, coins: List[str], window: TimeWindow) -> List[SeriesResult]:
        return self.curves.get_series_batch(coins, window)

    def news_points(self, coin: str, window: TimeWindow) -> List[ClassifiedNewsPoint]:
        return self.cache.get(coin, window)

    def news_overlay(self, coin: str, window: TimeWindow) -> Dict[str, Any]:
        """News markers positioned on the coin's price curve for the window."""
        points = self.news_points(coin, window)
        series = self.curves.get_series(coin, window)
        if isinstance(series, CurveError):
            return {"coin": series.coin, "error": series.error, "markers": []}
        return {"coin": series.coin, "source": series.source, "markers": overlay(series.points, points)}

    def to_dict(self, item: Any) -> Dict[str, Any]:
        return item.to_dict()
