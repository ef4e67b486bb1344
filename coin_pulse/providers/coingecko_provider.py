from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional

from ..coins import COINGECKO_IDS
from ..errors import FetchFailed, UnsupportedCoin
from ..fetcher import ResilientFetcher
from ..models import PricePoint, TimeWindow
from .base import BaseCurveProvider

logger = logging.getLogger(__name__)

LONG_WINDOW_MS = 90 * 24 * 3600 * 1000


class CoinGeckoProvider(BaseCurveProvider):
    """Ranged USD price chart from CoinGecko."""

    name = "CoinGecko"
    BASE_URL = "https://api.coingecko.com/api/v3"

    def __init__(
        self,
        fetcher: ResilientFetcher,
        api_key: Optional[str] = None,
        demo_api_key: Optional[str] = None,
        ids: Mapping[str, str] | None = None,
    ) -> None:
        self._fetcher = fetcher
        self._ids: Dict[str, str] = dict(ids or COINGECKO_IDS)
        self._headers: Dict[str, str] = {}
        if api_key:
            self._headers["x-cg-pro-api-key"] = api_key
        elif demo_api_key:
            self._headers["x-cg-demo-api-key"] = demo_api_key

    def supports(self, coin: str) -> bool:
        return coin.upper() in self._ids

    def fetch_points(self, coin: str, window: TimeWindow) -> List[PricePoint]:
        coin_id = self._ids.get(coin.upper())
        if coin_id is None:
            raise UnsupportedCoin(coin)
        try:
            payload = self._fetcher.fetch_json(
                f"{self.BASE_URL}/coins/{coin_id}/market_chart/range",
                params={"vs_currency": "usd", "from": window.from_ms // 1000, "to": window.to_ms // 1000},
                headers=self._headers,
            )
        except FetchFailed:
            if window.span_ms <= LONG_WINDOW_MS:
                raise
            # the ranged endpoint rejects long spans on some plans; a year of dailies covers YTD
            logger.warning("CoinGecko range failed for %s, retrying with the 366 day chart", coin)
            payload = self._fetcher.fetch_json(
                f"{self.BASE_URL}/coins/{coin_id}/market_chart",
                params={"vs_currency": "usd", "days": 366},
                headers=self._headers,
            )
            return [point for point in _points(payload) if window.from_ms <= point.t <= window.to_ms]
        return _points(payload)


def _points(payload: Any) -> List[PricePoint]:
    prices = payload.get("prices") if isinstance(payload, Mapping) else None
    if not isinstance(prices, list):
        return []
    points: List[PricePoint] = []
    for row in prices:
        try:
            points.append(PricePoint(t=int(row[0]), price=float(row[1])))
        except (TypeError, ValueError, IndexError):
            continue
    return points
