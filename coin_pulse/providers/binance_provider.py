from __future__ import annotations

from typing import Any, Dict, List, Mapping

from ..coins import BINANCE_SYMBOLS
from ..errors import UnsupportedCoin
from ..fetcher import ResilientFetcher
from ..models import PricePoint, TimeWindow
from .base import BaseCurveProvider

_HOUR_MS = 3600 * 1000


def choose_interval(span_ms: int) -> str:
    """Finer klines for short windows, dailies for anything past 36 hours."""
    if span_ms <= 6 * _HOUR_MS:
        return "15m"
    if span_ms <= 12 * _HOUR_MS:
        return "30m"
    if span_ms <= 36 * _HOUR_MS:
        return "1h"
    return "1d"


class BinanceProvider(BaseCurveProvider):
    """Spot klines from Binance, using each candle's close as the price."""

    name = "Binance"
    BASE_URL = "https://api.binance.com/api/v3/klines"

    def __init__(self, fetcher: ResilientFetcher, symbols: Mapping[str, str] | None = None) -> None:
        self._fetcher = fetcher
        self._symbols: Dict[str, str] = dict(symbols or BINANCE_SYMBOLS)

    def supports(self, coin: str) -> bool:
        return coin.upper() in self._symbols

    def fetch_points(self, coin: str, window: TimeWindow) -> List[PricePoint]:
        symbol = self._symbols.get(coin.upper())
        if symbol is None:
            raise UnsupportedCoin(coin)
        payload = self._fetcher.fetch_json(
            self.BASE_URL,
            params={
                "symbol": symbol,
                "interval": choose_interval(window.span_ms),
                "startTime": window.from_ms,
                "endTime": window.to_ms,
            },
        )
        return _points(payload)


def _points(payload: Any) -> List[PricePoint]:
    if not isinstance(payload, list):
        return []
    points: List[PricePoint] = []
    for row in payload:
        # [openTime, open, high, low, close, volume, closeTime, ...]
        try:
            points.append(PricePoint(t=int(row[0]), price=float(row[4])))
        except (TypeError, ValueError, IndexError):
            continue
    return points
