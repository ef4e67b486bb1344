from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
import logging
from typing import Callable, Iterable, List, Optional, Sequence, Tuple, TypeVar, Union

from .errors import FetchFailed, NoData, PulseError, UnsupportedCoin
from .models import CurveError, CurveSummary, PricePoint, Series, TimeWindow, iso_z
from .providers.base import BaseCurveProvider

logger = logging.getLogger(__name__)

CurveResult = Union[CurveSummary, CurveError]
SeriesResult = Union[Series, CurveError]
T = TypeVar("T")


def sort_points(points: Iterable[PricePoint]) -> List[PricePoint]:
    return sorted(points, key=lambda point: point.t)


def summarize_points(coin: str, points: Sequence[PricePoint], window: TimeWindow, source: str) -> Optional[CurveSummary]:
    """OHLC reduction over a single provider's samples."""
    if not points:
        return None
    ordered = sort_points(points)
    prices = [point.price for point in ordered]
    open_, close = prices[0], prices[-1]
    return CurveSummary(
        coin=coin,
        open=open_,
        close=close,
        high=max(prices),
        low=min(prices),
        return_=(close / open_ - 1) if open_ else 0.0,
        samples=len(ordered),
        window_start=iso_z(window.from_date),
        window_end=iso_z(window.to_date),
        source=source,
    )


class CurveChain:
    """Tries each curve provider in order and keeps the first non-empty series.

    The first provider's coin table decides support: a coin it cannot map is
    reported as ``unsupported`` without any network call.
    """

    def __init__(self, providers: Sequence[BaseCurveProvider], max_workers: int = 1) -> None:
        if not providers:
            raise ValueError("CurveChain needs at least one provider")
        self._providers = list(providers)
        self._max_workers = max(1, min(8, max_workers))

    @property
    def primary(self) -> BaseCurveProvider:
        return self._providers[0]

    def _first_points(self, coin: str, window: TimeWindow) -> Tuple[str, List[PricePoint]]:
        failures = 0
        for provider in self._providers:
            if not provider.supports(coin):
                continue
            try:
                points = provider.fetch_points(coin, window)
            except (PulseError, ValueError) as exc:
                failures += 1
                logger.warning("%s failed for %s, trying next provider: %s", provider.name, coin, exc)
                continue
            if points:
                return provider.name, sort_points(points)
            logger.info("%s returned no data for %s", provider.name, coin)
        if failures:
            raise FetchFailed(coin)
        raise NoData(coin)

    def get_curve(self, coin: str, window: TimeWindow) -> CurveResult:
        coin = coin.upper()
        if not self.primary.supports(coin):
            return CurveError(coin=coin, error=UnsupportedCoin.kind, source=self.primary.name)
        try:
            source, points = self._first_points(coin, window)
        except PulseError as exc:
            return CurveError(coin=coin, error=exc.kind, source=self.primary.name)
        return summarize_points(coin, points, window, source)

    def get_series(self, coin: str, window: TimeWindow) -> SeriesResult:
        coin = coin.upper()
        if not self.primary.supports(coin):
            return CurveError(coin=coin, error=UnsupportedCoin.kind)
        try:
            source, points = self._first_points(coin, window)
        except PulseError as exc:
            return CurveError(coin=coin, error=exc.kind)
        return Series(
            coin=coin,
            source=source,
            window_start=iso_z(window.from_date),
            window_end=iso_z(window.to_date),
            points=points,
        )

    def get_curves(self, coins: Sequence[str], window: TimeWindow) -> List[CurveResult]:
        return self._batch(lambda coin: self.get_curve(coin, window), coins)

    def get_series_batch(self, coins: Sequence[str], window: TimeWindow) -> List[SeriesResult]:
        return self._batch(lambda coin: self.get_series(coin, window), coins)

    def _batch(self, task: Callable[[str], T], coins: Sequence[str]) -> List[T]:
        if self._max_workers == 1 or len(coins) <= 1:
            return [task(coin) for coin in coins]
        with ThreadPoolExecutor(max_workers=self._max_workers) as pool:
            return list(pool.map(task, coins))


def curves_to_text(curves: Iterable[CurveResult], ytd: bool = False) -> str:
    lines: List[str] = []
    for curve in curves:
        if isinstance(curve, CurveError):
            lines.append(f"- {curve.coin}: error={curve.error}")
            continue
        pct = round(curve.return_ * 10000) / 100
        if ytd:
            lines.append(
                f"- {curve.coin}: YTD open={curve.open:.2f} close={curve.close:.2f} return={pct}% samples={curve.samples}"
            )
        else:
            lines.append(
                f"- {curve.coin}: open={curve.open:.2f} close={curve.close:.2f} high={curve.high:.2f} "
                f"low={curve.low:.2f} return={pct}% samples={curve.samples}"
            )
    return "\n".join(lines)


def ytd_trend_direction(curve: Optional[CurveResult], neutral_threshold: float = 0.005) -> str:
    if curve is None or isinstance(curve, CurveError):
        return "neutral"
    if abs(curve.return_) < neutral_threshold:
        return "neutral"
    return "up" if curve.return_ > 0 else "down"
