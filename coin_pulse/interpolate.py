from __future__ import annotations

from bisect import bisect_right
from operator import attrgetter
from typing import Any, Dict, List, Sequence

from .models import ClassifiedNewsPoint, PricePoint


def price_at(series: Sequence[PricePoint], ts: float) -> float:
    """Linearly interpolated price at ``ts`` over a series sorted by time.

    Timestamps outside the series clamp to the first or last price.
    """
    if not series:
        raise ValueError("price_at needs a non-empty series")
    first, last = series[0], series[-1]
    if ts <= first.t:
        return first.price
    if ts >= last.t:
        return last.price
    hi = bisect_right(series, ts, key=attrgetter("t"))
    p0, p1 = series[hi - 1], series[hi]
    if p1.t == p0.t:
        return p0.price
    return p0.price + (ts - p0.t) / (p1.t - p0.t) * (p1.price - p0.price)


def overlay(series: Sequence[PricePoint], points: Sequence[ClassifiedNewsPoint]) -> List[Dict[str, Any]]:
    """Place each news point on the price curve at the moment it was published."""
    if not series:
        return []
    return [{"x": point.t, "y": price_at(series, point.t), "meta": point.to_dict()} for point in points]
