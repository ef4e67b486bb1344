"""Pagination state machine shared by the paginated news providers.

Each provider supplies a ``fetch_page`` callable turning a cursor into a
:class:`Page` and a pure step function deciding, from the page contents,
which items to keep and whether to fetch again. :func:`paginate` drives the
``FETCHING -> FILTERING -> (FETCHING | DONE)`` loop and turns any failed or
malformed page into termination, keeping what was accumulated so far.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
import logging
from typing import Any, Callable, List, Optional

from .models import NewsItem, TimeWindow
from .providers.base import sort_newest_first

logger = logging.getLogger(__name__)

_HOUR_MS = 3_600_000


class PageState(Enum):
    FETCHING = "fetching"
    FILTERING = "filtering"
    DONE = "done"


@dataclass(slots=True)
class Page:
    items: List[NewsItem]
    next_cursor: Any = None


@dataclass(slots=True)
class PageStep:
    kept: List[NewsItem] = field(default_factory=list)
    state: PageState = PageState.DONE
    cursor: Any = None
    reason: str = ""


def done(kept: List[NewsItem], reason: str) -> PageStep:
    return PageStep(kept=kept, state=PageState.DONE, reason=reason)


def page_number_step(
    page: Page,
    page_no: int,
    accumulated: int,
    window: Optional[TimeWindow],
    per_page: int,
    max_pages: int,
) -> PageStep:
    """Newest-first page walk that stops as soon as it crosses ``window.from``."""
    if not page.items:
        return done([], "empty-page")
    budget = per_page * max_pages
    kept: List[NewsItem] = []
    for item in page.items:
        if window is not None and item.t < window.from_ms:
            # upstream is newest-first, so every later page is older still
            return done(kept, "crossed-lower-bound")
        if window is not None and item.t > window.to_ms:
            continue
        kept.append(item)
        if accumulated + len(kept) >= budget:
            return done(kept, "volume")
    if page_no >= max_pages:
        return done(kept, "max-pages")
    return PageStep(kept=kept, state=PageState.FETCHING, cursor=page_no + 1)


def continuation_step(page: Page, page_no: int, accumulated: int, max_pages: int) -> PageStep:
    if not page.items:
        return done([], "empty-page")
    if not page.next_cursor:
        return done(list(page.items), "no-continuation")
    if page_no >= max_pages:
        return done(list(page.items), "max-pages")
    return PageStep(kept=list(page.items), state=PageState.FETCHING, cursor=page.next_cursor)


def timestamp_step(
    page: Page,
    page_no: int,
    accumulated: int,
    window: Optional[TimeWindow],
    per_page: int,
    max_pages: int,
    since_hours: float,
    now_ms: int,
) -> PageStep:
    """Walk toward older items using ``oldest - 1s`` as the next cursor (in ms)."""
    if not page.items:
        return done([], "empty-page")
    budget = per_page * max_pages
    kept: List[NewsItem] = []
    for item in page.items:
        if window is not None and not (window.from_ms <= item.t <= window.to_ms):
            continue
        kept.append(item)
        if accumulated + len(kept) >= budget:
            break
    stamps = [item.t for item in page.items if item.t > 0]
    if not stamps:
        return done(kept, "no-timestamps")
    next_cursor = min(stamps) - 1000
    if accumulated + len(kept) >= budget:
        return done(kept, "volume")
    if window is not None and next_cursor < window.from_ms:
        return done(kept, "crossed-lower-bound")
    if window is None and (now_ms - next_cursor) / _HOUR_MS > since_hours:
        return done(kept, "too-old")
    if page_no >= max_pages:
        return done(kept, "max-pages")
    return PageStep(kept=kept, state=PageState.FETCHING, cursor=next_cursor)


def paginate(
    fetch_page: Callable[[Any], Page],
    step: Callable[[Page, int, int], PageStep],
    first_cursor: Any = None,
    label: str = "provider",
) -> List[NewsItem]:
    """Drive a page walk until a step reports ``DONE`` or a page fails."""
    state = PageState.FETCHING
    cursor = first_cursor
    page_no = 0
    collected: List[NewsItem] = []
    page: Optional[Page] = None
    while state is not PageState.DONE:
        if state is PageState.FETCHING:
            page_no += 1
            try:
                page = fetch_page(cursor)
            except Exception as exc:  # failed or malformed page ends the walk
                logger.warning("%s: page %d failed, keeping %d items: %s", label, page_no, len(collected), exc)
                break
            state = PageState.FILTERING
        else:
            result = step(page, page_no, len(collected))
            collected.extend(result.kept)
            state, cursor = result.state, result.cursor
            if state is PageState.DONE:
                logger.debug("%s: stopped after page %d (%s)", label, page_no, result.reason)
    return sort_newest_first(collected)
