from __future__ import annotations

from coin_pulse.errors import FetchFailed
from coin_pulse.pagination import (
    Page,
    PageState,
    continuation_step,
    page_number_step,
    paginate,
    timestamp_step,
)
from coin_pulse.windows import day_window

from helpers import news, utc

WINDOW = day_window("2024-03-14")


def test_page_number_step_reports_crossing():
    page = Page(items=[news("a", utc(2024, 3, 14, 5)), news("old", utc(2024, 3, 13, 5)), news("b", utc(2024, 3, 14, 1))])
    step = page_number_step(page, 1, 0, WINDOW, per_page=10, max_pages=5)
    assert step.state is PageState.DONE
    assert step.reason == "crossed-lower-bound"
    assert [item.title for item in step.kept] == ["a"]


def test_page_number_step_advances_page():
    page = Page(items=[news("a", utc(2024, 3, 14, 5))])
    step = page_number_step(page, 1, 0, WINDOW, per_page=10, max_pages=5)
    assert (step.state, step.cursor) == (PageState.FETCHING, 2)
    assert page_number_step(page, 5, 0, WINDOW, per_page=10, max_pages=5).reason == "max-pages"


def test_continuation_step():
    page = Page(items=[news("a", utc(2024, 3, 14, 5))], next_cursor="tok")
    assert continuation_step(page, 1, 0, max_pages=3).cursor == "tok"
    assert continuation_step(Page(items=page.items), 1, 0, max_pages=3).reason == "no-continuation"
    assert continuation_step(Page(items=[], next_cursor="tok"), 1, 0, max_pages=3).reason == "empty-page"


def test_timestamp_step_cursor_is_oldest_minus_one_second():
    oldest = news("b", utc(2024, 3, 14, 6))
    page = Page(items=[news("a", utc(2024, 3, 14, 9)), oldest])
    step = timestamp_step(page, 1, 0, WINDOW, per_page=10, max_pages=4, since_hours=72, now_ms=0)
    assert step.state is PageState.FETCHING
    assert step.cursor == oldest.t - 1000


def test_paginate_returns_accumulated_items_on_failure():
    pages = iter([Page(items=[news("a", utc(2024, 3, 14, 5))], next_cursor="x")])

    def fetch_page(cursor):
        try:
            return next(pages)
        except StopIteration:
            raise FetchFailed("gone") from None

    items = paginate(fetch_page, lambda page, no, acc: continuation_step(page, no, acc, max_pages=9))
    assert [item.title for item in items] == ["a"]


def test_timestamp_step_stops_on_volume():
    page = Page(items=[news(f"n{h}", utc(2024, 3, 14, h)) for h in (9, 8, 7)])
    step = timestamp_step(page, 1, 3, WINDOW, per_page=2, max_pages=2, since_hours=72, now_ms=0)
    assert step.state is PageState.DONE
    assert step.reason == "volume"
    assert [item.title for item in step.kept] == ["n9"]


def test_paginate_treats_any_page_error_as_termination():
    calls = []

    def fetch_page(cursor):
        calls.append(cursor)
        if cursor == 2:
            raise AttributeError("'int' object has no attribute 'replace'")
        return Page(items=[news("a", utc(2024, 3, 14, 5))])

    def step(page, page_no, accumulated):
        return page_number_step(page, page_no, accumulated, WINDOW, per_page=10, max_pages=5)

    items = paginate(fetch_page, step, first_cursor=1)
    assert [item.title for item in items] == ["a"]
    assert calls == [1, 2]
