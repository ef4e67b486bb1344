from __future__ import annotations

import threading
import time

from coin_pulse.cache import SentimentCache
from coin_pulse.models import ClassifiedNewsPoint
from coin_pulse.windows import day_window

from helpers import news, utc

WINDOW = day_window("2024-03-14")


class _Clock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


class _CountingClassifier:
    def __init__(self, sentiment="bullish"):
        self.calls = 0
        self.sentiment = sentiment

    def classify(self, coin, items):
        self.calls += 1
        return [
            ClassifiedNewsPoint(t=item.t, title=item.title, link=item.link, source=item.source, sentiment=self.sentiment, confidence=1.7)
            for item in items
        ]


class _BrokenClassifier:
    def classify(self, coin, items):
        raise RuntimeError("model offline")


def _source(coin, window):
    return [news("BTC hits record", utc(2024, 3, 14, 9)), news("Bitcoin miners sell", utc(2024, 3, 14, 15))]


def test_second_call_within_ttl_hits_cache():
    clock = _Clock()
    classifier = _CountingClassifier()
    cache = SentimentCache(classifier, _source, ttl_seconds=300, clock=clock)
    first = cache.get("btc", WINDOW)
    clock.now += 299
    second = cache.get("BTC", WINDOW)
    assert classifier.calls == 1
    assert first == second
    assert [p.t for p in first] == sorted(p.t for p in first)
    assert all(p.confidence == 1.0 for p in first)


def test_expired_entry_is_reclassified():
    clock = _Clock()
    classifier = _CountingClassifier()
    cache = SentimentCache(classifier, _source, ttl_seconds=300, clock=clock)
    cache.get("BTC", WINDOW)
    clock.now += 300
    cache.get("BTC", WINDOW)
    assert classifier.calls == 2


def test_different_windows_use_different_keys():
    classifier = _CountingClassifier()
    cache = SentimentCache(classifier, _source, clock=_Clock())
    cache.get("BTC", WINDOW)
    cache.get("BTC", day_window("2024-03-13"))
    cache.get("ETH", WINDOW)
    assert classifier.calls == 3


def test_classifier_failure_degrades_to_neutral():
    cache = SentimentCache(_BrokenClassifier(), _source, clock=_Clock())
    points = cache.get("BTC", WINDOW)
    assert len(points) == 2
    assert {(p.sentiment, p.confidence, p.reason) for p in points} == {("neutral", 0.5, "fallback")}


def test_classify_limit_keeps_newest_items():
    items = [news(f"BTC item {hour}", utc(2024, 3, 14, hour)) for hour in range(10)]
    classifier = _CountingClassifier()
    cache = SentimentCache(classifier, lambda coin, window: items, classify_limit=3, clock=_Clock())
    points = cache.get("BTC", WINDOW)
    assert [p.title for p in points] == ["BTC item 7", "BTC item 8", "BTC item 9"]


def test_unlabelled_items_default_to_neutral():
    class _Partial:
        def classify(self, coin, items):
            first = items[0]
            return [ClassifiedNewsPoint(t=first.t, title=first.title, link=first.link, source=first.source, sentiment="bearish")]

    points = SentimentCache(_Partial(), _source, clock=_Clock()).get("BTC", WINDOW)
    assert sorted(p.sentiment for p in points) == ["bearish", "neutral"]


def test_capacity_is_bounded():
    cache = SentimentCache(_CountingClassifier(), _source, max_entries=2, clock=_Clock())
    for coin in ("BTC", "ETH", "SOL"):
        cache.get(coin, WINDOW)
    assert len(cache) == 2


def test_no_news_skips_classifier():
    classifier = _CountingClassifier()
    cache = SentimentCache(classifier, lambda coin, window: [], clock=_Clock())
    assert cache.get("BTC", WINDOW) == []
    assert classifier.calls == 0


def test_concurrent_callers_share_one_classification():
    gate = threading.Event()

    class _Slow(_CountingClassifier):
        def classify(self, coin, items):
            gate.wait(2)
            return super().classify(coin, items)

    classifier = _Slow()
    cache = SentimentCache(classifier, _source)
    results = []
    threads = [threading.Thread(target=lambda: results.append(cache.get("BTC", WINDOW))) for _ in range(5)]
    for thread in threads:
        thread.start()
    time.sleep(0.05)
    gate.set()
    for thread in threads:
        thread.join()
    assert classifier.calls == 1
    assert len(results) == 5


def test_classifier_stream_failing_midway_degrades_to_neutral():
    class _Streaming:
        def classify(self, coin, items):
            first = items[0]
            yield ClassifiedNewsPoint(t=first.t, title=first.title, link=first.link, source=first.source, sentiment="bullish")
            raise RuntimeError("model stream broke")

    points = SentimentCache(_Streaming(), _source, clock=_Clock()).get("BTC", WINDOW)
    assert {(p.sentiment, p.confidence, p.reason) for p in points} == {("neutral", 0.5, "fallback")}


def test_malformed_labels_degrade_to_neutral():
    class _Dicts:
        def classify(self, coin, items):
            return [{"t": item.t, "sentiment": "bullish"} for item in items]

    points = SentimentCache(_Dicts(), _source, clock=_Clock()).get("BTC", WINDOW)
    assert len(points) == 2
    assert all(p.reason == "fallback" for p in points)


def test_eviction_keeps_a_lock_that_is_held():
    cache = SentimentCache(_CountingClassifier(), _source, max_entries=1, clock=_Clock())
    cache.get("BTC", WINDOW)
    btc_key = WINDOW.cache_key("BTC")
    held = cache._key_lock(btc_key)
    with held:
        cache.get("ETH", WINDOW)
        assert len(cache) == 1
        assert cache._key_lock(btc_key) is held
