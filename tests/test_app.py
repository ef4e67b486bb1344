from __future__ import annotations

import pytest

from app import create_app
from coin_pulse import PulseAgent, PulseConfig
from coin_pulse.errors import FetchFailed
from coin_pulse.models import datetime_to_ms
from coin_pulse.news import NewsService
from coin_pulse.providers.binance_provider import BinanceProvider
from coin_pulse.providers.coingecko_provider import CoinGeckoProvider

from helpers import FakeFetcher, news, utc

DAY_START = datetime_to_ms(utc(2024, 3, 14))


class _Provider:
    name = "stub"

    def __init__(self):
        self.calls = 0

    def fetch(self, window=None, since_hours=72, coin=None):
        self.calls += 1
        return [
            news("Bitcoin rally lifts miners", utc(2024, 3, 14, 6)),
            news("Solana outage", utc(2024, 3, 14, 7)),
        ]


def _market(url, params):
    if "ethereum" in url or params.get("symbol") == "ETHUSDT":
        raise FetchFailed(url)
    return {"prices": [[DAY_START, 100.0], [DAY_START + 12 * 3600 * 1000, 200.0]]}


@pytest.fixture
def stack():
    fetcher = FakeFetcher(_market)
    provider = _Provider()
    agent = PulseAgent(
        config=PulseConfig(news_provider="rss"),
        fetcher=fetcher,
        curve_providers=[CoinGeckoProvider(fetcher), BinanceProvider(fetcher)],
        news=NewsService(provider),
    )
    app = create_app(agent)
    app.testing = True
    return app.test_client(), provider


def test_health(stack):
    client, _ = stack
    assert client.get("/health").get_json() == {"status": "ok"}


def test_series_mixes_successes_and_per_coin_errors(stack):
    client, _ = stack
    response = client.get("/api/series?coins=btc,ETH,pepe&date=2024-03-14")
    assert response.status_code == 200
    body = response.get_json()
    assert body["window"] == "date"
    assert body["date"] == "2024-03-14"
    assert body["coins"] == ["BTC", "ETH", "PEPE"]
    btc, eth, pepe = body["series"]
    assert btc["source"] == "CoinGecko"
    assert btc["window_start"] == "2024-03-14T00:00:00.000Z"
    assert btc["points"][0] == {"t": DAY_START, "price": 100.0}
    assert eth == {"coin": "ETH", "error": "fetch-failed"}
    assert pepe == {"coin": "PEPE", "error": "unsupported"}


def test_invalid_date_is_a_request_error(stack):
    client, _ = stack
    response = client.get("/api/series?coins=BTC&date=2024-13-40")
    assert response.status_code == 400
    assert response.get_json()["error"] == "invalid-date"


def test_news_points_are_cached(stack):
    client, provider = stack
    first = client.get("/api/news_points?coin=btc&date=2024-03-14").get_json()
    second = client.get("/api/news_points?coin=BTC&date=2024-03-14").get_json()
    assert provider.calls == 1
    assert first == second
    assert first["coin"] == "BTC"
    assert first["window"] == "date:2024-03-14"
    assert [p["title"] for p in first["points"]] == ["Bitcoin rally lifts miners"]
    assert set(first["points"][0]) == {
        "t",
        "title",
        "link",
        "source",
        "sentiment",
        "confidence",
        "reason",
        "isPriceNews",
        "timeframe",
    }


def test_news_overlay_interpolates_marker_prices(stack):
    client, _ = stack
    body = client.get("/api/news_overlay?coin=BTC&date=2024-03-14").get_json()
    assert body["source"] == "CoinGecko"
    [marker] = body["markers"]
    assert marker["x"] == datetime_to_ms(utc(2024, 3, 14, 6))
    assert marker["y"] == pytest.approx(150.0)


def test_curves_summarize_each_coin(stack):
    client, _ = stack
    response = client.get("/api/curves?coins=BTC,ETH,PEPE&date=2024-03-14")
    assert response.status_code == 200
    body = response.get_json()
    assert body["window"] == "date"
    btc, eth, pepe = body["curves"]
    assert btc["source"] == "CoinGecko"
    assert (btc["open"], btc["close"], btc["high"], btc["low"]) == (100.0, 200.0, 200.0, 100.0)
    assert btc["return"] == pytest.approx(1.0)
    assert eth == {"coin": "ETH", "error": "fetch-failed", "source": "CoinGecko"}
    assert pepe == {"coin": "PEPE", "error": "unsupported", "source": "CoinGecko"}
    assert body["trend"] == {"BTC": "up", "ETH": "neutral", "PEPE": "neutral"}
    assert "- BTC: open=100.00 close=200.00" in body["text"]
