from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

DEFAULT_USER_AGENT = "coin-pulse/0.1 (crypto news and price curves)"
NEWS_PROVIDERS = ("rss", "cryptopanic", "feedly", "cryptocompare")


@dataclass(slots=True)
class PulseConfig:
    """Runtime configuration for the acquisition pipeline."""

    news_provider: str = "cryptocompare"
    cryptopanic_token: Optional[str] = None
    feedly_token: Optional[str] = None
    cryptocompare_api_key: Optional[str] = None
    coingecko_api_key: Optional[str] = None
    coingecko_demo_api_key: Optional[str] = None
    user_agent: str = DEFAULT_USER_AGENT
    news_max_pages: int = 4
    news_per_page: int = 50
    news_since_hours: int = 72
    news_cache_ttl_ms: int = 300_000
    news_classify_limit: int = 30
    news_cache_max_entries: int = 256
    request_timeout: float = 10.0
    max_attempts: int = 3
    max_workers: int = 1

    @property
    def news_cache_ttl_seconds(self) -> float:
        return self.news_cache_ttl_ms / 1000.0

    @classmethod
    def from_env(cls) -> "PulseConfig":
        import os

        provider = (os.getenv("NEWS_PROVIDER") or "cryptocompare").strip().lower()
        if provider not in NEWS_PROVIDERS:
            raise ValueError(f"NEWS_PROVIDER must be one of {', '.join(NEWS_PROVIDERS)}")
        return cls(
            news_provider=provider,
            cryptopanic_token=os.getenv("CRYPTOPANIC_TOKEN") or None,
            feedly_token=os.getenv("FEEDLY_TOKEN") or None,
            cryptocompare_api_key=os.getenv("CRYPTOCOMPARE_API_KEY") or os.getenv("CRYPTOCOMPARE_KEY") or None,
            coingecko_api_key=os.getenv("COINGECKO_API_KEY") or None,
            coingecko_demo_api_key=os.getenv("COINGECKO_DEMO_API_KEY") or None,
            user_agent=os.getenv("USER_AGENT") or DEFAULT_USER_AGENT,
            news_max_pages=_parse_int("NEWS_MAX_PAGES", os.getenv("NEWS_MAX_PAGES"), 4),
            news_per_page=_parse_int("NEWS_PER_PAGE", os.getenv("NEWS_PER_PAGE"), 50),
            news_since_hours=_parse_int("NEWS_SINCE_HOURS", os.getenv("NEWS_SINCE_HOURS"), 72),
            news_cache_ttl_ms=_parse_int("NEWS_CACHE_TTL_MS", os.getenv("NEWS_CACHE_TTL_MS"), 300_000),
            news_classify_limit=_parse_int("NEWS_CLASSIFY_LIMIT", os.getenv("NEWS_CLASSIFY_LIMIT"), 30),
            news_cache_max_entries=_parse_int("NEWS_CACHE_MAX_ENTRIES", os.getenv("NEWS_CACHE_MAX_ENTRIES"), 256),
            request_timeout=float(_parse_int("PULSE_REQUEST_TIMEOUT", os.getenv("PULSE_REQUEST_TIMEOUT"), 10)),
            max_workers=min(8, _parse_int("PULSE_MAX_WORKERS", os.getenv("PULSE_MAX_WORKERS"), 1)),
        )


def _parse_int(name: str, value: Optional[str], default: int) -> int:
    if value is None or value.strip() == "":
        return default
    try:
        parsed = int(value)
    except ValueError:
        raise ValueError(f"{name} must be an integer if set") from None
    if parsed <= 0:
        raise ValueError(f"{name} must be positive")
    return parsed
