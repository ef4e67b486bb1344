from __future__ import annotations

from typing import Dict, Iterable, List, Optional

COINGECKO_IDS: Dict[str, str] = {
    "BTC": "bitcoin",
    "ETH": "ethereum",
    "SOL": "solana",
    "ADA": "cardano",
    "XRP": "ripple",
    "BNB": "binancecoin",
    "DOGE": "dogecoin",
    "AVAX": "avalanche-2",
    "MATIC": "matic-network",
    "TRX": "tron",
}

BINANCE_SYMBOLS: Dict[str, str] = {coin: f"{coin}USDT" for coin in COINGECKO_IDS}

COIN_SYNONYMS: Dict[str, List[str]] = {
    "BTC": ["BTC", "Bitcoin"],
    "ETH": ["ETH", "Ethereum"],
    "SOL": ["SOL", "Solana"],
    "ADA": ["ADA", "Cardano"],
    "XRP": ["XRP", "Ripple"],
    "BNB": ["BNB", "Binance"],
    "DOGE": ["DOGE", "Dogecoin"],
    "AVAX": ["AVAX", "Avalanche"],
    "MATIC": ["MATIC", "Polygon"],
    "TRX": ["TRX", "Tron"],
}


def parse_coins(value: Optional[str], default: Iterable[str] = ("BTC",)) -> List[str]:
    if not value:
        return list(default)
    return [item.strip().upper() for item in value.split(",") if item.strip()]


def is_news_about_coin(title: str, coin: str) -> bool:
    lowered = (title or "").lower()
    synonyms = COIN_SYNONYMS.get(coin.upper(), [coin])
    return any(name.lower() in lowered for name in synonyms)
