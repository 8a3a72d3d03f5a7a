# price_proxy/config/settings.py
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import List


def parse_csv(value: str | None, default: List[str]) -> List[str]:
    if not value:
        return default
    items = [x.strip() for x in value.split(",")]
    return [x for x in items if x]


def parse_int(value: str | None, default: int) -> int:
    if value is None or value.strip() == "":
        return default
    return int(value)


def parse_float(value: str | None, default: float) -> float:
    if value is None or value.strip() == "":
        return default
    return float(value)


@dataclass(frozen=True)
class Settings:
    CRYPTOCOMPARE_API_KEYS: List[str]
    CRYPTOCOMPARE_URL: str
    CRYPTOCOMPARE_CURRENCY: str
    COINGECKO_URL: str
    COINGECKO_CURRENCY: str
    RETRY_MAX_ATTEMPTS: int
    RETRY_BACKOFF_BASE_MS: int
    HTTP_TIMEOUT_SECONDS: float
    LOG_LEVEL: str
    HOST: str
    PORT: int

    @staticmethod
    def from_env() -> "Settings":
        return Settings(
            CRYPTOCOMPARE_API_KEYS=parse_csv(os.getenv("CRYPTOCOMPARE_API_KEYS"), []),
            CRYPTOCOMPARE_URL=os.getenv(
                "CRYPTOCOMPARE_URL", "https://min-api.cryptocompare.com/data/pricemulti"
            ),
            CRYPTOCOMPARE_CURRENCY=os.getenv("CRYPTOCOMPARE_CURRENCY", "USD"),
            COINGECKO_URL=os.getenv(
                "COINGECKO_URL", "https://api.coingecko.com/api/v3/simple/price"
            ),
            COINGECKO_CURRENCY=os.getenv("COINGECKO_CURRENCY", "usd"),
            RETRY_MAX_ATTEMPTS=parse_int(os.getenv("RETRY_MAX_ATTEMPTS"), 3),
            RETRY_BACKOFF_BASE_MS=parse_int(os.getenv("RETRY_BACKOFF_BASE_MS"), 1000),
            HTTP_TIMEOUT_SECONDS=parse_float(os.getenv("HTTP_TIMEOUT_SECONDS"), 10.0),
            LOG_LEVEL=os.getenv("LOG_LEVEL", "INFO").upper(),
            HOST=os.getenv("HOST", "0.0.0.0"),
            PORT=parse_int(os.getenv("PORT"), 8000),
        )


_settings: Settings | None = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings.from_env()
    return _settings
