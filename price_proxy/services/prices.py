# price_proxy/services/prices.py
from __future__ import annotations

import logging
from typing import List, Optional

import httpx

from price_proxy.config.settings import Settings, parse_csv
from price_proxy.services.backoff import RetryPolicy
from price_proxy.services.coingecko import fetch_coingecko_prices
from price_proxy.services.cryptocompare import fetch_cryptocompare_prices
from price_proxy.services.errors import ErrorKind, PriceResult, ProviderError
from price_proxy.services.key_rotator import KeyRotator

logger = logging.getLogger("price_proxy.prices")

SOURCE_CRYPTOCOMPARE = "cryptocompare"
SOURCE_COINGECKO = "coingecko"


def resolve_source(value: Optional[str]) -> str:
    """Only ``coingecko`` picks the secondary provider; anything else is CryptoCompare."""
    if value == SOURCE_COINGECKO:
        return SOURCE_COINGECKO
    return SOURCE_CRYPTOCOMPARE


def parse_symbols(value: Optional[str]) -> List[str]:
    return parse_csv(value, [])


def retry_policy_from_settings(settings: Settings) -> RetryPolicy:
    return RetryPolicy(
        retries=settings.RETRY_MAX_ATTEMPTS,
        backoff_ms=settings.RETRY_BACKOFF_BASE_MS,
    )


async def fetch_prices(
    source: str,
    symbols: List[str],
    *,
    client: httpx.AsyncClient,
    rotator: KeyRotator,
    settings: Settings,
    policy: RetryPolicy | None = None,
) -> PriceResult:
    policy = policy or retry_policy_from_settings(settings)

    try:
        if source == SOURCE_COINGECKO:
            data = await fetch_coingecko_prices(
                symbols,
                client=client,
                policy=policy,
                base_url=settings.COINGECKO_URL,
                currency=settings.COINGECKO_CURRENCY,
            )
        else:
            data = await fetch_cryptocompare_prices(
                symbols,
                client=client,
                rotator=rotator,
                policy=policy,
                base_url=settings.CRYPTOCOMPARE_URL,
                currency=settings.CRYPTOCOMPARE_CURRENCY,
            )
    except ProviderError as exc:
        logger.warning(
            "price lookup failed | source=%s | kind=%s | status=%s | err=%s",
            source,
            exc.kind.value,
            exc.status,
            exc,
        )
        return PriceResult(source=source, error=exc)
    except (httpx.HTTPError, httpx.InvalidURL) as exc:
        logger.warning("price lookup failed | source=%s | err=%s", source, exc)
        error = ProviderError(ErrorKind.TRANSPORT, f"Network error: {exc}")
        error.__cause__ = exc
        return PriceResult(source=source, error=error)

    return PriceResult(source=source, data=data)
