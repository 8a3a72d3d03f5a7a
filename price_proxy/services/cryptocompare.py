"""CryptoCompare multi-symbol price lookups with API key rotation."""

from __future__ import annotations

import logging
from typing import Any, Sequence

import httpx

from price_proxy.services.backoff import RetryPolicy, fetch_with_backoff
from price_proxy.services.errors import ErrorKind, ProviderError
from price_proxy.services.key_rotator import KeyRotator
from price_proxy.services.validation import parse_price_response

logger = logging.getLogger("price_proxy.cryptocompare")

CRYPTOCOMPARE_URL = "https://min-api.cryptocompare.com/data/pricemulti"


def build_cryptocompare_url(
    symbols: Sequence[str],
    api_key: str,
    base_url: str = CRYPTOCOMPARE_URL,
    currency: str = "USD",
) -> httpx.URL:
    params = {
        "fsyms": ",".join(symbols),
        "tsyms": currency,
        "api_key": api_key,
    }
    return httpx.URL(base_url, params=params)


async def fetch_cryptocompare_prices(
    symbols: Sequence[str],
    *,
    client: httpx.AsyncClient,
    rotator: KeyRotator,
    policy: RetryPolicy = RetryPolicy(),
    base_url: str = CRYPTOCOMPARE_URL,
    currency: str = "USD",
) -> dict[str, Any]:
    """
    Return the raw ``pricemulti`` payload for ``symbols``.

    Tries at most one request per key in the pool. Rate limiting moves on to
    the next key; any other failure is raised straight away.
    """
    last_error: ProviderError | None = None

    for attempt in range(len(rotator)):
        api_key = rotator.next_key()
        url = build_cryptocompare_url(symbols, api_key, base_url=base_url, currency=currency)

        try:
            response = await fetch_with_backoff(
                client, url, headers={"Accept": "application/json"}, policy=policy
            )
        except ProviderError as exc:
            if not exc.is_rate_limited:
                raise
            last_error = exc
            logger.warning(
                "api key rate limited | key_slot=%s | attempt=%s/%s",
                rotator.position,
                attempt + 1,
                len(rotator),
            )
            continue

        if response.status_code == 429:
            last_error = ProviderError(
                ErrorKind.RATE_LIMITED,
                f"CryptoCompare rate limit: {response.text}",
                status=429,
                body=response.text,
            )
            logger.warning(
                "api key rate limited | key_slot=%s | attempt=%s/%s",
                rotator.position,
                attempt + 1,
                len(rotator),
            )
            continue

        return parse_price_response(response, "CryptoCompare")

    if last_error is not None:
        raise last_error
    raise ProviderError(ErrorKind.CREDENTIALS_EXHAUSTED, "All API keys failed")
