"""Helpers for interacting with the public CoinGecko API."""

from __future__ import annotations

from typing import Any, Sequence

import httpx

from price_proxy.services.backoff import RetryPolicy, fetch_with_backoff
from price_proxy.services.validation import parse_price_response


COINGECKO_URL = "https://api.coingecko.com/api/v3/simple/price"


async def fetch_coingecko_prices(
    coin_ids: Sequence[str],
    *,
    client: httpx.AsyncClient,
    policy: RetryPolicy = RetryPolicy(),
    base_url: str = COINGECKO_URL,
    currency: str = "usd",
) -> dict[str, Any]:
    """Return the raw ``simple/price`` payload for ``coin_ids``."""

    params = {
        "ids": ",".join(coin_ids),
        "vs_currencies": currency,
    }
    url = httpx.URL(base_url, params=params)

    response = await fetch_with_backoff(
        client, url, headers={"Accept": "application/json"}, policy=policy
    )
    return parse_price_response(response, "CoinGecko")
