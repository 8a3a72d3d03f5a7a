from __future__ import annotations

import httpx
import pytest

from price_proxy.services.backoff import RetryPolicy
from price_proxy.services.coingecko import fetch_coingecko_prices
from price_proxy.services.cryptocompare import (
    build_cryptocompare_url,
    fetch_cryptocompare_prices,
)
from price_proxy.services.errors import ErrorKind, ProviderError
from price_proxy.services.key_rotator import KeyRotator


PAYLOAD = {"BTC": {"USD": 67000.12}, "ETH": {"USD": 3400.5}}


def _by_key(responses: dict[str, httpx.Response]):
    """Answer CryptoCompare requests according to the api_key query parameter."""
    seen: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        key = request.url.params["api_key"]
        seen.append(key)
        return responses[key]

    return handler, seen


@pytest.fixture()
def single_try(sleeps) -> RetryPolicy:
    return RetryPolicy(retries=1, backoff_ms=0, sleep=sleeps)


def test_build_cryptocompare_url():
    url = build_cryptocompare_url(["BTC", "ETH"], "secret")
    assert url.host == "min-api.cryptocompare.com"
    assert url.path == "/data/pricemulti"
    assert url.params["fsyms"] == "BTC,ETH"
    assert url.params["tsyms"] == "USD"
    assert url.params["api_key"] == "secret"


@pytest.mark.asyncio
async def test_cryptocompare_passes_payload_through(mock_client, single_try):
    handler, seen = _by_key({"k2": httpx.Response(200, json=PAYLOAD)})
    client = mock_client(handler)

    data = await fetch_cryptocompare_prices(
        ["BTC", "ETH"], client=client, rotator=KeyRotator(["k1", "k2"]), policy=single_try
    )

    assert data == PAYLOAD
    assert seen == ["k2"]


@pytest.mark.asyncio
async def test_cryptocompare_rotates_past_rate_limited_key(mock_client, single_try):
    handler, seen = _by_key(
        {
            "k2": httpx.Response(429),
            "k3": httpx.Response(200, json=PAYLOAD),
            "k1": httpx.Response(200, json={"unused": True}),
        }
    )
    client = mock_client(handler)

    data = await fetch_cryptocompare_prices(
        ["BTC"], client=client, rotator=KeyRotator(["k1", "k2", "k3"]), policy=single_try
    )

    assert data == PAYLOAD
    assert seen == ["k2", "k3"]


@pytest.mark.asyncio
async def test_cryptocompare_all_keys_rate_limited(mock_client, single_try):
    handler, seen = _by_key({k: httpx.Response(429) for k in ("k1", "k2", "k3")})
    client = mock_client(handler)

    with pytest.raises(ProviderError) as info:
        await fetch_cryptocompare_prices(
            ["BTC"], client=client, rotator=KeyRotator(["k1", "k2", "k3"]), policy=single_try
        )

    assert info.value.is_rate_limited
    assert sorted(seen) == ["k1", "k2", "k3"]


@pytest.mark.asyncio
async def test_cryptocompare_error_status_stops_rotation(mock_client, single_try):
    handler, seen = _by_key(
        {
            "k2": httpx.Response(401, text="bad key"),
            "k1": httpx.Response(200, json=PAYLOAD),
        }
    )
    client = mock_client(handler)

    with pytest.raises(ProviderError) as info:
        await fetch_cryptocompare_prices(
            ["BTC"], client=client, rotator=KeyRotator(["k1", "k2"]), policy=single_try
        )

    assert info.value.kind is ErrorKind.UPSTREAM_STATUS
    assert info.value.status == 401
    assert "401" in str(info.value)
    assert "bad key" in str(info.value)
    assert seen == ["k2"]


@pytest.mark.asyncio
async def test_cryptocompare_without_keys(mock_client, single_try):
    client = mock_client(lambda request: httpx.Response(200, json=PAYLOAD))

    with pytest.raises(ProviderError) as info:
        await fetch_cryptocompare_prices(
            ["BTC"], client=client, rotator=KeyRotator([]), policy=single_try
        )

    assert info.value.kind is ErrorKind.CREDENTIALS_EXHAUSTED
    assert str(info.value) == "All API keys failed"


@pytest.mark.asyncio
async def test_cryptocompare_transport_failure_is_not_rotated(mock_client, single_try):
    calls = []

    def handler(request):
        calls.append(request)
        raise httpx.ReadTimeout("timed out", request=request)

    client = mock_client(handler)

    with pytest.raises(ProviderError) as info:
        await fetch_cryptocompare_prices(
            ["BTC"], client=client, rotator=KeyRotator(["k1", "k2"]), policy=single_try
        )

    assert info.value.kind is ErrorKind.TRANSPORT
    assert len(calls) == 1


@pytest.mark.parametrize(
    "response, kind",
    [
        (httpx.Response(200, text="<html>oops</html>"), ErrorKind.INVALID_CONTENT_TYPE),
        (
            httpx.Response(200, text="{not json", headers={"content-type": "application/json"}),
            ErrorKind.INVALID_JSON,
        ),
        (
            httpx.Response(200, text="null", headers={"content-type": "application/json"}),
            ErrorKind.INVALID_STRUCTURE,
        ),
        (httpx.Response(200, json=[1, 2, 3]), ErrorKind.INVALID_STRUCTURE),
    ],
)
@pytest.mark.asyncio
async def test_cryptocompare_rejects_malformed_payloads(mock_client, single_try, response, kind):
    client = mock_client(lambda request: response)

    with pytest.raises(ProviderError) as info:
        await fetch_cryptocompare_prices(
            ["BTC"], client=client, rotator=KeyRotator(["k1"]), policy=single_try
        )

    assert info.value.kind is kind


@pytest.mark.asyncio
async def test_content_type_error_includes_body(mock_client, single_try):
    client = mock_client(lambda request: httpx.Response(200, text="<html>oops</html>"))

    with pytest.raises(ProviderError) as info:
        await fetch_coingecko_prices(["bitcoin"], client=client, policy=single_try)

    assert "text/plain" in str(info.value)
    assert "<html>oops</html>" in str(info.value)


@pytest.mark.asyncio
async def test_coingecko_builds_simple_price_request(mock_client, single_try):
    payload = {"bitcoin": {"usd": 67000}, "ethereum": {"usd": 3400}}
    seen: list[httpx.Request] = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json=payload)

    client = mock_client(handler)

    data = await fetch_coingecko_prices(["bitcoin", "ethereum"], client=client, policy=single_try)

    assert data == payload
    assert len(seen) == 1
    url = seen[0].url
    assert url.path == "/api/v3/simple/price"
    assert url.params["ids"] == "bitcoin,ethereum"
    assert url.params["vs_currencies"] == "usd"
    assert "api_key" not in url.params


@pytest.mark.asyncio
async def test_coingecko_retries_inside_backoff_only(mock_client, sleeps):
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(429, headers={"Retry-After": "3"})

    client = mock_client(handler)
    policy = RetryPolicy(retries=2, backoff_ms=1000, sleep=sleeps)

    with pytest.raises(ProviderError) as info:
        await fetch_coingecko_prices(["bitcoin"], client=client, policy=policy)

    assert info.value.kind is ErrorKind.RETRIES_EXHAUSTED
    assert len(calls) == 2
    assert sleeps.calls == [3.0]


@pytest.mark.asyncio
async def test_coingecko_error_status(mock_client, single_try):
    client = mock_client(lambda request: httpx.Response(503, text="maintenance"))

    with pytest.raises(ProviderError) as info:
        await fetch_coingecko_prices(["bitcoin"], client=client, policy=single_try)

    assert info.value.kind is ErrorKind.UPSTREAM_STATUS
    assert str(info.value) == "CoinGecko API error: 503 - maintenance"
