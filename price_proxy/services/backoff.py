# price_proxy/services/backoff.py
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Mapping, Optional

import httpx

from price_proxy.services.errors import ErrorKind, ProviderError

logger = logging.getLogger("price_proxy.backoff")

Sleep = Callable[[float], Awaitable[None]]


@dataclass(frozen=True)
class RetryPolicy:
    """Retry budget for one upstream call.

    ``retries`` is the total number of network attempts, ``backoff_ms`` the
    base delay in milliseconds. ``sleep`` takes seconds.
    """

    retries: int = 3
    backoff_ms: int = 1000
    sleep: Sleep = asyncio.sleep

    def delay_seconds(self, attempt: int) -> float:
        return self.backoff_ms * (2 ** attempt) / 1000.0


def parse_retry_after(value: Optional[str]) -> Optional[int]:
    """Integer seconds from a Retry-After header, or None (HTTP-date form included)."""
    if value is None:
        return None
    try:
        return int(value.strip())
    except ValueError:
        return None


async def fetch_with_backoff(
    client: httpx.AsyncClient,
    url: httpx.URL | str,
    headers: Mapping[str, str] | None = None,
    policy: RetryPolicy = RetryPolicy(),
) -> httpx.Response:
    """
    GET ``url`` and return the response for any status other than 429.

    429 responses are retried after ``Retry-After`` seconds when the header
    is an integer, otherwise after ``backoff_ms * 2**attempt``. Request
    errors (transport, decoding, redirects) back off the same way and are
    raised as a ``ProviderError`` once the last attempt fails.
    """
    last_attempt = policy.retries - 1

    for attempt in range(policy.retries):
        try:
            response = await client.get(url, headers=headers)
        except httpx.RequestError as exc:
            if attempt >= last_attempt:
                logger.warning(
                    "upstream unreachable | attempt=%s/%s | err=%s",
                    attempt + 1,
                    policy.retries,
                    exc,
                )
                raise ProviderError(
                    ErrorKind.TRANSPORT, f"Network error: {exc}"
                ) from exc

            delay = policy.delay_seconds(attempt)
            logger.info(
                "request failed, retrying | attempt=%s/%s | err=%s | sleep=%.2fs",
                attempt + 1,
                policy.retries,
                exc,
                delay,
            )
            await policy.sleep(delay)
            continue

        if response.status_code != 429:
            return response

        if attempt >= last_attempt:
            logger.warning(
                "rate limited, no attempts left | attempt=%s/%s",
                attempt + 1,
                policy.retries,
            )
            break

        retry_after = parse_retry_after(response.headers.get("Retry-After"))
        if retry_after is not None:
            delay = float(retry_after)
            logger.info(
                "rate limited, honoring Retry-After | attempt=%s/%s | sleep=%ss",
                attempt + 1,
                policy.retries,
                retry_after,
            )
        else:
            delay = policy.delay_seconds(attempt)
            logger.info(
                "rate limited, backing off | attempt=%s/%s | sleep=%.2fs",
                attempt + 1,
                policy.retries,
                delay,
            )
        await policy.sleep(delay)

    raise ProviderError(
        ErrorKind.RETRIES_EXHAUSTED, "Max retries exceeded", status=429
    )
