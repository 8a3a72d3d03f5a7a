"""Checks shared by both provider adapters before a payload is passed through."""

from __future__ import annotations

import json
from typing import Any

import httpx

from price_proxy.services.errors import ErrorKind, ProviderError


def parse_price_response(response: httpx.Response, provider: str) -> dict[str, Any]:
    if not response.is_success:
        raise ProviderError(
            ErrorKind.UPSTREAM_STATUS,
            f"{provider} API error: {response.status_code} - {response.text}",
            status=response.status_code,
            body=response.text,
        )

    content_type = response.headers.get("content-type", "")
    if "application/json" not in content_type.lower():
        raise ProviderError(
            ErrorKind.INVALID_CONTENT_TYPE,
            f"Invalid content type: {content_type or 'missing'}. Response: {response.text}",
            status=response.status_code,
            body=response.text,
        )

    try:
        data = json.loads(response.text)
    except ValueError as exc:
        raise ProviderError(
            ErrorKind.INVALID_JSON,
            f"Invalid JSON response from {provider}: {exc}",
            status=response.status_code,
            body=response.text,
        ) from exc

    # JSON null, arrays and scalars are all rejected.
    if not isinstance(data, dict):
        raise ProviderError(
            ErrorKind.INVALID_STRUCTURE,
            f"Invalid data structure received from {provider}",
            status=response.status_code,
            body=response.text,
        )

    return data
