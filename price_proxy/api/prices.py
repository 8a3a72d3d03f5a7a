# price_proxy/api/prices.py
from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Request, Response
from fastapi.responses import JSONResponse

from price_proxy.schemas.prices import (
    MissingParameterResponse,
    ProviderErrorResponse,
    UnexpectedErrorResponse,
)
from price_proxy.services.prices import fetch_prices, parse_symbols, resolve_source
from price_proxy.utils.time import iso_z, utcnow

logger = logging.getLogger("price_proxy.api")

router = APIRouter(tags=["prices"])

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
}

PROXY_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


def _json_response(content: Any, status_code: int = 200) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=content,
        headers=CORS_HEADERS,
        media_type="application/json",
    )


@router.api_route("/", methods=PROXY_METHODS)
async def proxy_prices(request: Request) -> Response:
    """
    Forward a price lookup to CryptoCompare (default) or CoinGecko.

    Example: /?source=coingecko&symbols=bitcoin,ethereum
    """
    try:
        if request.method == "OPTIONS":
            return Response(status_code=200, headers=CORS_HEADERS)

        source = resolve_source(request.query_params.get("source"))
        symbols = parse_symbols(request.query_params.get("symbols"))
        if not symbols:
            body = MissingParameterResponse(error="Missing symbols parameter")
            return _json_response(body.model_dump(), status_code=400)

        state = request.app.state
        result = await fetch_prices(
            source,
            symbols,
            client=state.http_client,
            rotator=state.rotator,
            settings=state.settings,
        )

        if result.ok:
            return _json_response(result.data)

        body = ProviderErrorResponse(
            error=str(result.error),
            source=result.source,
            symbols=symbols,
        )
        return _json_response(body.model_dump(), status_code=500)
    except Exception as e:
        logger.exception("unexpected proxy error | url=%s", request.url)
        body = UnexpectedErrorResponse(error=str(e), timestamp=iso_z(utcnow()))
        return _json_response(body.model_dump(), status_code=500)
