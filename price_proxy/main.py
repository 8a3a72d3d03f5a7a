# price_proxy/main.py
from __future__ import annotations

import logging

import httpx
from fastapi import FastAPI

from price_proxy.api.health import router as health_router
from price_proxy.api.prices import router as prices_router
from price_proxy.config.settings import Settings, get_settings
from price_proxy.services.key_rotator import KeyRotator

logger = logging.getLogger("price_proxy")


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s | %(message)s",
    )


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings.LOG_LEVEL)

    app = FastAPI(title="Crypto Price Proxy")

    # Routers
    app.include_router(health_router)
    app.include_router(prices_router)

    app.state.settings = settings
    app.state.rotator = KeyRotator(settings.CRYPTOCOMPARE_API_KEYS)
    app.state.http_client = None

    @app.on_event("startup")
    async def on_startup() -> None:
        app.state.http_client = httpx.AsyncClient(
            timeout=settings.HTTP_TIMEOUT_SECONDS, follow_redirects=True
        )
        if not len(app.state.rotator):
            logger.warning("no CryptoCompare API keys configured (CRYPTOCOMPARE_API_KEYS)")
        logger.info(
            "price proxy started | api_keys=%s | retries=%s | backoff_ms=%s",
            len(app.state.rotator),
            settings.RETRY_MAX_ATTEMPTS,
            settings.RETRY_BACKOFF_BASE_MS,
        )

    @app.on_event("shutdown")
    async def on_shutdown() -> None:
        if app.state.http_client is not None:
            await app.state.http_client.aclose()
            app.state.http_client = None

    return app
