# price_proxy/api/health.py
from __future__ import annotations

import time

from fastapi import APIRouter, Request

router = APIRouter(tags=["health"])

APP_STARTED_AT = time.time()


@router.get("/live")
async def live(request: Request):
    rotator = getattr(request.app.state, "rotator", None)
    return {
        "status": "ok",
        "uptime_s": int(time.time() - APP_STARTED_AT),
        "api_keys": len(rotator) if rotator is not None else 0,
    }
