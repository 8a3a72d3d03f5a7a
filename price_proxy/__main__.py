from __future__ import annotations

import uvicorn

from price_proxy.config.settings import get_settings
from price_proxy.main import create_app


def main() -> None:
    settings = get_settings()
    uvicorn.run(create_app(settings), host=settings.HOST, port=settings.PORT)


if __name__ == "__main__":
    main()
