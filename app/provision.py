"""One-time schema provisioning, run before the service accepts traffic.

Usage::
    shortener-init-db
    python -m app.provision
"""

import asyncio
import logging

from app.config import get_settings
from app.database import close_db, init_db

__all__ = ["main"]

logger = logging.getLogger("urlshortener.provision")


async def provision() -> None:
    try:
        await init_db()
    finally:
        await close_db()


def main() -> None:
    settings = get_settings()
    logging.basicConfig(level=settings.LOG_LEVEL, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    logger.info(f"Provisioning schema for {settings.APP_NAME} ({settings.APP_ENV})")
    asyncio.run(provision())
    logger.info("Schema ready")


if __name__ == "__main__":
    main()
