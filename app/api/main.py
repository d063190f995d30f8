"""
API entry point.

Usage:
    python -m app.api.main
"""

from aiohttp import web
from loguru import logger

from app.api.server import create_app
from app.config.settings import settings
from app.utils.logging_config import setup_logging


def main() -> None:
    """Run the procedure API server."""
    setup_logging("api")
    logger.info(f"API listening on {settings.api_host}:{settings.api_port}")
    web.run_app(
        create_app(),
        host=settings.api_host,
        port=settings.api_port,
        print=None,
    )


if __name__ == "__main__":
    main()
