"""
Main application entry point.
Configures logging and serves the quote gateway API with uvicorn.
"""
import logging
import sys

import uvicorn

from quote_gateway.api.routes import create_app
from quote_gateway.config.settings import settings

# Configure logging for stdout/stderr collectors
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
    force=True,
)

logger = logging.getLogger(__name__)

api = create_app()


def main():
    """Run the application."""
    logger.info(
        "Configuration loaded",
        extra={
            "host": settings.host,
            "port": settings.port,
            "log_level": settings.log_level,
            "primary_base_url": settings.primary_base_url,
            "fallback_base_url": settings.fallback_base_url,
            "chart_range": settings.chart_range,
        },
    )

    uvicorn.run(
        api,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
        access_log=True,
    )


if __name__ == "__main__":
    main()
