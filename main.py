"""
BiteBoard - Main Entry Point

Nearby cafe discovery with AI-summarized dish recommendations.
"""

import logging
import sys

import structlog
import uvicorn

from biteboard.config import Settings, get_settings


def configure_logging(settings: Settings) -> None:
    """Route structlog through stdlib logging; JSON lines outside development."""
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, settings.log_level),
    )

    renderer = (
        structlog.dev.ConsoleRenderer()
        if settings.is_development
        else structlog.processors.JSONRenderer()
    )
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


logger = structlog.get_logger(__name__)


def main():
    """Run the API server."""
    settings = get_settings()
    configure_logging(settings)

    logger.info(
        "starting_server",
        host=settings.api_host,
        port=settings.api_port,
        environment=settings.app_env,
        cache_backend="supabase" if settings.supabase_configured else "memory",
    )

    uvicorn.run(
        "biteboard.api.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.is_development,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
