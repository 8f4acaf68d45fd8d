"""Structlog configuration for igsnap."""

import logging
import sys

import structlog

from igsnap.config import LogFormat, ScraperConfig

# Client libraries that log every request or heartbeat at INFO
NOISY_LOGGERS = ("httpx", "httpcore", "botocore", "boto3", "apify_client", "pymongo")


def _route_stdlib_logging(level: int) -> None:
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level, force=True)
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))


def _renderers(log_format: LogFormat) -> list:
    if log_format == LogFormat.JSON:
        return [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    return [
        structlog.dev.set_exc_info,
        structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()),
    ]


def configure_logging(config: ScraperConfig | None = None) -> None:
    """
    Configure structlog for scrape, storage and API events.

    Called on every ``ProfileScraper`` entry; the latest config wins, so
    loggers are not cached.

    Args:
        config: ScraperConfig instance, uses defaults if None
    """
    config = config or ScraperConfig()
    level = logging.getLevelName(config.log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    _route_stdlib_logging(level)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.UnicodeDecoder(),
            *_renderers(config.log_format),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=False,
    )


def get_logger(name: str | None = None, **context) -> structlog.BoundLogger:
    """
    Logger for one igsnap component.

    Args:
        name: Component name ("scraper", "api", "mongo_store", ...), bound as ``logger_name``
        **context: Extra key/value pairs bound to every event, e.g. ``username``
    """
    bound = {"logger_name": name, **context} if name else context
    logger = structlog.get_logger()
    return logger.bind(**bound) if bound else logger
