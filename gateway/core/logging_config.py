import logging
from typing import List

import structlog

from gateway.core.config import Settings, settings as default_settings


def build_processors(config: Settings) -> List:
    """structlog chain ending in a JSON or console renderer per `LOG_FORMAT`."""
    renderer = (
        structlog.processors.JSONRenderer()
        if config.log_as_json
        else structlog.dev.ConsoleRenderer()
    )
    return [
        # Picks up correlation_id / request_id bound by the request middleware
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        renderer,
    ]


def configure_logging(config: Settings = default_settings) -> None:
    structlog.configure(
        processors=build_processors(config),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(format="%(message)s", level=config.log_level)
    logging.getLogger().setLevel(config.log_level)
