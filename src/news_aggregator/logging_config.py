import logging

import structlog

from .config import settings


def configure_logging(level: str | None = None, json_logs: bool | None = None) -> None:
    """Route structlog through stdlib logging.

    JSON lines by default; ``LOG_JSON=false`` switches to the console
    renderer for local development.
    """

    level_name = (level or settings.log_level).upper()
    json_logs = settings.log_json if json_logs is None else json_logs
    logging.basicConfig(level=getattr(logging, level_name, logging.INFO), format="%(message)s")

    renderer = structlog.processors.JSONRenderer() if json_logs else structlog.dev.ConsoleRenderer()
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


configure_logging()


def get_logger(name: str | None = None):
    if name is None:
        return structlog.get_logger()
    return structlog.get_logger(name)
