import logging
import sys

import structlog

from fleetplane.core.errors import ConfigurationError

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def resolve_level(level: int | str) -> int:
    """Numeric level for a level name; unknown names are a configuration error."""
    if isinstance(level, int):
        return level
    name = str(level).strip().upper()
    if name not in LOG_LEVELS:
        raise ConfigurationError(f"Unknown log level: {level!r}", {"choices": ", ".join(LOG_LEVELS)})
    return getattr(logging, name)


def configure_logging(level: int | str = logging.INFO, json_logs: bool = True) -> None:
    """Configure structlog over stdlib logging, writing to stderr.

    Command output owns stdout, so logs never mix with ``--format json``.
    """

    level = resolve_level(level)

    renderer = (
        structlog.processors.JSONRenderer()
        if json_logs
        else structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(level=level, format="%(message)s", stream=sys.stderr, force=True)
