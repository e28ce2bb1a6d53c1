"""
structlog configuration.

Two output modes, both to stderr:
- Human (default): colored console output
- JSON (`log_json`): one JSON object per line
"""

import logging
import sys

import structlog


def configure_logging(level: str = "INFO", log_json: bool = False) -> None:
    """
    Configure structlog processors and the filtering level. Loggers handed out
    by `structlog.get_logger()` afterwards are `FilteringBoundLogger`s, so the
    async methods (`ainfo`, `adebug`, ...) used by the service layer are
    available.
    """
    numeric_level = logging.getLevelNamesMapping().get(level.upper(), logging.INFO)

    processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]

    if log_json:
        processors += [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )
