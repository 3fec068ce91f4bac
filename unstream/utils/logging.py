"""structlog setup shared by the API server and the CLI.

One processor chain renders both our own events and stdlib records from
third-party libraries.  Output is a coloured console in development and
JSON lines when ``APP_ENV=production`` or ``json_output`` is set.

A search fans out to a dozen sources at once, and httpx logs every request
at INFO while musicbrainzngs reports each unknown XML attribute.  Those
library loggers are held at WARNING unless the configured level is DEBUG.
"""

import logging
import os
import sys
from typing import Any, TextIO

import structlog

# Library loggers that drown a single search in request lines.
CHATTY_LIBRARY_LOGGERS: tuple[str, ...] = (
    "httpx",
    "httpcore",
    "musicbrainzngs",
    "urllib3",
)


def _shared_processors() -> list[structlog.types.Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]


def _quiet_libraries(level: int) -> None:
    library_level = logging.DEBUG if level <= logging.DEBUG else max(level, logging.WARNING)
    for name in CHATTY_LIBRARY_LOGGERS:
        logging.getLogger(name).setLevel(library_level)


def configure_logging(
    log_level: str = "INFO",
    json_output: bool = False,
    stream: TextIO | None = None,
) -> structlog.BoundLogger:
    """Configure structlog and the stdlib root logger.

    Args:
        log_level: DEBUG, INFO, WARNING or ERROR.
        json_output: Force JSON lines regardless of ``APP_ENV``.
        stream: Where log lines go. Defaults to stdout; the CLI passes
                stderr so ``--json`` output on stdout stays parseable.
    """
    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO
    use_json = json_output or os.environ.get("APP_ENV", "development").lower() == "production"
    out = stream or sys.stdout

    if use_json:
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=out.isatty())

    structlog.configure(
        processors=[*_shared_processors(), renderer],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=out),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(out)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                *_shared_processors(),
                renderer,
            ],
        )
    )
    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(level)
    _quiet_libraries(level)

    return structlog.get_logger()


def get_logger(name: str, **context: Any) -> structlog.BoundLogger:
    """Return a logger bound to *name* and any initial *context*.

    Source adapters pass ``source=<provider name>`` so every line they emit
    says which platform it came from.  Configures logging with defaults on
    first use if nothing else has.
    """
    if not structlog.is_configured():
        configure_logging()
    return structlog.get_logger(logger_name=name, **context)
