"""
Structured logging for sysshim using structlog.

Module loggers are structlog wrappers around stdlib loggers under the
``sysshim`` namespace. Until :func:`configure_logging` is called nothing is
rendered: the namespace carries a ``NullHandler`` and debug events fall below
the stdlib default level.
"""

import logging
import sys
import time
from contextlib import contextmanager
from pathlib import Path
from typing import List, Optional

import structlog

from .config import SysshimSettings

LIBRARY_LOGGER = "sysshim"

logging.getLogger(LIBRARY_LOGGER).addHandler(logging.NullHandler())

# Run for structlog events before wrap_for_formatter and for plain stdlib
# records inside ProcessorFormatter.
_PRE_CHAIN = [
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.add_logger_name,
    structlog.stdlib.add_log_level,
    structlog.processors.TimeStamper(fmt="iso", utc=True),
]


def get_logger(name: str = LIBRARY_LOGGER) -> structlog.stdlib.BoundLogger:
    """structlog logger writing to the stdlib logger *name*."""
    return structlog.wrap_logger(
        logging.getLogger(name), wrapper_class=structlog.stdlib.BoundLogger
    )


def _attach(logger: logging.Logger, handler: logging.Handler, renderer) -> None:
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                renderer,
            ],
            foreign_pre_chain=_PRE_CHAIN,
        )
    )
    handler._sysshim_owned = True
    logger.addHandler(handler)


def _owned_handlers(logger: logging.Logger) -> List[logging.Handler]:
    return [h for h in logger.handlers if getattr(h, "_sysshim_owned", False)]


def configure_logging(
    level: Optional[str] = None,
    json_output: bool = False,
    log_file: Optional[Path] = None,
    console_output: bool = True,
) -> None:
    """
    Render sysshim events on stderr and/or into a JSON log file.

    Only the ``sysshim`` logger tree is touched; the root logger and the
    application's own handlers are left alone. Calling it again replaces the
    handlers installed by the previous call.

    Args:
        level: DEBUG, INFO, WARNING or ERROR; defaults to ``SYSSHIM_LOG_LEVEL``
        json_output: Render console lines as JSON instead of key=value text
        log_file: Also append JSON lines to this file
        console_output: Write to stderr
    """
    level = (level or SysshimSettings.from_env().log_level).upper()

    structlog.configure(
        processors=[structlog.stdlib.filter_by_level]
        + _PRE_CHAIN
        + [
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )

    logger = logging.getLogger(LIBRARY_LOGGER)
    for handler in _owned_handlers(logger):
        logger.removeHandler(handler)
        handler.close()

    if console_output:
        if json_output:
            renderer = structlog.processors.JSONRenderer()
        else:
            renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())
        _attach(logger, logging.StreamHandler(sys.stderr), renderer)

    if log_file:
        _attach(logger, logging.FileHandler(log_file), structlog.processors.JSONRenderer())

    logger.setLevel(getattr(logging, level))
    # Rendered here; the application's root handlers would print it twice.
    logger.propagate = not _owned_handlers(logger)


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 2)


@contextmanager
def log_operation(logger: structlog.stdlib.BoundLogger, operation: str, **context):
    """
    Bind *context* to *logger* and log ``<operation>.started`` and then
    ``.completed`` or ``.failed`` with the elapsed time. Exceptions propagate.

    Usage:
        with log_operation(log, "copy_file", src=src, dst=dst) as op_log:
            op_log.warning("chmod_failed", mode="644")
    """
    bound = logger.bind(operation=operation, **context)
    bound.debug(f"{operation}.started")
    started = time.perf_counter()
    try:
        yield bound
    except Exception as exc:
        bound.error(
            f"{operation}.failed",
            error=str(exc),
            error_type=type(exc).__name__,
            duration_ms=_elapsed_ms(started),
        )
        raise
    bound.debug(f"{operation}.completed", duration_ms=_elapsed_ms(started))
