"""Structured logging setup using structlog.

One shared processor chain (context vars, log level, timestamps, stack
info) feeds either a coloured ConsoleRenderer for local development or a
JSONRenderer for production.  The renderer follows ``APP_ENV`` (default
``"development"``) unless ``json_output`` forces JSON.

Standard-library ``logging`` is routed through the same formatter so the
openai/anthropic/httpx clients log in the same shape as our own events.
Oracle refusals and oracle failures are logged under different event
names (``oracle_refused`` vs ``oracle_failed``) so they can be counted
separately downstream.
"""

import logging
import os
import sys

import structlog


def configure_logging(
    log_level: str = "INFO",
    json_output: bool = False,
    stream=None,
) -> structlog.BoundLogger:
    """Configure structlog with environment-appropriate rendering.

    Args:
        log_level: Logging level string (DEBUG, INFO, WARNING, ERROR).
        json_output: Force JSON output regardless of ``APP_ENV``.
        stream: Output stream for both structlog and stdlib records.
            Defaults to stdout; the CLI passes stderr in ``--json`` mode
            so stdout carries only the command's result.

    Returns:
        A configured structlog BoundLogger.
    """
    use_json = json_output or os.environ.get("APP_ENV", "development") == "production"
    out = stream or sys.stdout

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    if use_json:
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=out.isatty())

    structlog.configure(
        processors=[*shared_processors, renderer],
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(log_level.upper())
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=out),
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            *shared_processors,
            renderer,
        ],
    )
    handler = logging.StreamHandler(out)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(log_level.upper())

    return structlog.get_logger()


def get_logger(name: str) -> structlog.BoundLogger:
    """Return a structlog logger bound with ``logger_name``.

    Configures logging with defaults on first use if nothing else has.
    """
    if not structlog.is_configured():
        configure_logging()

    return structlog.get_logger(logger_name=name)
