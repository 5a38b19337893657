"""structlog setup shared by the library and the CLI."""

import logging
import sys

import structlog

_LOGGING_CONFIGURED = False


def configure_logging(debug: bool = False) -> None:
    """Render structlog events to the process stderr; ``DEBUG`` when *debug*, else ``INFO``.

    Only the first call has an effect, and none at all when the application
    already configured structlog itself. ``DocumentBuilder`` calls this too, so
    debug events stay quiet unless ``settings.debug`` is set. The original
    ``sys.__stderr__`` is used so that a temporarily swapped ``sys.stderr``
    (click's test runner) is not captured by cached loggers.
    """
    global _LOGGING_CONFIGURED

    if _LOGGING_CONFIGURED or structlog.is_configured():
        return

    level = logging.DEBUG if debug else logging.INFO
    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(level),
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(colors=False),
        ],
        logger_factory=structlog.PrintLoggerFactory(file=sys.__stderr__),
        cache_logger_on_first_use=True,
    )

    _LOGGING_CONFIGURED = True
