import logging

import structlog

from bookpath.internal.env_settings import Settings


def configure_logging(level: str | None = None, debug: bool | None = None):
    settings = Settings().app
    level = level or settings.log_level
    debug = settings.debug if debug is None else debug

    renderer: structlog.typing.Processor
    if debug:
        renderer = structlog.dev.ConsoleRenderer()
    else:
        renderer = structlog.processors.JSONRenderer()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(level.upper())
        ),
        cache_logger_on_first_use=False,
    )


configure_logging()

logger: structlog.typing.FilteringBoundLogger = structlog.get_logger("bookpath")
