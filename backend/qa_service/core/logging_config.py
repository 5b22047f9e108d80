import logging

import structlog

from qa_service.core.config import settings

_SQLALCHEMY_LOGGERS = (
    "sqlalchemy.engine",
    "sqlalchemy.pool",
    "sqlalchemy.dialects",
    "sqlalchemy.orm",
)


def configure_logging() -> None:
    """Configure stdlib logging and structlog: JSON outside dev, console in dev."""
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format="%(message)s",
    )

    sql_log_level = getattr(logging, settings.SQL_LOG_LEVEL.upper(), logging.WARNING)
    for name in _SQLALCHEMY_LOGGERS:
        logging.getLogger(name).setLevel(sql_log_level)

    if settings.APP_ENV.lower() != "dev":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
