"""Process-wide logging setup."""

import logging

from app.core.config import settings
from app.middleware.correlation_id import CorrelationIdFilter

LOG_FORMAT = "%(asctime)s [%(name)s] %(levelname)s [%(correlation_id)s]: %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def configure_logging(level: str | None = None) -> None:
    """
    Configure root logging with correlation IDs.

    The filter sits on the handlers so records from every logger get a
    correlation_id before formatting.
    """
    level_name = (level or settings.log_level).upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT,
    )
    for handler in logging.getLogger().handlers:
        if not any(isinstance(f, CorrelationIdFilter) for f in handler.filters):
            handler.addFilter(CorrelationIdFilter())
