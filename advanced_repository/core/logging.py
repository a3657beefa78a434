from __future__ import annotations

import logging
import sys
from contextvars import ContextVar
from typing import Optional, Union


# Context variables for enriched logging
correlation_id_var: ContextVar[Optional[str]] = ContextVar("correlation_id", default=None)
uow_id_var: ContextVar[Optional[str]] = ContextVar("uow_id", default=None)

LOG_FORMAT = (
    "%(asctime)s | %(levelname)s | %(name)s | cid=%(correlation_id)s | uow=%(uow_id)s | "
    "%(message)s"
)


class LoggingContextFilter(logging.Filter):
    """
    Logging filter that injects correlation_id and uow_id from contextvars
    into each log record so formatters can include them.

    If no values are present in the context, placeholders are used.
    """

    def filter(self, record: logging.LogRecord) -> bool:  # noqa: D401
        cid = correlation_id_var.get()
        uid = uow_id_var.get()
        setattr(record, "correlation_id", cid or "-")
        setattr(record, "uow_id", uid or "-")
        return True


# PUBLIC_INTERFACE
def configure_logging(level: Union[int, str, None] = None) -> None:
    """
    Configure root logging with a structured format and context filter.

    When no level is given, LOG_LEVEL from the application settings is used.
    """
    if level is None:
        from advanced_repository.core.settings import get_app_settings

        level = get_app_settings().LOG_LEVEL

    handler = logging.StreamHandler(stream=sys.stdout)
    handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT))
    handler.addFilter(LoggingContextFilter())

    root = logging.getLogger()
    # Remove pre-existing default handlers configured elsewhere (e.g., basicConfig)
    for h in list(root.handlers):
        root.removeHandler(h)
    root.addHandler(handler)
    root.setLevel(level)
