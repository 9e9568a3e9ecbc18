from __future__ import annotations

import logging
import sys
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator, Optional, Union


# Context variables for enriched logging
correlation_id_var: ContextVar[Optional[str]] = ContextVar("correlation_id", default=None)
tenant_id_var: ContextVar[Optional[str]] = ContextVar("tenant_id", default=None)

LOG_FORMAT = (
    "%(asctime)s | %(levelname)s | %(name)s | cid=%(correlation_id)s | tenant=%(tenant_id)s | "
    "%(message)s"
)


class LoggingContextFilter(logging.Filter):
    """
    Inject correlation_id and tenant_id from contextvars into each log record
    so formatters can include them. Placeholders are used when unset.
    """

    def filter(self, record: logging.LogRecord) -> bool:  # noqa: D401
        record.correlation_id = correlation_id_var.get() or "-"
        record.tenant_id = tenant_id_var.get() or "-"
        return True


# PUBLIC_INTERFACE
def configure_logging(level: Union[int, str] = logging.INFO) -> None:
    """Configure root logging with a structured format and context filter."""
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    handler = logging.StreamHandler(stream=sys.stdout)
    handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT))
    handler.addFilter(LoggingContextFilter())

    root = logging.getLogger()
    # Remove pre-existing default handlers configured elsewhere (e.g., basicConfig)
    for h in list(root.handlers):
        root.removeHandler(h)
    root.addHandler(handler)
    root.setLevel(level)


# PUBLIC_INTERFACE
@contextmanager
def request_context(correlation_id: Optional[str], tenant_id: Optional[str]) -> Iterator[None]:
    """Bind correlation and tenant ids for log records emitted inside the block."""
    token_corr = correlation_id_var.set(correlation_id)
    token_tenant = tenant_id_var.set(tenant_id)
    try:
        yield
    finally:
        correlation_id_var.reset(token_corr)
        tenant_id_var.reset(token_tenant)
