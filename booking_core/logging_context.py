"""Request ID logging context for tracing booking operations across modules.

Every log line carries a correlation ID, so a single create/cancel call can
be followed from the lifecycle manager down to the store. The request layer
calls ``set_request_id`` once per incoming request; the CLI and console demo
set their own IDs at startup. ``load_config`` installs ``LOG_FORMAT`` and
attaches ``RequestIdFilter`` to the root handlers.

Usage:
    from booking_core.logging_context import get_request_logger, set_request_id

    set_request_id("REQ-abc123")
    logger = get_request_logger(__name__)
    logger.info("Creating booking")  # ... [REQ-abc123] INFO: Creating booking
"""

import logging
from contextvars import ContextVar

LOG_FORMAT = "%(asctime)s [%(name)s] [%(request_id)s] %(levelname)s: %(message)s"

_request_id: ContextVar[str] = ContextVar("request_id", default="NO_REQUEST_ID")


def set_request_id(request_id: str) -> None:
    """Set the correlation ID for the current async context."""
    _request_id.set(request_id)


def get_request_id() -> str:
    return _request_id.get()


class RequestIdFilter(logging.Filter):
    """Injects request_id into every log record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = _request_id.get()  # type: ignore[attr-defined]
        return True


def attach_request_id(handler: logging.Handler) -> logging.Handler:
    """Add a RequestIdFilter to ``handler`` unless it already has one.

    Handler filters see records from every logger, including third-party
    ones, so ``LOG_FORMAT`` never hits a record without ``request_id``.
    """
    if not any(isinstance(f, RequestIdFilter) for f in handler.filters):
        handler.addFilter(RequestIdFilter())
    return handler


def get_request_logger(name: str) -> logging.Logger:
    """Return a logger with the RequestIdFilter attached."""
    logger = logging.getLogger(name)
    if not any(isinstance(f, RequestIdFilter) for f in logger.filters):
        logger.addFilter(RequestIdFilter())
    return logger
