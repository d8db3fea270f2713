"""
Per-request correlation IDs.

Source, in order: the caller's X-Correlation-ID, Twilio's
I-Twilio-Idempotency-Token (identical on Twilio's retries of one webhook), a
fresh UUID4. The value is kept on request.state and in a contextvar, and sent
back in the X-Correlation-ID response header.
"""

import logging
import uuid
from contextvars import ContextVar
from typing import Callable

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

HEADER_CORRELATION_ID = "X-Correlation-ID"
HEADER_TWILIO_IDEMPOTENCY = "I-Twilio-Idempotency-Token"
MAX_CORRELATION_ID_LENGTH = 128

_current_correlation_id: ContextVar[str | None] = ContextVar("correlation_id", default=None)


def get_correlation_id(request: Request | None = None) -> str | None:
    """Correlation ID of the request being served, or None outside a request."""
    from_state = getattr(request.state, "correlation_id", None) if request is not None else None
    return from_state or _current_correlation_id.get()


def _pick_correlation_id(request: Request) -> str:
    for header in (HEADER_CORRELATION_ID, HEADER_TWILIO_IDEMPOTENCY):
        candidate = (request.headers.get(header) or "").strip()
        if 0 < len(candidate) <= MAX_CORRELATION_ID_LENGTH:
            return candidate
    return str(uuid.uuid4())


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: Callable):
        correlation_id = _pick_correlation_id(request)
        request.state.correlation_id = correlation_id
        reset_token = _current_correlation_id.set(correlation_id)
        try:
            response = await call_next(request)
        finally:
            _current_correlation_id.reset(reset_token)
        response.headers[HEADER_CORRELATION_ID] = correlation_id
        return response


class CorrelationIdFilter(logging.Filter):
    """Adds record.correlation_id ("-" when logged outside a request)."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not getattr(record, "correlation_id", None):
            record.correlation_id = _current_correlation_id.get() or "-"
        return True
