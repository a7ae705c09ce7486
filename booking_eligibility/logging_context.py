"""Request-scoped correlation IDs for eligibility logs.

Every booking check runs under a request ID held in a ContextVar, so the
records written by the validator, the availability resolver and the geo
filter for one booking attempt can be pulled out of an interleaved log.
``install_request_id_filter`` stamps the ID on every record reaching the
root handlers, which is what lets the log format use ``%(request_id)s``.

Usage:
    from booking_eligibility.logging_context import request_scope

    with request_scope() as request_id:
        result = await validator.validate_booking_request(...)
"""

import logging
import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator, Optional

NO_REQUEST_ID = "-"
REQUEST_ID_PREFIX = "REQ-"

_request_id: ContextVar[str] = ContextVar("request_id", default=NO_REQUEST_ID)


def get_request_id() -> str:
    """The request ID of the current context, or ``NO_REQUEST_ID``."""
    return _request_id.get()


def new_request_id() -> str:
    return f"{REQUEST_ID_PREFIX}{uuid.uuid4().hex[:8]}"


@contextmanager
def request_scope(request_id: Optional[str] = None) -> Iterator[str]:
    """Run a block under a request ID and restore the previous one afterwards.

    An explicit ``request_id`` always wins. Without one, an ID already
    active in the context is kept, so nested scopes (CLI around validator)
    share a single ID; otherwise a fresh one is generated.
    """
    current = _request_id.get()
    if request_id is None:
        request_id = current if current != NO_REQUEST_ID else new_request_id()
    token = _request_id.set(request_id)
    try:
        yield request_id
    finally:
        _request_id.reset(token)


class RequestIdFilter(logging.Filter):
    """Stamps ``record.request_id`` unless the caller passed one via ``extra``."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "request_id"):
            record.request_id = _request_id.get()  # type: ignore[attr-defined]
        return True


def install_request_id_filter(logger: Optional[logging.Logger] = None) -> None:
    """Attach RequestIdFilter to each handler of ``logger`` (root by default)."""
    target = logger or logging.getLogger()
    for handler in target.handlers:
        if not any(isinstance(f, RequestIdFilter) for f in handler.filters):
            handler.addFilter(RequestIdFilter())
