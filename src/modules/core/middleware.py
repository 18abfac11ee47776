import re
import time
import uuid
from contextvars import ContextVar
from typing import Callable

import structlog
from django.http import HttpRequest, HttpResponse

correlation_id_var: ContextVar[str] = ContextVar("correlation_id", default="")

logger = structlog.get_logger(__name__)

# Client-supplied ids end up in every log line; keep them short and printable.
_VALID_CORRELATION_ID = re.compile(r"^[A-Za-z0-9._:-]{1,128}$")


def _incoming_correlation_id(request: HttpRequest) -> str:
    candidate = request.META.get("HTTP_X_REQUEST_ID", "")
    if candidate and _VALID_CORRELATION_ID.match(candidate):
        return candidate
    return str(uuid.uuid4())


class CorrelationIdMiddleware:
    """Bind a correlation id to every log line emitted while serving a request.

    Reuses a well-formed ``X-Request-ID`` header or generates a UUID4, binds
    it into structlog contextvars together with the method and path, and
    echoes it back in the ``X-Request-ID`` response header.  Webhook retries
    from the payment gateway carry no header and get a fresh id each time.
    """

    def __init__(self, get_response: Callable[[HttpRequest], HttpResponse]) -> None:
        self.get_response = get_response

    def __call__(self, request: HttpRequest) -> HttpResponse:
        cid = _incoming_correlation_id(request)
        correlation_id_var.set(cid)

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            correlation_id=cid,
            method=request.method,
            path=request.path,
        )

        started = time.monotonic()
        logger.info("request_started")
        try:
            response = self.get_response(request)
        finally:
            duration_ms = round((time.monotonic() - started) * 1000, 2)

        logger.info(
            "request_finished",
            status_code=response.status_code,
            duration_ms=duration_ms,
        )
        response["X-Request-ID"] = cid
        return response
