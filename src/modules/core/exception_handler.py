"""DRF exception handler producing one error shape for the whole API.

Every error response body looks like::

    {"status": "error", "kind": "<stable kind>", "message": "<text>"}

DRF validation errors additionally carry ``errors`` with the per-field
details.  Unexpected exceptions are logged with full context and turned
into a generic 500 so internals never leak outside ``DEBUG``.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

import structlog
from django.conf import settings
from django.http import Http404
from rest_framework import exceptions as drf_exceptions
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

from modules.core.exceptions import DomainError

logger = structlog.get_logger(__name__)

_DRF_KINDS = {
    drf_exceptions.ValidationError: "validation_error",
    drf_exceptions.ParseError: "validation_error",
    drf_exceptions.NotAuthenticated: "not_authenticated",
    drf_exceptions.AuthenticationFailed: "not_authenticated",
    drf_exceptions.PermissionDenied: "authorization_error",
    drf_exceptions.NotFound: "not_found",
    drf_exceptions.MethodNotAllowed: "method_not_allowed",
    drf_exceptions.Throttled: "throttled",
}


def error_body(kind: str, message: str, **extra: Any) -> Dict[str, Any]:
    body: Dict[str, Any] = {"status": "error", "kind": kind, "message": message}
    body.update(extra)
    return body


def domain_exception_handler(exc: Exception, context: dict) -> Optional[Response]:
    view = context.get("view")
    view_name = type(view).__name__ if view is not None else None

    if isinstance(exc, DomainError):
        logger.info(
            "api.domain_error",
            kind=exc.kind,
            status_code=exc.status_code,
            message=exc.message,
            view=view_name,
        )
        return Response(error_body(exc.kind, exc.message), status=exc.status_code)

    response = drf_exception_handler(exc, context)
    if response is not None:
        kind = _drf_kind(exc)
        if isinstance(exc, drf_exceptions.ValidationError):
            response.data = error_body(
                kind, "Invalid request payload.", errors=response.data
            )
        else:
            detail = response.data.get("detail", "") if isinstance(response.data, dict) else ""
            response.data = error_body(kind, str(detail))
        return response

    logger.exception("api.unhandled_error", view=view_name, error=str(exc))
    message = str(exc) if settings.DEBUG else "Server error"
    return Response(
        error_body("server_error", message),
        status=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )


def _drf_kind(exc: Exception) -> str:
    if isinstance(exc, Http404):
        return "not_found"
    for exc_class, kind in _DRF_KINDS.items():
        if isinstance(exc, exc_class):
            return kind
    return getattr(exc, "default_code", "error")
