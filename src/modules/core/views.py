import time
from typing import Any, Callable, Dict

import structlog
from django.core.cache import cache
from django.db import connections
from django.http import HttpRequest, JsonResponse
from django.utils import timezone
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from modules.core.models import EventStatus, OutboxEvent
from modules.core.policies import Principal

logger = structlog.get_logger(__name__)


def _check_database() -> Dict[str, Any]:
    conn = connections["default"]
    conn.ensure_connection()
    with conn.cursor() as cursor:
        cursor.execute("SELECT 1")
        cursor.fetchone()
    return {}


def _check_cache() -> Dict[str, Any]:
    cache.set("_health_check", "ok", 10)
    if cache.get("_health_check") != "ok":
        raise ConnectionError("Cache read failed")
    return {}


def _check_outbox() -> Dict[str, Any]:
    return {
        "pending_events": OutboxEvent.objects.filter(
            status=EventStatus.PENDING
        ).count()
    }


CHECKS: Dict[str, Callable[[], Dict[str, Any]]] = {
    "database": _check_database,
    "cache": _check_cache,
    "outbox": _check_outbox,
}


def health_check(request: HttpRequest) -> JsonResponse:
    services: Dict[str, Dict[str, Any]] = {}
    overall_healthy = True

    for name, check in CHECKS.items():
        start = time.monotonic()
        try:
            details = check()
        except Exception as exc:  # noqa: BLE001 - reported as "down"
            services[name] = {"status": "down"}
            overall_healthy = False
            logger.error("health_check_failure", service=name, error=str(exc))
            continue
        services[name] = {
            "status": "up",
            "response_time_ms": round((time.monotonic() - start) * 1000, 2),
            **details,
        }

    status_label = "healthy" if overall_healthy else "unhealthy"
    logger.info("health_check_completed", status=status_label)

    return JsonResponse(
        {
            "status": status_label,
            "timestamp": timezone.now().isoformat(),
            "services": services,
        },
        status=200 if overall_healthy else 503,
    )


class ProtectedView(APIView):
    """Minimal endpoint that requires a valid JWT.

    Returns the principal the order engine authorizes against:
    * No token  -> 401
    * Bad token -> 401
    * Valid JWT -> 200 with ``{id, role, status}``
    """

    permission_classes = [IsAuthenticated]

    def get(self, request: HttpRequest) -> Response:
        principal = Principal.from_user(request.user)
        return Response(
            {
                "id": str(principal.id),
                "role": principal.role,
                "status": principal.status,
            }
        )
