"""
Core views providing infrastructure endpoints and response helpers.

This module contains views that are not part of the business domain but are
essential for application infrastructure, such as health checks, plus the
helper every API view uses to turn a failed ServiceResult into a response.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from django.core.cache import cache
from django.db import DatabaseError, connection
from django.http import JsonResponse
from rest_framework.response import Response

from core.exceptions import status_for_error_code

if TYPE_CHECKING:
    from core.services import ServiceResult

logger = logging.getLogger(__name__)


def error_response(result: ServiceResult) -> Response:
    """
    Build the ``{"message": ...}`` response for a failed ServiceResult.

    The HTTP status comes from the result's error code
    (VALIDATION_ERROR -> 400, PERMISSION_DENIED -> 403, NOT_FOUND -> 404, ...).
    """
    return Response(
        result.to_response(),
        status=status_for_error_code(result.error_code),
    )


def health_check(request):
    """
    Health check endpoint for monitoring and orchestration.

    Returns:
        JsonResponse with status and component health:
        - status: "healthy" or "unhealthy"
        - database: "connected" or "disconnected"
        - cache: "connected" or "disconnected"

    HTTP Status Codes:
        200: All systems operational
        503: Database unreachable
    """
    health_status = {
        "status": "healthy",
        "database": "unknown",
        "cache": "unknown",
    }
    is_healthy = True

    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")
            cursor.fetchone()
        health_status["database"] = "connected"
    except DatabaseError:
        logger.exception("Health check: database unreachable")
        health_status["database"] = "disconnected"
        health_status["status"] = "unhealthy"
        is_healthy = False

    # Cache failure is not critical - reported but still healthy
    try:
        cache.set("health_check", "ok", timeout=1)
        ok = cache.get("health_check") == "ok"
    except Exception:  # noqa: BLE001 - any backend error means disconnected
        logger.warning("Health check: cache unreachable", exc_info=True)
        ok = False
    health_status["cache"] = "connected" if ok else "disconnected"

    return JsonResponse(health_status, status=200 if is_healthy else 503)
