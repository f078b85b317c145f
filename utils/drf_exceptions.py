from __future__ import annotations

import logging
from typing import Any

from django.conf import settings
from django.db.utils import OperationalError, ProgrammingError
from rest_framework import status
from rest_framework.exceptions import APIException
from rest_framework.response import Response
from rest_framework.views import exception_handler

from rules.store import RecordStoreError

_logger = logging.getLogger(__name__)


def _detail_of(raw: Any) -> tuple[str, dict | None]:
    if isinstance(raw, dict):
        detail = raw.get("detail")
        if isinstance(detail, str):
            return detail, raw.get("fields") if isinstance(raw.get("fields"), dict) else None
        # Serializer-style {field: [messages]}
        return "Invalid request", raw
    if isinstance(raw, list):
        return "Invalid request", {"non_field_errors": raw}
    if raw is None:
        return "Request failed", None
    return str(raw), None


def _code_of(exc: APIException) -> str:
    try:
        codes = exc.get_codes()
    except Exception:
        codes = None
    if isinstance(codes, str):
        return codes
    if isinstance(codes, (dict, list)):
        return "validation_error"
    return getattr(exc, "default_code", "error")


def drf_exception_handler(exc: Exception, context: dict[str, Any]) -> Response | None:
    """Global DRF exception handler.

    Every error leaves as {"detail": str, "code": str, "fields"?: dict}.
    Database and record-store failures that escape a view are mapped to
    503 db_unavailable and 500 store_error.
    """
    if isinstance(exc, RecordStoreError):
        _logger.warning("record store error: %s", exc)
        return Response({"detail": str(exc), "code": "store_error"}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

    if isinstance(exc, (ProgrammingError, OperationalError)):
        detail = "Database not initialized"
        if settings.DEBUG:
            detail = f"{detail}: {exc.__class__.__name__}: {str(exc)}".strip()
        return Response({"detail": detail, "code": "db_unavailable"}, status=status.HTTP_503_SERVICE_UNAVAILABLE)

    resp = exception_handler(exc, context)
    if resp is None:
        return None

    detail, fields = _detail_of(getattr(resp, "data", None))
    data: dict[str, Any] = {"detail": detail}
    if isinstance(exc, APIException):
        data["code"] = _code_of(exc)
    if fields:
        data["fields"] = fields
    resp.data = data

    if int(resp.status_code or 0) >= 500:
        _logger.error("api error %s: %s", resp.status_code, detail)
        if not detail:
            resp.data = {"detail": "Server error", "code": "server_error"}
    return resp
