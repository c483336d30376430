"""
PATH: backend/exceptions.py

API ERROR NORMALIZATION

Every failure leaves the API in one canonical shape:

    {"error": {"code": "<MACHINE_CODE>", "message": "<human text>", "details": ...}}

- Inventory domain errors carry their own code + HTTP status.
- DRF errors (validation, auth, 404, throttling) are mapped onto stable codes.
- Anything else is INTERNAL_ERROR (500) and is logged with a traceback.
"""

from __future__ import annotations

import logging

from django.core.exceptions import ValidationError as DjangoValidationError
from django.http import Http404
from rest_framework import exceptions as drf_exceptions
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

from inventory.services.exceptions import InventoryServiceError

logger = logging.getLogger(__name__)


DRF_CODES = {
    drf_exceptions.ValidationError: "VALIDATION_ERROR",
    drf_exceptions.ParseError: "VALIDATION_ERROR",
    drf_exceptions.NotAuthenticated: "NOT_AUTHENTICATED",
    drf_exceptions.AuthenticationFailed: "NOT_AUTHENTICATED",
    drf_exceptions.PermissionDenied: "PERMISSION_DENIED",
    drf_exceptions.NotFound: "NOT_FOUND",
    drf_exceptions.MethodNotAllowed: "METHOD_NOT_ALLOWED",
    drf_exceptions.Throttled: "THROTTLED",
}


def error_response(*, code: str, message: str, http_status: int, details=None):
    """
    Canonical API error response.
    """
    body = {"error": {"code": code, "message": message}}
    if details:
        body["error"]["details"] = details
    return Response(body, status=http_status)


def _drf_code(exc) -> str:
    for exc_class, code in DRF_CODES.items():
        if isinstance(exc, exc_class):
            return code
    return "API_ERROR"


def _drf_message(data) -> str:
    if isinstance(data, dict):
        detail = data.get("detail")
        if detail:
            return str(detail)
        return "Invalid input."
    if isinstance(data, list) and data:
        return str(data[0])
    return str(data)


def api_exception_handler(exc, context):
    if isinstance(exc, InventoryServiceError):
        return error_response(
            code=exc.code,
            message=str(exc),
            http_status=exc.http_status,
            details=exc.details or None,
        )

    if isinstance(exc, DjangoValidationError):
        messages = getattr(exc, "message_dict", None) or {"detail": exc.messages}
        return error_response(
            code="VALIDATION_ERROR",
            message="; ".join(str(m) for m in exc.messages),
            http_status=status.HTTP_400_BAD_REQUEST,
            details=messages,
        )

    resp = drf_exception_handler(exc, context)
    if resp is None:
        view = context.get("view")
        logger.exception(
            "Unhandled API error",
            extra={"view": view.__class__.__name__ if view else None},
        )
        return error_response(
            code="INTERNAL_ERROR",
            message="Internal server error",
            http_status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    code = "NOT_FOUND" if isinstance(exc, Http404) else _drf_code(exc)
    details = resp.data if isinstance(resp.data, (dict, list)) and code == "VALIDATION_ERROR" else None

    return error_response(
        code=code,
        message=_drf_message(resp.data),
        http_status=resp.status_code,
        details=details,
    )
