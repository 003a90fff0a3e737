"""JSON error envelope for every API failure."""

import logging
from typing import Any

from rest_framework import status
from rest_framework.exceptions import APIException, ValidationError
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)

_DJANGO_ERROR_CODES = {
    status.HTTP_403_FORBIDDEN: "permission_denied",
    status.HTTP_404_NOT_FOUND: "not_found",
}


def _error_code(exc: Exception, status_code: int) -> str:
    if isinstance(exc, ValidationError):
        return "invalid"
    if not isinstance(exc, APIException):
        # Http404 / django PermissionDenied converted by DRF
        return _DJANGO_ERROR_CODES.get(status_code, "error")
    code = exc.get_codes()
    if isinstance(code, str):
        return code
    return exc.default_code


def envelope_exception_handler(exc: Exception, context: dict[str, Any]) -> Response:
    """Render every API failure as ``{"success": false, "error": ..., "message": ...}``.

    Anything DRF does not recognise is logged with its traceback and reported
    as a generic internal error.
    """
    response = exception_handler(exc, context)
    if response is None:
        view = context.get("view")
        logger.error("Unhandled error in %s", type(view).__name__ if view else "API", exc_info=exc)
        return Response(
            {"success": False, "error": "internal", "message": "Internal server error."},
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    body: dict[str, Any] = {"success": False, "error": _error_code(exc, response.status_code)}
    if isinstance(exc, ValidationError):
        body["message"] = "Invalid input."
        body["errors"] = response.data
    elif isinstance(response.data, dict) and "detail" in response.data:
        body["message"] = str(response.data["detail"])
    else:
        body["message"] = str(response.data)
    current_status = getattr(exc, "current_status", None)
    if current_status is not None:
        body["current_status"] = current_status
    response.data = body
    return response
