"""Exception handlers for the API."""

import traceback
import typing as t
from copy import deepcopy

import orjson
import structlog
from django.conf import settings
from django.core.exceptions import ValidationError
from django.http import HttpRequest
from ninja.responses import Response

from common.exceptions import DomainError

logger = structlog.get_logger(__name__)

SENSITIVE_KEYS = {"password", "token", "x-api-key", "authorization", "authentication", "cookie"}


def obfuscate(data: dict[str, t.Any]) -> dict[str, t.Any]:
    """Obfuscate sensitive data in payloads and headers."""
    new_data = deepcopy(data)
    for key in data.keys():
        if key.lower() in SENSITIVE_KEYS:
            new_data[key] = "********"
    return new_data


def handle_domain_error(request: HttpRequest, exc: DomainError | t.Type[DomainError]) -> Response:
    """Render a domain error as `{code, message, retryable}` with its category's status code."""
    assert isinstance(exc, DomainError)
    log = logger.warning if exc.retryable else logger.info
    log("domain_error", code=exc.code, category=str(exc.category), path=request.path, method=request.method)
    return Response(status=exc.http_status, data=exc.as_dict())


def handle_general_exception(request: HttpRequest, exc: Exception | t.Type[Exception]) -> Response:
    """Handle a general exception.

    Args:
        request: The incoming HTTP request.
        exc: The exception.

    Returns:
        The response.
    """
    json_payload = None
    if request.method in ("POST", "PUT", "PATCH") and request.headers.get("Content-Type") == "application/json":
        try:
            json_payload = obfuscate(orjson.loads(request.body))
        except (orjson.JSONDecodeError, TypeError, AttributeError):
            json_payload = None
    logger.exception(
        "internal_server_error",
        method=request.method,
        path=request.path,
        headers=obfuscate(dict(request.headers)),
        json_payload=json_payload,
    )
    data: dict[str, t.Any] = {"code": "INTERNAL_ERROR", "message": "Internal Server Error.", "retryable": False}
    is_staff = getattr(request, "user", None) and request.user.is_staff
    if settings.DEBUG or is_staff:  # pragma: no cover
        data["traceback"] = traceback.format_exc()
    return Response(status=500, data=data)


def handle_django_validation_error(request: HttpRequest, exc: ValidationError | t.Type[ValidationError]) -> Response:
    """Handle a validation error.

    Args:
        request: The incoming HTTP request.
        exc: The exception.
    """
    assert isinstance(exc, ValidationError)
    logger.info("validation_error", path=request.path)
    details = exc.message_dict if hasattr(exc, "error_dict") else {"__all__": exc.messages}
    return Response(
        status=400,
        data={"code": "VALIDATION_ERROR", "message": "Invalid data.", "retryable": False, "details": details},
    )
