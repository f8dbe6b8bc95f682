"""Exception handlers for the API."""

import typing as t
from copy import deepcopy

import structlog
from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import InterfaceError, OperationalError
from django.http import HttpRequest
from ninja.responses import Response

from events.exceptions import RegistrationError

logger = structlog.get_logger(__name__)

SENSITIVE_KEYS = {"password", "token", "authorization", "authentication", "cookie"}


def handle_registration_error(request: HttpRequest, exc: RegistrationError | t.Type[RegistrationError]) -> Response:
    """Map a domain error to its status code and a ``{detail, code, payload}`` body."""
    logger.info("registration_error", code=exc.code, path=request.path, status_code=exc.status_code)
    return Response(
        status=exc.status_code,
        data={"detail": exc.message, "code": exc.code, "payload": exc.payload},
    )


def handle_transient_store_error(
    request: HttpRequest, exc: OperationalError | InterfaceError | t.Type[OperationalError]
) -> Response:
    """The database is unreachable or busy: ask the client to retry."""
    logger.warning("transient_store_error", path=request.path, error=str(exc))
    return Response(
        status=503,
        data={
            "detail": "The service is temporarily unavailable. Please retry.",
            "code": "transient_store_error",
            "payload": {},
            "retryable": True,
        },
    )


def handle_django_validation_error(request: HttpRequest, exc: ValidationError | t.Type[ValidationError]) -> Response:
    """Handle a validation error.

    Args:
        request: The incoming HTTP request.
        exc: The exception.
    """
    logger.error("VALIDATION_ERROR", exc_info=True, stack_info=True)
    if hasattr(exc, "error_dict"):
        error_dict = {k: [ee for e in v for ee in e] for k, v in exc.error_dict.items()}
    else:
        error_dict = {"__all__": exc.messages}
    return Response(status=400, data={"errors": error_dict})


def handle_general_exception(request: HttpRequest, exc: Exception | t.Type[Exception]) -> Response:
    """Handle a general exception.

    Args:
        request: The incoming HTTP request.
        exc: The exception.

    Returns:
        The response.
    """
    logger.exception(
        "INTERNAL_SERVER_ERROR",
        method=request.method,
        path=request.path,
        headers=obfuscate(dict(request.headers)),
        user=str(request.user) if getattr(request, "user", None) else None,
    )
    data: dict[str, t.Any] = {"detail": "Internal Server Error.", "code": "internal_error", "payload": {}}
    if settings.DEBUG:  # pragma: no cover
        data["payload"] = {"error": repr(exc)}
    return Response(status=500, data=data)


def obfuscate(data: dict[str, t.Any]) -> dict[str, t.Any]:
    """Obfuscate sensitive data in payloads and headers."""
    new_data = deepcopy(data)
    for key in data.keys():
        if key.lower() in SENSITIVE_KEYS:
            new_data[key] = "********"
    return new_data
