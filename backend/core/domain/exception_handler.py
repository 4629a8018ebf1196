"""
core.domain.exception_handler — DRF-compatible global exception handler.

Maps domain exceptions from ``core.domain.exceptions`` to ``Response``
objects shaped ``{"error": <message>, "status": <code>}`` so that views
don't need per-endpoint try/except boilerplate.

Register in ``settings.py``::

    REST_FRAMEWORK = {
        ...
        'EXCEPTION_HANDLER': 'core.domain.exception_handler.domain_exception_handler',
    }
"""

from __future__ import annotations

import logging

from django.conf import settings
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_default_handler
from rest_framework.views import set_rollback

from core.domain.exceptions import (
    Conflict,
    DomainError,
    InvalidTransition,
    NotFound,
    PermissionDenied,
    ServiceUnavailable,
)

logger = logging.getLogger(__name__)

# Domain exception → HTTP status code
_STATUS_MAP: dict[type, int] = {
    PermissionDenied:   401,
    NotFound:           404,
    InvalidTransition:  409,
    Conflict:           409,
    ServiceUnavailable: 503,
    DomainError:        400,  # catch-all base class last
}

GENERIC_ERROR_MESSAGE = "Internal server error"


def error_body(message: str, status_code: int) -> dict:
    """Build the error payload shared by every failure response."""
    return {"error": message, "status": status_code}


def domain_exception_handler(exc: Exception, context: dict) -> Response | None:
    """
    DRF exception handler that also handles ``core.domain.exceptions``.

    The default DRF handler is called first.  If it returns ``None``
    (meaning DRF doesn't recognise the exception), we check whether
    it's one of our domain exceptions.  Anything else is an unexpected
    failure and becomes a 500 with a generic message; the underlying
    message is only exposed while ``DEBUG`` is on.
    """
    # Let DRF handle its own exceptions (ValidationError, AuthN, etc.)
    response = drf_default_handler(exc, context)
    if response is not None:
        return response

    view = context.get("view", "unknown")

    # Check domain exceptions (order matters — most specific first)
    for exc_class, status_code in _STATUS_MAP.items():
        if isinstance(exc, exc_class):
            logger.warning(
                "Domain exception [%s] in %s: %s",
                exc_class.__name__,
                view,
                exc,
            )
            set_rollback()
            return Response(error_body(str(exc), status_code), status=status_code)

    logger.exception("Unhandled exception in %s", view, exc_info=exc)
    set_rollback()
    message = str(exc) if settings.DEBUG else GENERIC_ERROR_MESSAGE
    return Response(error_body(message, 500), status=500)
