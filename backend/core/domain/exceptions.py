"""
core.domain.exceptions — Domain-specific exception hierarchy.

These exceptions represent business-rule violations raised inside the
service layers.  They are deliberately **not** DRF exceptions so that the
domain layer stays framework-agnostic.  The global DRF exception handler
(``core.domain.exception_handler``) renders them as ``{error, status}``.

Mapping cheatsheet
------------------
┌─────────────────────┬──────────────────────────────────────┬──────┐
│ Domain Exception    │ Meaning                              │ Code │
├─────────────────────┼──────────────────────────────────────┼──────┤
│ DomainError         │ malformed input / business rule      │ 400  │
│ PermissionDenied    │ tier, role or ownership check failed │ 401  │
│ NotFound            │ report/user/comment/category missing │ 404  │
│ Conflict            │ uniqueness clash (username taken)    │ 409  │
│ InvalidTransition   │ report state machine rejected a move │ 409  │
│ ServiceUnavailable  │ object storage failed                │ 503  │
└─────────────────────┴──────────────────────────────────────┴──────┘

Recommended usage inside a service::

    from core.domain.exceptions import InvalidTransition

    if (report.status, target) not in ALLOWED_TRANSITIONS:
        raise InvalidTransition(current=report.status, target=target)
"""

from __future__ import annotations


class DomainError(Exception):
    """
    Base class for all domain / business-rule errors.

    Rendered as 400 Bad Request unless a subclass says otherwise.
    """

    def __init__(self, message: str = "A business rule was violated.") -> None:
        self.message = message
        super().__init__(self.message)


class PermissionDenied(DomainError):
    """
    The caller's tier, role grants, or ownership of the resource do not
    allow this operation.

    Maps to HTTP 401.
    """

    def __init__(self, message: str = "You are not authorized to perform this operation.") -> None:
        super().__init__(message)


class NotFound(DomainError):
    """
    The requested resource does not exist.

    Maps to HTTP 404.
    """

    def __init__(self, message: str = "The requested resource was not found.") -> None:
        super().__init__(message)


class Conflict(DomainError):
    """
    The operation conflicts with the current state of the resource.

    Typical usage: duplicate username at registration.
    Maps to HTTP 409.
    """

    def __init__(self, message: str = "The operation conflicts with the current state.") -> None:
        super().__init__(message)


class InvalidTransition(Conflict):
    """
    A report status transition that is not allowed from the current status.

    Inherits from ``Conflict`` because an invalid transition IS a conflict
    with the resource's current state.  Maps to HTTP 409.

    Example::

        raise InvalidTransition(
            current="Rejected",
            target="Assigned",
            reason="Rejected is a terminal state.",
        )
    """

    def __init__(
        self,
        message: str | None = None,
        *,
        current: str | None = None,
        target: str | None = None,
        reason: str | None = None,
    ) -> None:
        if message is None:
            parts = ["Invalid state transition"]
            if current and target:
                parts.append(f"from '{current}' to '{target}'")
            message = " ".join(parts) + "."
            if reason:
                message = f"{message} {reason}"
        super().__init__(message)
        self.current = current
        self.target = target
        self.reason = reason


class ServiceUnavailable(DomainError):
    """
    An upstream collaborator (the photo object storage) failed.

    Maps to HTTP 503.  The request may be resubmitted by the client.
    """

    def __init__(self, message: str = "An upstream service is unavailable.") -> None:
        super().__init__(message)
