"""
core.domain — Shared domain utilities for cross-app service layers.

Modules
-------
exceptions         Domain-specific exceptions that map cleanly to HTTP responses.
exception_handler  DRF exception handler rendering ``{error, status}`` bodies.
access             Tier, role and ownership guards.
transactions       Helpers for ``transaction.atomic`` + ``select_for_update``.
pagination         ``PaginatedResult`` and queryset slicing.

Usage from any app::

    from core.domain.exceptions import DomainError, InvalidTransition
    from core.domain.transactions import atomic_transition
    from core.domain.access import require_admin_or_municipality
    from core.domain.pagination import paginate
"""
