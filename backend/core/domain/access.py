"""
core.domain.access — Authorization guards shared by every service layer.

Authorization is two checks that compose:

* **Tier check** on ``user.user_type``: admins pass every tier check,
  municipality users pass "admin or municipality" checks, citizens pass
  only citizen-scoped checks.
* **Role check** on the caller's ``Role`` grants (municipality tier
  only): the caller must hold a role of the required ``role_type``.

Ownership checks (self-or-admin, comment author, assigned maintainer)
also live here so every failure surfaces the same way: a
``PermissionDenied`` that the exception handler renders as 401.

Guards are called from service methods, never from views::

    from core.domain.access import require_admin_or_municipality

    class ReportQueryService:
        @staticmethod
        def search_reports(filters, requesting_user):
            require_admin_or_municipality(requesting_user)
            ...
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from core.domain.exceptions import PermissionDenied

if TYPE_CHECKING:
    from accounts.models import User


MSG_CITIZEN_ONLY = "This operation can be performed only by a citizen."
MSG_ADMIN_ONLY = "This operation can be performed only by an admin."
MSG_STAFF_ONLY = "This operation can be performed only by a municipality officer or an admin."
MSG_OTHER_USERS = "You cannot access the information of other users."


def require_citizen(user: User) -> None:
    """Raise ``PermissionDenied`` unless the caller is a citizen."""
    if not user.is_citizen:
        raise PermissionDenied(MSG_CITIZEN_ONLY)


def require_admin(user: User, message: str = MSG_ADMIN_ONLY) -> None:
    """Raise ``PermissionDenied`` unless the caller is an admin."""
    if not user.is_admin:
        raise PermissionDenied(message)


def require_admin_or_municipality(user: User) -> None:
    """Tier check passed by admins and municipality staff."""
    if not (user.is_admin or user.is_municipality):
        raise PermissionDenied(MSG_STAFF_ONLY)


def require_role(user: User, role_type: str) -> None:
    """
    Role check: the caller must be municipality staff holding a role of
    ``role_type``.

    Admins hold no role grants and do not pass this check.
    """
    if not (user.is_municipality and user.has_role(role_type)):
        label = role_type.replace("_", " ")
        raise PermissionDenied(
            f"This operation can be performed only by a {label}."
        )


def require_self_or_admin(user: User, target_pk: int) -> None:
    """Ownership check for user records: own record, or any record for admins."""
    if user.is_admin:
        return
    if user.pk != target_pk:
        raise PermissionDenied(MSG_OTHER_USERS)


def require_owner(user: User, owner_pk: int | None, message: str) -> None:
    """Raise ``PermissionDenied`` unless ``user`` is the recorded owner."""
    if owner_pk is None or user.pk != owner_pk:
        raise PermissionDenied(message)
