"""
Accounts Service Layer.

This module is the **single source of truth** for all business logic
within the ``accounts`` app.  Views must remain *thin*: they validate
input through serializers, call a service method, and return the result
wrapped in a DRF ``Response``.

Architecture
------------
- ``UserRegistrationService``  — citizen self-registration, admin-created accounts.
- ``UserManagementService``    — search, read, edit, delete, role grants.
- ``RoleManagementService``    — read-only role catalog.
- ``CurrentUserService``       — "Me" endpoint helpers.

Every method that acts on behalf of a caller receives that caller and
runs the ``core.domain.access`` guards first.
"""

from __future__ import annotations

import logging
from typing import Any

from django.contrib.auth import get_user_model
from django.db import IntegrityError, transaction
from django.db.models import QuerySet

from core.domain.access import (
    require_admin,
    require_admin_or_municipality,
    require_self_or_admin,
)
from core.domain.exceptions import Conflict, DomainError, NotFound, PermissionDenied
from core.domain.pagination import PaginatedResult, paginate
from reports.models import ReportStatus

from .models import Role, RoleType, UserType

logger = logging.getLogger(__name__)

User = get_user_model()

MSG_USERNAME_TAKEN = "The username already exists."
MSG_USER_NOT_FOUND = "The user does not exist."


def _user_queryset() -> QuerySet:
    return User.objects.prefetch_related("roles")


def _resolve_roles(role_ids: list[int]) -> list[Role]:
    """Fetch every role in ``role_ids`` or raise ``NotFound`` naming the missing ones."""
    roles = list(Role.objects.filter(pk__in=role_ids))
    missing = set(role_ids) - {role.pk for role in roles}
    if missing:
        raise NotFound(
            f"The following role(s) do not exist: {sorted(missing)}."
        )
    return roles


# ═══════════════════════════════════════════════════════════════════
#  Registration Service
# ═══════════════════════════════════════════════════════════════════


class UserRegistrationService:
    """Creates new accounts: citizens register themselves, staff are created by an admin."""

    @staticmethod
    def register_citizen(validated_data: dict[str, Any]) -> User:
        """
        Create a new citizen account.

        Parameters
        ----------
        validated_data : dict
            Cleaned data from ``RegisterRequestSerializer`` containing
            ``username``, ``password``, ``email``, ``first_name``,
            ``last_name``.

        Returns
        -------
        User
            The newly created citizen.

        Raises
        ------
        core.domain.exceptions.Conflict
            If the username is already taken.
        """
        data = dict(validated_data)
        data["user_type"] = UserType.CITIZEN
        user = UserRegistrationService._create(data, role_ids=[])
        logger.info("Citizen %s registered (user #%s)", user.username, user.pk)
        return user

    @staticmethod
    def create_user(validated_data: dict[str, Any], performed_by: User) -> User:
        """
        Create an account of any tier on behalf of an admin.

        Parameters
        ----------
        validated_data : dict
            Cleaned data from ``AdminCreateUserSerializer``; may carry
            ``role_ids``, which are only accepted for municipality users.
        performed_by : User
            The requesting admin.

        Raises
        ------
        PermissionDenied
            If ``performed_by`` is not an admin.
        DomainError
            If roles are requested for a non-municipality account.
        NotFound
            If a role id does not exist.
        Conflict
            If the username is already taken.
        """
        require_admin(performed_by)

        data = dict(validated_data)
        role_ids = data.pop("role_ids", None) or []
        if role_ids and data.get("user_type") != UserType.MUNICIPALITY:
            raise DomainError("Roles can only be granted to municipality users.")

        user = UserRegistrationService._create(data, role_ids=role_ids)
        logger.info(
            "User %s (%s) created by admin #%s",
            user.username, user.user_type, performed_by.pk,
        )
        return user

    @staticmethod
    def _create(data: dict[str, Any], role_ids: list[int]) -> User:
        password = data.pop("password")

        # Pre-check gives a deterministic message; the IntegrityError
        # branch covers a concurrent registration of the same name.
        if User.objects.filter(username=data.get("username")).exists():
            raise Conflict(MSG_USERNAME_TAKEN)

        roles = _resolve_roles(role_ids) if role_ids else []

        try:
            with transaction.atomic():
                user = User.objects.create_user(password=password, **data)
                if roles:
                    user.roles.set(roles)
        except IntegrityError:
            raise Conflict(MSG_USERNAME_TAKEN)

        return _user_queryset().get(pk=user.pk)


# ═══════════════════════════════════════════════════════════════════
#  User Management Service
# ═══════════════════════════════════════════════════════════════════


class UserManagementService:
    """
    Operations on existing accounts.

    Access policy
    -------------
    - Search: admins only.
    - Read / edit / delete: the user themselves or an admin.
    - ``user_type`` and role grants: admins only, never on their own record.
    - Admin accounts can never be deleted.
    """

    @staticmethod
    def search_users(
        filters: dict[str, Any],
        requesting_user: User,
    ) -> PaginatedResult:
        """
        Return one page of users matching every supplied filter.

        Parameters
        ----------
        filters : dict
            Cleaned data from ``UserFilterSerializer``: optional
            ``first_name``, ``last_name``, ``email`` (case-insensitive
            contains), ``role`` (a ``UserType``), plus ``page_num`` and
            ``page_size``.
        requesting_user : User
            Must be an admin.

        Returns
        -------
        PaginatedResult[User]
            Ordered by primary key.
        """
        require_admin(requesting_user)

        qs = _user_queryset()
        if filters.get("first_name"):
            qs = qs.filter(first_name__icontains=filters["first_name"])
        if filters.get("last_name"):
            qs = qs.filter(last_name__icontains=filters["last_name"])
        if filters.get("email"):
            qs = qs.filter(email__icontains=filters["email"])
        if filters.get("role"):
            qs = qs.filter(user_type=filters["role"])

        return paginate(
            qs.order_by("id"),
            page_num=filters["page_num"],
            page_size=filters["page_size"],
        )

    @staticmethod
    def get_user(user_id: int, requesting_user: User) -> User:
        """
        Retrieve a single user by PK.

        Raises
        ------
        NotFound
            If no such user exists.
        PermissionDenied
            If the caller is neither that user nor an admin.
        """
        require_self_or_admin(requesting_user, user_id)
        try:
            return _user_queryset().get(pk=user_id)
        except User.DoesNotExist:
            raise NotFound(MSG_USER_NOT_FOUND)

    @staticmethod
    @transaction.atomic
    def update_user(
        user_id: int,
        validated_data: dict[str, Any],
        performed_by: User,
    ) -> User:
        """
        Apply a partial update to a user record.

        ``password`` is hashed; ``username`` must stay unique.  Changing
        ``user_type`` requires an admin acting on someone else; moving a
        user out of the municipality tier drops their role grants.

        Raises
        ------
        NotFound, PermissionDenied, Conflict
        """
        require_self_or_admin(performed_by, user_id)
        try:
            target = User.objects.select_for_update().get(pk=user_id)
        except User.DoesNotExist:
            raise NotFound(MSG_USER_NOT_FOUND)

        data = dict(validated_data)

        new_type = data.pop("user_type", None)
        if new_type is not None and new_type != target.user_type:
            require_admin(performed_by, "Only an admin can change a user type.")
            if target.pk == performed_by.pk:
                raise PermissionDenied("You cannot change your own user type.")
            data["user_type"] = new_type

        username = data.get("username")
        if username and username != target.username:
            if User.objects.filter(username=username).exclude(pk=target.pk).exists():
                raise Conflict(MSG_USERNAME_TAKEN)

        password = data.pop("password", None)
        update_fields = list(data.keys())
        for field, value in data.items():
            setattr(target, field, value)
        if password:
            target.set_password(password)
            update_fields.append("password")

        if update_fields:
            try:
                with transaction.atomic():
                    target.save(update_fields=update_fields)
            except IntegrityError:
                raise Conflict(MSG_USERNAME_TAKEN)

        if "user_type" in data and target.user_type != UserType.MUNICIPALITY:
            target.roles.clear()

        logger.info(
            "User #%s updated by #%s (fields: %s)",
            target.pk, performed_by.pk, ", ".join(sorted(update_fields)) or "none",
        )
        return _user_queryset().get(pk=target.pk)

    @staticmethod
    @transaction.atomic
    def delete_user(user_id: int, performed_by: User) -> None:
        """
        Delete a user account.

        The caller check runs first so that nobody but the user and the
        admins learns whether an id exists or belongs to an admin.

        Raises
        ------
        PermissionDenied
            If the caller is neither the target nor an admin, or the
            target is an admin (always, whoever asks).
        NotFound
            If the user does not exist.
        Conflict
            If the user still holds an open assignment: technical
            officer of an Assigned / In Progress report, or maintainer
            of an In Progress report.
        """
        require_self_or_admin(performed_by, user_id)
        try:
            target = User.objects.select_for_update().get(pk=user_id)
        except User.DoesNotExist:
            raise NotFound(MSG_USER_NOT_FOUND)

        if target.is_admin:
            raise PermissionDenied("Admins cannot be deleted.")

        open_assignments = (
            target.assigned_reports.filter(
                status__in=(ReportStatus.ASSIGNED, ReportStatus.IN_PROGRESS),
            ).count()
            + target.maintained_reports.filter(status=ReportStatus.IN_PROGRESS).count()
        )
        if open_assignments:
            raise Conflict(
                f"The user still handles {open_assignments} open report(s); "
                "reassign or resolve them before deleting the account."
            )

        username = target.username
        target.delete()
        logger.info("User %s (#%s) deleted by #%s", username, user_id, performed_by.pk)

    @staticmethod
    def get_user_roles(user_id: int, requesting_user: User) -> list[Role]:
        """Return the role grants of a user (self or admin)."""
        user = UserManagementService.get_user(user_id, requesting_user)
        return list(user.roles.all())

    @staticmethod
    @transaction.atomic
    def set_user_roles(
        *,
        user_id: int,
        role_ids: list[int],
        performed_by: User,
    ) -> User:
        """
        Replace the role grants of a municipality user.

        Parameters
        ----------
        user_id : int
            PK of the target user.
        role_ids : list[int]
            The complete new set of role PKs (may be empty).
        performed_by : User
            Must be an admin other than the target.

        Raises
        ------
        PermissionDenied
            If the caller is not an admin or targets themselves.
        NotFound
            If the user or any role does not exist.
        DomainError
            If the target is not a municipality user.
        """
        require_admin(performed_by)
        try:
            target = User.objects.get(pk=user_id)
        except User.DoesNotExist:
            raise NotFound(MSG_USER_NOT_FOUND)

        if target.pk == performed_by.pk:
            raise PermissionDenied("You cannot change your own roles.")
        if not target.is_municipality:
            raise DomainError("Roles can only be granted to municipality users.")

        roles = _resolve_roles(role_ids)
        target.roles.set(roles)

        logger.info(
            "Roles of user #%s set to %s by admin #%s",
            target.pk, sorted(role.label for role in roles), performed_by.pk,
        )
        return _user_queryset().get(pk=target.pk)

    @staticmethod
    def list_maintainers(requesting_user: User) -> QuerySet[User]:
        """Municipality users holding an external-maintainer role."""
        require_admin_or_municipality(requesting_user)
        return (
            _user_queryset()
            .filter(
                user_type=UserType.MUNICIPALITY,
                roles__role_type=RoleType.EXTERNAL_MAINTAINER,
            )
            .distinct()
            .order_by("id")
        )


# ═══════════════════════════════════════════════════════════════════
#  Role Management Service
# ═══════════════════════════════════════════════════════════════════


class RoleManagementService:
    """Read access to the role catalog (admins only)."""

    @staticmethod
    def list_roles(requesting_user: User) -> QuerySet[Role]:
        require_admin(requesting_user)
        return Role.objects.all()

    @staticmethod
    def get_role(role_id: int, requesting_user: User) -> Role:
        require_admin(requesting_user)
        try:
            return Role.objects.get(pk=role_id)
        except Role.DoesNotExist:
            raise NotFound("The role does not exist.")


# ═══════════════════════════════════════════════════════════════════
#  Current User Service
# ═══════════════════════════════════════════════════════════════════


class CurrentUserService:
    """Helpers for the "Me" endpoint."""

    @staticmethod
    def get_profile(user: User) -> User:
        """Return the caller with role grants prefetched for serialization."""
        return _user_queryset().get(pk=user.pk)

    @staticmethod
    def update_profile(user: User, validated_data: dict[str, Any]) -> User:
        """
        Update the caller's own profile fields.

        ``MeUpdateSerializer`` does not expose ``user_type`` or roles, so
        this path can never elevate the caller.
        """
        return UserManagementService.update_user(user.pk, validated_data, user)
