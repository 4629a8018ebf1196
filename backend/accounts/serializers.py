"""
Accounts app serializers.

Contains all Request and Response serializers for the accounts API.
Serializers handle field definitions, read/write constraints, and
boundary parsing of the ``UserType`` / ``RoleType`` enumerations.
**No business logic** lives here — all domain rules are delegated to
``services.py``.
"""

from __future__ import annotations

from typing import Any

from django.contrib.auth import authenticate, get_user_model
from django.contrib.auth.password_validation import validate_password
from django.contrib.auth.validators import UnicodeUsernameValidator
from rest_framework import exceptions, serializers
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer

from core.serializers import PaginationQuerySerializer

from .models import Role, UserType

User = get_user_model()


# ═══════════════════════════════════════════════════════════════════
#  Role Serializers
# ═══════════════════════════════════════════════════════════════════


class RoleSerializer(serializers.ModelSerializer):
    """A role grant: ``(role_type, label, description)``."""

    class Meta:
        model = Role
        fields = ["id", "role_type", "label", "description"]
        read_only_fields = fields


class RoleAssignmentSerializer(serializers.Serializer):
    """
    Accepts the complete new set of role PKs for a user.

    Used by ``PUT /api/accounts/users/{id}/roles/``.  An empty list
    revokes every grant.
    """

    role_ids = serializers.ListField(
        child=serializers.IntegerField(min_value=1),
        allow_empty=True,
        help_text="PKs of the roles the user should hold.",
    )

    def validate_role_ids(self, value: list[int]) -> list[int]:
        return sorted(set(value))


# ═══════════════════════════════════════════════════════════════════
#  User Serializers
# ═══════════════════════════════════════════════════════════════════


class UserBriefSerializer(serializers.ModelSerializer):
    """Minimal user reference nested inside reports and comments."""

    class Meta:
        model = User
        fields = ["id", "username", "first_name", "last_name"]
        read_only_fields = fields


class UserDetailSerializer(serializers.ModelSerializer):
    """
    Full user representation (retrieve, me, registration response,
    search results).  Roles are rendered inline.
    """

    roles = RoleSerializer(many=True, read_only=True)

    class Meta:
        model = User
        fields = [
            "id",
            "username",
            "email",
            "first_name",
            "last_name",
            "user_type",
            "roles",
            "date_joined",
        ]
        read_only_fields = fields


class RegisterRequestSerializer(serializers.ModelSerializer):
    """
    Validates citizen self-registration data.

    The ``password`` field is write-only and is checked against Django's
    configured password validators.  The response after a successful
    registration is rendered by ``UserDetailSerializer``.
    """

    password = serializers.CharField(
        write_only=True,
        style={"input_type": "password"},
    )

    class Meta:
        model = User
        fields = ["username", "password", "email", "first_name", "last_name"]
        extra_kwargs = {
            "email": {"required": True, "allow_blank": False},
            "first_name": {"required": True, "allow_blank": False},
            "last_name": {"required": True, "allow_blank": False},
            # Uniqueness is reported by the service as a 409.
            "username": {"validators": [UnicodeUsernameValidator()]},
        }

    def validate_password(self, value: str) -> str:
        validate_password(value)
        return value


class AdminCreateUserSerializer(RegisterRequestSerializer):
    """Admin-only account creation: any tier, optional role grants."""

    user_type = serializers.ChoiceField(choices=UserType.choices)
    role_ids = serializers.ListField(
        child=serializers.IntegerField(min_value=1),
        default=list,
        help_text="Roles to grant (municipality users only).",
    )

    class Meta(RegisterRequestSerializer.Meta):
        fields = RegisterRequestSerializer.Meta.fields + ["user_type", "role_ids"]


class MeUpdateSerializer(serializers.ModelSerializer):
    """Own-profile update: names, email, username and password."""

    password = serializers.CharField(
        write_only=True,
        required=False,
        style={"input_type": "password"},
    )

    class Meta:
        model = User
        fields = ["username", "password", "email", "first_name", "last_name"]
        extra_kwargs = {
            "username": {"required": False, "validators": [UnicodeUsernameValidator()]},
            "email": {"required": False},
            "first_name": {"required": False},
            "last_name": {"required": False},
        }

    def validate_password(self, value: str) -> str:
        validate_password(value)
        return value


class UserUpdateSerializer(MeUpdateSerializer):
    """
    Partial update of a user record (self or admin).

    ``user_type`` is accepted here; the service rejects it unless an
    admin is editing someone else.
    """

    user_type = serializers.ChoiceField(choices=UserType.choices, required=False)

    class Meta(MeUpdateSerializer.Meta):
        fields = MeUpdateSerializer.Meta.fields + ["user_type"]


class UserFilterSerializer(PaginationQuerySerializer):
    """
    Query parameters of ``GET /api/accounts/users/``.

    ``role`` filters on the user's tier and must be a ``UserType`` value.
    """

    first_name = serializers.CharField(required=False, allow_blank=False)
    last_name = serializers.CharField(required=False, allow_blank=False)
    email = serializers.CharField(required=False, allow_blank=False)
    role = serializers.ChoiceField(choices=UserType.choices, required=False)


# ═══════════════════════════════════════════════════════════════════
#  Authentication Serializers
# ═══════════════════════════════════════════════════════════════════


class CustomTokenObtainPairSerializer(TokenObtainPairSerializer):
    """
    SimpleJWT serializer that:

    1. Authenticates ``username`` + ``password``.
    2. Injects ``user_type`` and ``roles`` claims into the token so the
       client can render the right screens without a separate call.
    3. Exposes the authenticated user as ``self.user`` for the view to
       serialise alongside the token pair.
    """

    @classmethod
    def get_token(cls, user) -> Any:
        token = super().get_token(user)
        token["user_type"] = user.user_type
        token["roles"] = sorted(user.role_types)
        return token

    def validate(self, attrs: dict[str, Any]) -> dict[str, Any]:
        user = authenticate(
            request=self.context.get("request"),
            username=attrs.get(self.username_field),
            password=attrs.get("password"),
        )
        if user is None or not user.is_active:
            raise exceptions.AuthenticationFailed("Invalid username or password.")

        refresh = self.get_token(user)
        self.user = user
        return {
            "access": str(refresh.access_token),
            "refresh": str(refresh),
        }


class TokenResponseSerializer(serializers.Serializer):
    """The JWT pair plus the authenticated user."""

    access = serializers.CharField(read_only=True)
    refresh = serializers.CharField(read_only=True)
    user = UserDetailSerializer(read_only=True)
