"""
Accounts app views.

All views follow the **Thin View** pattern: validate input via
serializers, delegate to the service layer, and return the result
wrapped in a DRF ``Response``.  **No business logic** resides here;
authorization is enforced by the services.

View Map
--------
- ``RegisterView``  — POST /auth/register/
- ``LoginView``     — POST /auth/login/
- ``MeView``        — GET / PATCH /me/
- ``UserViewSet``   — /users/  (search, create, retrieve, update,
                      delete, roles, maintainers)
- ``RoleViewSet``   — /roles/  (list, retrieve)
"""

from __future__ import annotations

from drf_spectacular.utils import (
    OpenApiParameter,
    OpenApiResponse,
    extend_schema,
)
from rest_framework import generics, status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from core.serializers import paginated_serializer, serialize_page

from .models import UserType
from .serializers import (
    AdminCreateUserSerializer,
    CustomTokenObtainPairSerializer,
    MeUpdateSerializer,
    RegisterRequestSerializer,
    RoleAssignmentSerializer,
    RoleSerializer,
    TokenResponseSerializer,
    UserDetailSerializer,
    UserFilterSerializer,
    UserUpdateSerializer,
)
from .services import (
    CurrentUserService,
    RoleManagementService,
    UserManagementService,
    UserRegistrationService,
)


# ═══════════════════════════════════════════════════════════════════
#  Authentication Views
# ═══════════════════════════════════════════════════════════════════


class RegisterView(generics.CreateAPIView):
    """
    POST /api/accounts/auth/register/

    Public endpoint.  Creates a new citizen account.

    Request body  → ``RegisterRequestSerializer``
    Response body → ``UserDetailSerializer`` (201 Created)
    """

    permission_classes = [AllowAny]
    authentication_classes = []
    serializer_class = RegisterRequestSerializer

    @extend_schema(
        summary="Register a citizen",
        request=RegisterRequestSerializer,
        responses={
            201: OpenApiResponse(response=UserDetailSerializer, description="Citizen created."),
            400: OpenApiResponse(description="Validation error."),
            409: OpenApiResponse(description="Username already taken."),
        },
        tags=["Auth"],
    )
    def create(self, request: Request, *args, **kwargs) -> Response:
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = UserRegistrationService.register_citizen(serializer.validated_data)
        return Response(UserDetailSerializer(user).data, status=status.HTTP_201_CREATED)


class LoginView(APIView):
    """
    POST /api/accounts/auth/login/

    Public endpoint.  Authenticates ``username`` + ``password`` and
    returns a JWT pair together with the user profile.

    Response body → ``TokenResponseSerializer`` (200 OK), 401 on bad
    credentials.
    """

    permission_classes = [AllowAny]

    @extend_schema(
        summary="Log in",
        request=CustomTokenObtainPairSerializer,
        responses={
            200: OpenApiResponse(response=TokenResponseSerializer, description="JWT pair and user."),
            401: OpenApiResponse(description="Invalid username or password."),
        },
        tags=["Auth"],
    )
    def post(self, request: Request) -> Response:
        serializer = CustomTokenObtainPairSerializer(
            data=request.data,
            context={"request": request},
        )
        serializer.is_valid(raise_exception=True)

        payload = dict(serializer.validated_data)  # 'access' and 'refresh'
        payload["user"] = UserDetailSerializer(
            CurrentUserService.get_profile(serializer.user)
        ).data

        return Response(payload, status=status.HTTP_200_OK)


# ═══════════════════════════════════════════════════════════════════
#  Current User ("Me") View
# ═══════════════════════════════════════════════════════════════════


class MeView(APIView):
    """
    GET   /api/accounts/me/ → Current user profile.
    PATCH /api/accounts/me/ → Update own profile fields.

    ``user_type`` and roles cannot be changed through this endpoint.
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="Current user",
        responses={200: OpenApiResponse(response=UserDetailSerializer, description="Profile.")},
        tags=["Users"],
    )
    def get(self, request: Request) -> Response:
        user = CurrentUserService.get_profile(request.user)
        return Response(UserDetailSerializer(user).data, status=status.HTTP_200_OK)

    @extend_schema(
        summary="Edit own profile",
        request=MeUpdateSerializer,
        responses={
            200: OpenApiResponse(response=UserDetailSerializer, description="Updated profile."),
            409: OpenApiResponse(description="Username already taken."),
        },
        tags=["Users"],
    )
    def patch(self, request: Request) -> Response:
        serializer = MeUpdateSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        user = CurrentUserService.update_profile(request.user, serializer.validated_data)
        return Response(UserDetailSerializer(user).data, status=status.HTTP_200_OK)


# ═══════════════════════════════════════════════════════════════════
#  User Management ViewSet
# ═══════════════════════════════════════════════════════════════════


class UserViewSet(viewsets.ViewSet):
    """
    /api/accounts/users/

    User management.  Searching and creating users is admin-only;
    reading, editing and deleting a record is open to the user
    themselves and to admins.  Admin accounts can never be deleted.

    All heavy lifting is delegated to ``UserManagementService``.
    """

    permission_classes = [IsAuthenticated]
    lookup_value_regex = r"\d+"

    @extend_schema(
        summary="Search users",
        parameters=[
            OpenApiParameter("first_name", str, description="Case-insensitive contains."),
            OpenApiParameter("last_name", str, description="Case-insensitive contains."),
            OpenApiParameter("email", str, description="Case-insensitive contains."),
            OpenApiParameter("role", str, enum=UserType.values, description="User tier."),
            OpenApiParameter("page_num", int, description="1-based page (default 1)."),
            OpenApiParameter("page_size", int, description="Items per page (default 10)."),
        ],
        responses={
            200: OpenApiResponse(response=paginated_serializer(UserDetailSerializer), description="One page of users."),
            401: OpenApiResponse(description="Caller is not an admin."),
        },
        tags=["Users"],
    )
    def list(self, request: Request) -> Response:
        """GET /api/accounts/users/ — paginated, filtered user search."""
        filter_serializer = UserFilterSerializer(data=request.query_params)
        filter_serializer.is_valid(raise_exception=True)
        result = UserManagementService.search_users(
            filter_serializer.validated_data,
            request.user,
        )
        return Response(serialize_page(result, UserDetailSerializer), status=status.HTTP_200_OK)

    @extend_schema(
        summary="Create a user (admin)",
        request=AdminCreateUserSerializer,
        responses={
            201: OpenApiResponse(response=UserDetailSerializer, description="User created."),
            401: OpenApiResponse(description="Caller is not an admin."),
            409: OpenApiResponse(description="Username already taken."),
        },
        tags=["Users"],
    )
    def create(self, request: Request) -> Response:
        """POST /api/accounts/users/ — admin creates an account of any tier."""
        serializer = AdminCreateUserSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = UserRegistrationService.create_user(serializer.validated_data, request.user)
        return Response(UserDetailSerializer(user).data, status=status.HTTP_201_CREATED)

    @extend_schema(
        summary="Retrieve a user",
        responses={
            200: OpenApiResponse(response=UserDetailSerializer, description="User."),
            401: OpenApiResponse(description="Not your record and not an admin."),
            404: OpenApiResponse(description="User not found."),
        },
        tags=["Users"],
    )
    def retrieve(self, request: Request, pk: str = None) -> Response:
        user = UserManagementService.get_user(int(pk), request.user)
        return Response(UserDetailSerializer(user).data, status=status.HTTP_200_OK)

    @extend_schema(
        summary="Edit a user",
        request=UserUpdateSerializer,
        responses={
            200: OpenApiResponse(response=UserDetailSerializer, description="Updated user."),
            401: OpenApiResponse(description="Not allowed to edit this record or field."),
            404: OpenApiResponse(description="User not found."),
            409: OpenApiResponse(description="Username already taken."),
        },
        tags=["Users"],
    )
    def partial_update(self, request: Request, pk: str = None) -> Response:
        serializer = UserUpdateSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        user = UserManagementService.update_user(
            int(pk),
            serializer.validated_data,
            request.user,
        )
        return Response(UserDetailSerializer(user).data, status=status.HTTP_200_OK)

    @extend_schema(
        summary="Delete a user",
        responses={
            204: OpenApiResponse(description="Deleted."),
            401: OpenApiResponse(description="Admin target, or not your record."),
            404: OpenApiResponse(description="User not found."),
            409: OpenApiResponse(description="User still handles open reports."),
        },
        tags=["Users"],
    )
    def destroy(self, request: Request, pk: str = None) -> Response:
        UserManagementService.delete_user(int(pk), request.user)
        return Response(status=status.HTTP_204_NO_CONTENT)

    # ── Custom actions ───────────────────────────────────────────

    @extend_schema(
        methods=["GET"],
        summary="List a user's roles",
        responses={200: OpenApiResponse(response=RoleSerializer(many=True), description="Role grants.")},
        tags=["Roles"],
    )
    @extend_schema(
        methods=["PUT"],
        summary="Replace a user's roles (admin)",
        request=RoleAssignmentSerializer,
        responses={
            200: OpenApiResponse(response=UserDetailSerializer, description="Updated user."),
            400: OpenApiResponse(description="Target is not a municipality user."),
            401: OpenApiResponse(description="Caller is not an admin, or targets themselves."),
            404: OpenApiResponse(description="User or role not found."),
        },
        tags=["Roles"],
    )
    @action(detail=True, methods=["get", "put"], url_path="roles")
    def roles(self, request: Request, pk: str = None) -> Response:
        """
        GET /api/accounts/users/{id}/roles/ — role grants (self or admin).
        PUT /api/accounts/users/{id}/roles/ — replace role grants (admin).
        """
        if request.method == "GET":
            roles = UserManagementService.get_user_roles(int(pk), request.user)
            return Response(RoleSerializer(roles, many=True).data, status=status.HTTP_200_OK)

        serializer = RoleAssignmentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = UserManagementService.set_user_roles(
            user_id=int(pk),
            role_ids=serializer.validated_data["role_ids"],
            performed_by=request.user,
        )
        return Response(UserDetailSerializer(user).data, status=status.HTTP_200_OK)

    @extend_schema(
        summary="List external maintainers",
        responses={
            200: OpenApiResponse(response=UserDetailSerializer(many=True), description="Maintainers."),
            401: OpenApiResponse(description="Caller is not staff."),
        },
        tags=["Users"],
    )
    @action(detail=False, methods=["get"], url_path="maintainers")
    def maintainers(self, request: Request) -> Response:
        """GET /api/accounts/users/maintainers/"""
        users = UserManagementService.list_maintainers(request.user)
        return Response(UserDetailSerializer(users, many=True).data, status=status.HTTP_200_OK)


# ═══════════════════════════════════════════════════════════════════
#  Role ViewSet
# ═══════════════════════════════════════════════════════════════════


class RoleViewSet(viewsets.ViewSet):
    """
    /api/accounts/roles/

    Read-only role catalog.  The catalog itself is maintained with the
    ``setup_roles`` management command and the Django admin.

    Access: admins only.
    """

    permission_classes = [IsAuthenticated]
    lookup_value_regex = r"\d+"

    @extend_schema(
        summary="List roles",
        responses={200: OpenApiResponse(response=RoleSerializer(many=True), description="All roles.")},
        tags=["Roles"],
    )
    def list(self, request: Request) -> Response:
        roles = RoleManagementService.list_roles(request.user)
        return Response(RoleSerializer(roles, many=True).data, status=status.HTTP_200_OK)

    @extend_schema(
        summary="Retrieve a role",
        responses={
            200: OpenApiResponse(response=RoleSerializer, description="Role."),
            404: OpenApiResponse(description="Role not found."),
        },
        tags=["Roles"],
    )
    def retrieve(self, request: Request, pk: str = None) -> Response:
        role = RoleManagementService.get_role(int(pk), request.user)
        return Response(RoleSerializer(role).data, status=status.HTTP_200_OK)
