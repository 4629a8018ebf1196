"""
Accounts app models.

Defines the two-level authorization model:

* **Tier** — every user has exactly one ``user_type`` (citizen,
  municipality, admin), set at creation and changeable only by an admin.
* **Role** — municipality users additionally hold zero or more ``Role``
  grants whose ``role_type`` gates the fine-grained workflow operations
  (assigning maintainers, resolving reports, ...).
"""

from django.contrib.auth.models import AbstractUser
from django.contrib.auth.models import UserManager as DjangoUserManager
from django.db import models


class UserType(models.TextChoices):
    CITIZEN = "citizen", "Citizen"
    MUNICIPALITY = "municipality", "Municipality"
    ADMIN = "admin", "Admin"


class RoleType(models.TextChoices):
    PUBLIC_RELATIONS_OFFICER = "public_relations_officer", "Public Relations Officer"
    TECHNICAL_OFFICER = "technical_officer", "Technical Officer"
    EXTERNAL_MAINTAINER = "external_maintainer", "External Maintainer"


class Role(models.Model):
    """
    A municipality capability grant.

    Several roles may share a ``role_type``: e.g. one technical-officer
    role per office (lighting, roads, ...), each linked to the report
    categories that office is responsible for through
    ``ReportCategory.responsible_roles``.

    The default catalog is created by the ``setup_roles`` management
    command.
    """

    role_type = models.CharField(
        max_length=32,
        choices=RoleType.choices,
        db_index=True,
        verbose_name="Role Type",
    )
    label = models.CharField(
        max_length=100,
        unique=True,
        verbose_name="Label",
    )
    description = models.TextField(
        blank=True,
        default="",
        verbose_name="Description",
    )

    class Meta:
        verbose_name = "Role"
        verbose_name_plural = "Roles"
        ordering = ["role_type", "label"]

    def __str__(self):
        return self.label


class UserManager(DjangoUserManager):
    """Superusers created from the CLI are admins of the service."""

    def create_superuser(self, username, email=None, password=None, **extra_fields):
        extra_fields.setdefault("user_type", UserType.ADMIN)
        return super().create_superuser(username, email, password, **extra_fields)


class User(AbstractUser):
    """
    Custom user model for the reporting service.

    Citizens self-register; municipality and admin accounts are created
    by an admin.  Login is by ``username`` + password.
    """

    user_type = models.CharField(
        max_length=16,
        choices=UserType.choices,
        default=UserType.CITIZEN,
        db_index=True,
        verbose_name="User Type",
    )
    roles = models.ManyToManyField(
        Role,
        blank=True,
        related_name="users",
        verbose_name="Roles",
    )

    objects = UserManager()

    class Meta:
        verbose_name = "User"
        verbose_name_plural = "Users"

    def __str__(self):
        return f"{self.username} ({self.get_user_type_display()})"

    # ── Tier predicates ──────────────────────────────────────────────

    @property
    def is_citizen(self) -> bool:
        return self.user_type == UserType.CITIZEN

    @property
    def is_municipality(self) -> bool:
        return self.user_type == UserType.MUNICIPALITY

    @property
    def is_admin(self) -> bool:
        return self.user_type == UserType.ADMIN

    # ── Role predicates ──────────────────────────────────────────────

    @property
    def role_types(self) -> set[str]:
        """Distinct ``role_type`` values granted to this user."""
        # .all() honours a prefetch_related("roles") cache when present
        return {role.role_type for role in self.roles.all()}

    def has_role(self, role_type: str) -> bool:
        """Check whether any of the user's roles is of ``role_type``."""
        return role_type in self.role_types
