from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin

from .models import Role, User


@admin.register(Role)
class RoleAdmin(admin.ModelAdmin):
    list_display = ("label", "role_type", "description")
    list_filter = ("role_type",)
    search_fields = ("label",)
    ordering = ("role_type", "label")


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    list_display = ("username", "email", "first_name", "last_name",
                    "user_type", "is_active")
    search_fields = ("username", "email", "first_name", "last_name")
    list_filter = ("user_type", "is_active", "is_staff", "roles")
    filter_horizontal = ("groups", "user_permissions", "roles")
    fieldsets = BaseUserAdmin.fieldsets + (
        ("Municipality Access", {"fields": ("user_type", "roles")}),
    )
    add_fieldsets = BaseUserAdmin.add_fieldsets + (
        ("Municipality Access", {"fields": ("email", "first_name", "last_name",
                                            "user_type", "roles")}),
    )
