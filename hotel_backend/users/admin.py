# users/admin.py

"""
USERS ADMIN REGISTRATION

Registers the custom User model in Django Admin with role, verification and
presence columns so the back office can see who is on shift.
"""

from __future__ import annotations

from django.contrib import admin
from django.contrib.auth import get_user_model
from django.contrib.auth.admin import UserAdmin as DjangoUserAdmin

User = get_user_model()


@admin.register(User)
class UserAdmin(DjangoUserAdmin):
    ordering = ("email",)
    list_display = ("email", "role", "email_verified", "is_online", "last_active", "is_active")
    list_filter = ("role", "email_verified", "is_online", "is_active")
    search_fields = ("email", "first_name", "last_name")
    readonly_fields = ("is_online", "last_active", "created_at", "updated_at")

    fieldsets = (
        (None, {"fields": ("email", "password")}),
        ("Profile", {"fields": ("first_name", "last_name", "role", "email_verified")}),
        ("Presence", {"fields": ("is_online", "last_active")}),
        (
            "Permissions",
            {
                "fields": (
                    "is_active",
                    "is_staff",
                    "is_superuser",
                    "groups",
                    "user_permissions",
                )
            },
        ),
        ("Timestamps", {"fields": ("created_at", "updated_at")}),
    )

    add_fieldsets = (
        (
            None,
            {
                "classes": ("wide",),
                "fields": (
                    "email",
                    "password1",
                    "password2",
                    "role",
                    "email_verified",
                    "is_active",
                ),
            },
        ),
    )
