"""
PATH: users/apps.py

USERS APP

Custom email-login user, roles, verification flags and presence.
"""

from django.apps import AppConfig


class UsersConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "users"
    verbose_name = "Users"
