"""
PATH: permissions/apps.py

PERMISSIONS APP

Role -> capability language shared by every API module.
No models; registered so its management commands are discoverable.
"""

from django.apps import AppConfig


class PermissionsConfig(AppConfig):
    name = "permissions"
    verbose_name = "Permissions"
