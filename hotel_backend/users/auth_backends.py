"""
PATH: users/auth_backends.py

AUTH BACKEND: case-insensitive email login

Rules:
- The identifier is always an email ("username" kwarg per Django convention,
  or email=... from DRF serializers).
- Inactive users never authenticate.

This is used by Django authenticate() and by simplejwt's token serializer.
"""

from __future__ import annotations

from django.contrib.auth import get_user_model
from django.contrib.auth.backends import ModelBackend

User = get_user_model()


class EmailBackend(ModelBackend):
    def authenticate(self, request, username=None, password=None, **kwargs):
        identifier = (username or kwargs.get("email") or "").strip()
        if not identifier or password is None:
            return None

        try:
            user = User.objects.get(email__iexact=identifier)
        except User.DoesNotExist:
            # Run the hasher anyway to keep timing flat for unknown emails.
            User().set_password(password)
            return None

        if user.check_password(password) and self.user_can_authenticate(user):
            return user

        return None
