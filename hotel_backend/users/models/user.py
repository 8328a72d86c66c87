"""
PATH: users/models/user.py

CUSTOM USER MODEL

Identity rules:
- Email is the login identity (case-insensitive lookups in the auth backend).
- Two job roles: admin (back office) and staff (front desk / outlets).
- email_verified is set by the identity flow; domain_verified is derived from
  STAFF_EMAIL_DOMAIN and never stored.

Presence:
- is_online + last_active are written by the heartbeat endpoint with a plain
  UPDATE. Last write wins; a lost heartbeat is harmless.
"""

from __future__ import annotations

import uuid

from django.conf import settings
from django.contrib.auth.models import AbstractBaseUser, BaseUserManager, PermissionsMixin
from django.core.exceptions import ValidationError
from django.db import models
from django.utils import timezone


# ---------------- USER MANAGER ----------------
class UserManager(BaseUserManager):
    def create_user(self, email=None, password=None, **extra_fields):
        email = (email or "").strip()
        if not email:
            raise ValueError("Users must have an email address")

        extra_fields.setdefault("role", User.ROLE_STAFF)
        extra_fields.setdefault("is_active", True)

        user = self.model(email=self.normalize_email(email), **extra_fields)

        if password:
            user.set_password(password)
        else:
            user.set_unusable_password()

        user.full_clean(exclude=["password"])
        user.save(using=self._db)
        return user

    def create_superuser(self, email, password=None, **extra_fields):
        if not email:
            raise ValueError("Superuser must have an email")
        if not password:
            raise ValueError("Superuser must have a password")

        extra_fields.setdefault("role", User.ROLE_ADMIN)
        extra_fields.setdefault("is_staff", True)
        extra_fields.setdefault("is_superuser", True)
        extra_fields.setdefault("email_verified", True)

        if extra_fields.get("is_staff") is not True:
            raise ValueError("Superuser must have is_staff=True")
        if extra_fields.get("is_superuser") is not True:
            raise ValueError("Superuser must have is_superuser=True")

        return self.create_user(email=email, password=password, **extra_fields)


# ---------------- USER MODEL ----------------
class User(AbstractBaseUser, PermissionsMixin):
    ROLE_ADMIN = "admin"
    ROLE_STAFF = "staff"

    ROLE_CHOICES = [
        (ROLE_ADMIN, "Admin"),
        (ROLE_STAFF, "Staff"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    email = models.EmailField(unique=True)

    first_name = models.CharField(max_length=100, blank=True)
    last_name = models.CharField(max_length=100, blank=True)

    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default=ROLE_STAFF)

    email_verified = models.BooleanField(default=False)

    is_online = models.BooleanField(default=False)
    last_active = models.DateTimeField(null=True, blank=True)

    is_active = models.BooleanField(default=True)
    is_staff = models.BooleanField(default=False)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = UserManager()

    USERNAME_FIELD = "email"
    REQUIRED_FIELDS = []

    class Meta:
        ordering = ["-created_at"]

    def clean(self):
        if self.email:
            self.email = self.__class__.objects.normalize_email(self.email).strip()
        if not self.email:
            raise ValidationError("User must have an email")

    @property
    def display_name(self) -> str:
        full = f"{self.first_name} {self.last_name}".strip()
        return full or self.email.split("@")[0]

    @property
    def domain_verified(self) -> bool:
        domain = (getattr(settings, "STAFF_EMAIL_DOMAIN", "") or "").strip().lower()
        if not domain:
            return True
        if not domain.startswith("@"):
            domain = f"@{domain}"
        return (self.email or "").lower().endswith(domain)

    @property
    def is_admin(self) -> bool:
        return self.role == self.ROLE_ADMIN

    def mark_presence(self, online: bool) -> None:
        """Fire-and-forget heartbeat (last write wins)."""
        now = timezone.now()
        type(self).objects.filter(pk=self.pk).update(is_online=online, last_active=now)
        self.is_online = online
        self.last_active = now

    def __str__(self):
        return f"{self.email} ({self.role})"
