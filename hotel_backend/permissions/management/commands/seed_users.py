# permissions/management/commands/seed_users.py

from __future__ import annotations

from dataclasses import dataclass

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand, CommandError
from django.db import transaction

from permissions.roles import ROLE_ADMIN, ROLE_STAFF


@dataclass(frozen=True)
class SeedUserSpec:
    label: str
    role: str
    local_part: str


SEED_USERS = [
    SeedUserSpec("Admin", ROLE_ADMIN, "admin"),
    SeedUserSpec("Front desk", ROLE_STAFF, "frontdesk"),
    SeedUserSpec("Zenza outlet", ROLE_STAFF, "zenza"),
    SeedUserSpec("Whispers outlet", ROLE_STAFF, "whispers"),
]


class Command(BaseCommand):
    help = "Seed verified operator accounts (admin + staff) for local use."

    def add_arguments(self, parser):
        parser.add_argument(
            "--domain",
            type=str,
            default="example.com",
            help="Email domain for seeded users (default: example.com)",
        )
        parser.add_argument(
            "--password",
            type=str,
            default="Pass1234!",
            help="Password for seeded users (default: Pass1234!)",
        )
        parser.add_argument(
            "--force-password",
            action="store_true",
            help="If set, resets password for existing seeded users too.",
        )

    @transaction.atomic
    def handle(self, *args, **options):
        domain = (options.get("domain") or "").strip().lstrip("@").lower()
        password = options.get("password") or ""
        force_password = bool(options.get("force_password"))

        if not domain:
            raise CommandError("--domain must not be empty.")
        if len(password) < 6:
            raise CommandError("--password must be at least 6 characters.")

        User = get_user_model()
        created_count = 0

        for spec in SEED_USERS:
            email = f"{spec.local_part}@{domain}"
            is_admin = spec.role == ROLE_ADMIN

            user, created = User.objects.get_or_create(
                email=email,
                defaults={
                    "role": spec.role,
                    "email_verified": True,
                    "is_staff": is_admin,
                    "is_superuser": is_admin,
                    "first_name": spec.label,
                },
            )

            if created or force_password:
                user.set_password(password)
                user.save(update_fields=["password"])

            if created:
                created_count += 1
                self.stdout.write(f"created: {email} ({spec.role})")
            else:
                self.stdout.write(f"exists:  {email} ({spec.role})")

        self.stdout.write(f"\nCreated users: {created_count}")
