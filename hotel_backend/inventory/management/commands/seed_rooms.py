# inventory/management/commands/seed_rooms.py

from __future__ import annotations

from decimal import Decimal

from django.core.management.base import BaseCommand
from django.db import transaction

from inventory.models import Room

INITIAL_ROOMS = [
    ("The Sojourn Room", "Standard", Decimal("45000")),
    ("The Harmony Studio", "Studio", Decimal("55000")),
    ("The Serenity Studio", "Studio", Decimal("65000")),
    ("The Narrative Suite", "Suite", Decimal("85000")),
    ("The Odyssey Suite", "Suite", Decimal("105000")),
    ("The Tidé Signature Suite", "Signature", Decimal("155000")),
    ("The Tranquil Room", "Standard", Decimal("42000")),
    ("Tranquil Grand", "Grand", Decimal("48000")),
]


class Command(BaseCommand):
    help = "Seed the room catalogue (idempotent; existing rooms are left untouched)."

    def add_arguments(self, parser):
        parser.add_argument(
            "--inventory",
            type=int,
            default=10,
            help="Physical rooms per room type for newly created rows (default: 10)",
        )

    @transaction.atomic
    def handle(self, *args, **options):
        per_type = max(0, int(options.get("inventory") or 0))
        created_count = 0

        for name, room_type, price in INITIAL_ROOMS:
            _, created = Room.objects.get_or_create(
                name=name,
                defaults={"room_type": room_type, "price": price, "total_inventory": per_type},
            )
            if created:
                created_count += 1
            self.stdout.write(f"{'created' if created else 'exists '}: {name}")

        self.stdout.write(self.style.SUCCESS(f"Rooms created: {created_count}"))
