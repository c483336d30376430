# users/management/commands/seed_users.py

from __future__ import annotations

from dataclasses import dataclass

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand, CommandError
from django.db import transaction

from permissions.roles import (
    ROLE_ADMIN,
    ROLE_PHARMACIST_DISPENSER,
    ROLE_PHARMACIST_INVENTORY,
    ROLE_PHARMACIST_INVENTORY_STAFF,
    ROLE_RECEPTION,
)


@dataclass(frozen=True)
class SeedUser:
    label: str
    role: str
    email: str
    first_name: str = ""
    last_name: str = ""


SEED_USERS = [
    SeedUser("Admin", ROLE_ADMIN, "admin@example.com", "System", "Admin"),
    SeedUser(
        "Inventory Pharmacist",
        ROLE_PHARMACIST_INVENTORY,
        "inventory@example.com",
        "Lead",
        "Pharmacist",
    ),
    SeedUser(
        "Inventory Staff",
        ROLE_PHARMACIST_INVENTORY_STAFF,
        "inventory.staff@example.com",
        "Store",
        "Assistant",
    ),
    SeedUser(
        "Dispenser",
        ROLE_PHARMACIST_DISPENSER,
        "dispenser@example.com",
        "Counter",
        "Pharmacist",
    ),
    SeedUser("Reception", ROLE_RECEPTION, "reception@example.com", "Front", "Desk"),
]


class Command(BaseCommand):
    help = "Seed one staff user per hospital pharmacy role."

    def add_arguments(self, parser):
        parser.add_argument(
            "--password",
            type=str,
            default="Pass1234!",
            help="Password for seeded users (default: Pass1234!)",
        )
        parser.add_argument(
            "--force-password",
            action="store_true",
            help="Reset password for existing seeded users too.",
        )

    @transaction.atomic
    def handle(self, *args, **options):
        password = options.get("password") or ""
        force_password = bool(options.get("force_password"))

        if len(password) < 6:
            raise CommandError("--password must be at least 6 characters.")

        User = get_user_model()

        created_count = 0
        updated_count = 0

        for seed in SEED_USERS:
            is_admin = seed.role == ROLE_ADMIN

            user, created = User.objects.get_or_create(
                email=seed.email,
                defaults={
                    "role": seed.role,
                    "first_name": seed.first_name,
                    "last_name": seed.last_name,
                    "is_staff": True,
                    "is_superuser": is_admin,
                    "is_active": True,
                },
            )

            dirty = False

            if user.role != seed.role:
                user.role = seed.role
                dirty = True

            if user.is_superuser != is_admin:
                user.is_superuser = is_admin
                dirty = True

            if created or force_password:
                user.set_password(password)
                dirty = True

            if dirty:
                user.save()
                if not created:
                    updated_count += 1

            if created:
                created_count += 1
                self.stdout.write(f"✅ created: {seed.label} ({seed.role}) -> {seed.email}")
            else:
                self.stdout.write(f"↩︎ exists:  {seed.label} ({seed.role}) -> {seed.email}")

        self.stdout.write("\n--- Summary ---")
        self.stdout.write(f"Created: {created_count}")
        self.stdout.write(f"Updated: {updated_count}")
