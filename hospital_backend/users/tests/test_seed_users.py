from io import StringIO

from django.contrib.auth import get_user_model
from django.core.management import CommandError, call_command
from django.test import TestCase

from permissions.roles import ROLE_ADMIN, ROLE_PHARMACIST_INVENTORY, STAFF_ROLES

User = get_user_model()


class SeedUsersCommandTests(TestCase):
    """
    GUARANTEES:
    - one user per role
    - re-running is idempotent
    - only the admin seed is a superuser
    """

    def seed(self, *args):
        call_command("seed_users", *args, stdout=StringIO())

    def test_seeds_every_role_once(self):
        self.seed()
        self.seed()

        self.assertEqual(User.objects.count(), len(STAFF_ROLES))
        self.assertEqual(set(User.objects.values_list("role", flat=True)), STAFF_ROLES)
        self.assertEqual(
            list(User.objects.filter(is_superuser=True).values_list("role", flat=True)),
            [ROLE_ADMIN],
        )

    def test_role_drift_is_repaired(self):
        self.seed()
        User.objects.filter(email="inventory@example.com").update(role=ROLE_ADMIN)

        self.seed()

        self.assertEqual(User.objects.get(email="inventory@example.com").role, ROLE_PHARMACIST_INVENTORY)

    def test_short_password_rejected(self):
        with self.assertRaises(CommandError):
            self.seed("--password", "abc")
