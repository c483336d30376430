from django.contrib.auth import get_user_model
from django.test import TestCase
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient

from permissions.roles import ROLE_PHARMACIST_DISPENSER, ROLE_RECEPTION

User = get_user_model()


class MeEndpointTests(TestCase):
    """
    Authenticated profile.

    GUARANTEES:
    - anonymous requests are rejected
    - capabilities reflect the user's role
    - JWT login uses email + password
    """

    def setUp(self):
        self.client = APIClient()
        self.user = User.objects.create_user(
            email="dispenser@example.com",
            password="password123",
            role=ROLE_PHARMACIST_DISPENSER,
        )

    def test_anonymous_is_unauthorized(self):
        response = self.client.get(reverse("users:me"))
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_profile_lists_capabilities(self):
        self.client.force_authenticate(self.user)

        response = self.client.get(reverse("users:me"))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["email"], "dispenser@example.com")
        self.assertEqual(response.data["capabilities"], ["medicines.view", "patients.view"])

    def test_reception_only_handles_patients(self):
        reception = User.objects.create_user(email="front@example.com", password="password123", role=ROLE_RECEPTION)
        self.client.force_authenticate(reception)

        response = self.client.get(reverse("users:me"))
        self.assertEqual(response.data["capabilities"], ["patients.edit", "patients.view"])

    def test_jwt_login_with_email(self):
        response = self.client.post(
            reverse("jwt-create"),
            {"email": "dispenser@example.com", "password": "password123"},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn("access", response.data)
