from django.test import TestCase
from rest_framework import status
from rest_framework.test import APIClient

from users.models import CustomUser
from .factories import make_user


class AuthAPITestCase(TestCase):

    def setUp(self):
        self.client = APIClient()

    def test_register_owner(self):
        response = self.client.post('/api/v1/auth/register/', {
            'username': 'lotowner',
            'email': 'lot@example.com',
            'password': 'securepass123',
            'password_confirm': 'securepass123',
            'role': 'owner',
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertIn('access', response.data)
        self.assertEqual(CustomUser.objects.get(username='lotowner').role, 'owner')

    def test_cannot_register_as_admin(self):
        response = self.client.post('/api/v1/auth/register/', {
            'username': 'sneaky',
            'password': 'securepass123',
            'password_confirm': 'securepass123',
            'role': 'admin',
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_password_mismatch(self):
        response = self.client.post('/api/v1/auth/register/', {
            'username': 'driver',
            'password': 'securepass123',
            'password_confirm': 'different123',
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_login_and_profile(self):
        make_user('driver')

        response = self.client.post('/api/v1/auth/login/', {
            'username': 'driver',
            'password': 'testpass123',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)

        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {response.data['access']}")
        profile = self.client.get('/api/v1/auth/profile/')
        self.assertEqual(profile.status_code, status.HTTP_200_OK)
        self.assertEqual(profile.data['role'], 'user')

    def test_bad_credentials(self):
        make_user('driver')

        response = self.client.post('/api/v1/auth/login/', {
            'username': 'driver',
            'password': 'wrong',
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_profile_role_is_read_only(self):
        user = make_user('driver')
        self.client.force_authenticate(user=user)

        self.client.put('/api/v1/auth/profile/', {'role': 'admin', 'first_name': 'Ram'}, format='json')

        user.refresh_from_db()
        self.assertEqual(user.role, 'user')
        self.assertEqual(user.first_name, 'Ram')

    def test_profile_requires_authentication(self):
        self.assertEqual(self.client.get('/api/v1/auth/profile/').status_code, status.HTTP_401_UNAUTHORIZED)

        response = self.client.put('/api/v1/auth/profile/', {'first_name': 'Ram'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
