"""
Tests for accounts app authentication.
"""
import pytest
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken

User = get_user_model()


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def create_user():
    def _create_user(email="test@example.com", password="testpass123", role=User.ROLE_EDITOR):
        return User.objects.create_user(
            email=email,
            username=email,
            password=password,
            role=role,
        )
    return _create_user


@pytest.fixture
def authenticated_client(api_client, create_user):
    user = create_user()
    refresh = RefreshToken.for_user(user)
    api_client.credentials(HTTP_AUTHORIZATION=f'Bearer {str(refresh.access_token)}')
    return api_client, user


@pytest.mark.django_db
class TestAuthentication:

    def test_login_success(self, api_client, create_user):
        user = create_user()
        response = api_client.post('/api/v1/auth/login/', {
            'email': user.email,
            'password': 'testpass123'
        }, format='json')
        assert response.status_code == 200
        assert 'token' in response.data
        assert response.data['user']['role'] == 'editor'

    def test_login_invalid_credentials(self, api_client, create_user):
        create_user()
        response = api_client.post('/api/v1/auth/login/', {
            'email': 'test@example.com',
            'password': 'wrongpassword'
        }, format='json')
        assert response.status_code == 400

    def test_login_missing_fields(self, api_client):
        response = api_client.post('/api/v1/auth/login/', {
            'email': 'test@example.com'
        }, format='json')
        assert response.status_code == 400

    def test_register_success(self, api_client):
        response = api_client.post('/api/v1/auth/register/', {
            'email': 'newuser@example.com',
            'password': 'securepass123',
            'name': 'New User'
        }, format='json')
        assert response.status_code == 201
        assert 'token' in response.data
        user = User.objects.get(email='newuser@example.com')
        assert user.first_name == 'New'
        assert user.last_name == 'User'
        assert user.role == User.ROLE_EDITOR

    def test_register_duplicate_email(self, api_client, create_user):
        user = create_user(email='duplicate@example.com')
        response = api_client.post('/api/v1/auth/register/', {
            'email': user.email,
            'password': 'securepass123'
        }, format='json')
        assert response.status_code == 400

    def test_register_short_password(self, api_client):
        response = api_client.post('/api/v1/auth/register/', {
            'email': 'test@example.com',
            'password': 'short'
        }, format='json')
        assert response.status_code == 400

    def test_me_endpoint_authenticated(self, authenticated_client):
        client, user = authenticated_client
        response = client.get('/api/v1/auth/me/')
        assert response.status_code == 200
        assert response.data['user']['email'] == user.email

    def test_me_endpoint_unauthenticated(self, api_client):
        response = api_client.get('/api/v1/auth/me/')
        assert response.status_code == 401

    def test_logout_success(self, authenticated_client):
        client, user = authenticated_client
        refresh = RefreshToken.for_user(user)
        response = client.post('/api/v1/auth/logout/', {
            'refresh_token': str(refresh)
        }, format='json')
        assert response.status_code == 200

    def test_logout_with_garbage_token(self, authenticated_client):
        client, _ = authenticated_client
        response = client.post('/api/v1/auth/logout/', {
            'refresh_token': 'not-a-token'
        }, format='json')
        assert response.status_code == 400


@pytest.mark.django_db
class TestRoles:

    def test_superuser_is_location_admin(self):
        user = User.objects.create_superuser(
            email='root@example.com', username='root@example.com', password='testpass123'
        )
        assert user.is_location_admin

    def test_editor_is_not_location_admin(self, create_user):
        assert not create_user().is_location_admin
