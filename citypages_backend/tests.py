"""
Tests for project-level endpoints and the API error handler.
"""
from unittest.mock import MagicMock, patch

import pytest
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken

from integrations.models import PublishedPage
from locations.models import Keyword, Location
from seo.models import ResearchJob
from .exceptions import (
    GenerationServiceError,
    InvalidStateError,
    NotFoundError,
    PublishServiceError,
    ResponseParseError,
    ValidationError,
    api_exception_handler,
)

User = get_user_model()


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def authenticated_client(api_client):
    user = User.objects.create_user(
        email='editor@example.com', username='editor@example.com', password='testpass123'
    )
    refresh = RefreshToken.for_user(user)
    api_client.credentials(HTTP_AUTHORIZATION=f'Bearer {str(refresh.access_token)}')
    return api_client, user


class TestExceptionHandler:

    @pytest.mark.parametrize('exc, expected_status', [
        (ValidationError('bad input'), 400),
        (NotFoundError('missing'), 404),
        (InvalidStateError('wrong state'), 400),
        (GenerationServiceError('provider down'), 500),
        (ResponseParseError('no json'), 500),
        (PublishServiceError('wp down', status_code=502), 500),
    ])
    def test_renders_error_body(self, exc, expected_status):
        response = api_exception_handler(exc, {'view': MagicMock()})
        assert response.status_code == expected_status
        assert response.data == {'error': exc.message}

    def test_other_exceptions_fall_through(self):
        assert api_exception_handler(KeyError('x'), {'view': MagicMock()}) is None


@pytest.mark.django_db
class TestHealth:

    def test_health_needs_no_auth(self, api_client):
        response = api_client.get('/api/v1/health/')
        assert response.status_code == 200
        assert response.json()['status'] == 'ok'

    def test_unknown_api_route_is_json(self, api_client):
        response = api_client.get('/api/v1/does-not-exist/')
        assert response.status_code == 404


@pytest.mark.django_db
class TestConnectionTest:

    def test_all_services_ok(self, authenticated_client, settings):
        client, _ = authenticated_client
        settings.ANTHROPIC_API_KEY = 'sk-test'
        settings.GENERATION_PROVIDER = 'anthropic'
        wordpress = MagicMock()
        wordpress.test_connection.return_value = True
        with patch('citypages_backend.views.WordPressClient.from_settings', return_value=wordpress):
            response = client.get('/api/v1/test/')

        assert response.status_code == 200
        assert response.data == {
            'success': True,
            'services': {'database': True, 'wordpress': True, 'generation': True},
        }

    def test_missing_configuration(self, authenticated_client, settings):
        client, _ = authenticated_client
        settings.ANTHROPIC_API_KEY = ''
        settings.GENERATION_PROVIDER = 'anthropic'
        settings.WORDPRESS_SITE_URL = ''
        response = client.get('/api/v1/test/')

        assert response.status_code == 500
        assert response.data['success'] is False
        assert response.data['services']['database'] is True
        assert response.data['services']['wordpress'] is False
        assert 'WordPress: Missing WordPress configuration' in response.data['errors']
        assert 'Generation: API key not configured' in response.data['errors']


@pytest.mark.django_db
class TestAnalytics:

    def test_aggregates(self, authenticated_client):
        client, _ = authenticated_client
        austin = Location.objects.create(city='Austin', state='Texas', state_abbr='TX')
        job = ResearchJob.objects.create(location=austin, page_type='main_city', status='completed', word_count=8000)
        ResearchJob.objects.create(location=austin, page_type='topic', topic='roofing', status='completed', word_count=4000)
        ResearchJob.objects.create(location=austin, page_type='neighborhood', status='failed', word_count=0)
        PublishedPage.objects.create(
            location=austin, research_job=job, wp_post_id=1, url='https://example.com/austin-tx/',
            page_type='main_city', title='Austin', slug='austin-tx', status='publish',
        )
        PublishedPage.objects.create(
            location=austin, wp_post_id=2, url='https://example.com/austin-tx-roofing/',
            page_type='topic', title='Roofing', slug='austin-tx-roofing', status='draft',
        )
        Keyword.objects.create(location=austin, keyword='a', current_rank=4, search_volume=1000)
        Keyword.objects.create(location=austin, keyword='b', current_rank=25, search_volume=300)
        Keyword.objects.create(location=austin, keyword='c')

        response = client.get('/api/v1/analytics/')
        assert response.status_code == 200
        assert response.data == {
            'totalPages': 2,
            'publishedPages': 1,
            'totalWords': 12000,
            'completedJobs': 2,
            'topRankings': 1,
            'cities': 1,
            'keywords': 3,
            'totalSearchVolume': 1300,
        }

    def test_empty(self, authenticated_client):
        client, _ = authenticated_client
        response = client.get('/api/v1/analytics/')
        assert response.data['totalWords'] == 0
        assert response.data['totalSearchVolume'] == 0
