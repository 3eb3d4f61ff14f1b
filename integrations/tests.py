"""
Tests for the WordPress client, rate limiter and publish workflows.
"""
import json
from unittest.mock import MagicMock, patch

import pytest
import requests
from django.contrib.auth import get_user_model
from django.db import DatabaseError
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken

from citypages_backend.exceptions import (
    InvalidStateError,
    NotFoundError,
    PersistenceWarning,
    PublishServiceError,
    ValidationError,
)
from locations.models import Location
from seo.models import ResearchJob
from .models import PublishedPage
from .publishing import BulkPublishWorkflow, PublishWorkflow, page_slug
from .throttle import IntervalRateLimiter
from .wordpress import CreatePageParams, WordPressClient

User = get_user_model()

RESULTS = {
    'title': 'Dumpster Rental Austin, TX',
    'metaDescription': 'Fast dumpster rental in Austin.',
    'content': '<p>Body</p>',
    'questions': [{'question': 'Q', 'answer': 'A'}],
    'keywords': ['dumpster rental austin', 'roll off austin'],
}


def _response(status_code=200, payload=None, text=None):
    response = MagicMock()
    response.status_code = status_code
    if payload is None and text is not None:
        response.json.side_effect = ValueError('not json')
    else:
        response.json.return_value = payload
    response.text = text if text is not None else json.dumps(payload)
    response.content = response.text.encode() if response.text != 'null' else b''
    return response


class FakeClock:
    def __init__(self):
        self.now = 100.0
        self.sleeps = []

    def __call__(self):
        return self.now

    def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.now += seconds


class FakePublishClient:
    """Records what would have been sent to WordPress."""

    def __init__(self, pages_by_slug=None, error=None):
        self.pages_by_slug = pages_by_slug or {}
        self.error = error
        self.created = []
        self.lookups = []

    def get_page_by_slug(self, slug):
        self.lookups.append(slug)
        return self.pages_by_slug.get(slug)

    def create_page(self, params):
        if self.error:
            raise self.error
        self.created.append(params)
        page_id = 500 + len(self.created)
        return {'id': page_id, 'link': f'https://bins.example/{params.slug}/', 'slug': params.slug}


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


@pytest.fixture
def location():
    return Location.objects.create(city='Austin', state='Texas', state_abbr='TX', priority_rank=1)


@pytest.fixture
def create_job(location):
    def _create_job(status=ResearchJob.STATUS_COMPLETED, results=RESULTS, **kwargs):
        kwargs.setdefault('page_type', 'main_city')
        return ResearchJob.objects.create(
            location=location, status=status, results_json=results, **kwargs
        )
    return _create_job


class TestIntervalRateLimiter:

    def test_first_acquire_does_not_wait(self):
        clock = FakeClock()
        limiter = IntervalRateLimiter(1.0, clock=clock, sleep=clock.sleep)
        assert limiter.acquire() == 0.0
        assert clock.sleeps == []

    def test_spacing_between_acquisitions(self):
        clock = FakeClock()
        limiter = IntervalRateLimiter(1.0, clock=clock, sleep=clock.sleep)
        limiter.acquire()
        clock.now += 0.25
        assert limiter.acquire() == pytest.approx(0.75)
        limiter.acquire()
        assert clock.sleeps == [pytest.approx(0.75), pytest.approx(1.0)]

    def test_no_wait_after_interval_elapsed(self):
        clock = FakeClock()
        limiter = IntervalRateLimiter(1.0, clock=clock, sleep=clock.sleep)
        limiter.acquire()
        clock.now += 5
        assert limiter.acquire() == 0.0

    def test_negative_interval(self):
        with pytest.raises(ValueError):
            IntervalRateLimiter(-1)

    def test_from_settings(self, settings):
        settings.BULK_PUBLISH_INTERVAL_SECONDS = 2.5
        assert IntervalRateLimiter.from_settings().interval == 2.5


class TestWordPressClient:

    def _client(self):
        return WordPressClient('https://bins.example/', 'admin', 'app pass', timeout=5)

    def test_missing_configuration(self):
        with pytest.raises(PublishServiceError):
            WordPressClient('', 'admin', 'pass')

    def test_from_settings(self, settings):
        settings.WORDPRESS_SITE_URL = 'https://bins.example'
        settings.WORDPRESS_USERNAME = 'admin'
        settings.WORDPRESS_APP_PASSWORD = 'secret'
        settings.WORDPRESS_TIMEOUT = 12
        client = WordPressClient.from_settings()
        assert client.base_url == 'https://bins.example/wp-json/wp/v2'
        assert client.timeout == 12

    @patch('integrations.wordpress.requests.request')
    def test_create_page_payload(self, mock_request):
        mock_request.return_value = _response(201, {'id': 7, 'slug': 'austin-tx'})
        page = self._client().create_page(CreatePageParams(
            title='T', content='C', slug='austin-tx', status='publish',
            meta_description='D', focus_keyword='k', parent_id=3,
        ))

        assert page['id'] == 7
        args, kwargs = mock_request.call_args
        assert args == ('POST', 'https://bins.example/wp-json/wp/v2/pages')
        assert kwargs['timeout'] == 5
        assert kwargs['json']['parent'] == 3
        assert kwargs['json']['yoast_head_json'] == {'description': 'D', 'focus_keyword': 'k'}

    @patch('integrations.wordpress.requests.request')
    def test_create_page_without_seo_meta(self, mock_request):
        mock_request.return_value = _response(201, {'id': 7})
        self._client().create_page(CreatePageParams(title='T', content='C', slug='s'))
        payload = mock_request.call_args.kwargs['json']
        assert 'yoast_head_json' not in payload
        assert payload['status'] == 'draft'
        assert payload['parent'] == 0

    @patch('integrations.wordpress.requests.request')
    def test_upstream_error_carries_message(self, mock_request):
        mock_request.return_value = _response(400, {'code': 'rest_invalid_param', 'message': 'Invalid slug.'})
        with pytest.raises(PublishServiceError) as exc:
            self._client().create_page(CreatePageParams(title='T', content='C', slug='s'))
        assert exc.value.message == 'Failed to create page: Invalid slug.'
        assert exc.value.upstream_status == 400

    @patch('integrations.wordpress.requests.request')
    def test_transport_error(self, mock_request):
        mock_request.side_effect = requests.ConnectionError('connection refused')
        with pytest.raises(PublishServiceError):
            self._client().publish_page(4)

    @patch('integrations.wordpress.requests.request')
    def test_non_json_reply(self, mock_request):
        mock_request.return_value = _response(200, None, text='<html>maintenance</html>')
        with pytest.raises(PublishServiceError) as exc:
            self._client().create_page(CreatePageParams(title='T', content='C', slug='s'))
        assert exc.value.message == 'Failed to create page: invalid JSON response'
        assert exc.value.upstream_status == 200

        with pytest.raises(PublishServiceError):
            self._client().get_page_by_slug('austin-tx')

    @patch('integrations.wordpress.requests.request')
    def test_get_page_not_found(self, mock_request):
        mock_request.return_value = _response(404, {'code': 'rest_post_invalid_id', 'message': 'Invalid post ID.'})
        assert self._client().get_page(99) is None

    @patch('integrations.wordpress.requests.request')
    def test_get_page_server_error(self, mock_request):
        mock_request.return_value = _response(500, None, text='<html>boom</html>')
        with pytest.raises(PublishServiceError) as exc:
            self._client().get_page(99)
        assert exc.value.upstream_status == 500

    @patch('integrations.wordpress.requests.request')
    def test_get_page_by_slug(self, mock_request):
        mock_request.return_value = _response(200, [{'id': 11, 'slug': 'austin-tx'}])
        assert self._client().get_page_by_slug('austin-tx')['id'] == 11
        assert mock_request.call_args.kwargs['params'] == {'slug': 'austin-tx'}

        mock_request.return_value = _response(200, [])
        assert self._client().get_page_by_slug('nowhere') is None

    @patch('integrations.wordpress.requests.request')
    def test_update_page_drops_unset_fields(self, mock_request):
        mock_request.return_value = _response(200, {'id': 4, 'status': 'publish'})
        self._client().update_page(4, status='publish', parent_id=None)
        args, kwargs = mock_request.call_args
        assert args == ('POST', 'https://bins.example/wp-json/wp/v2/pages/4')
        assert kwargs['json'] == {'status': 'publish'}

    def test_update_page_unknown_field(self):
        with pytest.raises(TypeError):
            self._client().update_page(4, colour='red')

    @patch('integrations.wordpress.requests.request')
    def test_delete_page(self, mock_request):
        mock_request.return_value = _response(200, {'deleted': True})
        assert self._client().delete_page(4, force=True) is True
        assert mock_request.call_args.kwargs['params'] == {'force': 'true'}

    @patch('integrations.wordpress.requests.request')
    def test_bulk_publish_partitions(self, mock_request):
        def respond(method, url, **kwargs):
            if url.endswith('/pages/2'):
                return _response(500, {'message': 'Internal error'})
            if url.endswith('/pages/4'):
                return _response(200, None, text='<html>maintenance</html>')
            return _response(200, {'id': int(url.rsplit('/', 1)[1]), 'status': 'publish'})

        mock_request.side_effect = respond
        result = self._client().bulk_publish([1, 2, 3, 4])
        assert result == {'success': [1, 3], 'failed': [2, 4]}
        assert mock_request.call_count == 4

    @patch('integrations.wordpress.requests.request')
    def test_create_page_hierarchy(self, mock_request):
        def respond(method, url, **kwargs):
            slug = kwargs['json']['slug']
            if slug == 'broken':
                return _response(400, {'message': 'Bad slug'})
            return _response(201, {'id': 1 if slug == 'austin-tx' else 2, 'slug': slug,
                                   'parent': kwargs['json']['parent']})

        mock_request.side_effect = respond
        children = [
            CreatePageParams(title='Roofing', content='C', slug='austin-tx-roofing'),
            CreatePageParams(title='Broken', content='C', slug='broken'),
        ]
        result = self._client().create_page_hierarchy(
            CreatePageParams(title='Austin', content='C', slug='austin-tx'), children
        )
        assert result['parent']['id'] == 1
        assert [c['parent'] for c in result['children']] == [1]
        assert result['failed'] == [{'slug': 'broken', 'error': 'Failed to create page: Bad slug'}]
        assert children[0].parent_id is None

    @patch('integrations.wordpress.requests.request')
    def test_test_connection(self, mock_request):
        mock_request.return_value = _response(200, {'namespace': 'wp/v2'})
        assert self._client().test_connection() is True

        mock_request.return_value = _response(200, None, text='<html>maintenance</html>')
        assert self._client().test_connection() is False

        mock_request.side_effect = requests.Timeout('timed out')
        assert self._client().test_connection() is False

    @patch('integrations.wordpress.requests.request')
    def test_categories_and_tags(self, mock_request):
        mock_request.return_value = _response(200, [{'id': 1, 'name': 'Cities'}])
        assert self._client().get_categories() == [{'id': 1, 'name': 'Cities'}]
        assert mock_request.call_args.kwargs['params'] == {'per_page': 100}

        mock_request.return_value = _response(201, {'id': 9, 'name': 'texas'})
        assert self._client().create_tag('texas')['id'] == 9
        assert mock_request.call_args.kwargs['json'] == {'name': 'texas', 'description': ''}


@pytest.mark.django_db
class TestPublishWorkflow:

    def test_publish_main_city_page(self, create_job):
        job = create_job()
        client = FakePublishClient()
        outcome = PublishWorkflow(client).publish(job.id)

        params = client.created[0]
        assert params.slug == 'austin-tx'
        assert params.status == 'publish'
        assert params.focus_keyword == 'dumpster rental austin'
        assert params.excerpt == RESULTS['metaDescription']
        assert params.parent_id is None
        assert client.lookups == []

        record = PublishedPage.objects.get()
        assert outcome.record == record
        assert outcome.warning is None
        assert record.wp_post_id == 501
        assert record.research_job == job
        assert record.url == 'https://bins.example/austin-tx/'
        assert record.published_at is not None

    def test_topic_page_uses_city_page_as_parent(self, create_job):
        job = create_job(page_type='topic', topic='Roofing')
        client = FakePublishClient(pages_by_slug={'austin-tx': {'id': 42}})
        outcome = PublishWorkflow(client).publish(job.id)

        assert client.lookups == ['austin-tx']
        assert client.created[0].slug == 'austin-tx-roofing'
        assert client.created[0].parent_id == 42
        assert outcome.record.parent_post_id == 42

    def test_missing_parent_is_not_an_error(self, create_job):
        job = create_job(page_type='neighborhood', neighborhood='Hyde Park')
        client = FakePublishClient()
        PublishWorkflow(client).publish(job.id)
        assert client.created[0].slug == 'austin-tx-hyde-park'
        assert client.created[0].parent_id is None

    def test_missing_id(self):
        with pytest.raises(ValidationError):
            PublishWorkflow(FakePublishClient()).publish(None)

    def test_unknown_job(self):
        with pytest.raises(NotFoundError):
            PublishWorkflow(FakePublishClient()).publish(9999)

    def test_processing_job_is_rejected_without_cms_call(self, create_job):
        job = create_job(status=ResearchJob.STATUS_PROCESSING, results=None)
        client = FakePublishClient()
        with pytest.raises(InvalidStateError) as exc:
            PublishWorkflow(client).publish(job.id)
        assert exc.value.message == 'Research job is not completed'
        assert client.created == []
        assert client.lookups == []

    def test_completed_job_without_content(self, create_job):
        job = create_job(results=None)
        with pytest.raises(InvalidStateError) as exc:
            PublishWorkflow(FakePublishClient()).publish(job.id)
        assert exc.value.message == 'Research job has no content'

    def test_cms_failure_touches_no_records(self, create_job):
        job = create_job()
        client = FakePublishClient(error=PublishServiceError('Failed to create page: Sorry, you are not allowed'))
        with pytest.raises(PublishServiceError):
            PublishWorkflow(client).publish(job.id)
        assert PublishedPage.objects.count() == 0
        job.refresh_from_db()
        assert job.status == ResearchJob.STATUS_COMPLETED

    def test_bookkeeping_failure_becomes_warning(self, create_job):
        job = create_job()
        with patch('integrations.publishing.PublishedPage.objects.create', side_effect=DatabaseError('disk full')):
            outcome = PublishWorkflow(FakePublishClient()).publish(job.id)

        assert isinstance(outcome.warning, PersistenceWarning)
        assert str(outcome.warning) == 'Page published but record not saved'
        assert outcome.record is None
        assert outcome.page['id'] == 501

    def test_page_slug(self, create_job):
        job = create_job(page_type='topic', topic='Construction Debris')
        assert page_slug(job) == 'austin-tx-construction-debris'


class RecordingWorkflow:
    def __init__(self, failing_ids=()):
        self.failing_ids = set(failing_ids)
        self.attempts = []

    def publish(self, job_id):
        self.attempts.append(job_id)
        if job_id in self.failing_ids:
            raise PublishServiceError('Failed to create page: upstream down')
        return MagicMock()


class TestBulkPublishWorkflow:

    def _limiter(self, clock=None):
        clock = clock or FakeClock()
        return IntervalRateLimiter(1.0, clock=clock, sleep=clock.sleep)

    def test_second_failure_does_not_stop_batch(self):
        workflow = RecordingWorkflow(failing_ids={2})
        result = BulkPublishWorkflow(workflow, self._limiter()).publish_all([1, 2, 3])

        assert result.success == [1, 3]
        assert result.failed == [{'id': 2, 'error': 'Failed to create page: upstream down'}]
        assert workflow.attempts == [1, 2, 3]
        assert result.summary == {'total': 3, 'succeeded': 2, 'failed': 1}

    def test_items_are_paced(self):
        clock = FakeClock()
        BulkPublishWorkflow(RecordingWorkflow(), self._limiter(clock)).publish_all([1, 2, 3])
        assert clock.sleeps == [pytest.approx(1.0), pytest.approx(1.0)]

    def test_unexpected_error_is_recorded(self):
        workflow = RecordingWorkflow()
        workflow.publish = MagicMock(side_effect=[None, KeyError('id')])
        result = BulkPublishWorkflow(workflow, self._limiter()).publish_all([1, 2])
        assert result.success == [1]
        assert result.failed[0]['id'] == 2

    @pytest.mark.parametrize('job_ids', [[], None, 'abc', {'id': 1}])
    def test_invalid_input(self, job_ids):
        with pytest.raises(ValidationError):
            BulkPublishWorkflow(RecordingWorkflow(), self._limiter()).publish_all(job_ids)


@pytest.mark.django_db
class TestPublishAPI:

    @pytest.fixture(autouse=True)
    def no_delay(self, settings):
        settings.BULK_PUBLISH_INTERVAL_SECONDS = 0

    def test_publish(self, authenticated_client, create_job):
        client, _ = authenticated_client
        job = create_job()
        with patch('integrations.publishing.WordPressClient.from_settings', return_value=FakePublishClient()):
            response = client.post('/api/v1/publish/', {'researchJobId': job.id}, format='json')

        assert response.status_code == 201
        assert response.data['success'] is True
        assert response.data['wpPage']['id'] == 501
        assert response.data['pageRecord']['slug'] == 'austin-tx'

    def test_publish_with_warning(self, authenticated_client, create_job):
        client, _ = authenticated_client
        job = create_job()
        with patch('integrations.publishing.WordPressClient.from_settings', return_value=FakePublishClient()), \
                patch('integrations.publishing.PublishedPage.objects.create', side_effect=DatabaseError('locked')):
            response = client.post('/api/v1/publish/', {'researchJobId': job.id}, format='json')

        assert response.status_code == 201
        assert response.data['warning'] == 'Page published but record not saved'
        assert 'pageRecord' not in response.data

    def test_publish_missing_id(self, authenticated_client):
        client, _ = authenticated_client
        response = client.post('/api/v1/publish/', {}, format='json')
        assert response.status_code == 400
        assert response.data == {'error': 'Missing required field: researchJobId'}

    def test_publish_unknown_job(self, authenticated_client):
        client, _ = authenticated_client
        response = client.post('/api/v1/publish/', {'researchJobId': 9999}, format='json')
        assert response.status_code == 404
        assert response.data == {'error': 'Research job not found'}

    def test_publish_incomplete_job(self, authenticated_client, create_job):
        client, _ = authenticated_client
        job = create_job(status=ResearchJob.STATUS_FAILED, results=None)
        response = client.post('/api/v1/publish/', {'researchJobId': job.id}, format='json')
        assert response.status_code == 400
        assert response.data == {'error': 'Research job is not completed'}

    def test_publish_cms_failure(self, authenticated_client, create_job):
        client, _ = authenticated_client
        job = create_job()
        failing = FakePublishClient(error=PublishServiceError('Failed to create page: Forbidden', status_code=403))
        with patch('integrations.publishing.WordPressClient.from_settings', return_value=failing):
            response = client.post('/api/v1/publish/', {'researchJobId': job.id}, format='json')
        assert response.status_code == 500
        assert response.data == {'error': 'Failed to create page: Forbidden'}

    @patch('integrations.wordpress.requests.request')
    def test_publish_html_reply(self, mock_request, authenticated_client, create_job):
        client, _ = authenticated_client
        job = create_job()
        mock_request.return_value = _response(200, None, text='<html>maintenance</html>')
        wordpress = WordPressClient('https://bins.example/', 'admin', 'app pass', timeout=5)
        with patch('integrations.publishing.WordPressClient.from_settings', return_value=wordpress):
            response = client.post('/api/v1/publish/', {'researchJobId': job.id}, format='json')
        assert response.status_code == 500
        assert response.data == {'error': 'Failed to create page: invalid JSON response'}
        assert not PublishedPage.objects.exists()

    def test_bulk_publish(self, authenticated_client, create_job):
        client, _ = authenticated_client
        first = create_job()
        pending = create_job(status=ResearchJob.STATUS_PROCESSING, results=None, page_type='topic', topic='roofing')
        third = create_job(page_type='neighborhood', neighborhood='Hyde Park')

        with patch('integrations.publishing.WordPressClient.from_settings', return_value=FakePublishClient()):
            response = client.put('/api/v1/publish/', {
                'researchJobIds': [first.id, pending.id, third.id],
            }, format='json')

        assert response.status_code == 200
        assert response.data['success'] is True
        assert response.data['results']['success'] == [first.id, third.id]
        assert response.data['results']['failed'] == [
            {'id': pending.id, 'error': 'Research job is not completed'},
        ]
        assert response.data['summary'] == {'total': 3, 'succeeded': 2, 'failed': 1}
        assert PublishedPage.objects.count() == 2

    def test_bulk_publish_empty(self, authenticated_client):
        client, _ = authenticated_client
        response = client.put('/api/v1/publish/', {'researchJobIds': []}, format='json')
        assert response.status_code == 400
        assert response.data == {'error': 'Invalid or empty researchJobIds array'}

    def test_bulk_publish_array_body(self, authenticated_client, create_job):
        client, _ = authenticated_client
        job = create_job()
        response = client.put('/api/v1/publish/', [job.id], format='json')
        assert response.status_code == 400
        assert response.data == {'error': 'Invalid or empty researchJobIds array'}
        assert not PublishedPage.objects.exists()

    def test_list_pages(self, authenticated_client, create_job, location):
        client, _ = authenticated_client
        job = create_job()
        PublishedPage.objects.create(
            location=location, research_job=job, wp_post_id=1, url='https://bins.example/austin-tx/',
            page_type='main_city', title='Austin', slug='austin-tx', status='publish',
        )
        other = Location.objects.create(city='Dallas', state='Texas', state_abbr='TX')
        PublishedPage.objects.create(
            location=other, wp_post_id=2, url='https://bins.example/dallas-tx/',
            page_type='main_city', title='Dallas', slug='dallas-tx', status='draft',
        )

        response = client.get('/api/v1/pages/', {'cityId': location.id})
        assert response.status_code == 200
        assert [p['slug'] for p in response.data['pages']] == ['austin-tx']
        assert response.data['pages'][0]['research_job_id'] == job.id

        response = client.get('/api/v1/pages/', {'status': 'draft'})
        assert [p['slug'] for p in response.data['pages']] == ['dallas-tx']

    def test_sitemap(self, api_client, location):
        PublishedPage.objects.create(
            location=location, wp_post_id=1, url='https://bins.example/austin-tx/',
            page_type='main_city', title='Austin', slug='austin-tx', status='publish',
        )
        PublishedPage.objects.create(
            location=location, wp_post_id=2, url='https://bins.example/austin-tx-draft/',
            page_type='topic', title='Draft', slug='austin-tx-draft', status='draft',
        )
        response = api_client.get('/api/v1/pages/sitemap.xml')
        assert response.status_code == 200
        assert response['Content-Type'] == 'application/xml'
        body = response.content.decode()
        assert '<loc>https://bins.example/austin-tx/</loc>' in body
        assert 'austin-tx-draft' not in body
        assert '<priority>1.0</priority>' in body
