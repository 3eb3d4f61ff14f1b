"""
Tests for locations app - Location and Keyword management.
"""
from io import StringIO

import pytest
from django.contrib.auth import get_user_model
from django.core.management import call_command
from django.core.management.base import CommandError
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken

from integrations.models import PublishedPage
from seo.models import ResearchJob
from .models import Keyword, Location


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def user_model():
    return get_user_model()


@pytest.fixture
def create_user(user_model):
    def _create_user(email="test@example.com", password="testpass123", role=None):
        return user_model.objects.create_user(
            email=email,
            username=email,
            password=password,
            role=role or user_model.ROLE_EDITOR,
        )
    return _create_user


def _client_for(user):
    client = APIClient()
    refresh = RefreshToken.for_user(user)
    client.credentials(HTTP_AUTHORIZATION=f'Bearer {str(refresh.access_token)}')
    return client


@pytest.fixture
def authenticated_client(create_user):
    user = create_user()
    return _client_for(user), user


@pytest.fixture
def admin_client(create_user, user_model):
    user = create_user(email='admin@example.com', role=user_model.ROLE_ADMIN)
    return _client_for(user), user


@pytest.fixture
def create_location():
    def _create_location(city="Austin", state="Texas", state_abbr="TX", **kwargs):
        return Location.objects.create(city=city, state=state, state_abbr=state_abbr, **kwargs)
    return _create_location


@pytest.mark.django_db
class TestLocationManagement:

    def test_list_ordered_by_priority(self, authenticated_client, create_location):
        client, _ = authenticated_client
        create_location(city='Dallas', priority_rank=2)
        create_location(city='Austin', priority_rank=1)

        response = client.get('/api/v1/locations/')
        assert response.status_code == 200
        assert [c['city'] for c in response.data['results']] == ['Austin', 'Dallas']

    def test_list_includes_workflow_counts(self, authenticated_client, create_location):
        client, _ = authenticated_client
        austin = create_location(priority_rank=1)
        job = ResearchJob.objects.create(location=austin, page_type='main_city', status='completed')
        ResearchJob.objects.create(location=austin, page_type='topic', topic='roofing', status='failed')
        PublishedPage.objects.create(
            location=austin, research_job=job, wp_post_id=10, url='https://example.com/austin-tx/',
            page_type='main_city', title='Austin', slug='austin-tx',
        )

        response = client.get('/api/v1/locations/')
        row = response.data['results'][0]
        assert row['total_jobs'] == 2
        assert row['completed_jobs'] == 1
        assert row['published_pages'] == 1

    def test_retrieve_counts(self, authenticated_client, create_location):
        client, _ = authenticated_client
        austin = create_location()
        ResearchJob.objects.create(location=austin, page_type='main_city', status='completed')

        response = client.get(f'/api/v1/locations/{austin.id}/')
        assert response.status_code == 200
        assert response.data['completed_jobs'] == 1

    def test_filters(self, authenticated_client, create_location):
        client, _ = authenticated_client
        create_location(city='Austin')
        create_location(city='Denver', state='Colorado', state_abbr='CO')

        response = client.get('/api/v1/locations/', {'state': 'co'})
        assert [c['city'] for c in response.data['results']] == ['Denver']

        response = client.get('/api/v1/locations/', {'search': 'aus'})
        assert [c['city'] for c in response.data['results']] == ['Austin']

    def test_editor_cannot_create(self, authenticated_client):
        client, _ = authenticated_client
        response = client.post('/api/v1/locations/', {
            'city': 'Austin', 'state': 'Texas', 'state_abbr': 'TX',
        }, format='json')
        assert response.status_code == 403

    def test_admin_creates_location(self, admin_client):
        client, _ = admin_client
        response = client.post('/api/v1/locations/', {
            'city': 'Austin', 'state': 'Texas', 'state_abbr': 'tx',
            'latitude': 30.27, 'longitude': -97.74, 'zip_codes': ['78701', 78702],
        }, format='json')
        assert response.status_code == 201
        location = Location.objects.get()
        assert location.state_abbr == 'TX'
        assert location.zip_codes == ['78701', '78702']
        assert location.has_coordinates

    def test_invalid_state_abbr(self, admin_client):
        client, _ = admin_client
        response = client.post('/api/v1/locations/', {
            'city': 'Austin', 'state': 'Texas', 'state_abbr': 'T1',
        }, format='json')
        assert response.status_code == 400
        assert 'state_abbr' in response.data

    def test_invalid_latitude(self, admin_client):
        client, _ = admin_client
        response = client.post('/api/v1/locations/', {
            'city': 'Austin', 'state': 'Texas', 'state_abbr': 'TX', 'latitude': 123,
        }, format='json')
        assert response.status_code == 400

    def test_admin_updates_and_deletes(self, admin_client, create_location):
        client, _ = admin_client
        austin = create_location()

        response = client.patch(f'/api/v1/locations/{austin.id}/', {'priority_rank': 5}, format='json')
        assert response.status_code == 200
        austin.refresh_from_db()
        assert austin.priority_rank == 5

        response = client.delete(f'/api/v1/locations/{austin.id}/')
        assert response.status_code == 204
        assert not Location.objects.exists()

    def test_unauthenticated(self, api_client):
        response = api_client.get('/api/v1/locations/')
        assert response.status_code == 401


@pytest.mark.django_db
class TestKeywords:

    def test_list_filtered_by_city(self, authenticated_client, create_location):
        client, _ = authenticated_client
        austin = create_location()
        dallas = create_location(city='Dallas')
        Keyword.objects.create(location=austin, keyword='dumpster rental austin', search_volume=900)
        Keyword.objects.create(location=dallas, keyword='dumpster rental dallas', search_volume=700)

        response = client.get('/api/v1/keywords/', {'cityId': austin.id})
        assert response.status_code == 200
        results = response.data['results']
        assert [k['keyword'] for k in results] == ['dumpster rental austin']
        assert results[0]['location']['city'] == 'Austin'

    def test_create_keyword(self, authenticated_client, create_location):
        client, _ = authenticated_client
        austin = create_location()
        response = client.post('/api/v1/keywords/', {
            'location_id': austin.id, 'keyword': 'roll off dumpster austin', 'difficulty': 40,
        }, format='json')
        assert response.status_code == 201
        assert Keyword.objects.get().target_rank == 1

    def test_difficulty_range(self, authenticated_client, create_location):
        client, _ = authenticated_client
        austin = create_location()
        response = client.post('/api/v1/keywords/', {
            'location_id': austin.id, 'keyword': 'x', 'difficulty': 150,
        }, format='json')
        assert response.status_code == 400

    def test_in_top_ten(self, create_location):
        austin = create_location()
        assert Keyword(location=austin, keyword='a', current_rank=3).in_top_ten
        assert not Keyword(location=austin, keyword='b', current_rank=11).in_top_ten
        assert not Keyword(location=austin, keyword='c').in_top_ten


@pytest.mark.django_db
class TestImportLocations:

    def test_creates_and_updates(self, tmp_path, create_location):
        create_location(city='Austin', priority_rank=9)
        csv_file = tmp_path / 'cities.csv'
        csv_file.write_text(
            'city,state,state_abbr,county,population,latitude,longitude,priority_rank\n'
            'Austin,Texas,tx,Travis,"961,855",30.27,-97.74,1\n'
            'Dallas,Texas,TX,Dallas,1304379,,,2\n'
        )
        out = StringIO()
        call_command('import_locations', str(csv_file), stdout=out)

        assert Location.objects.count() == 2
        austin = Location.objects.get(city='Austin')
        assert austin.priority_rank == 1
        assert austin.population == 961855
        dallas = Location.objects.get(city='Dallas')
        assert dallas.latitude is None
        assert '1 created, 1 updated' in out.getvalue()

    def test_missing_columns(self, tmp_path):
        csv_file = tmp_path / 'cities.csv'
        csv_file.write_text('city,state\nAustin,Texas\n')
        with pytest.raises(CommandError):
            call_command('import_locations', str(csv_file))

    def test_missing_file(self, tmp_path):
        with pytest.raises(CommandError):
            call_command('import_locations', str(tmp_path / 'nope.csv'))
