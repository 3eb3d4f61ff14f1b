"""
Tests for content generation, schema helpers and the research job workflow.
"""
import json
import re
from unittest.mock import patch

import pytest
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken

from citypages_backend.exceptions import (
    GenerationServiceError,
    NotFoundError,
    ResponseParseError,
    ValidationError,
)
from locations.models import Location
from .content_generation import (
    ContentGenerationService,
    ContentRequest,
    ContentRequestBuilder,
    ContentResponseParser,
    count_words,
    get_page_type_targets,
    parse_questions,
)
from .models import ResearchJob
from .research import ResearchJobWorkflow
from .seo_utils import (
    BreadcrumbItem,
    FAQItem,
    LocalBusinessSchema,
    OrganizationSchema,
    PostalAddress,
    calculate_readability_score,
    extract_keywords,
    generate_breadcrumb_schema,
    generate_canonical_tag,
    generate_faq_schema,
    generate_local_business_schema,
    generate_meta_description,
    generate_open_graph_tags,
    generate_organization_schema,
    generate_sitemap_entry,
    generate_slug,
    suggest_internal_links,
)

User = get_user_model()

VALID_REPLY = (
    'Here is your content:\n```json\n'
    '{"title":"T","metaDescription":"D","content":"<p>a b c</p>",'
    '"questions":[{"question":"Q","answer":"A"}],"keywords":["k"]}'
    '\n```\nLet me know if you need changes.'
)


class FakeGenerationClient:
    """In-memory stand-in for a provider client."""

    def __init__(self, reply=VALID_REPLY, error=None):
        self.reply = reply
        self.error = error
        self.prompts = []

    def complete(self, prompt, max_tokens=None, temperature=None):
        self.prompts.append(prompt)
        if self.error:
            raise self.error
        return self.reply


def _ld_payload(fragment):
    match = re.match(r'<script type="application/ld\+json">(.*)</script>$', fragment, re.S)
    assert match, fragment
    return json.loads(match.group(1))


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
    return Location.objects.create(
        city='Austin', state='Texas', state_abbr='TX',
        latitude=30.2672, longitude=-97.7431, priority_rank=1,
    )


class TestSlug:

    def test_city_and_state(self):
        assert generate_slug('Austin', 'TX') == 'austin-tx'

    def test_punctuation_is_collapsed(self):
        assert generate_slug('New York!', 'NY') == 'new-york-ny'

    def test_empty_parts_are_skipped(self):
        assert generate_slug('Austin', '', 'TX') == 'austin-tx'

    def test_empty_input(self):
        assert generate_slug() == ''
        assert generate_slug('!!!') == ''

    def test_output_shape(self):
        pattern = re.compile(r'^[a-z0-9]+(-[a-z0-9]+)*$')
        samples = [
            ('  Saint  Louis ', 'MO'), ('Winston-Salem', 'NC'), ('Coeur d’Alene', 'ID'),
            ('--a--', '--b--'), ('Roofing & Siding', 'Round Rock', 'TX'), ('100 Oaks',),
        ]
        for parts in samples:
            slug = generate_slug(*parts)
            assert slug == '' or pattern.match(slug), slug


class TestSchemaFormatters:

    def test_local_business_omits_missing_optionals(self):
        fragment = generate_local_business_schema(LocalBusinessSchema(
            name='Dumpster Rental Austin',
            description='D',
            address=PostalAddress(address_locality='Austin', address_region='TX'),
            url='https://example.com/austin-tx',
        ))
        payload = _ld_payload(fragment)
        assert payload['@type'] == 'LocalBusiness'
        assert payload['address']['addressLocality'] == 'Austin'
        for key in ('geo', 'telephone', 'priceRange', 'areaServed'):
            assert key not in payload
        assert 'streetAddress' not in payload['address']
        assert 'null' not in fragment

    def test_local_business_area_served(self):
        payload = _ld_payload(generate_local_business_schema(LocalBusinessSchema(
            name='N', description='D', url='https://example.com',
            address=PostalAddress(address_locality='Austin', address_region='TX'),
            area_served=['Austin', 'Round Rock'], telephone='555-0100',
        )))
        assert payload['areaServed'][1] == {'@type': 'City', 'name': 'Round Rock'}
        assert payload['telephone'] == '555-0100'

    def test_faq_schema(self):
        payload = _ld_payload(generate_faq_schema([FAQItem('Q1', 'A1'), FAQItem('Q2', 'A2')]))
        assert payload['@type'] == 'FAQPage'
        assert payload['mainEntity'][0]['name'] == 'Q1'
        assert payload['mainEntity'][1]['acceptedAnswer'] == {'@type': 'Answer', 'text': 'A2'}

    def test_breadcrumb_positions_start_at_one(self):
        payload = _ld_payload(generate_breadcrumb_schema([
            BreadcrumbItem('Home', 'https://example.com'),
            BreadcrumbItem('Austin', 'https://example.com/austin-tx'),
        ]))
        assert [i['position'] for i in payload['itemListElement']] == [1, 2]

    def test_organization_optional_fields(self):
        payload = _ld_payload(generate_organization_schema(
            OrganizationSchema(name='Acme', url='https://acme.test')
        ))
        assert payload == {
            '@context': 'https://schema.org', '@type': 'Organization',
            'name': 'Acme', 'url': 'https://acme.test',
        }


class TestMetaHelpers:

    def test_meta_description_known_topic(self):
        text = generate_meta_description('Austin', 'TX', 'topic', 'Roofing')
        assert text.startswith('Roofing dumpster rental Austin, TX')

    def test_meta_description_falls_back_to_main_city(self):
        text = generate_meta_description('Austin', 'TX', 'topic', 'landscaping')
        assert text.startswith('Professional dumpster rental in Austin, TX')

    def test_open_graph_escapes_attributes(self):
        tags = generate_open_graph_tags('Fast "Same Day" Service', 'D', 'https://example.com')
        assert 'content="Fast &quot;Same Day&quot; Service"' in tags
        assert 'og:image' not in tags

    def test_canonical(self):
        assert generate_canonical_tag('https://example.com/a') == '<link rel="canonical" href="https://example.com/a" />'

    def test_extract_keywords_limit(self):
        keywords = extract_keywords('Austin', 'TX', limit=3)
        assert keywords == ['dumpster rental Austin', 'Austin dumpster rental', 'dumpster Austin TX']

    def test_internal_links_same_city_other_type(self):
        current = {'city': 'Austin', 'page_type': 'main_city', 'url': '/austin-tx'}
        available = [
            {'city': 'Austin', 'page_type': 'topic', 'title': 'Roofing', 'url': '/austin-tx-roofing'},
            {'city': 'Austin', 'page_type': 'main_city', 'title': 'Austin', 'url': '/austin-tx'},
            {'city': 'Dallas', 'page_type': 'topic', 'title': 'Roofing', 'url': '/dallas-tx-roofing'},
        ]
        links = suggest_internal_links(current, available)
        assert [l['url'] for l in links] == ['/austin-tx-roofing']

    def test_readability_empty(self):
        assert calculate_readability_score('') == {'score': 0, 'level': 'Unknown'}

    def test_readability_simple_text_is_easy(self):
        result = calculate_readability_score('<p>The cat sat. The dog ran.</p>')
        assert result['level'] == 'Very Easy'

    def test_sitemap_entry(self):
        entry = generate_sitemap_entry('https://example.com/a', '2026-01-01', 'monthly', 0.8)
        assert '<changefreq>monthly</changefreq>' in entry
        assert '<priority>0.8</priority>' in entry


class TestContentRequestBuilder:

    def _request(self, **overrides):
        params = dict(city='Austin', state='Texas', page_type='main_city',
                      target_word_count=8500, target_question_count=45)
        params.update(overrides)
        return ContentRequest(**params)

    def test_preamble_carries_targets_and_shape(self):
        prompt = ContentRequestBuilder().build(self._request())
        assert 'TARGET LOCATION: Austin, Texas' in prompt
        assert 'TARGET WORD COUNT: 8500 words' in prompt
        assert 'TARGET QUESTIONS: 45 questions' in prompt
        for key in ('"title"', '"metaDescription"', '"content"', '"questions"', '"keywords"'):
            assert key in prompt
        assert 'MAIN CITY PAGE FOCUS' in prompt

    def test_topic_is_injected(self):
        prompt = ContentRequestBuilder().build(self._request(page_type='topic', topic='roofing'))
        assert 'TOPIC: roofing' in prompt
        assert 'TOPIC PAGE FOCUS (roofing)' in prompt
        assert 'EXAMPLE QUESTIONS FOR ROOFING' in prompt

    def test_neighborhood_is_injected(self):
        prompt = ContentRequestBuilder().build(
            self._request(page_type='neighborhood', neighborhood='Hyde Park')
        )
        assert 'NEIGHBORHOOD: Hyde Park' in prompt
        assert 'NEIGHBORHOOD PAGE FOCUS (Hyde Park)' in prompt

    def test_unknown_page_type(self):
        with pytest.raises(ValidationError):
            ContentRequestBuilder().build(self._request(page_type='blog'))

    def test_niche_from_settings(self, settings):
        settings.CONTENT_BUSINESS_NICHE = 'portable toilet rental'
        prompt = ContentRequestBuilder().build(self._request())
        assert 'for a portable toilet rental business' in prompt


class TestContentResponseParser:

    def test_reply_wrapped_in_prose_and_fence(self):
        content = ContentResponseParser().parse(VALID_REPLY)
        assert content.title == 'T'
        assert content.meta_description == 'D'
        assert content.word_count == 3
        assert content.questions_count == 1
        assert content.keywords == ['k']

    def test_no_json_object(self):
        with pytest.raises(ResponseParseError):
            ContentResponseParser().parse('Sorry, I cannot help with that.')

    def test_invalid_json(self):
        with pytest.raises(ResponseParseError):
            ContentResponseParser().parse('{"title": "T", }')

    def test_missing_required_field(self):
        with pytest.raises(ResponseParseError) as exc:
            ContentResponseParser().parse('{"title": "T", "content": "<p>x</p>"}')
        assert 'metaDescription' in exc.value.message

    def test_lists_default_to_empty(self):
        content = ContentResponseParser().parse('{"title":"T","metaDescription":"D","content":""}')
        assert content.questions == []
        assert content.keywords == []
        assert content.word_count == 0
        assert content.questions_count == 0

    def test_count_words_strips_tags(self):
        assert count_words('<h2>Dumpster</h2><p>rental in<br/>Austin</p>') == 4


class TestQuestions:

    def test_parse_questions(self):
        text = 'Here you go: [{"question": "Q?", "answer": "A."}, {"bad": 1}]'
        assert parse_questions(text) == [{'question': 'Q?', 'answer': 'A.'}]

    def test_parse_questions_without_array(self):
        assert parse_questions('nothing here') == []

    def test_generate_questions_uses_smaller_budget(self):
        client = FakeGenerationClient(reply='[{"question": "Q", "answer": "A"}]')
        calls = []
        original = client.complete

        def recording_complete(prompt, max_tokens=None, temperature=None):
            calls.append(max_tokens)
            return original(prompt, max_tokens, temperature)

        client.complete = recording_complete
        questions = ContentGenerationService(client).generate_questions('Austin', 'TX', 'roofing', count=5)
        assert questions == [{'question': 'Q', 'answer': 'A'}]
        assert calls == [8000]
        assert 'Generate 5 specific' in client.prompts[0]


class TestTargets:

    def test_neighborhood_targets(self):
        assert get_page_type_targets('neighborhood') == (3500, 18)

    def test_unknown_falls_back_to_main_city(self):
        assert get_page_type_targets('unknown') == (8500, 45)


@pytest.mark.django_db
class TestResearchJobWorkflow:

    def test_completed_job(self, location):
        client = FakeGenerationClient()
        outcome = ResearchJobWorkflow(client).run(location.id, 'main_city')

        job = ResearchJob.objects.get(id=outcome.job.id)
        assert job.status == ResearchJob.STATUS_COMPLETED
        assert job.word_count == 3
        assert job.questions_count == 1
        assert job.completed_at is not None
        assert job.error_message is None
        assert job.results_json['title'] == 'T'
        assert job.results_json['keywords'] == ['k']
        assert 'TARGET WORD COUNT: 8500 words' in client.prompts[0]

    def test_content_carries_schema_fragments(self, location, settings):
        settings.SITE_BASE_URL = 'https://bins.example'
        outcome = ResearchJobWorkflow(FakeGenerationClient()).run(location.id, 'main_city')
        body = outcome.job.results_json['content']
        assert body.startswith('<p>a b c</p>')
        assert '"FAQPage"' in body
        assert '"name": "Dumpster Rental Austin"' in body
        assert '"url": "https://bins.example/austin-tx"' in body
        assert '"GeoCoordinates"' in body

    def test_generation_failure_marks_job_failed(self, location):
        client = FakeGenerationClient(error=GenerationServiceError('claude request failed: overloaded'))
        with pytest.raises(GenerationServiceError):
            ResearchJobWorkflow(client).run(location.id, 'topic', topic='roofing')

        job = ResearchJob.objects.get()
        assert job.status == ResearchJob.STATUS_FAILED
        assert job.error_message == 'claude request failed: overloaded'
        assert job.results_json is None

    def test_parse_failure_marks_job_failed(self, location):
        with pytest.raises(ResponseParseError):
            ResearchJobWorkflow(FakeGenerationClient(reply='no json')).run(location.id, 'main_city')
        job = ResearchJob.objects.get()
        assert job.status == ResearchJob.STATUS_FAILED
        assert job.results_json is None

    def test_missing_fields_write_nothing(self, location):
        with pytest.raises(ValidationError):
            ResearchJobWorkflow(FakeGenerationClient()).run(None, 'main_city')
        with pytest.raises(ValidationError):
            ResearchJobWorkflow(FakeGenerationClient()).run(location.id, '')
        assert ResearchJob.objects.count() == 0

    def test_invalid_page_type(self, location):
        with pytest.raises(ValidationError):
            ResearchJobWorkflow(FakeGenerationClient()).run(location.id, 'blog')
        assert ResearchJob.objects.count() == 0

    def test_unknown_location(self):
        client = FakeGenerationClient()
        with pytest.raises(NotFoundError):
            ResearchJobWorkflow(client).run(9999, 'main_city')
        assert ResearchJob.objects.count() == 0
        assert client.prompts == []

    @pytest.mark.parametrize('city_id', [{'id': 1}, [1]])
    def test_non_scalar_location_id(self, location, city_id):
        with pytest.raises(NotFoundError):
            ResearchJobWorkflow(FakeGenerationClient()).run(city_id, 'main_city')
        assert ResearchJob.objects.count() == 0

    def test_unexpected_error_is_logged_with_traceback(self, location, caplog):
        with patch('seo.research.build_enhanced_content', side_effect=AttributeError('city')):
            with pytest.raises(AttributeError):
                ResearchJobWorkflow(FakeGenerationClient()).run(location.id, 'main_city')

        job = ResearchJob.objects.get()
        assert job.status == ResearchJob.STATUS_FAILED
        assert job.error_message == 'city'
        failures = [r for r in caplog.records if r.name == 'seo.research' and 'failed' in r.getMessage()]
        assert failures and failures[0].exc_info is not None


@pytest.mark.django_db
class TestResearchAPI:

    def test_create_job(self, authenticated_client, location):
        client, _ = authenticated_client
        with patch('seo.research.get_generation_client', return_value=FakeGenerationClient()):
            response = client.post('/api/v1/research/', {
                'cityId': location.id,
                'pageType': 'neighborhood',
                'neighborhood': 'Hyde Park',
            }, format='json')

        assert response.status_code == 201
        assert response.data['success'] is True
        assert response.data['job']['status'] == 'completed'
        assert response.data['job']['wordCount'] == 3
        assert response.data['job']['questionsCount'] == 1
        assert response.data['content']['title'] == 'T'

    def test_create_job_missing_fields(self, authenticated_client):
        client, _ = authenticated_client
        response = client.post('/api/v1/research/', {'pageType': 'main_city'}, format='json')
        assert response.status_code == 400
        assert response.data == {'error': 'Missing required fields: cityId, pageType'}

    def test_create_job_unknown_city(self, authenticated_client):
        client, _ = authenticated_client
        response = client.post('/api/v1/research/', {'cityId': 9999, 'pageType': 'main_city'}, format='json')
        assert response.status_code == 404
        assert response.data == {'error': 'City not found'}

    def test_create_job_non_scalar_city_id(self, authenticated_client, location):
        client, _ = authenticated_client
        response = client.post('/api/v1/research/', {
            'cityId': {'id': location.id}, 'pageType': 'main_city',
        }, format='json')
        assert response.status_code == 404
        assert response.data == {'error': 'City not found'}

    def test_create_job_array_body(self, authenticated_client):
        client, _ = authenticated_client
        response = client.post('/api/v1/research/', [1, 'main_city'], format='json')
        assert response.status_code == 400
        assert response.data == {'error': 'Missing required fields: cityId, pageType'}

    def test_create_job_generation_failure(self, authenticated_client, location):
        client, _ = authenticated_client
        failing = FakeGenerationClient(error=GenerationServiceError('claude request failed: timeout'))
        with patch('seo.research.get_generation_client', return_value=failing):
            response = client.post('/api/v1/research/', {
                'cityId': location.id, 'pageType': 'main_city',
            }, format='json')
        assert response.status_code == 500
        assert response.data == {'error': 'claude request failed: timeout'}
        assert ResearchJob.objects.get().status == ResearchJob.STATUS_FAILED

    def test_list_jobs_newest_first_with_filters(self, authenticated_client, location):
        client, _ = authenticated_client
        other = Location.objects.create(city='Dallas', state='Texas', state_abbr='TX')
        first = ResearchJob.objects.create(location=location, page_type='main_city', status='completed')
        second = ResearchJob.objects.create(location=location, page_type='topic', topic='roofing', status='failed')
        ResearchJob.objects.create(location=other, page_type='main_city', status='completed')

        response = client.get('/api/v1/research/', {'cityId': location.id})
        assert response.status_code == 200
        assert [j['id'] for j in response.data['jobs']] == [second.id, first.id]
        assert response.data['jobs'][0]['location']['city'] == 'Austin'

        response = client.get('/api/v1/research/', {'status': 'completed'})
        assert len(response.data['jobs']) == 2

    def test_job_detail(self, authenticated_client, location):
        client, _ = authenticated_client
        job = ResearchJob.objects.create(
            location=location, page_type='main_city', status='completed',
            results_json={'title': 'T'},
        )
        response = client.get(f'/api/v1/research/{job.id}/')
        assert response.status_code == 200
        assert response.data['results_json'] == {'title': 'T'}

        response = client.get('/api/v1/research/9999/')
        assert response.status_code == 404

    def test_requires_authentication(self, api_client):
        response = api_client.get('/api/v1/research/')
        assert response.status_code == 401
