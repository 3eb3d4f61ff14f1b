"""
Research job workflow: generate the content for one city page and record it.

Each accepted run writes exactly two times: an insert in `processing`, then a
single update to `completed` (with results) or `failed` (with the message).
"""
import logging
from dataclasses import dataclass

from django.conf import settings
from django.utils import timezone

from ai.providers import get_generation_client
from citypages_backend.exceptions import CityPagesError, NotFoundError, ValidationError
from locations.models import Location

from .content_generation import (
    PAGE_TYPES,
    ContentRequest,
    ContentRequestBuilder,
    ContentResponseParser,
    GeneratedContent,
    get_page_type_targets,
)
from .models import ResearchJob
from .seo_utils import (
    FAQItem,
    GeoPoint,
    LocalBusinessSchema,
    PostalAddress,
    generate_faq_schema,
    generate_local_business_schema,
    generate_slug,
)

logger = logging.getLogger(__name__)


@dataclass
class ResearchOutcome:
    job: ResearchJob
    content: GeneratedContent


def build_enhanced_content(location: Location, content: GeneratedContent) -> str:
    """Page body followed by the FAQ and local-business JSON-LD fragments."""
    faq_schema = generate_faq_schema(
        FAQItem(question=q.get('question', ''), answer=q.get('answer', ''))
        for q in content.questions
        if isinstance(q, dict)
    )

    geo = None
    if location.has_coordinates:
        geo = GeoPoint(latitude=location.latitude, longitude=location.longitude)

    base_url = getattr(settings, 'SITE_BASE_URL', 'https://example.com').rstrip('/')
    business_schema = generate_local_business_schema(LocalBusinessSchema(
        name=f"{settings.BUSINESS_NAME_PREFIX} {location.city}",
        description=content.meta_description,
        address=PostalAddress(
            address_locality=location.city,
            address_region=location.state_abbr,
        ),
        geo=geo,
        url=f"{base_url}/{generate_slug(location.city, location.state_abbr)}",
    ))

    return f"{content.content}\n{faq_schema}\n{business_schema}"


class ResearchJobWorkflow:
    """
    Runs one research job end to end.

    workflow = ResearchJobWorkflow(get_generation_client())
    outcome = workflow.run(location_id=3, page_type='topic', topic='roofing')
    """

    def __init__(self, generation_client=None, builder: ContentRequestBuilder = None,
                 parser: ContentResponseParser = None):
        # None means the configured provider, resolved once input is validated
        self.client = generation_client
        self.builder = builder or ContentRequestBuilder()
        self.parser = parser or ContentResponseParser()

    def run(self, location_id, page_type, topic=None, neighborhood=None) -> ResearchOutcome:
        if not location_id or not page_type:
            raise ValidationError("Missing required fields: cityId, pageType")
        if page_type not in PAGE_TYPES:
            raise ValidationError(
                f"Invalid pageType '{page_type}'. Expected one of: {', '.join(PAGE_TYPES)}"
            )

        try:
            location = Location.objects.get(pk=location_id)
        except (Location.DoesNotExist, ValueError, TypeError):
            raise NotFoundError("City not found")

        if self.client is None:
            self.client = get_generation_client()

        job = ResearchJob.objects.create(
            location=location,
            page_type=page_type,
            topic=topic or None,
            neighborhood=neighborhood or None,
            status=ResearchJob.STATUS_PROCESSING,
        )
        logger.info(f"Research job {job.id} started for {location} ({page_type})")

        word_target, question_target = get_page_type_targets(page_type)
        request = ContentRequest(
            city=location.city,
            state=location.state,
            page_type=page_type,
            topic=topic,
            neighborhood=neighborhood,
            target_word_count=word_target,
            target_question_count=question_target,
        )

        try:
            prompt = self.builder.build(request)
            content = self.parser.parse(self.client.complete(prompt))
            enhanced = build_enhanced_content(location, content)
        except Exception as e:
            job.status = ResearchJob.STATUS_FAILED
            job.error_message = getattr(e, 'message', None) or str(e)
            job.save(update_fields=['status', 'error_message', 'updated_at'])
            if isinstance(e, CityPagesError):
                logger.error(f"Research job {job.id} failed: {job.error_message}")
            else:
                logger.exception(f"Research job {job.id} failed: {job.error_message}")
            raise

        job.status = ResearchJob.STATUS_COMPLETED
        job.results_json = {
            'title': content.title,
            'metaDescription': content.meta_description,
            'content': enhanced,
            'questions': content.questions,
            'keywords': content.keywords,
        }
        job.word_count = content.word_count
        job.questions_count = content.questions_count
        job.completed_at = timezone.now()
        job.save(update_fields=[
            'status', 'results_json', 'word_count', 'questions_count', 'completed_at', 'updated_at',
        ])
        logger.info(
            f"Research job {job.id} completed: {content.word_count} words, "
            f"{content.questions_count} questions"
        )
        return ResearchOutcome(job=job, content=content)
