"""
Publish workflows: push completed research jobs to WordPress.

A page that WordPress accepted is never rolled back. If the local
PublishedPage insert fails afterwards, the outcome carries a
PersistenceWarning instead of an error.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from django.db import DatabaseError, transaction
from django.utils import timezone

from citypages_backend.exceptions import (
    CityPagesError,
    InvalidStateError,
    NotFoundError,
    PersistenceWarning,
    ValidationError,
)
from seo.models import ResearchJob
from seo.seo_utils import generate_slug
from .models import PublishedPage
from .throttle import IntervalRateLimiter
from .wordpress import CreatePageParams, WordPressClient

logger = logging.getLogger(__name__)


@dataclass
class PublishOutcome:
    page: Dict[str, Any]
    record: Optional[PublishedPage] = None
    warning: Optional[PersistenceWarning] = None


@dataclass
class BulkPublishResult:
    success: List[Any] = field(default_factory=list)
    failed: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def summary(self) -> Dict[str, int]:
        return {
            'total': len(self.success) + len(self.failed),
            'succeeded': len(self.success),
            'failed': len(self.failed),
        }


def page_slug(job: ResearchJob) -> str:
    parts = [job.location.city, job.location.state_abbr]
    if job.topic:
        parts.append(job.topic)
    if job.neighborhood:
        parts.append(job.neighborhood)
    return generate_slug(*parts)


class PublishWorkflow:
    """Publishes one completed research job as a live WordPress page."""

    def __init__(self, publish_client=None):
        # None means WordPressClient.from_settings(), built once a job passes its checks
        self.client = publish_client

    def _get_client(self):
        if self.client is None:
            self.client = WordPressClient.from_settings()
        return self.client

    def _load_job(self, job_id) -> ResearchJob:
        if not job_id:
            raise ValidationError("Missing required field: researchJobId")
        try:
            return ResearchJob.objects.select_related('location').get(pk=job_id)
        except (ResearchJob.DoesNotExist, ValueError, TypeError):
            raise NotFoundError("Research job not found")

    def _parent_id(self, job: ResearchJob) -> Optional[int]:
        if job.page_type == 'main_city':
            return None
        parent = self._get_client().get_page_by_slug(generate_slug(job.location.city, job.location.state_abbr))
        if parent is None:
            logger.info("No city page found for %s; publishing job %s without parent", job.location, job.id)
            return None
        return parent['id']

    def publish(self, job_id) -> PublishOutcome:
        job = self._load_job(job_id)
        if job.status != ResearchJob.STATUS_COMPLETED:
            raise InvalidStateError("Research job is not completed")
        if not job.results_json:
            raise InvalidStateError("Research job has no content")

        results = job.results_json
        keywords = results.get('keywords') or []
        parent_id = self._parent_id(job)

        page = self._get_client().create_page(CreatePageParams(
            title=results.get('title', ''),
            content=results.get('content', ''),
            slug=page_slug(job),
            status='publish',
            meta_description=results.get('metaDescription'),
            focus_keyword=keywords[0] if keywords else None,
            excerpt=results.get('metaDescription') or '',
            parent_id=parent_id,
        ))
        logger.info("Published research job %s as WordPress page %s", job.id, page.get('id'))

        try:
            with transaction.atomic():
                record = PublishedPage.objects.create(
                    location=job.location,
                    research_job=job,
                    wp_post_id=page['id'],
                    url=page.get('link', ''),
                    page_type=job.page_type,
                    topic=job.topic,
                    neighborhood=job.neighborhood,
                    title=results.get('title', ''),
                    slug=page.get('slug') or page_slug(job),
                    parent_post_id=parent_id,
                    status='publish',
                    published_at=timezone.now(),
                )
        except DatabaseError as exc:
            logger.warning("Error saving page record for job %s: %s", job.id, exc)
            return PublishOutcome(
                page=page,
                warning=PersistenceWarning('Page published but record not saved'),
            )

        return PublishOutcome(page=page, record=record)


class BulkPublishWorkflow:
    """
    Publishes many jobs one after another, paced by the rate limiter.
    One failing job never stops the batch.
    """

    def __init__(self, publish_workflow: PublishWorkflow, rate_limiter: IntervalRateLimiter):
        self.publish_workflow = publish_workflow
        self.rate_limiter = rate_limiter

    def publish_all(self, job_ids) -> BulkPublishResult:
        if not isinstance(job_ids, list) or not job_ids:
            raise ValidationError("Invalid or empty researchJobIds array")

        result = BulkPublishResult()
        for job_id in job_ids:
            self.rate_limiter.acquire()
            try:
                self.publish_workflow.publish(job_id)
            except CityPagesError as exc:
                result.failed.append({'id': job_id, 'error': exc.message})
            except Exception as exc:
                logger.exception("Unexpected error publishing job %s", job_id)
                result.failed.append({'id': job_id, 'error': str(exc)})
            else:
                result.success.append(job_id)

        logger.info(
            "Bulk publish finished: %(succeeded)s succeeded, %(failed)s failed of %(total)s",
            result.summary,
        )
        return result
