"""
SEO models: research jobs that hold generated page content.
"""
from django.db import models

from locations.models import Location


class ResearchJob(models.Model):
    """
    One content-generation run for a (city, page type, topic, neighborhood).

    Lifecycle: processing -> completed | failed. `pending` exists for
    queued jobs; the synchronous workflow inserts straight into processing.
    results_json is set only on completion.
    """
    PAGE_TYPE_CHOICES = [
        ('main_city', 'Main City'),
        ('topic', 'Topic'),
        ('neighborhood', 'Neighborhood'),
    ]
    STATUS_PENDING = 'pending'
    STATUS_PROCESSING = 'processing'
    STATUS_COMPLETED = 'completed'
    STATUS_FAILED = 'failed'
    STATUS_CHOICES = [
        (STATUS_PENDING, 'Pending'),
        (STATUS_PROCESSING, 'Processing'),
        (STATUS_COMPLETED, 'Completed'),
        (STATUS_FAILED, 'Failed'),
    ]

    location = models.ForeignKey(Location, on_delete=models.CASCADE, related_name='research_jobs')
    page_type = models.CharField(max_length=20, choices=PAGE_TYPE_CHOICES)
    topic = models.CharField(max_length=255, blank=True, null=True)
    neighborhood = models.CharField(max_length=255, blank=True, null=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_PENDING)
    results_json = models.JSONField(
        null=True, blank=True,
        help_text="title, metaDescription, content (with JSON-LD), questions, keywords"
    )
    word_count = models.IntegerField(default=0)
    questions_count = models.IntegerField(default=0)
    error_message = models.TextField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    completed_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = 'research_jobs'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['location', 'status'], name='research_jo_locatio_3c9b1e_idx'),
        ]

    def __str__(self):
        return f"{self.location} - {self.page_type} ({self.status})"

    @property
    def is_completed(self):
        return self.status == self.STATUS_COMPLETED
