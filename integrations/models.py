"""
Models for the WordPress integration.
"""
from django.db import models

from locations.models import Location
from seo.models import ResearchJob


class PublishedPage(models.Model):
    """
    A page that exists on WordPress, created from a completed research job.

    Only written after WordPress accepted the page. parent_post_id is the
    WordPress id of the city page a topic/neighborhood page sits under.
    """
    STATUS_CHOICES = [
        ('publish', 'Published'),
        ('draft', 'Draft'),
        ('pending', 'Pending'),
    ]

    location = models.ForeignKey(Location, on_delete=models.CASCADE, related_name='published_pages')
    research_job = models.ForeignKey(
        ResearchJob,
        on_delete=models.SET_NULL,
        related_name='published_pages',
        null=True,
        blank=True
    )
    wp_post_id = models.IntegerField(help_text="WordPress page ID")
    url = models.URLField(max_length=500)
    page_type = models.CharField(max_length=20, choices=ResearchJob.PAGE_TYPE_CHOICES)
    topic = models.CharField(max_length=255, blank=True, null=True)
    neighborhood = models.CharField(max_length=255, blank=True, null=True)
    title = models.CharField(max_length=500)
    slug = models.SlugField(max_length=500)
    parent_post_id = models.IntegerField(null=True, blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='publish')
    published_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'wordpress_pages'
        ordering = ['-published_at', '-created_at']
        indexes = [
            models.Index(fields=['location', 'status'], name='wordpress_p_locatio_71d2a4_idx'),
            models.Index(fields=['wp_post_id'], name='wordpress_p_wp_post_0b6e93_idx'),
        ]

    def __str__(self):
        return f"{self.title} (WP {self.wp_post_id})"
