"""
Location and Keyword models.
"""
from django.db import models


class Location(models.Model):
    """
    A target city. Reference data maintained by administrators and read by
    every content workflow.
    """
    city = models.CharField(max_length=255)
    state = models.CharField(max_length=100)
    state_abbr = models.CharField(max_length=2, help_text="Two-letter state code, e.g. TX")
    county = models.CharField(max_length=255, blank=True, null=True)
    population = models.IntegerField(null=True, blank=True)
    latitude = models.FloatField(null=True, blank=True)
    longitude = models.FloatField(null=True, blank=True)
    zip_codes = models.JSONField(default=list, blank=True, help_text="ZIP codes covered by this city")
    priority_rank = models.IntegerField(null=True, blank=True, help_text="Lower ranks are worked first")
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'geo_locations'
        ordering = ['priority_rank', 'city']
        unique_together = [['city', 'state_abbr']]
        indexes = [
            models.Index(fields=['priority_rank'], name='geo_locatio_priorit_5d1f0c_idx'),
        ]

    def __str__(self):
        return f"{self.city}, {self.state_abbr}"

    @property
    def has_coordinates(self):
        return self.latitude is not None and self.longitude is not None


class Keyword(models.Model):
    """
    A tracked search keyword for a city. Managed independently of the
    content workflows.
    """
    location = models.ForeignKey(
        Location,
        on_delete=models.CASCADE,
        related_name='keywords'
    )
    keyword = models.CharField(max_length=500)
    search_volume = models.IntegerField(null=True, blank=True)
    difficulty = models.IntegerField(null=True, blank=True, help_text="Difficulty score (0-100)")
    current_rank = models.IntegerField(null=True, blank=True)
    target_rank = models.IntegerField(default=1)
    target_url = models.URLField(blank=True, null=True)
    last_checked = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'keywords'
        ordering = ['-search_volume', 'keyword']
        unique_together = [['location', 'keyword']]
        indexes = [
            models.Index(fields=['location', 'current_rank'], name='keywords_locatio_8a2e47_idx'),
        ]

    def __str__(self):
        return f"{self.keyword} ({self.location})"

    @property
    def in_top_ten(self):
        return self.current_rank is not None and self.current_rank <= 10
