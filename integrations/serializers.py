"""
Serializers for published WordPress pages.
"""
from rest_framework import serializers

from locations.serializers import LocationSummarySerializer
from .models import PublishedPage


class PublishedPageSerializer(serializers.ModelSerializer):
    location = LocationSummarySerializer(read_only=True)
    city_id = serializers.IntegerField(source='location_id', read_only=True)
    research_job_id = serializers.IntegerField(read_only=True)

    class Meta:
        model = PublishedPage
        fields = (
            'id', 'city_id', 'location', 'research_job_id', 'wp_post_id', 'url',
            'page_type', 'topic', 'neighborhood', 'title', 'slug', 'parent_post_id',
            'status', 'published_at', 'created_at', 'updated_at',
        )
        read_only_fields = fields
