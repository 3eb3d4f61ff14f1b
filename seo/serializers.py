"""
Serializers for research jobs.
"""
from rest_framework import serializers

from locations.serializers import LocationSummarySerializer
from .models import ResearchJob


class ResearchJobSerializer(serializers.ModelSerializer):
    """List/detail representation. results_json is included only on detail."""
    location = LocationSummarySerializer(read_only=True)
    city_id = serializers.IntegerField(source='location_id', read_only=True)

    class Meta:
        model = ResearchJob
        fields = (
            'id', 'city_id', 'location', 'page_type', 'topic', 'neighborhood', 'status',
            'word_count', 'questions_count', 'error_message',
            'created_at', 'updated_at', 'completed_at',
        )
        read_only_fields = fields


class ResearchJobDetailSerializer(ResearchJobSerializer):
    class Meta(ResearchJobSerializer.Meta):
        fields = ResearchJobSerializer.Meta.fields + ('results_json',)
        read_only_fields = fields
