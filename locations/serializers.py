"""
Serializers for Location and Keyword models.
"""
from rest_framework import serializers
from .models import Location, Keyword


class LocationSerializer(serializers.ModelSerializer):
    """Serializer for Location model, with per-city workflow counts."""
    total_jobs = serializers.SerializerMethodField()
    completed_jobs = serializers.SerializerMethodField()
    published_pages = serializers.SerializerMethodField()

    class Meta:
        model = Location
        fields = (
            'id', 'city', 'state', 'state_abbr', 'county', 'population',
            'latitude', 'longitude', 'zip_codes', 'priority_rank',
            'created_at', 'updated_at',
            'total_jobs', 'completed_jobs', 'published_pages',
        )
        read_only_fields = ('id', 'created_at', 'updated_at')

    # The list queryset annotates these counts; fall back to a query otherwise.
    def get_total_jobs(self, obj):
        if hasattr(obj, 'total_jobs'):
            return obj.total_jobs
        return obj.research_jobs.count()

    def get_completed_jobs(self, obj):
        if hasattr(obj, 'completed_jobs'):
            return obj.completed_jobs
        return obj.research_jobs.filter(status='completed').count()

    def get_published_pages(self, obj):
        if hasattr(obj, 'published_pages_count'):
            return obj.published_pages_count
        return obj.published_pages.count()

    def validate_state_abbr(self, value):
        value = value.strip().upper()
        if len(value) != 2 or not value.isalpha():
            raise serializers.ValidationError("Must be a two-letter state code")
        return value

    def validate_zip_codes(self, value):
        if not isinstance(value, list):
            raise serializers.ValidationError("Must be a list of ZIP codes")
        return [str(z).strip() for z in value if z]

    def validate(self, attrs):
        latitude = attrs.get('latitude', getattr(self.instance, 'latitude', None))
        longitude = attrs.get('longitude', getattr(self.instance, 'longitude', None))
        if latitude is not None and not -90 <= latitude <= 90:
            raise serializers.ValidationError({'latitude': 'Must be between -90 and 90'})
        if longitude is not None and not -180 <= longitude <= 180:
            raise serializers.ValidationError({'longitude': 'Must be between -180 and 180'})
        return attrs


class LocationSummarySerializer(serializers.ModelSerializer):
    """Compact location embedded in job and page payloads."""

    class Meta:
        model = Location
        fields = ('id', 'city', 'state', 'state_abbr')


class KeywordSerializer(serializers.ModelSerializer):
    """Serializer for Keyword model."""
    location = LocationSummarySerializer(read_only=True)
    location_id = serializers.PrimaryKeyRelatedField(
        queryset=Location.objects.all(), source='location', write_only=True
    )

    class Meta:
        model = Keyword
        fields = (
            'id', 'location', 'location_id', 'keyword', 'search_volume', 'difficulty',
            'current_rank', 'target_rank', 'target_url', 'last_checked',
            'created_at', 'updated_at',
        )
        read_only_fields = ('id', 'created_at', 'updated_at')

    def validate_difficulty(self, value):
        if value is not None and not 0 <= value <= 100:
            raise serializers.ValidationError("Must be between 0 and 100")
        return value
