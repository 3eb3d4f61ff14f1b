"""
Views for Location and Keyword management.
"""
from django.db.models import Count, Q
from rest_framework import viewsets
from rest_framework.permissions import IsAuthenticated

from accounts.permissions import IsAdminOrReadOnly
from .models import Location, Keyword
from .serializers import LocationSerializer, KeywordSerializer


class LocationViewSet(viewsets.ModelViewSet):
    """
    ViewSet for managing target cities.

    list: GET /api/v1/locations/ - List cities by priority with job/page counts
    create: POST /api/v1/locations/ - Create a city (admin only)
    retrieve: GET /api/v1/locations/{id}/ - Get city details
    update: PUT /api/v1/locations/{id}/ - Update city (admin only)
    destroy: DELETE /api/v1/locations/{id}/ - Delete city (admin only)
    """
    serializer_class = LocationSerializer
    permission_classes = [IsAuthenticated, IsAdminOrReadOnly]

    def get_queryset(self):
        queryset = Location.objects.annotate(
            total_jobs=Count('research_jobs', distinct=True),
            completed_jobs=Count(
                'research_jobs',
                filter=Q(research_jobs__status='completed'),
                distinct=True,
            ),
            published_pages_count=Count('published_pages', distinct=True),
        )

        state = self.request.query_params.get('state')
        if state:
            queryset = queryset.filter(state_abbr__iexact=state)

        search = self.request.query_params.get('search')
        if search:
            queryset = queryset.filter(city__icontains=search)

        return queryset.order_by('priority_rank', 'city')


class KeywordViewSet(viewsets.ModelViewSet):
    """
    ViewSet for tracked keywords.

    list: GET /api/v1/keywords/?cityId= - List keywords, optionally for one city
    create/update/destroy: standard CRUD
    """
    serializer_class = KeywordSerializer
    permission_classes = [IsAuthenticated]

    def get_queryset(self):
        queryset = Keyword.objects.select_related('location')

        city_id = self.request.query_params.get('cityId')
        if city_id:
            queryset = queryset.filter(location_id=city_id)

        return queryset
