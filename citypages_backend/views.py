"""
Project-level views: health check, service connection test and analytics.
"""
import logging

from django.db import DatabaseError
from django.db.models import Sum
from django.http import JsonResponse
from django.views.decorators.http import require_GET
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from ai.providers import is_generation_configured
from integrations.models import PublishedPage
from integrations.wordpress import WordPressClient
from locations.models import Keyword, Location
from seo.models import ResearchJob
from .exceptions import PublishServiceError

logger = logging.getLogger(__name__)


@require_GET
def health_check(request):
    """
    Liveness check for load balancers and monitoring.
    GET /api/v1/health/ - returns 200 if the app is running.
    No authentication required.
    """
    return JsonResponse({"status": "ok", "service": "citypages-backend"})


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def connection_test(request):
    """
    Check every external dependency.

    GET /api/v1/test/
    Returns: { "success": bool, "services": {database, wordpress, generation}, "errors": [...] }
    Status 200 when everything is reachable, 500 otherwise.
    """
    services = {'database': False, 'wordpress': False, 'generation': False}
    errors = []

    try:
        Location.objects.only('id').first()
        services['database'] = True
    except DatabaseError as e:
        errors.append(f"Database: {e}")

    try:
        services['wordpress'] = WordPressClient.from_settings().test_connection()
        if not services['wordpress']:
            errors.append("WordPress: Connection failed")
    except PublishServiceError as e:
        errors.append(f"WordPress: {e.message}")

    services['generation'] = is_generation_configured()
    if not services['generation']:
        errors.append("Generation: API key not configured")

    all_ok = all(services.values())
    payload = {'success': all_ok, 'services': services}
    if errors:
        payload['errors'] = errors
        logger.warning("Connection test failed: %s", '; '.join(errors))

    return Response(payload, status=status.HTTP_200_OK if all_ok else status.HTTP_500_INTERNAL_SERVER_ERROR)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def analytics(request):
    """
    Dashboard aggregates.

    GET /api/v1/analytics/
    """
    completed_jobs = ResearchJob.objects.filter(status=ResearchJob.STATUS_COMPLETED)
    return Response({
        'totalPages': PublishedPage.objects.count(),
        'publishedPages': PublishedPage.objects.filter(status='publish').count(),
        'totalWords': completed_jobs.aggregate(total=Sum('word_count'))['total'] or 0,
        'completedJobs': completed_jobs.count(),
        'topRankings': Keyword.objects.filter(current_rank__isnull=False, current_rank__lte=10).count(),
        'cities': Location.objects.count(),
        'keywords': Keyword.objects.count(),
        'totalSearchVolume': Keyword.objects.aggregate(total=Sum('search_volume'))['total'] or 0,
    })
