"""
Publishing endpoints: push research jobs to WordPress and list what is live.
"""
import logging

from django.http import HttpResponse
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response

from seo.seo_utils import generate_sitemap_entry
from .models import PublishedPage
from .publishing import BulkPublishWorkflow, PublishWorkflow
from .serializers import PublishedPageSerializer
from .throttle import IntervalRateLimiter

logger = logging.getLogger(__name__)


@api_view(['POST', 'PUT'])
@permission_classes([IsAuthenticated])
def publish(request):
    """
    Publish research jobs to WordPress.

    POST /api/v1/publish/
    Body: { "researchJobId": 12 }
    Returns: { "success": true, "wpPage": {...}, "pageRecord": {...} }
         or  { "success": true, "warning": "...", "wpPage": {...} }

    PUT /api/v1/publish/
    Body: { "researchJobIds": [12, 13, 14] }
    Returns: { "success": true, "results": {success, failed}, "summary": {total, succeeded, failed} }
    """
    body = request.data if isinstance(request.data, dict) else {}

    if request.method == 'PUT':
        workflow = BulkPublishWorkflow(PublishWorkflow(), IntervalRateLimiter.from_settings())
        result = workflow.publish_all(body.get('researchJobIds'))
        return Response({
            'success': True,
            'results': {'success': result.success, 'failed': result.failed},
            'summary': result.summary,
        })

    outcome = PublishWorkflow().publish(body.get('researchJobId'))
    if outcome.warning:
        return Response({
            'success': True,
            'warning': str(outcome.warning),
            'wpPage': outcome.page,
        }, status=status.HTTP_201_CREATED)

    return Response({
        'success': True,
        'wpPage': outcome.page,
        'pageRecord': PublishedPageSerializer(outcome.record).data,
    }, status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def list_pages(request):
    """
    List published pages, newest first.

    GET /api/v1/pages/?cityId=&status=
    """
    queryset = PublishedPage.objects.select_related('location')

    city_id = request.query_params.get('cityId')
    if city_id:
        queryset = queryset.filter(location_id=city_id)

    page_status = request.query_params.get('status')
    if page_status:
        queryset = queryset.filter(status=page_status)

    return Response({'pages': PublishedPageSerializer(queryset, many=True).data})


@api_view(['GET'])
@permission_classes([AllowAny])
def sitemap(request):
    """
    XML sitemap of live pages.

    GET /api/v1/pages/sitemap.xml
    """
    entries = []
    for page in PublishedPage.objects.filter(status='publish').order_by('location__priority_rank', 'id'):
        lastmod = (page.published_at or page.updated_at).date().isoformat()
        priority = 1.0 if page.page_type == 'main_city' else 0.8
        entries.append(generate_sitemap_entry(page.url, lastmod, 'weekly', priority))

    body = (
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        '<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">\n'
        + ''.join(f'{entry}\n' for entry in entries)
        + '</urlset>\n'
    )
    return HttpResponse(body, content_type='application/xml')
