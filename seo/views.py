"""
Research job endpoints.
Create (generate) a job, list jobs, and fetch one job with its content.
"""
import logging

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from citypages_backend.exceptions import NotFoundError
from .models import ResearchJob
from .research import ResearchJobWorkflow
from .serializers import ResearchJobDetailSerializer, ResearchJobSerializer

logger = logging.getLogger(__name__)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def research_jobs(request):
    """
    POST /api/v1/research/
    Body: { "cityId": 1, "pageType": "main_city|topic|neighborhood",
            "topic": "..." (optional), "neighborhood": "..." (optional) }

    Returns: { "success": true, "job": {id, status, wordCount, questionsCount}, "content": {...} }

    GET /api/v1/research/?cityId=&status=
    Returns: { "jobs": [...] } newest first
    """
    if request.method == 'GET':
        queryset = ResearchJob.objects.select_related('location').order_by('-created_at', '-id')

        city_id = request.query_params.get('cityId')
        if city_id:
            queryset = queryset.filter(location_id=city_id)

        job_status = request.query_params.get('status')
        if job_status:
            queryset = queryset.filter(status=job_status)

        return Response({'jobs': ResearchJobSerializer(queryset, many=True).data})

    data = request.data if isinstance(request.data, dict) else {}
    workflow = ResearchJobWorkflow()
    outcome = workflow.run(
        location_id=data.get('cityId'),
        page_type=data.get('pageType'),
        topic=data.get('topic'),
        neighborhood=data.get('neighborhood'),
    )

    return Response({
        'success': True,
        'job': {
            'id': outcome.job.id,
            'status': outcome.job.status,
            'wordCount': outcome.content.word_count,
            'questionsCount': outcome.content.questions_count,
        },
        'content': outcome.content.to_dict(),
    }, status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def research_job_detail(request, job_id):
    """
    GET /api/v1/research/{job_id}/
    """
    job = ResearchJob.objects.select_related('location').filter(id=job_id).first()
    if job is None:
        raise NotFoundError("Research job not found")
    return Response(ResearchJobDetailSerializer(job).data)
