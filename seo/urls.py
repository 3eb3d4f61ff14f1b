"""
URL routing for research jobs.
"""
from django.urls import path

from .views import research_job_detail, research_jobs

urlpatterns = [
    path('research/', research_jobs, name='research-jobs'),
    path('research/<int:job_id>/', research_job_detail, name='research-job-detail'),
]
