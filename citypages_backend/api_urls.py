"""
API URL routing for citypages_backend.
All API endpoints are prefixed with /api/v1/
"""
from django.urls import path, include

from .views import analytics, connection_test, health_check

urlpatterns = [
    # Health check (no auth) - GET /api/v1/health/
    path('health/', health_check),
    # Service connection test - GET /api/v1/test/
    path('test/', connection_test),
    path('analytics/', analytics),
    # Dashboard authentication
    path('auth/', include('accounts.urls')),
    # Research jobs (content generation)
    path('', include('seo.urls')),
    # Publishing to WordPress and published pages
    path('', include('integrations.urls')),
    # Cities and keywords (router)
    path('', include('locations.urls')),
]
