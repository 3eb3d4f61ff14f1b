"""
URL routing for locations app.
"""
from django.urls import path, include
from rest_framework.routers import DefaultRouter
from .views import LocationViewSet, KeywordViewSet

router = DefaultRouter()
router.register(r'locations', LocationViewSet, basename='location')
router.register(r'keywords', KeywordViewSet, basename='keyword')

urlpatterns = [
    path('', include(router.urls)),
]
