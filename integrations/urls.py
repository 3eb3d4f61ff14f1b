"""
URL routing for publishing.
"""
from django.urls import path

from .views import list_pages, publish, sitemap

urlpatterns = [
    path('publish/', publish, name='publish'),
    path('pages/', list_pages, name='published-pages'),
    path('pages/sitemap.xml', sitemap, name='sitemap'),
]
