from django.contrib import admin
from .models import PublishedPage


@admin.register(PublishedPage)
class PublishedPageAdmin(admin.ModelAdmin):
    list_display = ('title', 'location', 'page_type', 'wp_post_id', 'status', 'published_at')
    list_filter = ('status', 'page_type', 'published_at')
    search_fields = ('title', 'slug', 'url', 'location__city')
    readonly_fields = ('created_at', 'updated_at')
