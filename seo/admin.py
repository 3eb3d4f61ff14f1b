from django.contrib import admin
from .models import ResearchJob


@admin.register(ResearchJob)
class ResearchJobAdmin(admin.ModelAdmin):
    list_display = ('location', 'page_type', 'topic', 'neighborhood', 'status', 'word_count', 'created_at')
    list_filter = ('status', 'page_type', 'created_at')
    search_fields = ('location__city', 'topic', 'neighborhood')
    readonly_fields = ('created_at', 'updated_at', 'completed_at')
