from django.contrib import admin
from .models import Location, Keyword


@admin.register(Location)
class LocationAdmin(admin.ModelAdmin):
    list_display = ('city', 'state_abbr', 'county', 'population', 'priority_rank', 'updated_at')
    list_filter = ('state_abbr',)
    search_fields = ('city', 'state', 'county')
    readonly_fields = ('created_at', 'updated_at')


@admin.register(Keyword)
class KeywordAdmin(admin.ModelAdmin):
    list_display = ('keyword', 'location', 'search_volume', 'difficulty', 'current_rank', 'target_rank', 'last_checked')
    list_filter = ('location__state_abbr',)
    search_fields = ('keyword', 'location__city')
    readonly_fields = ('created_at', 'updated_at')
