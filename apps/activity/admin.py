from django.contrib import admin
from .models import ActivityEvent


@admin.register(ActivityEvent)
class ActivityEventAdmin(admin.ModelAdmin):
    list_display = ('id', 'type', 'org_id', 'created_at')
    list_filter = ('type',)
    search_fields = ('details',)
    readonly_fields = ('created_at',)
