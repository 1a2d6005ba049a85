from django.contrib import admin
from .models import AIJob


@admin.register(AIJob)
class AIJobAdmin(admin.ModelAdmin):
    list_display = ('id', 'job_type', 'status', 'is_mock', 'triggered_by', 'started_at', 'completed_at')
    list_filter = ('job_type', 'status', 'is_mock', 'triggered_by')
    search_fields = ('id', 'input_ref_id', 'error')
    readonly_fields = ('result',)
