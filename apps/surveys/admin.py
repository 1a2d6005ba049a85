from django.contrib import admin
from .models import Survey, Question, Response


class QuestionInline(admin.TabularInline):
    model = Question
    extra = 0
    ordering = ('position',)


@admin.register(Survey)
class SurveyAdmin(admin.ModelAdmin):
    list_display = ('id', 'title', 'audience', 'status', 'version', 'parent', 'org_id', 'created_at')
    search_fields = ('title', 'description', 'audience')
    list_filter = ('status',)
    inlines = [QuestionInline]


@admin.register(Response)
class ResponseAdmin(admin.ModelAdmin):
    list_display = ('id', 'survey', 'sentiment', 'org_id', 'created_at')
    list_filter = ('sentiment',)
    search_fields = ('summary',)
