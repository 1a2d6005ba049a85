"""Snapshot loaders used by the websocket consumers (database access off the event loop)."""
from channels.db import database_sync_to_async

from apps.activity.serializers import ActivityEventSerializer
from apps.activity.services import recent_activity
from apps.analytics.selectors import dashboard_stats, survey_analytics
from apps.surveys.models import Survey
from apps.surveys.serializers import ResponseSerializer


@database_sync_to_async
def load_activity(org_id, limit):
    return ActivityEventSerializer(recent_activity(org_id, limit), many=True).data


@database_sync_to_async
def load_survey_analytics(survey_id):
    survey = Survey.objects.get(pk=survey_id)
    summary = survey_analytics(survey)
    latest = summary["latest_response"]
    summary["latest_response"] = ResponseSerializer(latest).data if latest else None
    summary["survey_id"] = str(survey.id)
    return summary


@database_sync_to_async
def load_dashboard_stats(org_id):
    return dashboard_stats(org_id)
