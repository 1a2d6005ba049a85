import logging

from django.conf import settings
from django.utils import timezone

from apps.surveys.models import Survey, Response, SurveyStatus
from .aggregation import build_insights, calculate_analytics_summary

logger = logging.getLogger(__name__)


def dashboard_stats(org_id):
    stats = {
        "total_surveys": Survey.objects.filter(org_id=org_id).count(),
        "active_surveys": Survey.objects.filter(org_id=org_id, status=SurveyStatus.ACTIVE).count(),
        "total_responses": Response.objects.filter(org_id=org_id).count(),
    }
    logger.debug("Dashboard stats for org %s: %s", org_id, stats)
    return stats


def org_insights(org_id, now=None):
    surveys = Survey.objects.filter(org_id=org_id).only('id', 'title', 'version')
    responses = (Response.objects.filter(org_id=org_id)
                 .select_related('survey')
                 .order_by('-created_at'))
    return build_insights(
        surveys,
        responses,
        now or timezone.now(),
        recent_limit=settings.RECENT_RESPONSES_LIMIT,
        top_limit=settings.TOP_SURVEYS_LIMIT,
    )


def survey_analytics(survey):
    return calculate_analytics_summary(survey.responses.order_by('-created_at'))
