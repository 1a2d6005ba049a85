# Assumes Celery is configured in the project
import logging

from celery import shared_task
from django.db import DatabaseError

from apps.surveys.models import Response
from .services import run_sentiment_analysis

logger = logging.getLogger(__name__)


@shared_task(bind=True, max_retries=3)
def analyze_response(self, response_id, triggered_by="RESPONSE"):
    try:
        response = Response.objects.select_related("survey").get(id=response_id)
    except Response.DoesNotExist:
        logger.error("Response %s does not exist", response_id)
        return None

    try:
        job = run_sentiment_analysis(response, triggered_by=triggered_by)
    except DatabaseError as exc:
        logger.exception("Failed to store analysis for response %s", response_id)
        raise self.retry(exc=exc, countdown=5)
    return str(job.id)


@shared_task
def reanalyze_unanalyzed_responses(limit=None):
    """Periodic sweep over responses still waiting for a sentiment."""
    qs = Response.objects.filter(sentiment__isnull=True).select_related("survey").order_by("created_at")
    if limit:
        qs = qs[:limit]

    analyzed = failed = 0
    for response in qs:
        try:
            job = run_sentiment_analysis(response, triggered_by="SCHEDULE")
        except DatabaseError:
            logger.exception("Re-analysis failed for response %s", response.id)
            failed += 1
            continue
        if job.status == "COMPLETED":
            analyzed += 1
        else:
            failed += 1

    logger.info("Re-analysis finished: %d analyzed, %d failed", analyzed, failed)
    return {"analyzed": analyzed, "failed": failed}
