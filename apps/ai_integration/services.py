# Orchestration between the AI client, AIJob bookkeeping and the survey models
import logging

from django.conf import settings
from django.utils import timezone

from apps.activity.models import ActivityType
from apps.activity.services import log_activity
from .client import AnalysisError, analyze_sentiment, generate_questions
from .models import AIJob

logger = logging.getLogger(__name__)


def _start_job(job_type, ref_type="", ref_id=None, triggered_by="USER"):
    return AIJob.objects.create(
        job_type=job_type,
        input_ref_type=ref_type,
        input_ref_id=ref_id,
        status="RUNNING",
        started_at=timezone.now(),
        model_version=settings.OPENAI_MODEL,
        triggered_by=triggered_by,
    )


def _finish_job(job, status, result=None, is_mock=False, error=""):
    job.status = status
    job.result = result or {}
    job.is_mock = is_mock
    job.error = error or ""
    job.completed_at = timezone.now()
    job.save(update_fields=["status", "result", "is_mock", "error", "completed_at", "updated_at"])
    return job


def run_sentiment_analysis(response, answers=None, triggered_by="USER"):
    """
    Analyze `response` (or the given `answers`), store sentiment and summary on
    the response and log SUMMARY_GENERATED. Returns the AIJob.
    """
    job = _start_job("SENTIMENT_ANALYSIS", "RESPONSE", response.id, triggered_by)
    try:
        analysis, is_mock, error = analyze_sentiment(answers if answers is not None else response.answers)
    except AnalysisError as exc:
        logger.warning("Skipping analysis of response %s: %s", response.id, exc)
        return _finish_job(job, "FAILED", error=str(exc))

    response.sentiment = analysis["sentiment"]
    response.summary = analysis["summary"]
    response.save(update_fields=["sentiment", "summary", "updated_at"])
    if is_mock and error:
        logger.warning("Using mock analysis for response %s: %s", response.id, error)
    logger.info("Response %s analyzed sentiment=%s mock=%s", response.id, analysis["sentiment"], is_mock)

    survey = response.survey
    log_activity(response.org_id, ActivityType.SUMMARY_GENERATED, {
        "survey_id": str(survey.id),
        "survey_title": survey.title,
        "response_id": str(response.id),
        "sentiment": analysis["sentiment"],
        "summary_text": analysis["summary"],
    })
    return _finish_job(job, "COMPLETED", result=analysis, is_mock=is_mock, error=error)


def run_question_generation(title, audience, description=None):
    """Returns (questions, job)."""
    job = _start_job("QUESTION_GENERATION", "SURVEY_DRAFT")
    questions, is_mock, error = generate_questions(title, audience, description)
    _finish_job(job, "COMPLETED", result={"title": title, "questions": questions}, is_mock=is_mock, error=error)
    return questions, job
