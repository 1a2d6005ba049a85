import csv
import io
import json
import logging

from django.db import transaction
from rest_framework.exceptions import ValidationError

from apps.activity.models import ActivityType
from apps.activity.services import log_activity
from apps.ai_integration.tasks import analyze_response
from .exceptions import SurveyClosedError, VersioningError
from .models import Survey, Question, Response
from .serializers import build_shareable_link
from .versioning import calculate_next_version, format_version, to_decimal

logger = logging.getLogger(__name__)

DEFAULT_CHANGELOG = "No changelog provided"
EXPORT_FIXED_COLUMNS = ["Response ID", "Timestamp", "Sentiment"]


def _create_questions(survey, questions):
    Question.objects.bulk_create([
        Question(
            survey=survey,
            position=index,
            type=q["type"],
            text=q["text"],
            options=q.get("options"),
            required=q.get("required", True),
        )
        for index, q in enumerate(questions)
    ])


def _copy_questions(source, target):
    _create_questions(target, [
        {"type": q.type, "text": q.text, "options": q.options, "required": q.required}
        for q in source.questions.order_by("position")
    ])


def save_survey(survey_data, org_id):
    """
    Publish a new survey with its questions.
    Returns (survey, shareable_link).
    """
    data = dict(survey_data)
    questions = data.pop("questions")
    with transaction.atomic():
        survey = Survey.objects.create(org_id=org_id, **data)
        _create_questions(survey, questions)

    logger.info("Survey created id=%s org=%s questions=%d", survey.id, org_id, len(questions))
    log_activity(org_id, ActivityType.SURVEY_CREATED, {
        "survey_id": str(survey.id),
        "survey_title": survey.title,
        "question_count": len(questions),
        "audience": survey.audience,
    })
    return survey, build_shareable_link(survey)


def update_survey(survey, fields):
    for key, value in fields.items():
        setattr(survey, key, value)
    survey.save()
    log_activity(survey.org_id, ActivityType.SURVEY_UPDATED, {
        "survey_id": str(survey.id),
        "survey_title": survey.title,
        "updated_fields": sorted(fields),
    })
    return survey


def delete_survey(survey):
    org_id, survey_id, title = survey.org_id, str(survey.id), survey.title
    question_count = survey.questions.count()
    log_activity(org_id, ActivityType.SURVEY_DELETED, {
        "survey_id": survey_id,
        "survey_title": title,
        "question_count": question_count,
    })
    survey.delete()
    logger.info("Survey deleted id=%s org=%s", survey_id, org_id)


def submit_response(survey, answers):
    """
    Store a respondent's answers and queue AI analysis.

    Raises SurveyClosedError when the survey is not accepting responses and
    rest_framework ValidationError for unknown or missing answers.
    """
    if not survey.is_accepting_responses():
        raise SurveyClosedError("This survey is not accepting responses.")

    questions = {str(q.id): q for q in survey.questions.all()}
    unknown = sorted(k for k in answers if str(k) not in questions)
    if unknown:
        raise ValidationError({"answers": f"Unknown question ids: {', '.join(unknown)}"})
    missing = [
        str(qid) for qid, q in questions.items()
        if q.required and not str(answers.get(qid, "")).strip()
    ]
    if missing:
        raise ValidationError({"answers": f"Required questions not answered: {', '.join(missing)}"})

    response = Response.objects.create(
        survey=survey,
        org_id=survey.org_id,
        answers={str(k): v for k, v in answers.items()},
    )
    logger.info("Response received id=%s survey=%s", response.id, survey.id)
    log_activity(survey.org_id, ActivityType.RESPONSE_RECEIVED, {
        "survey_id": str(survey.id),
        "survey_title": survey.title,
        "response_id": str(response.id),
    })

    transaction.on_commit(lambda: analyze_response.delay(str(response.id)))
    return response


def _log_new_version(survey, changelog):
    log_activity(survey.org_id, ActivityType.SURVEY_EDITED, {
        "survey_id": str(survey.id),
        "survey_title": survey.title,
        "version": float(survey.version),
        "parent_id": str(survey.parent_id) if survey.parent_id else None,
        "changelog": changelog or DEFAULT_CHANGELOG,
    })


def create_version(original, is_major=False, changelog=None):
    """Duplicate `original` and its questions as the next version."""
    if not original.questions.exists():
        raise VersioningError("Cannot create version of survey with no questions")

    next_version = calculate_next_version(original.version, is_major)
    changelog = changelog or DEFAULT_CHANGELOG
    with transaction.atomic():
        survey = Survey.objects.create(
            org_id=original.org_id,
            title=original.title,
            description=original.description,
            audience=original.audience,
            status=original.status,
            ai_suggestions=original.ai_suggestions,
            version=to_decimal(next_version),
            parent=original,
            changelog=changelog,
        )
        _copy_questions(original, survey)

    logger.info("Created %s version %s of survey %s as %s",
                "major" if is_major else "minor", next_version, original.id, survey.id)
    _log_new_version(survey, changelog)
    return survey


def update_version(parent, survey_data, current_version=None, is_major=False, changelog=None):
    """Save edited content as a new survey row; the parent keeps its responses."""
    data = dict(survey_data)
    questions = data.pop("questions")
    if current_version is None:
        current_version = parent.version
    next_version = calculate_next_version(current_version, is_major)
    changelog = changelog or DEFAULT_CHANGELOG
    with transaction.atomic():
        survey = Survey.objects.create(
            org_id=parent.org_id,
            version=to_decimal(next_version),
            parent=parent,
            changelog=changelog,
            **data,
        )
        _create_questions(survey, questions)

    logger.info("Survey %s updated to version %s (parent %s)", survey.id, next_version, parent.id)
    _log_new_version(survey, changelog)
    return survey


def restore_version(old, current_latest, org_id=None):
    """Copy `old` forward as the next minor version after `current_latest`."""
    if not old.questions.exists():
        raise VersioningError("Cannot restore survey with no questions")

    next_version = calculate_next_version(current_latest.version, False)
    changelog = f"Restored from {format_version(old.version)}"
    with transaction.atomic():
        survey = Survey.objects.create(
            org_id=org_id or current_latest.org_id,
            title=old.title,
            description=old.description,
            audience=old.audience,
            version=to_decimal(next_version),
            parent=current_latest,
            changelog=changelog,
        )
        _copy_questions(old, survey)

    logger.info("Restored %s as %s (survey %s)", format_version(old.version), format_version(next_version), survey.id)
    _log_new_version(survey, changelog)
    return survey


def version_family(survey):
    """Every survey reachable from `survey`'s root through parent links."""
    root = survey.root()
    family, frontier = [root], [root.id]
    while frontier:
        children = list(Survey.objects.filter(parent_id__in=frontier).exclude(id__in=[s.id for s in family]))
        family.extend(children)
        frontier = [c.id for c in children]
    return family


def _question_headers(questions):
    """One header per question; repeated texts get a " (2)", " (3)" suffix."""
    counts = {name: 1 for name in EXPORT_FIXED_COLUMNS}
    headers = []
    for q in questions:
        counts[q.text] = counts.get(q.text, 0) + 1
        headers.append(q.text if counts[q.text] == 1 else f"{q.text} ({counts[q.text]})")
    return headers


def export_rows(survey):
    """Header list plus one dict per response, newest first."""
    questions = list(survey.questions.order_by("position"))
    question_headers = _question_headers(questions)
    headers = EXPORT_FIXED_COLUMNS + question_headers
    rows = []
    for response in survey.responses.order_by("-created_at"):
        row = {
            "Response ID": str(response.id),
            "Timestamp": response.created_at.isoformat(),
            "Sentiment": response.sentiment or "Not Analyzed",
        }
        for q, header in zip(questions, question_headers):
            row[header] = response.answers.get(str(q.id), "")
        rows.append(row)
    return headers, rows


def export_responses(survey, fmt="csv"):
    """Returns (content, content_type, filename)."""
    headers, rows = export_rows(survey)
    stem = f"survey-{survey.id}-responses"
    if fmt == "json":
        payload = {
            "survey": {"id": str(survey.id), "title": survey.title, "version": float(survey.version)},
            "total": len(rows),
            "responses": rows,
        }
        return json.dumps(payload, indent=2), "application/json", f"{stem}.json"

    buf = io.StringIO()
    writer = csv.DictWriter(buf, fieldnames=headers, extrasaction="ignore")
    writer.writeheader()
    writer.writerows(rows)
    logger.debug("Exported %d responses for survey %s", len(rows), survey.id)
    return buf.getvalue(), "text/csv", f"{stem}.csv"
