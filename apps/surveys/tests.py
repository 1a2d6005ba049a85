import csv
import io
import json
import uuid
from decimal import Decimal
from unittest import mock

from django.contrib.auth import get_user_model
from django.test import SimpleTestCase, TestCase
from rest_framework.exceptions import ValidationError
from rest_framework.test import APIClient

from apps.activity.models import ActivityEvent, ActivityType
from .exceptions import SurveyClosedError, VersioningError
from .models import Survey, Question, Response, SurveyStatus
from . import services
from .versioning import (
    calculate_next_version,
    find_latest_version,
    format_version,
    get_version_family,
    get_version_history,
    is_latest_version,
    is_valid_version,
    parse_version,
)

ORG = uuid.UUID("00000000-0000-0000-0000-000000000001")

SURVEY_DATA = {
    "title": "Customer Satisfaction",
    "description": "Quarterly pulse",
    "audience": "Customers",
    "questions": [
        {"type": "rating", "text": "How would you rate us?", "required": True},
        {"type": "multiple_choice", "text": "What matters most?", "options": ["Quality", "Price"], "required": True},
        {"type": "long_text", "text": "Anything else to add?", "required": False},
    ],
}


def make_survey(**overrides):
    data = {**SURVEY_DATA, **overrides}
    survey, _ = services.save_survey(data, ORG)
    return survey


class VersioningTest(SimpleTestCase):
    def test_parse_version(self):
        self.assertEqual(parse_version(1.2), (1, 2))
        self.assertEqual(parse_version(Decimal("3.0")), (3, 0))

    def test_next_version(self):
        self.assertEqual(calculate_next_version(1.0), 1.1)
        self.assertEqual(calculate_next_version(1.2), 1.3)
        self.assertEqual(calculate_next_version(1.9), 2.0)
        self.assertEqual(calculate_next_version(1.5, is_major=True), 2.0)
        self.assertEqual(calculate_next_version(Decimal("2.0"), True), 3.0)

    def test_format_and_validate(self):
        self.assertEqual(format_version(1), "v1.0")
        self.assertEqual(format_version(Decimal("2.3")), "v2.3")
        self.assertTrue(is_valid_version(1.5))
        self.assertFalse(is_valid_version(0.5))
        self.assertFalse(is_valid_version(-1))

    def test_family_helpers(self):
        surveys = [
            {"id": "a", "parent_id": None, "version": 1.0},
            {"id": "b", "parent_id": "a", "version": 1.1},
            {"id": "c", "parent_id": "a", "version": 1.2},
            {"id": "d", "parent_id": "a", "version": 2.0},
            {"id": "x", "parent_id": None, "version": 1.0},
        ]
        self.assertEqual(find_latest_version(surveys, "a")["id"], "d")
        self.assertIsNone(find_latest_version(surveys, "missing"))
        self.assertTrue(is_latest_version(surveys[3], surveys))
        self.assertFalse(is_latest_version(surveys[1], surveys))
        self.assertEqual([s["id"] for s in get_version_history("c", surveys)], ["a", "b", "c", "d"])
        self.assertEqual(get_version_history("missing", surveys), [])
        self.assertEqual([s["id"] for s in get_version_family(surveys, 1)], ["a", "b", "c", "x"])
        self.assertEqual(len(get_version_family(surveys)), 5)

    def test_family_follows_parent_chain(self):
        surveys = [
            {"id": "a", "parent_id": None, "version": 1.0},
            {"id": "b", "parent_id": "a", "version": 1.1},
            {"id": "c", "parent_id": "b", "version": 1.2},
        ]
        self.assertEqual(find_latest_version(surveys, "a")["id"], "c")
        self.assertTrue(is_latest_version(surveys[2], surveys))
        self.assertEqual([s["id"] for s in get_version_history("a", surveys)], ["a", "b", "c"])


class SurveyServicesTest(TestCase):
    def test_save_survey_creates_questions_and_activity(self):
        survey, link = services.save_survey(SURVEY_DATA, ORG)
        self.assertEqual(link, f"http://localhost:3000/respond/{survey.id}")
        self.assertEqual(list(survey.questions.values_list("position", flat=True)), [0, 1, 2])
        event = ActivityEvent.objects.get(type=ActivityType.SURVEY_CREATED)
        self.assertEqual(event.details["question_count"], 3)
        self.assertEqual(event.details["survey_title"], "Customer Satisfaction")

    def test_update_and_delete_log_activity(self):
        survey = make_survey()
        services.update_survey(survey, {"title": "Renamed"})
        self.assertTrue(ActivityEvent.objects.filter(type=ActivityType.SURVEY_UPDATED,
                                                     details__survey_title="Renamed").exists())
        services.delete_survey(survey)
        self.assertFalse(Survey.objects.exists())
        deleted = ActivityEvent.objects.get(type=ActivityType.SURVEY_DELETED)
        self.assertEqual(deleted.details["question_count"], 3)

    def test_submit_response(self):
        survey = make_survey()
        q = list(survey.questions.all())
        with mock.patch("apps.surveys.services.analyze_response") as task:
            with self.captureOnCommitCallbacks(execute=True):
                response = services.submit_response(survey, {str(q[0].id): "5", str(q[1].id): "Quality"})
        self.assertIsNone(response.sentiment)
        task.delay.assert_called_once_with(str(response.id))
        event = ActivityEvent.objects.get(type=ActivityType.RESPONSE_RECEIVED)
        self.assertEqual(event.details["response_id"], str(response.id))

    def test_submit_response_validation(self):
        survey = make_survey()
        q = list(survey.questions.all())
        with self.assertRaises(ValidationError):
            services.submit_response(survey, {str(q[0].id): "5"})  # required q[1] missing
        with self.assertRaises(ValidationError):
            services.submit_response(survey, {str(q[0].id): "5", str(q[1].id): "x", "999999": "?"})
        survey.status = SurveyStatus.CLOSED
        survey.save()
        with self.assertRaises(SurveyClosedError):
            services.submit_response(survey, {str(q[0].id): "5", str(q[1].id): "x"})

    def test_create_version_copies_questions(self):
        original = make_survey()
        v2 = services.create_version(original, is_major=False, changelog="")
        self.assertEqual(v2.version, Decimal("1.1"))
        self.assertEqual(v2.parent_id, original.id)
        self.assertEqual(v2.questions.count(), 3)
        event = ActivityEvent.objects.get(type=ActivityType.SURVEY_EDITED)
        self.assertEqual(event.details["changelog"], "No changelog provided")
        self.assertEqual(event.details["version"], 1.1)

        major = services.create_version(v2, is_major=True, changelog="Big rework")
        self.assertEqual(major.version, Decimal("2.0"))

    def test_create_version_requires_questions(self):
        empty = Survey.objects.create(org_id=ORG, title="Empty", audience="Nobody")
        with self.assertRaises(VersioningError):
            services.create_version(empty)

    def test_update_version_inserts_new_row(self):
        original = make_survey()
        data = {**SURVEY_DATA, "title": "Customer Satisfaction 2", "questions": SURVEY_DATA["questions"][:1]}
        edited = services.update_version(original, data, changelog="Trimmed")
        self.assertNotEqual(edited.id, original.id)
        self.assertEqual(edited.version, Decimal("1.1"))
        self.assertEqual(edited.questions.count(), 1)
        original.refresh_from_db()
        self.assertEqual(original.title, "Customer Satisfaction")

    def test_restore_version(self):
        original = make_survey()
        latest = services.update_version(original, {**SURVEY_DATA, "title": "Newer title"})
        restored = services.restore_version(original, latest, ORG)
        self.assertEqual(restored.version, Decimal("1.2"))
        self.assertEqual(restored.parent_id, latest.id)
        self.assertEqual(restored.title, "Customer Satisfaction")
        self.assertEqual(restored.changelog, "Restored from v1.0")

    def test_restored_version_stays_in_family(self):
        root = make_survey()
        v11 = services.create_version(root)
        v12 = services.restore_version(root, v11, ORG)

        family = services.version_family(root)
        self.assertEqual([s.version for s in get_version_history(root.id, family)],
                         [Decimal("1.0"), Decimal("1.1"), Decimal("1.2")])
        self.assertEqual(find_latest_version(family, root.id).id, v12.id)
        self.assertTrue(is_latest_version(v12, family))
        self.assertEqual({s.id for s in services.version_family(v12)}, {root.id, v11.id, v12.id})
        self.assertEqual(v12.root().id, root.id)

    def test_export_csv_and_json(self):
        survey = make_survey()
        q = list(survey.questions.all())
        Response.objects.create(survey=survey, org_id=ORG, answers={str(q[0].id): "4", str(q[1].id): "Price, mostly"},
                                sentiment="positive")
        Response.objects.create(survey=survey, org_id=ORG, answers={str(q[0].id): "2", str(q[1].id): "Quality"})

        content, content_type, filename = services.export_responses(survey, "csv")
        self.assertEqual(content_type, "text/csv")
        self.assertTrue(filename.endswith(".csv"))
        rows = list(csv.reader(io.StringIO(content)))
        self.assertEqual(rows[0], ["Response ID", "Timestamp", "Sentiment", "How would you rate us?",
                                   "What matters most?", "Anything else to add?"])
        self.assertEqual(len(rows), 3)
        self.assertIn("Not Analyzed", {r[2] for r in rows[1:]})
        self.assertIn("Price, mostly", {r[4] for r in rows[1:]})

        content, content_type, _ = services.export_responses(survey, "json")
        payload = json.loads(content)
        self.assertEqual(payload["total"], 2)

    def test_export_without_responses_has_headers_only(self):
        survey = make_survey()
        content, _, _ = services.export_responses(survey, "csv")
        self.assertEqual(len(list(csv.reader(io.StringIO(content)))), 1)

    def test_export_keeps_questions_with_same_text_apart(self):
        survey = make_survey(questions=[
            {"type": "short_text", "text": "Any comments?", "required": True},
            {"type": "short_text", "text": "Any comments?", "required": False},
        ])
        first, second = survey.questions.order_by("position")
        Response.objects.create(survey=survey, org_id=ORG, answers={str(first.id): "one", str(second.id): "two"})
        headers, rows = services.export_rows(survey)
        self.assertEqual(headers[3:], ["Any comments?", "Any comments? (2)"])
        self.assertEqual(rows[0]["Any comments?"], "one")
        self.assertEqual(rows[0]["Any comments? (2)"], "two")


class SurveyApiTest(TestCase):
    def setUp(self):
        self.user = get_user_model().objects.create_user(username="operator", password="not-a-real-pass")
        self.client = APIClient()
        self.client.force_authenticate(self.user)

    def test_save_returns_shareable_link(self):
        resp = self.client.post("/api/v1/surveys/save/", {**SURVEY_DATA, "org_id": str(ORG)}, format="json")
        self.assertEqual(resp.status_code, 201)
        self.assertTrue(resp.data["success"])
        self.assertIn("/respond/", resp.data["survey"]["shareable_link"])

    def test_save_validation(self):
        resp = self.client.post("/api/v1/surveys/save/", {**SURVEY_DATA, "title": "ab"}, format="json")
        self.assertEqual(resp.status_code, 400)
        resp = self.client.post("/api/v1/surveys/save/", {**SURVEY_DATA, "questions": []}, format="json")
        self.assertEqual(resp.status_code, 400)
        bad_choice = {**SURVEY_DATA, "questions": [{"type": "multiple_choice", "text": "Pick one please"}]}
        self.assertEqual(self.client.post("/api/v1/surveys/save/", bad_choice, format="json").status_code, 400)

    def test_list_is_scoped_to_org(self):
        make_survey()
        Survey.objects.create(org_id=uuid.uuid4(), title="Elsewhere", audience="Others")
        resp = self.client.get("/api/v1/surveys/", {"org_id": str(ORG)})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.data["meta"]["count"], 1)

    def test_version_endpoints(self):
        survey = make_survey()
        resp = self.client.post(f"/api/v1/surveys/{survey.id}/create-version/",
                                {"is_major_version": True, "changelog": "v2"}, format="json")
        self.assertEqual(resp.status_code, 201)
        self.assertEqual(resp.data["new_version"], "2.0")

        resp = self.client.get(f"/api/v1/surveys/{survey.id}/versions/")
        self.assertEqual([v["version_label"] for v in resp.data], ["v1.0", "v2.0"])

        new_id = Survey.objects.get(version=Decimal("2.0")).id
        resp = self.client.post(f"/api/v1/surveys/{survey.id}/restore-version/",
                                {"current_latest_survey_id": str(new_id)}, format="json")
        self.assertEqual(resp.status_code, 201)
        self.assertEqual(resp.data["message"], "Restored version v1.0 as version v2.1")

    def test_create_version_of_empty_survey_is_400(self):
        empty = Survey.objects.create(org_id=ORG, title="Empty", audience="Nobody")
        resp = self.client.post(f"/api/v1/surveys/{empty.id}/create-version/", {}, format="json")
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.data["code"], "versioning")

    def test_export_endpoint(self):
        survey = make_survey()
        resp = self.client.get(f"/api/v1/surveys/{survey.id}/export/", {"format": "csv"})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp["Content-Type"], "text/csv")
        self.assertIn("attachment", resp["Content-Disposition"])
        self.assertEqual(self.client.get(f"/api/v1/surveys/{survey.id}/export/", {"format": "xml"}).status_code, 400)

    def test_survey_analytics_endpoint(self):
        survey = make_survey()
        Response.objects.create(survey=survey, org_id=ORG, answers={"1": "x"}, sentiment="negative")
        resp = self.client.get(f"/api/v1/surveys/{survey.id}/analytics/")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.data["total"], 1)
        self.assertEqual(resp.data["avg_sentiment"], "Negative")
        self.assertEqual(resp.data["response_trend"]["today"], 1)

    def test_answers_hidden_from_anonymous_clients(self):
        survey = make_survey()
        Response.objects.create(survey=survey, org_id=ORG, answers={"1": "private"})
        self.client.force_authenticate(None)
        self.assertEqual(self.client.get(f"/api/v1/surveys/{survey.id}/export/", {"format": "csv"}).status_code, 401)
        self.assertEqual(self.client.get(f"/api/v1/surveys/{survey.id}/analytics/").status_code, 401)
        self.assertEqual(self.client.get(f"/api/v1/surveys/{survey.id}/").status_code, 200)


class ResponseApiTest(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.survey = make_survey()
        self.questions = list(self.survey.questions.all())

    def test_anonymous_can_submit(self):
        payload = {"survey": str(self.survey.id),
                   "answers": {str(self.questions[0].id): "5", str(self.questions[1].id): "Quality"}}
        with mock.patch("apps.surveys.services.analyze_response"):
            resp = self.client.post("/api/v1/responses/", payload, format="json")
        self.assertEqual(resp.status_code, 201)
        self.assertEqual(Response.objects.count(), 1)

    def test_closed_survey_rejects(self):
        self.survey.status = SurveyStatus.CLOSED
        self.survey.save()
        payload = {"survey": str(self.survey.id), "answers": {str(self.questions[0].id): "5"}}
        resp = self.client.post("/api/v1/responses/", payload, format="json")
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.data["code"], "survey_closed")

    def test_listing_requires_auth(self):
        self.assertEqual(self.client.get("/api/v1/responses/").status_code, 401)
