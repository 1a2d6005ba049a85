import json
import uuid
from unittest import mock

import requests
from django.contrib.auth import get_user_model
from django.test import SimpleTestCase, TestCase, override_settings
from rest_framework.test import APIClient

from apps.activity.models import ActivityEvent, ActivityType
from apps.surveys.models import Survey, Response
from common.models import BaseEntity
from .client import (
    ANALYSIS_FALLBACK_ERROR,
    QUESTIONS_FALLBACK_ERROR,
    MOCK_SUMMARIES,
    AnalysisError,
    analyze_sentiment,
    generate_questions,
    mock_analysis,
)
from .models import AIJob
from .tasks import analyze_response, reanalyze_unanalyzed_responses

ORG = uuid.UUID("00000000-0000-0000-0000-000000000001")


def provider_reply(content, status_code=200):
    reply = mock.Mock(status_code=status_code, text=json.dumps(content))
    reply.json.return_value = {"choices": [{"message": {"content": json.dumps(content)}}]}
    return reply


class MockAnalysisTest(SimpleTestCase):
    def test_keyword_classification(self):
        self.assertEqual(mock_analysis("Great service, I love it")["sentiment"], "positive")
        self.assertEqual(mock_analysis("Terrible and awful")["sentiment"], "negative")
        self.assertEqual(mock_analysis("Good food but poor service")["sentiment"], "mixed")
        self.assertEqual(mock_analysis("I visited on Tuesday")["sentiment"], "neutral")
        self.assertEqual(mock_analysis("great")["summary"], MOCK_SUMMARIES["positive"])

    def test_repeated_word_counts_once(self):
        # "bad bad bad" is one distinct negative word against two positives
        self.assertEqual(mock_analysis("bad bad bad, but good and great")["sentiment"], "positive")


@override_settings(OPENAI_API_KEY="")
class NoKeyFallbackTest(SimpleTestCase):
    def test_analysis_without_key_is_mock(self):
        with mock.patch("apps.ai_integration.client.requests.post") as post:
            analysis, is_mock, error = analyze_sentiment({"1": "great", "2": "  ", "3": "love it"})
        post.assert_not_called()
        self.assertTrue(is_mock)
        self.assertIsNone(error)
        self.assertEqual(analysis["sentiment"], "positive")

    def test_empty_answers_raise(self):
        with self.assertRaises(AnalysisError):
            analyze_sentiment({"1": "", "2": "   "})

    def test_mock_questions(self):
        questions, is_mock, _ = generate_questions("Acme App", "developer")
        self.assertTrue(is_mock)
        self.assertEqual(len(questions), 5)
        self.assertEqual(questions[0]["text"], "How would you rate your overall experience with Acme App?")
        self.assertEqual(questions[1]["options"], ["Quality", "Speed", "Price", "Support"])
        self.assertFalse(questions[3]["required"])


@override_settings(OPENAI_API_KEY="sk-test")
class ProviderCallTest(SimpleTestCase):
    def test_analysis_uses_provider(self):
        reply = provider_reply({"sentiment": "Mixed", "summary": "Likes the price, not the wait."})
        with mock.patch("apps.ai_integration.client.requests.post", return_value=reply) as post:
            analysis, is_mock, error = analyze_sentiment({"1": "cheap", "2": "slow"})
        self.assertFalse(is_mock)
        self.assertEqual(analysis, {"sentiment": "mixed", "summary": "Likes the price, not the wait."})
        body = post.call_args.kwargs["json"]
        self.assertEqual(body["model"], "gpt-4o-mini")
        self.assertEqual(body["temperature"], 0.3)
        self.assertEqual(body["response_format"], {"type": "json_object"})
        self.assertIn("cheap | slow", body["messages"][1]["content"])
        self.assertEqual(post.call_args.kwargs["headers"]["Authorization"], "Bearer sk-test")

    def test_unknown_label_normalises_to_neutral(self):
        reply = provider_reply({"sentiment": "ecstatic"})
        with mock.patch("apps.ai_integration.client.requests.post", return_value=reply):
            analysis, _, _ = analyze_sentiment({"1": "ok"})
        self.assertEqual(analysis["sentiment"], "neutral")
        self.assertEqual(analysis["summary"], "No summary available")

    def test_provider_failure_falls_back(self):
        with mock.patch("apps.ai_integration.client.requests.post", side_effect=requests.ConnectionError("boom")):
            analysis, is_mock, error = analyze_sentiment({"1": "awful"})
        self.assertTrue(is_mock)
        self.assertEqual(error, ANALYSIS_FALLBACK_ERROR)
        self.assertEqual(analysis["sentiment"], "negative")

    def test_non_object_reply_falls_back(self):
        with mock.patch("apps.ai_integration.client.requests.post", return_value=provider_reply(["positive"])):
            analysis, is_mock, error = analyze_sentiment({"1": "great"})
        self.assertTrue(is_mock)
        self.assertEqual(error, ANALYSIS_FALLBACK_ERROR)
        self.assertEqual(analysis["sentiment"], "positive")

    def test_malformed_questions_fall_back(self):
        for content in (["q1"], {"questions": "five of them"}, {"questions": ["q1", {"type": "essay", "text": "Hm?"}]}):
            with mock.patch("apps.ai_integration.client.requests.post", return_value=provider_reply(content)):
                questions, is_mock, error = generate_questions("Acme", "users")
            self.assertTrue(is_mock, content)
            self.assertEqual(error, QUESTIONS_FALLBACK_ERROR)
            self.assertEqual(len(questions), 5)

    def test_malformed_items_are_skipped(self):
        reply = provider_reply({"questions": [
            "not a question",
            {"type": "multiple_choice", "text": "Pick one", "options": ["A", "B", "C"]},
        ]})
        with mock.patch("apps.ai_integration.client.requests.post", return_value=reply):
            questions, is_mock, _ = generate_questions("Acme", "users")
        self.assertFalse(is_mock)
        self.assertEqual(questions, [{"type": "multiple_choice", "text": "Pick one", "options": ["A", "B", "C"], "required": True}])

    def test_http_error_falls_back(self):
        with mock.patch("apps.ai_integration.client.requests.post", return_value=provider_reply({}, status_code=500)):
            questions, is_mock, error = generate_questions("Acme", "users")
        self.assertTrue(is_mock)
        self.assertIsNotNone(error)
        self.assertEqual(len(questions), 5)

    def test_generate_questions_from_provider(self):
        reply = provider_reply({"questions": [{"type": "yes_no", "text": "Would you come back?", "options": None}]})
        with mock.patch("apps.ai_integration.client.requests.post", return_value=reply) as post:
            questions, is_mock, _ = generate_questions("Acme", "users", "Store visit")
        self.assertFalse(is_mock)
        self.assertEqual(questions, [{"type": "yes_no", "text": "Would you come back?", "options": None, "required": True}])
        self.assertEqual(post.call_args.kwargs["json"]["temperature"], 0.7)


class SharedEntityTest(TestCase):
    def test_jobs_and_surveys_share_uuid_base(self):
        self.assertTrue(issubclass(AIJob, BaseEntity))
        self.assertTrue(issubclass(Survey, BaseEntity))
        job = AIJob.objects.create(job_type="QUESTION_GENERATION")
        self.assertIsInstance(job.id, uuid.UUID)
        self.assertIsNotNone(job.created_at)
        self.assertIsNotNone(job.updated_at)


@override_settings(OPENAI_API_KEY="")
class AnalyzeResponseTaskTest(TestCase):
    def setUp(self):
        self.survey = Survey.objects.create(org_id=ORG, title="NPS", audience="Customers")

    def test_task_stores_sentiment_and_logs_summary(self):
        response = Response.objects.create(survey=self.survey, org_id=ORG, answers={"1": "Excellent support"})
        job_id = analyze_response(str(response.id))
        response.refresh_from_db()
        self.assertEqual(response.sentiment, "positive")
        self.assertEqual(response.summary, MOCK_SUMMARIES["positive"])

        job = AIJob.objects.get(id=job_id)
        self.assertEqual(job.status, "COMPLETED")
        self.assertTrue(job.is_mock)
        event = ActivityEvent.objects.get(type=ActivityType.SUMMARY_GENERATED)
        self.assertEqual(event.details["survey_title"], "NPS")
        self.assertEqual(event.details["summary_text"], MOCK_SUMMARIES["positive"])

    @override_settings(OPENAI_API_KEY="sk-test")
    def test_non_object_reply_still_completes_job(self):
        response = Response.objects.create(survey=self.survey, org_id=ORG, answers={"1": "great"})
        with mock.patch("apps.ai_integration.client.requests.post", return_value=provider_reply(["positive"])):
            job = AIJob.objects.get(id=analyze_response(str(response.id)))
        self.assertEqual(job.status, "COMPLETED")
        self.assertTrue(job.is_mock)
        self.assertEqual(job.error, ANALYSIS_FALLBACK_ERROR)
        response.refresh_from_db()
        self.assertEqual(response.sentiment, "positive")

    def test_missing_response_is_logged_and_skipped(self):
        self.assertIsNone(analyze_response(str(uuid.uuid4())))
        self.assertFalse(AIJob.objects.exists())

    def test_blank_answers_mark_job_failed(self):
        response = Response.objects.create(survey=self.survey, org_id=ORG, answers={"1": " "})
        job = AIJob.objects.get(id=analyze_response(str(response.id)))
        self.assertEqual(job.status, "FAILED")
        response.refresh_from_db()
        self.assertIsNone(response.sentiment)

    def test_reanalyze_sweep(self):
        Response.objects.create(survey=self.survey, org_id=ORG, answers={"1": "hate it"})
        Response.objects.create(survey=self.survey, org_id=ORG, answers={"1": ""})
        Response.objects.create(survey=self.survey, org_id=ORG, answers={"1": "fine"}, sentiment="neutral")
        result = reanalyze_unanalyzed_responses()
        self.assertEqual(result, {"analyzed": 1, "failed": 1})
        self.assertEqual(Response.objects.filter(sentiment="negative").count(), 1)


@override_settings(OPENAI_API_KEY="")
class AIApiTest(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.client.force_authenticate(get_user_model().objects.create_user(username="op", password="pw-for-tests"))

    def test_generate_questions_endpoint(self):
        resp = self.client.post("/api/v1/ai/generate-questions/", {"title": "Acme", "audience": "users"}, format="json")
        self.assertEqual(resp.status_code, 200)
        self.assertTrue(resp.data["is_mock"])
        self.assertEqual(len(resp.data["questions"]), 5)

    def test_generate_questions_validation(self):
        resp = self.client.post("/api/v1/ai/generate-questions/", {"title": "A", "audience": "users"}, format="json")
        self.assertEqual(resp.status_code, 400)

    def test_analyze_endpoint(self):
        survey = Survey.objects.create(org_id=ORG, title="NPS", audience="Customers")
        response = Response.objects.create(survey=survey, org_id=ORG, answers={"1": "wonderful"})
        resp = self.client.post("/api/v1/ai/analyze/", {"response_id": str(response.id)}, format="json")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.data["analysis"]["sentiment"], "positive")
        jobs = self.client.get("/api/v1/ai-jobs/")
        self.assertEqual(jobs.data["meta"]["count"], 1)

    def test_endpoints_require_auth(self):
        self.client.force_authenticate(None)
        resp = self.client.post("/api/v1/ai/generate-questions/", {"title": "Acme", "audience": "users"}, format="json")
        self.assertEqual(resp.status_code, 401)
