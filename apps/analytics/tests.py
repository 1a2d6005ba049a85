import uuid
from datetime import timedelta

from django.contrib.auth import get_user_model
from django.test import SimpleTestCase, TestCase
from django.utils import timezone
from rest_framework.test import APIClient

from apps.surveys.models import Survey, Response, SurveyStatus
from .aggregation import (
    build_insights,
    calculate_analytics_summary,
    calculate_average_sentiment,
    calculate_response_rate,
    calculate_response_trend,
    calculate_sentiment_counts,
    calculate_sentiment_percentage,
    rank_top_surveys,
)
from .selectors import dashboard_stats

ORG = uuid.UUID("00000000-0000-0000-0000-000000000001")


class SentimentTallyTest(SimpleTestCase):
    def test_counts(self):
        responses = [{"sentiment": s} for s in ("positive", "positive", "negative", "mixed", None, "", "weird")]
        self.assertEqual(calculate_sentiment_counts(responses),
                         {"positive": 2, "negative": 1, "neutral": 0, "mixed": 1, "unanalyzed": 2})

    def test_average(self):
        counts = {"positive": 2, "negative": 1, "neutral": 0, "mixed": 0, "unanalyzed": 0}
        self.assertEqual(calculate_average_sentiment(counts, 3), "Positive")
        self.assertEqual(calculate_average_sentiment({**counts, "negative": 3}, 5), "Negative")
        self.assertEqual(calculate_average_sentiment({**counts, "negative": 2}, 4), "Neutral")
        self.assertEqual(calculate_average_sentiment(counts, 0), "N/A")

    def test_summary_uses_first_response_as_latest(self):
        responses = [{"id": "new", "sentiment": "positive"}, {"id": "old", "sentiment": None}]
        summary = calculate_analytics_summary(responses)
        self.assertEqual(summary["total"], 2)
        self.assertEqual(summary["latest_response"]["id"], "new")
        self.assertEqual(summary["avg_sentiment"], "Positive")
        empty = calculate_analytics_summary([])
        self.assertIsNone(empty["latest_response"])
        self.assertEqual(empty["avg_sentiment"], "N/A")

    def test_percentages_round_half_up(self):
        self.assertEqual(calculate_sentiment_percentage(1, 3), 33)
        self.assertEqual(calculate_sentiment_percentage(1, 8), 13)
        self.assertEqual(calculate_sentiment_percentage(5, 0), 0)
        self.assertEqual(calculate_response_rate(3, 4), 75)
        self.assertEqual(calculate_response_rate(3, 0), 0)


class TrendAndRankingTest(SimpleTestCase):
    def setUp(self):
        self.now = timezone.now()

    def test_trend_buckets_are_cumulative_and_strict(self):
        responses = [
            {"created_at": self.now - timedelta(hours=2)},
            {"created_at": self.now - timedelta(days=3)},
            {"created_at": self.now - timedelta(days=20)},
            {"created_at": self.now - timedelta(days=30)},  # exactly on the boundary
            {"created_at": (self.now - timedelta(hours=5)).isoformat()},
        ]
        self.assertEqual(calculate_response_trend(responses, self.now),
                         {"today": 2, "this_week": 3, "this_month": 4})

    def test_rank_top_surveys(self):
        surveys = [{"id": "a", "title": "A"}, {"id": "b", "title": "B"}, {"id": "c", "title": "C"}]
        responses = [
            {"survey_id": "b", "sentiment": "negative"},
            {"survey_id": "a", "sentiment": "positive"},
            {"survey_id": "a", "sentiment": None},
            {"survey_id": "c", "sentiment": "neutral"},
            {"survey_id": "zzz", "sentiment": "positive"},
        ]
        ranked = rank_top_surveys(surveys, responses)
        self.assertEqual([s["id"] for s in ranked], ["a", "b", "c"])
        self.assertEqual(ranked[0]["response_count"], 2)
        self.assertEqual(ranked[0]["avg_sentiment"], "Positive")
        self.assertEqual(ranked[1]["avg_sentiment"], "Negative")
        self.assertEqual(ranked[2]["avg_sentiment"], "Neutral")
        self.assertEqual(len(rank_top_surveys(surveys, responses, limit=1)), 1)

    def test_build_insights(self):
        surveys = [{"id": "a", "title": "A"}]
        responses = [{"survey_id": "a", "sentiment": "positive", "created_at": self.now} for _ in range(12)]
        insights = build_insights(surveys, responses, self.now)
        self.assertEqual(insights["total_responses"], 12)
        self.assertEqual(insights["total_surveys"], 1)
        self.assertEqual(len(insights["recent_responses"]), 10)
        self.assertEqual(insights["recent_responses"][0]["survey"], {"id": "a", "title": "A"})
        self.assertEqual(insights["sentiment_breakdown"]["positive"], 12)
        self.assertEqual(insights["response_trend"]["today"], 12)


class AnalyticsApiTest(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.client.force_authenticate(get_user_model().objects.create_user(username="operator", password="not-a-real-pass"))
        self.survey = Survey.objects.create(org_id=ORG, title="NPS", audience="Customers")
        Survey.objects.create(org_id=ORG, title="Old", audience="Customers", status=SurveyStatus.CLOSED)
        Response.objects.create(survey=self.survey, org_id=ORG, answers={"1": "great"}, sentiment="positive")
        Response.objects.create(survey=self.survey, org_id=ORG, answers={"1": "meh"})

    def test_dashboard_stats(self):
        self.assertEqual(dashboard_stats(ORG), {"total_surveys": 2, "active_surveys": 1, "total_responses": 2})
        resp = self.client.get("/api/v1/analytics/dashboard/", {"org_id": str(ORG)})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.data["active_surveys"], 1)

    def test_insights(self):
        resp = self.client.get("/api/v1/analytics/insights/", {"org_id": str(ORG)})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.data["total_responses"], 2)
        self.assertEqual(resp.data["sentiment_breakdown"]["unanalyzed"], 1)
        self.assertEqual(resp.data["top_surveys"][0]["title"], "NPS")
        self.assertEqual(len(resp.data["recent_responses"]), 2)
        recent = resp.data["recent_responses"][0]
        self.assertEqual(recent["survey"]["title"], "NPS")
        self.assertIn(recent["response"]["answers"]["1"], ("great", "meh"))

    def test_insights_require_authentication(self):
        self.client.force_authenticate(None)
        self.assertEqual(self.client.get("/api/v1/analytics/insights/", {"org_id": str(ORG)}).status_code, 401)
        self.assertEqual(self.client.get("/api/v1/analytics/dashboard/", {"org_id": str(ORG)}).status_code, 200)
