import uuid
from datetime import timedelta
from unittest import mock

from django.db import DatabaseError
from django.test import TestCase
from django.utils import timezone
from rest_framework.test import APIClient

from .models import ActivityEvent, ActivityType
from .services import log_activity, process_webhook, recent_activity
from .utils import describe, format_time_ago

ORG = uuid.UUID("00000000-0000-0000-0000-000000000001")


class LogActivityTest(TestCase):
    def test_logs_event(self):
        event = log_activity(ORG, ActivityType.SURVEY_CREATED, {"survey_title": "NPS", "question_count": 3})
        self.assertIsNotNone(event)
        self.assertEqual(ActivityEvent.objects.count(), 1)

    def test_unknown_type_is_ignored(self):
        self.assertIsNone(log_activity(ORG, "SURVEY_EXPLODED", {}))
        self.assertFalse(ActivityEvent.objects.exists())

    def test_insert_failure_does_not_raise(self):
        with mock.patch.object(ActivityEvent.objects, "create", side_effect=DatabaseError("down")):
            self.assertIsNone(log_activity(ORG, ActivityType.SURVEY_DELETED, {"survey_title": "X"}))

    def test_recent_activity_newest_first_and_limited(self):
        now = timezone.now()
        for i in range(12):
            ActivityEvent.objects.create(org_id=ORG, type=ActivityType.SURVEY_UPDATED,
                                         details={"survey_title": f"S{i}"}, created_at=now - timedelta(minutes=i))
        ActivityEvent.objects.create(org_id=uuid.uuid4(), type=ActivityType.SURVEY_UPDATED, details={})
        events = recent_activity(ORG)
        self.assertEqual(len(events), 10)
        self.assertEqual(events[0].details["survey_title"], "S0")
        self.assertEqual(len(recent_activity(ORG, limit=3)), 3)


class DescribeTest(TestCase):
    def _event(self, type, **details):
        return ActivityEvent(org_id=ORG, type=type, details=details)

    def test_survey_created_pluralises(self):
        self.assertEqual(describe(self._event(ActivityType.SURVEY_CREATED, survey_title="X", question_count=3)),
                         'Survey "X" created with 3 questions')
        self.assertEqual(describe(self._event(ActivityType.SURVEY_CREATED, survey_title="X", question_count=1)),
                         'Survey "X" created with 1 question')

    def test_other_types(self):
        self.assertEqual(describe(self._event(ActivityType.RESPONSE_RECEIVED, survey_title="X")),
                         'New response received for "X"')
        self.assertEqual(describe(self._event(ActivityType.SURVEY_DELETED, survey_title="X")),
                         'Survey "X" was deleted')
        self.assertEqual(describe(self._event(ActivityType.SUMMARY_GENERATED)),
                         'AI summary generated for "Unknown Survey"')
        self.assertEqual(describe(self._event(ActivityType.SURVEY_EDITED, survey_title="X", version=1.1)),
                         'Survey "X" edited (v1.1)')

    def test_non_numeric_details_fall_back(self):
        self.assertEqual(describe(self._event(ActivityType.SURVEY_CREATED, survey_title="X", question_count="many")),
                         'Survey "X" created')
        self.assertEqual(describe(self._event(ActivityType.SURVEY_EDITED, survey_title="X", version="latest")),
                         'Survey "X" edited')


class FormatTimeAgoTest(TestCase):
    def setUp(self):
        self.now = timezone.now()

    def test_ranges(self):
        self.assertEqual(format_time_ago(self.now - timedelta(seconds=20), now=self.now), "Just now")
        self.assertEqual(format_time_ago(self.now - timedelta(minutes=1), now=self.now), "1 minute ago")
        self.assertEqual(format_time_ago(self.now - timedelta(minutes=5), now=self.now), "5 minutes ago")
        self.assertEqual(format_time_ago(self.now - timedelta(hours=2), now=self.now), "2 hours ago")
        self.assertEqual(format_time_ago(self.now - timedelta(days=3), now=self.now), "3 days ago")

    def test_short_form(self):
        self.assertEqual(format_time_ago(self.now - timedelta(minutes=5), short=True, now=self.now), "5m ago")
        self.assertEqual(format_time_ago(self.now - timedelta(hours=1), short=True, now=self.now), "1h ago")
        self.assertEqual(format_time_ago(self.now - timedelta(days=2), short=True, now=self.now), "2d ago")


class ActivityApiTest(TestCase):
    def setUp(self):
        self.client = APIClient()

    def test_feed_lists_org_events(self):
        log_activity(ORG, ActivityType.SURVEY_CREATED, {"survey_title": "NPS", "question_count": 2})
        log_activity(uuid.uuid4(), ActivityType.SURVEY_CREATED, {"survey_title": "Other", "question_count": 2})
        resp = self.client.get("/api/v1/activity/", {"org_id": str(ORG)})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.data["meta"]["count"], 1)
        self.assertEqual(resp.data["results"][0]["description"], 'Survey "NPS" created with 2 questions')

    def test_feed_rejects_bad_org(self):
        resp = self.client.get("/api/v1/activity/", {"org_id": "nope"})
        self.assertEqual(resp.status_code, 400)

    def test_webhook_creates_event(self):
        payload = {"type": "RESPONSE_RECEIVED", "org_id": str(ORG), "details": {"response_id": "r1", "survey_title": "NPS"}}
        resp = self.client.post("/api/v1/activity/webhook/", payload, format="json")
        self.assertEqual(resp.status_code, 201)
        self.assertTrue(ActivityEvent.objects.filter(type=ActivityType.RESPONSE_RECEIVED).exists())

    def test_webhook_rejects_unknown_type(self):
        payload = {"type": "SURVEY_EXPLODED", "org_id": str(ORG), "details": {}}
        resp = self.client.post("/api/v1/activity/webhook/", payload, format="json")
        self.assertEqual(resp.status_code, 400)
        self.assertFalse(ActivityEvent.objects.exists())

    def test_process_webhook_keeps_survey_id(self):
        sid = uuid.uuid4()
        event = process_webhook({"type": "SURVEY_UPDATED", "org_id": str(ORG), "survey_id": str(sid)})
        self.assertEqual(event.details["survey_id"], str(sid))

    def test_webhook_with_free_form_details_keeps_feed_readable(self):
        payload = {"type": "SURVEY_CREATED", "org_id": str(ORG),
                   "details": {"survey_title": "NPS", "question_count": "many"}}
        resp = self.client.post("/api/v1/activity/webhook/", payload, format="json")
        self.assertEqual(resp.status_code, 201)
        feed = self.client.get("/api/v1/activity/", {"org_id": str(ORG)})
        self.assertEqual(feed.status_code, 200)
        self.assertEqual(feed.data["results"][0]["description"], 'Survey "NPS" created')
