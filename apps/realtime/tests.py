import asyncio
import uuid
from unittest import mock

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from channels.routing import URLRouter
from channels.testing import WebsocketCommunicator
from django.test import SimpleTestCase, TestCase, override_settings

from apps.activity.models import ActivityType
from apps.activity.services import log_activity
from apps.surveys.models import Survey, Response
from .broadcast import build_change_message, INSERT, UPDATE
from .consumers import ACTIVITY_FEED_ERROR
from .debounce import DebouncedRefresh
from .groups import activity_feed_group, responses_group, dashboard_group
from .routing import websocket_urlpatterns

ORG = uuid.UUID("00000000-0000-0000-0000-000000000001")
IN_MEMORY = {"default": {"BACKEND": "channels.layers.InMemoryChannelLayer"}}

application = URLRouter(websocket_urlpatterns)


class SignedInScope:
    """Give every connection an authenticated user, as AuthMiddlewareStack would."""

    def __init__(self, inner):
        self.inner = inner

    async def __call__(self, scope, receive, send):
        return await self.inner({**scope, "user": mock.Mock(is_authenticated=True)}, receive, send)


operator_application = SignedInScope(application)


class FreshChannelLayerMixin:
    def setUp(self):
        super().setUp()
        override = override_settings(CHANNEL_LAYERS=IN_MEMORY)
        override.enable()
        self.addCleanup(override.disable)


class DebouncedRefreshTest(SimpleTestCase):
    async def test_burst_runs_callback_once(self):
        calls = []

        async def callback():
            calls.append(1)

        debounce = DebouncedRefresh(0.05, callback)
        debounce.schedule()
        await asyncio.sleep(0.01)
        debounce.schedule()
        debounce.schedule()
        await asyncio.sleep(0.15)
        self.assertEqual(calls, [1])
        self.assertFalse(debounce.pending)

    async def test_cancel_drops_pending_run(self):
        callback = mock.AsyncMock()
        debounce = DebouncedRefresh(0.05, callback)
        debounce.schedule()
        self.assertTrue(debounce.pending)
        debounce.cancel()
        await asyncio.sleep(0.1)
        callback.assert_not_awaited()


class ActivityFeedConsumerTest(FreshChannelLayerMixin, SimpleTestCase):
    async def test_connect_sends_status_and_snapshot(self):
        activities = [{"id": 1, "type": "SURVEY_CREATED"}]
        with mock.patch("apps.realtime.consumers.load_activity", new=mock.AsyncMock(return_value=activities)) as load:
            communicator = WebsocketCommunicator(application, f"/ws/activity/?org_id={ORG}&limit=5")
            connected, _ = await communicator.connect()
            self.assertTrue(connected)
            self.assertEqual(await communicator.receive_json_from(), {"type": "status", "status": "connecting"})
            self.assertEqual(await communicator.receive_json_from(),
                             {"type": "activity.snapshot", "activities": activities})
            self.assertEqual(await communicator.receive_json_from(), {"type": "status", "status": "connected"})
            load.assert_awaited_with(ORG, 5)

            # any change on the org's feed triggers a refetch
            await get_channel_layer().group_send(
                activity_feed_group(ORG), build_change_message("activity_feed", UPDATE, {"id": 1}))
            message = await communicator.receive_json_from()
            self.assertEqual(message["type"], "activity.snapshot")
            self.assertEqual(load.await_count, 2)
            await communicator.disconnect()

    async def test_fetch_failure_sends_error_and_keeps_socket(self):
        load = mock.AsyncMock(side_effect=[RuntimeError("db down"), []])
        with mock.patch("apps.realtime.consumers.load_activity", new=load):
            communicator = WebsocketCommunicator(application, "/ws/activity/")
            await communicator.connect()
            await communicator.receive_json_from()  # connecting
            self.assertEqual(await communicator.receive_json_from(),
                             {"type": "error", "message": ACTIVITY_FEED_ERROR})
            await communicator.receive_json_from()  # connected

            await communicator.send_json_to({"action": "refetch"})
            self.assertEqual(await communicator.receive_json_from(),
                             {"type": "activity.snapshot", "activities": []})
            await communicator.disconnect()

    async def test_invalid_org_is_rejected(self):
        communicator = WebsocketCommunicator(application, "/ws/activity/?org_id=nope")
        connected, _ = await communicator.connect()
        self.assertFalse(connected)


class ResponsesConsumerTest(FreshChannelLayerMixin, SimpleTestCase):
    def setUp(self):
        super().setUp()
        self.survey_id = uuid.uuid4()
        self.analytics = {"total": 1, "avg_sentiment": "N/A"}

    def path(self, **params):
        query = "&".join(f"{k}={v}" for k, v in params.items())
        return f"/ws/surveys/{self.survey_id}/responses/?{query}"

    async def insert(self, response_id="r1", event=INSERT):
        await get_channel_layer().group_send(
            responses_group(self.survey_id), build_change_message("responses", event, {"id": response_id}))

    async def test_new_responses_debounce_into_single_refresh(self):
        load = mock.AsyncMock(return_value=self.analytics)
        with mock.patch("apps.realtime.consumers.load_survey_analytics", new=load):
            communicator = WebsocketCommunicator(operator_application, self.path(auto_refresh_delay=0.1))
            await communicator.connect()
            self.assertEqual((await communicator.receive_json_from())["status"], "connected")

            await self.insert("r1")
            first = await communicator.receive_json_from()
            self.assertEqual(first, {"type": "response.new", "response_id": "r1",
                                     "new_response_count": 1, "has_new_responses": True})
            await self.insert("r2")
            second = await communicator.receive_json_from()
            self.assertEqual(second["new_response_count"], 2)

            refresh = await communicator.receive_json_from(timeout=1)
            self.assertEqual(refresh["type"], "analytics.refresh")
            self.assertEqual(refresh["analytics"], self.analytics)
            # automatic refresh keeps the counter until the client clears it
            self.assertEqual(refresh["new_response_count"], 2)
            self.assertTrue(await communicator.receive_nothing(timeout=0.2))
            self.assertEqual(load.await_count, 1)
            await communicator.disconnect()

    async def test_only_inserts_are_counted(self):
        communicator = WebsocketCommunicator(operator_application, self.path(auto_refresh_delay=0.05))
        await communicator.connect()
        await communicator.receive_json_from()
        await self.insert("r1", event=UPDATE)
        self.assertTrue(await communicator.receive_nothing(timeout=0.15))
        await communicator.disconnect()

    async def test_clear_and_manual_refresh(self):
        load = mock.AsyncMock(return_value=self.analytics)
        with mock.patch("apps.realtime.consumers.load_survey_analytics", new=load):
            communicator = WebsocketCommunicator(operator_application, self.path(auto_refresh_delay=5))
            await communicator.connect()
            await communicator.receive_json_from()
            await self.insert("r1")
            await communicator.receive_json_from()

            await communicator.send_json_to({"action": "clear"})
            self.assertEqual(await communicator.receive_json_from(),
                             {"type": "counters", "new_response_count": 0, "has_new_responses": False})

            await self.insert("r2")
            await communicator.receive_json_from()
            await communicator.send_json_to({"action": "refresh"})
            refresh = await communicator.receive_json_from()
            self.assertEqual(refresh["type"], "analytics.refresh")
            self.assertEqual(refresh["new_response_count"], 0)
            self.assertFalse(refresh["has_new_responses"])
            load.assert_awaited_once()
            await communicator.disconnect()

    async def test_disconnect_cancels_pending_refresh(self):
        load = mock.AsyncMock(return_value=self.analytics)
        with mock.patch("apps.realtime.consumers.load_survey_analytics", new=load):
            communicator = WebsocketCommunicator(operator_application, self.path(auto_refresh_delay=0.1))
            await communicator.connect()
            await communicator.receive_json_from()
            await self.insert("r1")
            await communicator.receive_json_from()
            await communicator.disconnect()
            await asyncio.sleep(0.2)
            load.assert_not_awaited()

    async def test_disabled_never_subscribes(self):
        communicator = WebsocketCommunicator(operator_application, self.path(enabled="false"))
        connected, _ = await communicator.connect()
        self.assertTrue(connected)
        self.assertEqual(await communicator.receive_json_from(), {"type": "status", "status": "disabled"})
        await self.insert("r1")
        self.assertTrue(await communicator.receive_nothing(timeout=0.1))
        await communicator.disconnect()

    async def test_anonymous_connection_is_closed(self):
        communicator = WebsocketCommunicator(application, self.path())
        connected, code = await communicator.connect()
        self.assertFalse(connected)
        self.assertEqual(code, 4001)

    async def test_unknown_action(self):
        communicator = WebsocketCommunicator(operator_application, self.path())
        await communicator.connect()
        await communicator.receive_json_from()
        await communicator.send_json_to({"action": "explode"})
        self.assertEqual(await communicator.receive_json_from(),
                         {"type": "error", "message": "Unknown action: explode"})
        await communicator.disconnect()


class DashboardStatsConsumerTest(FreshChannelLayerMixin, SimpleTestCase):
    async def test_stats_pushed_on_connect_and_change(self):
        stats = {"total_surveys": 2, "active_surveys": 1, "total_responses": 7}
        load = mock.AsyncMock(return_value=stats)
        with mock.patch("apps.realtime.consumers.load_dashboard_stats", new=load):
            communicator = WebsocketCommunicator(application, f"/ws/dashboard/?org_id={ORG}")
            await communicator.connect()
            self.assertEqual(await communicator.receive_json_from(), {"type": "dashboard.stats", "stats": stats})
            await get_channel_layer().group_send(
                dashboard_group(ORG), build_change_message("surveys", INSERT, {"id": "s1"}))
            self.assertEqual((await communicator.receive_json_from())["type"], "dashboard.stats")
            await communicator.disconnect()


class ChangeBroadcastTest(FreshChannelLayerMixin, TestCase):
    def listen(self, group):
        layer = get_channel_layer()
        channel = async_to_sync(layer.new_channel)()
        async_to_sync(layer.group_add)(group, channel)
        return layer, channel

    def test_response_insert_reaches_survey_and_dashboard_groups(self):
        survey = Survey.objects.create(org_id=ORG, title="NPS", audience="Customers")
        layer, survey_channel = self.listen(responses_group(survey.id))
        _, dashboard_channel = self.listen(dashboard_group(ORG))

        with self.captureOnCommitCallbacks(execute=True):
            response = Response.objects.create(survey=survey, org_id=ORG, answers={"1": "great"})

        message = async_to_sync(layer.receive)(survey_channel)
        self.assertEqual(message["type"], "db.change")
        self.assertEqual(message["table"], "responses")
        self.assertEqual(message["event"], "INSERT")
        self.assertEqual(message["record"]["id"], str(response.id))
        self.assertEqual(async_to_sync(layer.receive)(dashboard_channel)["record"]["id"], str(response.id))

    def test_nothing_sent_before_commit(self):
        layer, channel = self.listen(activity_feed_group(ORG))
        with self.captureOnCommitCallbacks(execute=False) as callbacks:
            log_activity(ORG, ActivityType.SURVEY_UPDATED, {"survey_title": "NPS"})
        self.assertEqual(len(callbacks), 1)
        callbacks[0]()
        message = async_to_sync(layer.receive)(channel)
        self.assertEqual(message["table"], "activity_feed")
        self.assertEqual(message["record"]["type"], "SURVEY_UPDATED")
