"""
WebSocket consumers pushing live dashboard state.

Each consumer loads a snapshot on connect, joins a channel-layer group and
reloads (immediately or debounced) on `db.change` events published by
`apps.realtime.signals`.

Every consumer carries an `is_active` flag. `disconnect()` clears it first, so
refreshes that are still in flight when the socket closes never send.
"""
import json
import logging
import uuid
from urllib.parse import parse_qs

from channels.generic.websocket import AsyncWebsocketConsumer
from django.conf import settings
from django.core.serializers.json import DjangoJSONEncoder

from .broadcast import INSERT
from .debounce import DebouncedRefresh
from .groups import activity_feed_group, responses_group, dashboard_group
from .loaders import load_activity, load_survey_analytics, load_dashboard_stats

logger = logging.getLogger(__name__)

ACTIVITY_FEED_ERROR = "Failed to load activity feed. Please try again."
ANALYTICS_ERROR = "Failed to refresh analytics."
DASHBOARD_ERROR = "Failed to load dashboard stats."
MAX_FEED_LIMIT = 100


class LiveConsumer(AsyncWebsocketConsumer):
    """Shared plumbing: query parsing, guarded sends, group bookkeeping."""

    is_active = False

    def query_param(self, name, default=None):
        params = parse_qs(self.scope.get("query_string", b"").decode())
        values = params.get(name)
        return values[0] if values else default

    def org_id_param(self):
        raw = self.query_param("org_id") or settings.DEFAULT_ORG_ID
        try:
            return uuid.UUID(str(raw))
        except ValueError:
            return None

    async def send_json(self, payload):
        if not self.is_active:
            return
        await self.send(text_data=json.dumps(payload, cls=DjangoJSONEncoder))

    async def send_status(self, status, **extra):
        await self.send_json({"type": "status", "status": status, **extra})

    async def send_error(self, message):
        await self.send_json({"type": "error", "message": message})

    async def join(self, group):
        self.groups_joined = getattr(self, "groups_joined", []) + [group]
        await self.channel_layer.group_add(group, self.channel_name)

    async def leave_all(self):
        for group in getattr(self, "groups_joined", []):
            await self.channel_layer.group_discard(group, self.channel_name)
        self.groups_joined = []

    async def disconnect(self, close_code):
        self.is_active = False
        await self.cleanup()
        await self.leave_all()
        logger.info("%s closed (code=%s)", type(self).__name__, close_code)

    async def cleanup(self):
        pass

    async def receive(self, text_data=None, bytes_data=None):
        if not text_data:
            return
        try:
            data = json.loads(text_data)
        except json.JSONDecodeError:
            logger.warning("%s received invalid JSON", type(self).__name__)
            await self.send_error("Invalid message")
            return
        action = data.get("action") if isinstance(data, dict) else None
        handler = getattr(self, f"action_{action}", None) if action else None
        if handler is None:
            await self.send_error(f"Unknown action: {action}")
            return
        await handler(data)


class ActivityFeedConsumer(LiveConsumer):
    """
    /ws/activity/?org_id=<uuid>&limit=<n>

    Server -> client:
        {"type": "status", "status": "connecting" | "connected"}
        {"type": "activity.snapshot", "activities": [...]}
        {"type": "error", "message": "..."}
    Client -> server:
        {"action": "refetch"}
    """

    async def connect(self):
        self.org_id = self.org_id_param()
        if self.org_id is None:
            await self.close(code=4000)
            return
        try:
            limit = int(self.query_param("limit", settings.ACTIVITY_FEED_LIMIT))
        except (TypeError, ValueError):
            limit = settings.ACTIVITY_FEED_LIMIT
        self.limit = min(max(limit, 1), MAX_FEED_LIMIT)

        self.is_active = True
        await self.accept()
        await self.send_status("connecting")
        await self.join(activity_feed_group(self.org_id))
        await self.refetch()
        await self.send_status("connected")
        logger.info("Activity feed subscribed org=%s limit=%s", self.org_id, self.limit)

    async def refetch(self):
        if not self.is_active:
            return
        try:
            activities = await load_activity(self.org_id, self.limit)
        except Exception:
            logger.exception("Failed to fetch activities for org %s", self.org_id)
            await self.send_error(ACTIVITY_FEED_ERROR)
            return
        await self.send_json({"type": "activity.snapshot", "activities": activities})

    async def db_change(self, event):
        logger.debug("Activity feed %s received for org %s", event.get("event"), self.org_id)
        await self.refetch()

    async def action_refetch(self, data):
        await self.refetch()


class ResponsesConsumer(LiveConsumer):
    """
    /ws/surveys/<survey_id>/responses/?auto_refresh_delay=<seconds>&enabled=<bool>

    Counts new responses for one survey and pushes refreshed analytics once
    inserts stop arriving for `auto_refresh_delay` seconds.
    """

    async def connect(self):
        # analytics carry respondents' answers
        user = self.scope.get("user")
        if user is None or not user.is_authenticated:
            await self.close(code=4001)
            return
        self.survey_id = self.scope["url_route"]["kwargs"]["survey_id"]
        self.new_response_count = 0
        self.has_new_responses = False
        try:
            delay = float(self.query_param("auto_refresh_delay", settings.REALTIME_AUTO_REFRESH_DELAY))
        except (TypeError, ValueError):
            delay = settings.REALTIME_AUTO_REFRESH_DELAY
        self.debounce = DebouncedRefresh(delay, self.refresh_analytics)
        enabled = str(self.query_param("enabled", "true")).lower() not in ("0", "false", "no")

        self.is_active = True
        await self.accept()
        if not enabled:
            logger.debug("Realtime responses disabled for survey %s", self.survey_id)
            await self.send_status("disabled")
            return
        await self.join(responses_group(self.survey_id))
        await self.send_status("connected", survey_id=str(self.survey_id))
        logger.info("Responses subscribed survey=%s delay=%ss", self.survey_id, self.debounce.delay)

    async def cleanup(self):
        debounce = getattr(self, "debounce", None)
        if debounce is not None:
            debounce.cancel()

    def counters(self):
        return {"new_response_count": self.new_response_count, "has_new_responses": self.has_new_responses}

    async def db_change(self, event):
        if not self.is_active or event.get("event") != INSERT:
            return
        response_id = (event.get("record") or {}).get("id")
        self.new_response_count += 1
        self.has_new_responses = True
        logger.info("New response %s for survey %s", response_id, self.survey_id)
        await self.send_json({"type": "response.new", "response_id": response_id, **self.counters()})
        self.debounce.schedule()

    async def refresh_analytics(self):
        if not self.is_active:
            return
        try:
            analytics = await load_survey_analytics(self.survey_id)
        except Exception:
            logger.exception("Failed to refresh analytics for survey %s", self.survey_id)
            await self.send_error(ANALYTICS_ERROR)
            return
        await self.send_json({"type": "analytics.refresh", "analytics": analytics, **self.counters()})

    def clear_new_responses(self):
        self.new_response_count = 0
        self.has_new_responses = False

    async def action_clear(self, data):
        self.clear_new_responses()
        await self.send_json({"type": "counters", **self.counters()})

    async def action_refresh(self, data):
        self.debounce.cancel()
        self.clear_new_responses()
        await self.refresh_analytics()


class DashboardStatsConsumer(LiveConsumer):
    """/ws/dashboard/?org_id=<uuid>: survey and response counters for the dashboard cards."""

    async def connect(self):
        self.org_id = self.org_id_param()
        if self.org_id is None:
            await self.close(code=4000)
            return
        self.is_active = True
        await self.accept()
        await self.join(dashboard_group(self.org_id))
        await self.push_stats()

    async def push_stats(self):
        if not self.is_active:
            return
        try:
            stats = await load_dashboard_stats(self.org_id)
        except Exception:
            logger.exception("Failed to load dashboard stats for org %s", self.org_id)
            await self.send_error(DASHBOARD_ERROR)
            return
        await self.send_json({"type": "dashboard.stats", "stats": stats})

    async def db_change(self, event):
        await self.push_stats()

    async def action_refetch(self, data):
        await self.push_stats()
