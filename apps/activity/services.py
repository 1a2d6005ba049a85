import logging

from django.conf import settings
from django.db import DatabaseError, transaction

from .models import ActivityEvent, ActivityType

logger = logging.getLogger(__name__)


def is_valid_event_type(event_type):
    return event_type in ActivityType.values


def log_activity(org_id, type, details=None):
    """
    Append an event to the activity feed.

    Failures are logged and swallowed: the survey/response write that produced
    the event has already succeeded and must not be rolled back by the feed.
    Returns the created event or None.
    """
    if not is_valid_event_type(type):
        logger.warning("Refusing to log unknown activity type %r for org %s", type, org_id)
        return None
    try:
        with transaction.atomic():
            event = ActivityEvent.objects.create(org_id=org_id, type=type, details=details or {})
    except DatabaseError:
        logger.exception("Failed to log activity %s for org %s", type, org_id)
        return None
    logger.info("Activity logged id=%s type=%s org=%s", event.id, event.type, event.org_id)
    return event


def process_webhook(payload):
    """Validate an inbound webhook payload and append it to the feed.

    Raises rest_framework ValidationError on a bad payload.
    """
    from .serializers import WebhookPayloadSerializer

    serializer = WebhookPayloadSerializer(data=payload)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data
    details = dict(data.get("details") or {})
    if data.get("survey_id"):
        details.setdefault("survey_id", str(data["survey_id"]))
    logger.debug("Processing webhook type=%s org=%s", data["type"], data["org_id"])
    # webhook callers expect the insert error, not a silent None
    return ActivityEvent.objects.create(org_id=data["org_id"], type=data["type"], details=details)


def recent_activity(org_id, limit=None):
    limit = limit or settings.ACTIVITY_FEED_LIMIT
    return list(ActivityEvent.objects.filter(org_id=org_id).order_by('-created_at', '-id')[:limit])
