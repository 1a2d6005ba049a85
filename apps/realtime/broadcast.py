"""
Publishing row-level change events to channel-layer groups.

Events are sent after the surrounding transaction commits, so subscribers never
see a row that was rolled back. A failed send is logged and dropped.
"""
import json
import logging

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.core.serializers.json import DjangoJSONEncoder
from django.db import transaction
from django.forms.models import model_to_dict

logger = logging.getLogger(__name__)

INSERT = "INSERT"
UPDATE = "UPDATE"
DELETE = "DELETE"

CHANGE_MESSAGE_TYPE = "db.change"


def serialize_record(instance):
    """Plain JSON-safe dict of a model row (UUIDs, decimals and datetimes as strings)."""
    data = model_to_dict(instance)
    data["id"] = instance.pk
    for field in ("created_at", "updated_at"):
        if hasattr(instance, field):
            data[field] = getattr(instance, field)
    return json.loads(json.dumps(data, cls=DjangoJSONEncoder))


def build_change_message(table, event, record):
    return {"type": CHANGE_MESSAGE_TYPE, "table": table, "event": event, "record": record}


def send_to_groups(groups, message):
    channel_layer = get_channel_layer()
    if channel_layer is None:
        logger.debug("No channel layer configured, dropping %s", message.get("type"))
        return
    for group in groups:
        try:
            async_to_sync(channel_layer.group_send)(group, message)
        except Exception:
            logger.exception("Failed to publish %s to group %s", message.get("type"), group)


def publish_change(table, event, instance, groups):
    """Queue a change event for `groups` once the current transaction commits."""
    message = build_change_message(table, event, serialize_record(instance))
    groups = list(groups)
    logger.debug("Queueing %s %s on %s for %s", table, event, message["record"].get("id"), groups)
    transaction.on_commit(lambda: send_to_groups(groups, message))
