from django.utils import timezone

from .models import ActivityType


def _plural(n, word):
    return f"{n} {word}{'' if n == 1 else 's'}"


def _number(value, cast):
    # webhook details are free-form, counts and versions may not be numeric
    try:
        return cast(value)
    except (TypeError, ValueError):
        return None


def describe(event):
    """One-line human description of an activity event."""
    d = event.details if isinstance(event.details, dict) else {}
    title = d.get("survey_title", "Unknown Survey")
    if event.type == ActivityType.SURVEY_CREATED:
        count = _number(d.get("question_count") or 0, int)
        if count is None:
            return f'Survey "{title}" created'
        return f'Survey "{title}" created with {_plural(count, "question")}'
    if event.type == ActivityType.RESPONSE_RECEIVED:
        return f'New response received for "{title}"'
    if event.type == ActivityType.SURVEY_UPDATED:
        return f'Survey "{title}" was updated'
    if event.type == ActivityType.SURVEY_DELETED:
        return f'Survey "{title}" was deleted'
    if event.type == ActivityType.SUMMARY_GENERATED:
        return f'AI summary generated for "{title}"'
    if event.type == ActivityType.SURVEY_EDITED:
        version = _number(d.get("version"), float)
        if version is None:
            return f'Survey "{title}" edited'
        return f'Survey "{title}" edited (v{version:.1f})'
    return "Activity event"


def format_time_ago(timestamp, short=False, include_seconds=True, now=None):
    now = now or timezone.now()
    diff = (now - timestamp).total_seconds()
    minutes = int(diff // 60)
    hours = int(diff // 3600)
    days = int(diff // 86400)

    if include_seconds and minutes < 1:
        return "Just now"
    if minutes < 60:
        return f"{minutes}m ago" if short else f"{_plural(minutes, 'minute')} ago"
    if hours < 24:
        return f"{hours}h ago" if short else f"{_plural(hours, 'hour')} ago"
    return f"{days}d ago" if short else f"{_plural(days, 'day')} ago"
