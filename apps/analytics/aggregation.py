"""
Pure aggregation helpers over in-memory response and survey lists.

Records may be model instances or plain dicts; both expose `sentiment`,
`created_at` and `survey_id` (responses) or `id`/`title` (surveys). Nothing
here touches the database.
"""
import math
from datetime import datetime, timedelta

from django.utils.dateparse import parse_datetime

SENTIMENTS = ("positive", "negative", "neutral", "mixed")
RECENT_RESPONSES = 10
TOP_SURVEYS = 5


def _get(record, name, default=None):
    if isinstance(record, dict):
        return record.get(name, default)
    return getattr(record, name, default)


def _created_at(record):
    value = _get(record, "created_at")
    if isinstance(value, str):
        value = parse_datetime(value)
    return value


def _round_half_up(value):
    return int(math.floor(value + 0.5))


def calculate_sentiment_counts(responses):
    counts = {label: 0 for label in SENTIMENTS}
    counts["unanalyzed"] = 0
    for r in responses:
        sentiment = _get(r, "sentiment")
        if not sentiment:
            counts["unanalyzed"] += 1
        elif sentiment in counts:
            counts[sentiment] += 1
    return counts


def calculate_average_sentiment(counts, total):
    if total == 0:
        return "N/A"
    if counts["positive"] > counts["negative"]:
        return "Positive"
    if counts["negative"] > counts["positive"]:
        return "Negative"
    return "Neutral"


def calculate_analytics_summary(responses):
    """`responses` must be ordered newest first; the head becomes `latest_response`."""
    responses = list(responses)
    total = len(responses)
    counts = calculate_sentiment_counts(responses)
    return {
        "total": total,
        "sentiment_counts": counts,
        "avg_sentiment": calculate_average_sentiment(counts, total),
        "latest_response": responses[0] if responses else None,
    }


def calculate_sentiment_percentage(count, total):
    if total == 0:
        return 0
    return _round_half_up(count / total * 100)


def calculate_response_rate(actual, expected):
    if expected == 0:
        return 0
    return _round_half_up(actual / expected * 100)


def calculate_response_trend(responses, now):
    one_day_ago = now - timedelta(days=1)
    one_week_ago = now - timedelta(days=7)
    one_month_ago = now - timedelta(days=30)

    trend = {"today": 0, "this_week": 0, "this_month": 0}
    for r in responses:
        created = _created_at(r)
        if not isinstance(created, datetime):
            continue
        if created > one_day_ago:
            trend["today"] += 1
        if created > one_week_ago:
            trend["this_week"] += 1
        if created > one_month_ago:
            trend["this_month"] += 1
    return trend


def rank_top_surveys(surveys, responses, limit=TOP_SURVEYS):
    """
    Surveys with at least one response, most responses first.

    Each entry is {"id", "title", "response_count", "avg_sentiment"}. Ties keep
    the order in which the surveys were first seen in `responses`. Responses for
    surveys not in `surveys` are ignored.
    """
    titles = {str(_get(s, "id")): _get(s, "title") for s in surveys}
    stats = {}
    for r in responses:
        survey_id = str(_get(r, "survey_id"))
        if survey_id not in titles:
            continue
        entry = stats.setdefault(survey_id, {"count": 0, "positive": 0, "negative": 0})
        entry["count"] += 1
        sentiment = _get(r, "sentiment")
        if sentiment in ("positive", "negative"):
            entry[sentiment] += 1

    ranked = []
    for survey_id, entry in stats.items():
        if entry["positive"] > entry["negative"] and entry["positive"] > 0:
            avg = "Positive"
        elif entry["negative"] > entry["positive"]:
            avg = "Negative"
        else:
            avg = "Neutral"
        ranked.append({
            "id": survey_id,
            "title": titles[survey_id],
            "response_count": entry["count"],
            "avg_sentiment": avg,
        })
    # sorted() is stable
    ranked = sorted(ranked, key=lambda s: s["response_count"], reverse=True)
    return ranked[:limit]


def build_insights(surveys, responses, now, recent_limit=RECENT_RESPONSES, top_limit=TOP_SURVEYS):
    """
    Dashboard insight block; `responses` newest first.

    `recent_responses` pairs each response with its survey ({"response",
    "survey"}), survey None when it is not among `surveys`.
    """
    surveys = list(surveys)
    responses = list(responses)
    by_id = {str(_get(s, "id")): s for s in surveys}
    return {
        "total_responses": len(responses),
        "total_surveys": len(surveys),
        "sentiment_breakdown": calculate_sentiment_counts(responses),
        "top_surveys": rank_top_surveys(surveys, responses, limit=top_limit),
        "recent_responses": [
            {"response": r, "survey": by_id.get(str(_get(r, "survey_id")))}
            for r in responses[:recent_limit]
        ],
        "response_trend": calculate_response_trend(responses, now),
    }
