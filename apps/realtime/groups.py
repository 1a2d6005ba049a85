"""Channel-layer group names. Group names allow only ASCII alphanumerics, hyphens, underscores and periods."""

ACTIVITY_FEED = "activity_feed"
RESPONSES = "responses"
DASHBOARD = "dashboard"


def activity_feed_group(org_id):
    return f"{ACTIVITY_FEED}.{org_id}"


def responses_group(survey_id):
    return f"{RESPONSES}.{survey_id}"


def dashboard_group(org_id):
    return f"{DASHBOARD}.{org_id}"
