import uuid

from django.conf import settings
from rest_framework.exceptions import ValidationError


def resolve_org_id(request, field="org_id"):
    """
    Organisation for a request: `?org_id=` / body `org_id`, else DEFAULT_ORG_ID.
    Returns a UUID; raises ValidationError for malformed ids.
    """
    raw = request.query_params.get(field)
    if raw is None and hasattr(request, "data") and isinstance(request.data, dict):
        raw = request.data.get(field)
    raw = raw or settings.DEFAULT_ORG_ID
    try:
        return uuid.UUID(str(raw))
    except (TypeError, ValueError):
        raise ValidationError({field: "Invalid organization ID"})
