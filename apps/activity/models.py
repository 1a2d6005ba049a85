from django.db import models
from django.utils import timezone


class ActivityType(models.TextChoices):
    SURVEY_CREATED = "SURVEY_CREATED", "Survey Created"
    RESPONSE_RECEIVED = "RESPONSE_RECEIVED", "Response Received"
    SURVEY_UPDATED = "SURVEY_UPDATED", "Survey Updated"
    SURVEY_DELETED = "SURVEY_DELETED", "Survey Deleted"
    SUMMARY_GENERATED = "SUMMARY_GENERATED", "AI Summary Generated"
    SURVEY_EDITED = "SURVEY_EDITED", "Survey Edited"


class ActivityEvent(models.Model):
    """Append-only log of notable events shown on the dashboard feed.

    `details` shape depends on `type`, e.g. SURVEY_CREATED carries
    {"survey_title", "question_count", "audience"}.
    """
    org_id = models.UUIDField(db_index=True)
    type = models.CharField(max_length=64, choices=ActivityType.choices, db_index=True)
    details = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(default=timezone.now, editable=False)

    class Meta:
        ordering = ['-created_at', '-id']
        indexes = [models.Index(fields=['org_id', '-created_at'], name='activity_org_created_idx')]

    def __str__(self):
        return f"{self.type} @ {self.created_at:%Y-%m-%d %H:%M}"

    @property
    def label(self):
        return ActivityType(self.type).label if self.type in ActivityType.values else self.type
