from django.db import models

from common.models import BaseEntity


class AIJob(BaseEntity):
    """One call to the AI layer, real or mock, with its outcome."""

    JOB_TYPES = [
        ('SENTIMENT_ANALYSIS', 'Sentiment analysis'),
        ('QUESTION_GENERATION', 'Question generation'),
    ]
    STATUS_CHOICES = [
        ('PENDING', 'Pending'),
        ('RUNNING', 'Running'),
        ('COMPLETED', 'Completed'),
        ('FAILED', 'Failed'),
    ]
    TRIGGERS = [
        ('USER', 'User'),
        ('RESPONSE', 'New response'),
        ('SCHEDULE', 'Scheduled re-analysis'),
    ]

    job_type = models.CharField(max_length=50, choices=JOB_TYPES)
    input_ref_type = models.CharField(max_length=100, blank=True)
    input_ref_id = models.UUIDField(null=True, blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='PENDING')
    is_mock = models.BooleanField(default=False)
    error = models.TextField(blank=True)
    result = models.JSONField(default=dict, blank=True)
    model_version = models.CharField(max_length=200, blank=True)
    started_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    triggered_by = models.CharField(max_length=20, choices=TRIGGERS, default='USER')

    class Meta:
        ordering = ['-created_at']
        indexes = [models.Index(fields=['input_ref_type', 'input_ref_id'], name='aijob_input_ref_idx')]

    def __str__(self):
        return f"AIJob {self.id} ({self.job_type})"

    @property
    def duration_ms(self):
        if self.started_at and self.completed_at:
            return int((self.completed_at - self.started_at).total_seconds() * 1000)
        return None
