from decimal import Decimal

from django.core.validators import MinValueValidator
from django.db import models

from common.models import BaseEntity


class SurveyStatus(models.TextChoices):
    DRAFT = "draft", "Draft"
    ACTIVE = "active", "Active"
    CLOSED = "closed", "Closed"


class QuestionType(models.TextChoices):
    SHORT_TEXT = "short_text", "Short Text"
    LONG_TEXT = "long_text", "Long Text"
    MULTIPLE_CHOICE = "multiple_choice", "Multiple Choice"
    RATING = "rating", "Rating"
    YES_NO = "yes_no", "Yes/No"


class Sentiment(models.TextChoices):
    POSITIVE = "positive", "Positive"
    NEGATIVE = "negative", "Negative"
    NEUTRAL = "neutral", "Neutral"
    MIXED = "mixed", "Mixed"


class Survey(BaseEntity):
    org_id = models.UUIDField(db_index=True)
    title = models.CharField(max_length=200)
    description = models.TextField(max_length=1000, blank=True, null=True)
    audience = models.CharField(max_length=100)
    status = models.CharField(max_length=16, choices=SurveyStatus.choices, default=SurveyStatus.ACTIVE)
    # X.Y, minor 0..9
    version = models.DecimalField(max_digits=5, decimal_places=1, default=Decimal("1.0"),
                                  validators=[MinValueValidator(Decimal("0.1"))])
    parent = models.ForeignKey('self', null=True, blank=True, related_name='versions', on_delete=models.SET_NULL)
    changelog = models.TextField(blank=True, default="")
    ai_suggestions = models.JSONField(default=list, blank=True)

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['org_id', '-created_at'], name='survey_org_created_idx'),
            models.Index(fields=['parent', 'version'], name='survey_parent_version_idx'),
        ]

    def __str__(self):
        return f"{self.title} (v{self.version})"

    def root(self):
        """First survey of the version family, following `parent` links."""
        survey, seen = self, {self.id}
        while survey.parent_id is not None and survey.parent_id not in seen:
            seen.add(survey.parent_id)
            survey = survey.parent
        return survey

    def is_accepting_responses(self):
        return self.status == SurveyStatus.ACTIVE


class Question(models.Model):
    survey = models.ForeignKey(Survey, related_name='questions', on_delete=models.CASCADE)
    position = models.PositiveIntegerField(default=0)
    type = models.CharField(max_length=32, choices=QuestionType.choices)
    text = models.CharField(max_length=500)
    # multiple_choice only: list of option labels
    options = models.JSONField(null=True, blank=True)
    required = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['position']
        constraints = [
            models.UniqueConstraint(fields=['survey', 'position'], name='question_survey_position_uniq'),
        ]

    def __str__(self):
        return f"{self.position}: {self.text[:40]}"


class Response(BaseEntity):
    survey = models.ForeignKey(Survey, related_name='responses', on_delete=models.CASCADE)
    org_id = models.UUIDField(db_index=True)
    # {"<question id>": "<answer>"}
    answers = models.JSONField(default=dict)
    sentiment = models.CharField(max_length=16, choices=Sentiment.choices, null=True, blank=True)
    summary = models.TextField(blank=True, default="")

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['survey', '-created_at'], name='response_survey_created_idx'),
            models.Index(fields=['sentiment'], name='response_sentiment_idx'),
        ]

    def __str__(self):
        return f"Response {self.id} to {self.survey_id}"

    @property
    def is_analyzed(self):
        return bool(self.sentiment)
