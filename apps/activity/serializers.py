from rest_framework import serializers

from .models import ActivityEvent, ActivityType
from .utils import describe, format_time_ago


class ActivityEventSerializer(serializers.ModelSerializer):
    label = serializers.CharField(read_only=True)
    description = serializers.SerializerMethodField()
    time_ago = serializers.SerializerMethodField()

    class Meta:
        model = ActivityEvent
        fields = ['id', 'org_id', 'type', 'label', 'details', 'description', 'time_ago', 'created_at']
        read_only_fields = fields

    def get_description(self, obj):
        return describe(obj)

    def get_time_ago(self, obj):
        return format_time_ago(obj.created_at)


class WebhookPayloadSerializer(serializers.Serializer):
    type = serializers.ChoiceField(choices=ActivityType.choices)
    org_id = serializers.UUIDField()
    survey_id = serializers.UUIDField(required=False, allow_null=True)
    details = serializers.DictField(required=False, allow_null=True)
