from rest_framework import serializers

from .models import AIJob


class AIJobSerializer(serializers.ModelSerializer):
    duration_ms = serializers.IntegerField(read_only=True, allow_null=True)

    class Meta:
        model = AIJob
        fields = ['id', 'job_type', 'input_ref_type', 'input_ref_id', 'status', 'is_mock', 'error', 'result',
                  'model_version', 'triggered_by', 'started_at', 'completed_at', 'duration_ms', 'created_at']
        read_only_fields = fields


class GenerateQuestionsSerializer(serializers.Serializer):
    title = serializers.CharField(min_length=3, max_length=200, trim_whitespace=True)
    audience = serializers.CharField(min_length=2, max_length=100, trim_whitespace=True)
    description = serializers.CharField(max_length=1000, required=False, allow_blank=True, allow_null=True)


class GeneratedQuestionSerializer(serializers.Serializer):
    type = serializers.CharField()
    text = serializers.CharField()
    options = serializers.ListField(child=serializers.CharField(), allow_null=True)
    required = serializers.BooleanField()


class GenerateQuestionsResultSerializer(serializers.Serializer):
    questions = GeneratedQuestionSerializer(many=True)
    is_mock = serializers.BooleanField()
    error = serializers.CharField(allow_null=True)
    job_id = serializers.UUIDField()


class AnalyzeRequestSerializer(serializers.Serializer):
    response_id = serializers.UUIDField()
    survey_id = serializers.UUIDField(required=False)
    answers = serializers.DictField(child=serializers.CharField(allow_blank=True), required=False, allow_empty=False)


class AnalysisSerializer(serializers.Serializer):
    sentiment = serializers.CharField()
    summary = serializers.CharField()


class AnalyzeResultSerializer(serializers.Serializer):
    success = serializers.BooleanField()
    analysis = AnalysisSerializer()
    is_mock = serializers.BooleanField()
    job_id = serializers.UUIDField()
