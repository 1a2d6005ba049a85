from django.conf import settings
from rest_framework import serializers

from .models import Survey, Question, Response, QuestionType
from .versioning import format_version

MAX_QUESTIONS = 50


class QuestionSerializer(serializers.ModelSerializer):
    text = serializers.CharField(min_length=5, max_length=500, trim_whitespace=True)
    options = serializers.ListField(
        child=serializers.CharField(min_length=1, trim_whitespace=False),
        required=False, allow_null=True,
    )

    class Meta:
        model = Question
        fields = ['id', 'position', 'type', 'text', 'options', 'required']
        read_only_fields = ['id', 'position']

    def validate(self, attrs):
        if attrs.get('type') == QuestionType.MULTIPLE_CHOICE and not attrs.get('options'):
            raise serializers.ValidationError({'options': 'Multiple choice questions need at least one option.'})
        if attrs.get('type') != QuestionType.MULTIPLE_CHOICE:
            attrs['options'] = None
        return attrs


class SurveySerializer(serializers.ModelSerializer):
    questions = QuestionSerializer(many=True, read_only=True)
    question_count = serializers.SerializerMethodField()
    version_label = serializers.SerializerMethodField()
    shareable_link = serializers.SerializerMethodField()

    class Meta:
        model = Survey
        fields = ['id', 'org_id', 'title', 'description', 'audience', 'status', 'version', 'version_label',
                  'parent', 'changelog', 'ai_suggestions', 'questions', 'question_count', 'shareable_link',
                  'created_at', 'updated_at']
        read_only_fields = fields

    def get_question_count(self, obj):
        return len(obj.questions.all())

    def get_version_label(self, obj):
        return format_version(obj.version)

    def get_shareable_link(self, obj):
        return build_shareable_link(obj)


class SurveyWriteSerializer(serializers.ModelSerializer):
    """Payload for publishing a survey: metadata plus 1..50 questions."""
    title = serializers.CharField(min_length=3, max_length=200, trim_whitespace=True)
    audience = serializers.CharField(min_length=2, max_length=100, trim_whitespace=True)
    description = serializers.CharField(max_length=1000, required=False, allow_blank=True, allow_null=True)
    questions = QuestionSerializer(many=True)

    class Meta:
        model = Survey
        fields = ['title', 'description', 'audience', 'status', 'ai_suggestions', 'questions']

    def validate_questions(self, value):
        if not value:
            raise serializers.ValidationError('Survey must have at least 1 question')
        if len(value) > MAX_QUESTIONS:
            raise serializers.ValidationError(f'Survey cannot have more than {MAX_QUESTIONS} questions')
        return value


class SurveyMetadataSerializer(serializers.ModelSerializer):
    title = serializers.CharField(min_length=3, max_length=200, trim_whitespace=True, required=False)
    audience = serializers.CharField(min_length=2, max_length=100, trim_whitespace=True, required=False)
    description = serializers.CharField(max_length=1000, required=False, allow_blank=True, allow_null=True)

    class Meta:
        model = Survey
        fields = ['title', 'description', 'audience', 'status', 'ai_suggestions']


class SaveSurveyResultSerializer(serializers.Serializer):
    id = serializers.UUIDField()
    title = serializers.CharField()
    shareable_link = serializers.URLField()


class CreateVersionSerializer(serializers.Serializer):
    is_major_version = serializers.BooleanField(default=False)
    changelog = serializers.CharField(max_length=500, required=False, allow_blank=True, default='')


class UpdateVersionSerializer(serializers.Serializer):
    survey_data = SurveyWriteSerializer()
    current_version = serializers.DecimalField(max_digits=5, decimal_places=1, required=False)
    is_major_version = serializers.BooleanField(default=False)
    changelog = serializers.CharField(max_length=500, required=False, allow_blank=True, default='')


class RestoreVersionSerializer(serializers.Serializer):
    current_latest_survey_id = serializers.UUIDField()


class VersionResultSerializer(serializers.Serializer):
    new_survey_id = serializers.UUIDField()
    new_version = serializers.DecimalField(max_digits=5, decimal_places=1)
    parent_id = serializers.UUIDField()
    message = serializers.CharField()


class ResponseSerializer(serializers.ModelSerializer):
    class Meta:
        model = Response
        fields = ['id', 'survey', 'org_id', 'answers', 'sentiment', 'summary', 'created_at', 'updated_at']
        read_only_fields = fields


class ResponseSubmitSerializer(serializers.Serializer):
    survey = serializers.PrimaryKeyRelatedField(queryset=Survey.objects.all())
    answers = serializers.DictField(child=serializers.CharField(allow_blank=True), allow_empty=False)

    def validate_answers(self, value):
        if not any(str(v).strip() for v in value.values()):
            raise serializers.ValidationError('At least one answer is required')
        return value


def build_shareable_link(survey):
    return f"{settings.PUBLIC_BASE_URL.rstrip('/')}/respond/{survey.id}"
