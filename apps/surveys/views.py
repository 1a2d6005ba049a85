import logging

from django.http import HttpResponse
from django.utils import timezone
from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import ValidationError
from rest_framework.filters import SearchFilter, OrderingFilter
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

# drf-spectacular imports for OpenAPI annotations
from drf_spectacular.utils import (
    extend_schema,
    extend_schema_view,
    OpenApiResponse,
    OpenApiExample,
    OpenApiParameter,
    OpenApiTypes,
)

from apps.analytics.aggregation import calculate_analytics_summary, calculate_response_trend
from common.orgs import resolve_org_id
from common.permissions import AllowCreateOrAuthenticated
from . import services
from .models import Survey, Response as SurveyResponse
from .serializers import (
    SurveySerializer,
    SurveyWriteSerializer,
    SurveyMetadataSerializer,
    SaveSurveyResultSerializer,
    CreateVersionSerializer,
    UpdateVersionSerializer,
    RestoreVersionSerializer,
    VersionResultSerializer,
    ResponseSerializer,
    ResponseSubmitSerializer,
)
from .versioning import format_version, get_version_history

logger = logging.getLogger(__name__)

####################################
# Shared examples & params
####################################
ORG_PARAM = OpenApiParameter(
    name="org_id",
    required=False,
    location=OpenApiParameter.QUERY,
    type=OpenApiTypes.UUID,
    description="Organization UUID (defaults to the configured org)",
)

SURVEY_FILTER_PARAMS = [
    ORG_PARAM,
    OpenApiParameter(
        name="status",
        required=False,
        location=OpenApiParameter.QUERY,
        type=OpenApiTypes.STR,
        description="Filter by status (draft|active|closed)",
    ),
]

SAVE_SURVEY_EXAMPLE = OpenApiExample(
    "Publish survey example",
    value={
        "org_id": "00000000-0000-0000-0000-000000000001",
        "title": "Customer Satisfaction",
        "audience": "Customers",
        "questions": [
            {"type": "rating", "text": "How would you rate our service?", "required": True},
            {"type": "multiple_choice", "text": "What matters most to you?", "options": ["Quality", "Price"]},
        ],
    },
)

RESPONSE_CREATE_EXAMPLE = OpenApiExample(
    "Submit Response Example",
    value={
        "survey": "aaaaaaaa-aaaa-aaaa-aaaa-aaaaaaaaaaaa",
        "answers": {"1": "5", "2": "Quality"},
    },
)


def _version_result(survey, message):
    return {
        "new_survey_id": survey.id,
        "new_version": survey.version,
        "parent_id": survey.parent_id,
        "message": message,
    }


####################################
# SurveyViewSet
####################################
@extend_schema_view(
    list=extend_schema(
        summary="List Surveys",
        description="Surveys of an organization, newest first.",
        parameters=SURVEY_FILTER_PARAMS,
        responses={200: SurveySerializer(many=True)},
        tags=["Surveys"],
    ),
    retrieve=extend_schema(summary="Retrieve Survey", responses={200: SurveySerializer}, tags=["Surveys"]),
    create=extend_schema(
        summary="Create Survey",
        description="Create a survey with its questions (positions follow list order).",
        request=SurveyWriteSerializer,
        responses={201: SurveySerializer},
        examples=[SAVE_SURVEY_EXAMPLE],
        tags=["Surveys"],
    ),
    update=extend_schema(
        summary="Update Survey metadata",
        request=SurveyMetadataSerializer,
        responses={200: SurveySerializer},
        tags=["Surveys"],
    ),
    partial_update=extend_schema(
        summary="Partial update Survey metadata",
        request=SurveyMetadataSerializer,
        responses={200: SurveySerializer},
        tags=["Surveys"],
    ),
    destroy=extend_schema(
        summary="Delete Survey",
        responses={204: OpenApiResponse(description="deleted")},
        tags=["Surveys"],
    ),
)
class SurveyViewSet(viewsets.ModelViewSet):
    """
    Manage surveys and their versions. Editing a published survey creates a
    new version row rather than mutating the old one, so existing responses
    stay attached to the questions they answered.
    """
    filter_backends = [DjangoFilterBackend, SearchFilter, OrderingFilter]
    filterset_fields = ['status', 'audience']
    search_fields = ['title', 'description']
    ordering_fields = ['created_at', 'version', 'title']

    def get_queryset(self):
        qs = Survey.objects.prefetch_related('questions')
        if self.action == 'list':
            qs = qs.filter(org_id=resolve_org_id(self.request))
        return qs

    def get_serializer_class(self):
        if self.action in ['create', 'save']:
            return SurveyWriteSerializer
        if self.action in ['update', 'partial_update']:
            return SurveyMetadataSerializer
        return SurveySerializer

    def create(self, request, *args, **kwargs):
        serializer = SurveyWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        survey, _ = services.save_survey(serializer.validated_data, resolve_org_id(request))
        return Response(SurveySerializer(survey).data, status=status.HTTP_201_CREATED)

    def update(self, request, *args, **kwargs):
        partial = kwargs.pop('partial', False)
        survey = self.get_object()
        serializer = SurveyMetadataSerializer(survey, data=request.data, partial=partial)
        serializer.is_valid(raise_exception=True)
        survey = services.update_survey(survey, serializer.validated_data)
        return Response(SurveySerializer(survey).data)

    def destroy(self, request, *args, **kwargs):
        services.delete_survey(self.get_object())
        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(
        summary="Publish a survey",
        description="Validate and save a survey with its questions, log SURVEY_CREATED and return a shareable link.",
        request=SurveyWriteSerializer,
        responses={201: SaveSurveyResultSerializer},
        examples=[SAVE_SURVEY_EXAMPLE],
        tags=["Surveys"],
    )
    @action(detail=False, methods=['post'])
    def save(self, request):
        serializer = SurveyWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        survey, link = services.save_survey(serializer.validated_data, resolve_org_id(request))
        return Response(
            {"success": True, "survey": {"id": survey.id, "title": survey.title, "shareable_link": link}},
            status=status.HTTP_201_CREATED,
        )

    @extend_schema(
        summary="Version history",
        description="Every version in this survey's family, oldest first.",
        responses={200: SurveySerializer(many=True)},
        tags=["Survey versions"],
    )
    @action(detail=True, methods=['get'])
    def versions(self, request, pk=None):
        survey = self.get_object()
        history = get_version_history(survey.id, services.version_family(survey))
        return Response(SurveySerializer(history, many=True).data)

    @extend_schema(
        summary="Create a new version",
        description="Duplicate this survey and its questions as the next minor (or major) version.",
        request=CreateVersionSerializer,
        responses={201: VersionResultSerializer},
        tags=["Survey versions"],
    )
    @action(detail=True, methods=['post'], url_path='create-version')
    def create_version(self, request, pk=None):
        original = self.get_object()
        serializer = CreateVersionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        is_major = serializer.validated_data['is_major_version']
        survey = services.create_version(original, is_major, serializer.validated_data['changelog'])
        message = f"Created {'major' if is_major else 'minor'} version {format_version(survey.version)}"
        return Response(VersionResultSerializer(_version_result(survey, message)).data,
                        status=status.HTTP_201_CREATED)

    @extend_schema(
        summary="Save edits as a new version",
        description="Insert the edited survey as a new row whose parent is this survey.",
        request=UpdateVersionSerializer,
        responses={201: VersionResultSerializer},
        tags=["Survey versions"],
    )
    @action(detail=True, methods=['post'], url_path='update-version')
    def update_version(self, request, pk=None):
        parent = self.get_object()
        serializer = UpdateVersionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        survey = services.update_version(
            parent,
            data['survey_data'],
            current_version=data.get('current_version'),
            is_major=data['is_major_version'],
            changelog=data['changelog'],
        )
        message = f"Survey updated to version {format_version(survey.version)}"
        return Response(VersionResultSerializer(_version_result(survey, message)).data,
                        status=status.HTTP_201_CREATED)

    @extend_schema(
        summary="Restore an old version",
        description="Copy this (old) version forward as the next minor version after the current latest.",
        request=RestoreVersionSerializer,
        responses={201: VersionResultSerializer},
        tags=["Survey versions"],
    )
    @action(detail=True, methods=['post'], url_path='restore-version')
    def restore_version(self, request, pk=None):
        old = self.get_object()
        serializer = RestoreVersionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            current = Survey.objects.get(pk=serializer.validated_data['current_latest_survey_id'])
        except Survey.DoesNotExist:
            raise ValidationError({"current_latest_survey_id": "Current survey version not found"})
        survey = services.restore_version(old, current, org_id=current.org_id)
        message = f"Restored version {format_version(old.version)} as version {format_version(survey.version)}"
        return Response(VersionResultSerializer(_version_result(survey, message)).data,
                        status=status.HTTP_201_CREATED)

    @extend_schema(
        summary="Get analytics for survey",
        description="Sentiment tally, average sentiment, latest response and response trend for the survey.",
        responses={200: OpenApiTypes.OBJECT},
        tags=["Surveys"],
    )
    @action(detail=True, methods=['get'], permission_classes=[IsAuthenticated])
    def analytics(self, request, pk=None):
        survey = self.get_object()
        responses = list(survey.responses.order_by('-created_at'))
        summary = calculate_analytics_summary(responses)
        latest = summary.pop('latest_response')
        return Response({
            "survey_id": survey.id,
            **summary,
            "latest_response": ResponseSerializer(latest).data if latest else None,
            "response_trend": calculate_response_trend(responses, timezone.now()),
        })

    @extend_schema(
        summary="Export responses",
        description="Download all responses as CSV or JSON, one row per response and one column per question.",
        parameters=[
            OpenApiParameter(name="format", required=False, location=OpenApiParameter.QUERY,
                             type=OpenApiTypes.STR, enum=["csv", "json"], description="Export format (default csv)"),
        ],
        responses={(200, 'text/csv'): OpenApiTypes.STR, (200, 'application/json'): OpenApiTypes.OBJECT},
        tags=["Surveys"],
    )
    @action(detail=True, methods=['get'], permission_classes=[IsAuthenticated])
    def export(self, request, pk=None):
        survey = self.get_object()
        fmt = request.query_params.get('format', 'csv').lower()
        if fmt not in ('csv', 'json'):
            raise ValidationError({"format": "Must be one of: csv, json"})
        content, content_type, filename = services.export_responses(survey, fmt)
        resp = HttpResponse(content, content_type=content_type)
        resp['Content-Disposition'] = f'attachment; filename="{filename}"'
        return resp


####################################
# ResponseViewSet
####################################
@extend_schema_view(
    list=extend_schema(
        summary="List Responses",
        parameters=[
            ORG_PARAM,
            OpenApiParameter(name="survey", required=False, location=OpenApiParameter.QUERY,
                             type=OpenApiTypes.UUID, description="Filter by survey UUID"),
            OpenApiParameter(name="sentiment", required=False, location=OpenApiParameter.QUERY,
                             type=OpenApiTypes.STR, description="Filter by sentiment"),
        ],
        responses={200: ResponseSerializer(many=True)},
        tags=["Responses"],
    ),
    retrieve=extend_schema(summary="Retrieve Response", responses={200: ResponseSerializer}, tags=["Responses"]),
    create=extend_schema(
        summary="Submit Response",
        description="Anyone holding the survey link may respond. The response is queued for AI analysis.",
        request=ResponseSubmitSerializer,
        responses={201: ResponseSerializer},
        examples=[RESPONSE_CREATE_EXAMPLE],
        tags=["Responses"],
    ),
)
class ResponseViewSet(mixins.CreateModelMixin, mixins.ListModelMixin, mixins.RetrieveModelMixin,
                      viewsets.GenericViewSet):
    serializer_class = ResponseSerializer
    permission_classes = [AllowCreateOrAuthenticated]
    filter_backends = [DjangoFilterBackend, OrderingFilter]
    filterset_fields = ['survey', 'sentiment']
    ordering_fields = ['created_at']

    def get_queryset(self):
        qs = SurveyResponse.objects.select_related('survey')
        if self.action == 'list':
            qs = qs.filter(org_id=resolve_org_id(self.request))
        return qs.order_by('-created_at')

    def create(self, request, *args, **kwargs):
        serializer = ResponseSubmitSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        response = services.submit_response(
            serializer.validated_data['survey'], serializer.validated_data['answers'])
        return Response(ResponseSerializer(response).data, status=status.HTTP_201_CREATED)
