import logging

from django.shortcuts import get_object_or_404
from rest_framework import viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from drf_spectacular.utils import extend_schema, extend_schema_view, OpenApiExample

from apps.surveys.models import Response as SurveyResponse
from common.exceptions import DomainError
from .models import AIJob
from .serializers import (
    AIJobSerializer,
    GenerateQuestionsSerializer,
    GenerateQuestionsResultSerializer,
    AnalyzeRequestSerializer,
    AnalyzeResultSerializer,
)
from .services import run_question_generation, run_sentiment_analysis

logger = logging.getLogger(__name__)

GENERATE_EXAMPLE = OpenApiExample(
    "Generate questions",
    value={"title": "Product Feedback", "audience": "Beta users", "description": "Feedback on the new editor"},
)


class AIViewSet(viewsets.ViewSet):
    """AI helpers used by the survey builder and the response pipeline."""
    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="Generate survey questions",
        description="Suggest five questions for a survey draft. Falls back to template questions without an API key.",
        request=GenerateQuestionsSerializer,
        responses={200: GenerateQuestionsResultSerializer},
        examples=[GENERATE_EXAMPLE],
        tags=["AI"],
    )
    @action(detail=False, methods=['post'], url_path='generate-questions')
    def generate_questions(self, request):
        serializer = GenerateQuestionsSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        questions, job = run_question_generation(data['title'], data['audience'], data.get('description'))
        return Response({"questions": questions, "is_mock": job.is_mock, "error": job.error or None, "job_id": job.id})

    @extend_schema(
        summary="Analyze a response",
        description="Run sentiment analysis for a stored response and save the result on it.",
        request=AnalyzeRequestSerializer,
        responses={200: AnalyzeResultSerializer},
        tags=["AI"],
    )
    @action(detail=False, methods=['post'])
    def analyze(self, request):
        serializer = AnalyzeRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        response = get_object_or_404(SurveyResponse.objects.select_related('survey'), pk=data['response_id'])
        job = run_sentiment_analysis(response, answers=data.get('answers'), triggered_by='USER')
        if job.status != 'COMPLETED':
            raise DomainError(job.error or "Analysis failed", code="analysis_failed")
        return Response({"success": True, "analysis": job.result, "is_mock": job.is_mock, "job_id": job.id})


@extend_schema_view(
    list=extend_schema(summary="List AI jobs", responses={200: AIJobSerializer(many=True)}, tags=["AI"]),
    retrieve=extend_schema(summary="Retrieve AI job", responses={200: AIJobSerializer}, tags=["AI"]),
)
class AIJobViewSet(viewsets.ReadOnlyModelViewSet):
    queryset = AIJob.objects.all()
    serializer_class = AIJobSerializer
    permission_classes = [IsAuthenticated]
    filterset_fields = ['job_type', 'status', 'is_mock', 'input_ref_id']
    ordering_fields = ['created_at', 'completed_at']
