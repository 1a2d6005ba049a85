import logging

from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import AllowAny
from rest_framework.response import Response

from drf_spectacular.utils import (
    extend_schema,
    extend_schema_view,
    OpenApiExample,
    OpenApiParameter,
    OpenApiTypes,
)

from common.orgs import resolve_org_id
from common.pagination import FeedPagination
from .models import ActivityEvent
from .serializers import ActivityEventSerializer, WebhookPayloadSerializer
from .services import process_webhook

logger = logging.getLogger(__name__)

WEBHOOK_EXAMPLE = OpenApiExample(
    "Survey created webhook",
    value={
        "type": "SURVEY_CREATED",
        "org_id": "00000000-0000-0000-0000-000000000001",
        "survey_id": "aaaaaaaa-aaaa-aaaa-aaaa-aaaaaaaaaaaa",
        "details": {"survey_title": "Customer Satisfaction", "question_count": 5},
    },
)


@extend_schema_view(
    list=extend_schema(
        summary="Activity feed",
        description="Most recent activity events for an organization, newest first.",
        parameters=[
            OpenApiParameter(name="org_id", required=False, location=OpenApiParameter.QUERY,
                             type=OpenApiTypes.UUID, description="Organization UUID (defaults to the configured org)"),
            OpenApiParameter(name="type", required=False, location=OpenApiParameter.QUERY,
                             type=OpenApiTypes.STR, description="Filter by activity type"),
        ],
        responses={200: ActivityEventSerializer(many=True)},
        tags=["Activity"],
    ),
)
class ActivityFeedViewSet(mixins.ListModelMixin, viewsets.GenericViewSet):
    serializer_class = ActivityEventSerializer
    pagination_class = FeedPagination
    filter_backends = []

    def get_queryset(self):
        qs = ActivityEvent.objects.filter(org_id=resolve_org_id(self.request))
        event_type = self.request.query_params.get("type")
        if event_type:
            qs = qs.filter(type=event_type)
        return qs.order_by('-created_at', '-id')

    @extend_schema(
        summary="Activity webhook",
        description="Accepts an activity event from an external source and appends it to the feed.",
        request=WebhookPayloadSerializer,
        responses={201: ActivityEventSerializer},
        examples=[WEBHOOK_EXAMPLE],
        tags=["Activity"],
    )
    @action(detail=False, methods=['post'], permission_classes=[AllowAny])
    def webhook(self, request):
        event = process_webhook(request.data)
        logger.info("Webhook accepted type=%s org=%s", event.type, event.org_id)
        return Response(ActivityEventSerializer(event).data, status=status.HTTP_201_CREATED)
