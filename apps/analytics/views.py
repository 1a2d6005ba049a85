from rest_framework import viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from drf_spectacular.utils import extend_schema, OpenApiParameter, OpenApiTypes

from common.orgs import resolve_org_id
from .selectors import dashboard_stats, org_insights
from .serializers import InsightsSerializer, DashboardStatsSerializer

ORG_PARAM = OpenApiParameter(
    name="org_id", required=False, location=OpenApiParameter.QUERY, type=OpenApiTypes.UUID,
    description="Organization UUID (defaults to the configured org)",
)


class AnalyticsViewSet(viewsets.ViewSet):
    """Read-only aggregate views over an organization's surveys and responses."""

    @extend_schema(
        summary="Organization insights",
        description="Sentiment breakdown, top surveys, recent responses and response trend.",
        parameters=[ORG_PARAM],
        responses={200: InsightsSerializer},
        tags=["Analytics"],
    )
    @action(detail=False, methods=['get'], permission_classes=[IsAuthenticated])
    def insights(self, request):
        data = org_insights(resolve_org_id(request))
        return Response(InsightsSerializer(data).data)

    @extend_schema(
        summary="Dashboard counters",
        parameters=[ORG_PARAM],
        responses={200: DashboardStatsSerializer},
        tags=["Analytics"],
    )
    @action(detail=False, methods=['get'])
    def dashboard(self, request):
        return Response(DashboardStatsSerializer(dashboard_stats(resolve_org_id(request))).data)
