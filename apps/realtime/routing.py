from django.urls import path

from .consumers import ActivityFeedConsumer, ResponsesConsumer, DashboardStatsConsumer

websocket_urlpatterns = [
    path("ws/activity/", ActivityFeedConsumer.as_asgi()),
    path("ws/surveys/<uuid:survey_id>/responses/", ResponsesConsumer.as_asgi()),
    path("ws/dashboard/", DashboardStatsConsumer.as_asgi()),
]
