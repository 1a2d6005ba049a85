from rest_framework import serializers

from apps.surveys.serializers import ResponseSerializer


class SentimentCountsSerializer(serializers.Serializer):
    positive = serializers.IntegerField()
    negative = serializers.IntegerField()
    neutral = serializers.IntegerField()
    mixed = serializers.IntegerField()
    unanalyzed = serializers.IntegerField()


class ResponseTrendSerializer(serializers.Serializer):
    today = serializers.IntegerField()
    this_week = serializers.IntegerField()
    this_month = serializers.IntegerField()


class TopSurveySerializer(serializers.Serializer):
    id = serializers.UUIDField()
    title = serializers.CharField()
    response_count = serializers.IntegerField()
    avg_sentiment = serializers.CharField()


class ResponseSurveySerializer(serializers.Serializer):
    id = serializers.UUIDField()
    title = serializers.CharField()
    version = serializers.DecimalField(max_digits=5, decimal_places=1, coerce_to_string=False)


class RecentResponseSerializer(serializers.Serializer):
    response = ResponseSerializer()
    survey = ResponseSurveySerializer(allow_null=True)


class InsightsSerializer(serializers.Serializer):
    total_responses = serializers.IntegerField()
    total_surveys = serializers.IntegerField()
    sentiment_breakdown = SentimentCountsSerializer()
    top_surveys = TopSurveySerializer(many=True)
    recent_responses = RecentResponseSerializer(many=True)
    response_trend = ResponseTrendSerializer()


class DashboardStatsSerializer(serializers.Serializer):
    total_surveys = serializers.IntegerField()
    active_surveys = serializers.IntegerField()
    total_responses = serializers.IntegerField()
