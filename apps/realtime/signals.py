from django.db.models.signals import post_save, post_delete
from django.dispatch import receiver

from apps.activity.models import ActivityEvent
from apps.surveys.models import Survey, Response
from .broadcast import publish_change, INSERT, UPDATE, DELETE
from .groups import activity_feed_group, responses_group, dashboard_group


@receiver(post_save, sender=ActivityEvent)
def activity_saved(sender, instance, created, **kwargs):
    publish_change("activity_feed", INSERT if created else UPDATE, instance,
                   [activity_feed_group(instance.org_id)])


@receiver(post_delete, sender=ActivityEvent)
def activity_deleted(sender, instance, **kwargs):
    publish_change("activity_feed", DELETE, instance, [activity_feed_group(instance.org_id)])


@receiver(post_save, sender=Response)
def response_saved(sender, instance, created, **kwargs):
    publish_change("responses", INSERT if created else UPDATE, instance,
                   [responses_group(instance.survey_id), dashboard_group(instance.org_id)])


@receiver(post_delete, sender=Response)
def response_deleted(sender, instance, **kwargs):
    publish_change("responses", DELETE, instance,
                   [responses_group(instance.survey_id), dashboard_group(instance.org_id)])


@receiver(post_save, sender=Survey)
def survey_saved(sender, instance, created, **kwargs):
    publish_change("surveys", INSERT if created else UPDATE, instance, [dashboard_group(instance.org_id)])


@receiver(post_delete, sender=Survey)
def survey_deleted(sender, instance, **kwargs):
    publish_change("surveys", DELETE, instance, [dashboard_group(instance.org_id)])
