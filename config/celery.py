# Celery app for the AI enrichment tasks and the periodic re-analysis sweep
import os
from celery import Celery

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings.local")

app = Celery("mosurveys")

# CELERY_* settings, including CELERY_BEAT_SCHEDULE, come from Django
app.config_from_object("django.conf:settings", namespace="CELERY")

# picks up apps/ai_integration/tasks.py
app.autodiscover_tasks()
