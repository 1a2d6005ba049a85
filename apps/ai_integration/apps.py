from django.apps import AppConfig


class AIIntegrationConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'apps.ai_integration'
    verbose_name = 'AI integration'
