from .base import *  # noqa

DEBUG = True
ALLOWED_HOSTS = ["*"]

# Local DB: keep sqlite unless DATABASE_URL provided.
DATABASE_URL = os.environ.get("DATABASE_URL", None)
if DATABASE_URL:
    import dj_database_url

    DATABASES["default"] = dj_database_url.parse(DATABASE_URL)

# Run AI enrichment inline when no broker is around
CELERY_TASK_ALWAYS_EAGER = os.environ.get("CELERY_TASK_ALWAYS_EAGER", "True").lower() in ("1", "true", "yes")

EMAIL_BACKEND = "django.core.mail.backends.console.EmailBackend"
