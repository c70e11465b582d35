import os

from celery import Celery

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings.dev")

app = Celery("reservation_engine")

app.config_from_object("django.conf:settings", namespace="CELERY")
app.autodiscover_tasks()


# ============================================================================
# CELERY BEAT SCHEDULE (Periodic Tasks)
# ============================================================================

app.conf.beat_schedule = {
    # Orphaned payments and indeterminate charges - every 5 minutes
    "reconcile-open-cases": {
        "task": "finances.reconcile_open_cases",
        "schedule": 300.0,
        "options": {"expires": 240},
    },
}
