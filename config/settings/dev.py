"""Development settings.

Debug on, any host, emails printed to the console and verbose application
logs. Celery can run tasks inline with ``CELERY_TASK_ALWAYS_EAGER=1`` when
no broker is running locally.
"""

import os

from .base import *  # noqa: F401,F403

DEBUG = True

ALLOWED_HOSTS = ['*']

CORS_ALLOW_ALL_ORIGINS = True

EMAIL_BACKEND = 'django.core.mail.backends.console.EmailBackend'

CELERY_TASK_ALWAYS_EAGER = os.environ.get('CELERY_TASK_ALWAYS_EAGER', '0') == '1'

LOGGING["loggers"]["apps"]["level"] = "DEBUG"  # noqa: F405
