"""WSGI entry point.

Deployed behind a WSGI server (gunicorn, uWSGI), so production settings are
the default here; ``manage.py`` keeps defaulting to development.
"""

import os

from django.core.wsgi import get_wsgi_application  # type: ignore

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings.prod')

application = get_wsgi_application()
