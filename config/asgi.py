"""ASGI entry point.

The API is plain HTTP; ASGI is exposed for servers such as uvicorn or
daphne. Production settings are the default, as in ``wsgi.py``.
"""

import os

from django.core.asgi import get_asgi_application  # type: ignore

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings.prod')

application = get_asgi_application()
