"""Settings modules of the reservation engine.

``base`` holds everything shared; ``dev``, ``prod`` and ``test`` only
override what differs per environment. Select one with
``DJANGO_SETTINGS_MODULE``.
"""
