"""Notifications app package.

Subscribes to booking lifecycle events on the message bus and emails the
requester through a Celery task. Delivery is best effort: failures are
logged and never reach the booking flow.
"""
