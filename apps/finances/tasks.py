"""Celery tasks for the finance domain."""

from __future__ import annotations

import logging

from celery import shared_task  # type: ignore

from .services import ReconciliationService

logger = logging.getLogger(__name__)


@shared_task(name="finances.reconcile_open_cases")
def reconcile_open_cases() -> dict[str, int]:
    """Resolve orphaned payments and indeterminate charges."""
    summary = ReconciliationService().reconcile_open_cases()
    if summary.get("open"):
        logger.warning(f"[RECONCILIATION] {summary['open']} case(s) still open")
    return summary
