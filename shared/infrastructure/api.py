"""REST framework glue shared by all apps."""

from __future__ import annotations

import logging

from rest_framework.response import Response  # type: ignore
from rest_framework.views import exception_handler as drf_exception_handler  # type: ignore

from shared.domain.exceptions import ClientError, OrphanedPayment, ReservationError

logger = logging.getLogger(__name__)


def exception_handler(exc, context):
    """Render reservation errors with their own status code and stable error code."""

    if isinstance(exc, ReservationError):
        if not isinstance(exc, (ClientError, OrphanedPayment)):
            view = context.get("view")
            logger.warning(f"{exc.code} in {type(view).__name__}: {exc.message}")
        return Response(exc.to_dict(), status=exc.status_code)

    return drf_exception_handler(exc, context)
