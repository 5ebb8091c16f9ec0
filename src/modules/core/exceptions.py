"""API-wide exception handling.

Wraps DRF's default handler: request-validation failures answer 422, and
anything DRF does not know how to render is logged and answered with a
generic 500 body.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

import structlog
from rest_framework import status
from rest_framework.exceptions import ValidationError
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = structlog.get_logger(__name__)

GENERIC_ERROR_MESSAGE = "An error occurred. Please try again."


def api_exception_handler(exc: Exception, context: Dict[str, Any]) -> Optional[Response]:
    response = exception_handler(exc, context)

    if response is None:
        view = context.get("view")
        logger.exception(
            "api.unhandled_exception",
            view=type(view).__name__ if view else None,
        )
        return Response(
            {"detail": GENERIC_ERROR_MESSAGE, "code": "internal"},
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    if isinstance(exc, ValidationError):
        logger.info("api.validation_failed", errors=response.data)
        response.status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
        response.data = {"detail": "The given data was invalid.", "errors": response.data}

    return response
