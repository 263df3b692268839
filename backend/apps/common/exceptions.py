from __future__ import annotations

from typing import Any, Dict, Optional

import structlog
from rest_framework import status
from rest_framework.exceptions import APIException
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = structlog.get_logger(__name__)

DEFAULT_FAILURE_DETAIL = "Internal server error"


class InvalidParameter(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Invalid request parameter"
    default_code = "invalid"


def _failure_detail(context: Dict[str, Any]) -> str:
    view = context.get("view")
    messages = getattr(view, "failure_messages", None) or {}
    action = getattr(view, "action", None)
    if action is None:
        request = context.get("request")
        action = request.method.lower() if request is not None else None
    return messages.get(action, DEFAULT_FAILURE_DETAIL)


def store_exception_handler(exc: Exception, context: Dict[str, Any]) -> Optional[Response]:
    """DRF handler that turns store failures into a generic 500.

    Validation, not-found and throttle errors keep DRF's default rendering.
    Anything else (``PyMongoError`` included) is logged with its traceback and
    answered with the view's failure message so driver details never leak.
    """
    response = exception_handler(exc, context)
    if response is not None:
        return response

    view = context.get("view")
    logger.error(
        "request_failed",
        view=type(view).__name__ if view is not None else None,
        action=getattr(view, "action", None),
        error=str(exc),
        exc_info=exc,
    )
    return Response({"detail": _failure_detail(context)}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)
