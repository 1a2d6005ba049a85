import logging

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class DomainError(Exception):
    """
    Base for business-rule failures raised by service functions.
    Views do not need to catch these; the handler below turns them into 400s.
    """
    status_code = status.HTTP_400_BAD_REQUEST
    default_code = "invalid"

    def __init__(self, message, code=None):
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code


def custom_exception_handler(exc, context):
    """
    Attach status code and a machine-friendly error field to responses.
    """
    if isinstance(exc, DomainError):
        view = context.get("view")
        logger.info("Domain error in %s: %s", type(view).__name__ if view else "unknown", exc.message)
        return Response(
            {"detail": exc.message, "code": exc.code, "error": exc.message, "status_code": exc.status_code},
            status=exc.status_code,
        )

    response = exception_handler(exc, context)
    if response is not None:
        if isinstance(response.data, dict):
            response.data.setdefault("status_code", response.status_code)
            if "detail" in response.data:
                response.data["error"] = str(response.data["detail"])
            else:
                # field validation errors: keep them, add a summary line
                response.data.setdefault("error", "Invalid request data")
    return response
