"""
Error taxonomy for the content pipeline and the DRF handler that renders it.

Every error carries the HTTP status the API answers with; views let these
propagate and api_exception_handler turns them into {"error": message}.
"""
import logging
from typing import Optional

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class CityPagesError(Exception):
    """Base class for errors surfaced to API callers."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(CityPagesError):
    """Missing or malformed input. Nothing is persisted."""
    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundError(CityPagesError):
    """A referenced location or research job does not exist."""
    status_code = status.HTTP_404_NOT_FOUND


class InvalidStateError(CityPagesError):
    """The record is not in the lifecycle state the operation requires."""
    status_code = status.HTTP_400_BAD_REQUEST


class GenerationServiceError(CityPagesError):
    """The text-generation provider failed or returned no usable text."""


class ResponseParseError(CityPagesError):
    """The generation reply could not be turned into structured content."""


class PublishServiceError(CityPagesError):
    """The WordPress REST API rejected a request or could not be reached."""

    def __init__(self, message: str, status_code: Optional[int] = None, response_body: str = ''):
        super().__init__(message)
        self.upstream_status = status_code
        self.response_body = response_body


class PersistenceWarning(UserWarning):
    """An external action succeeded but the local bookkeeping write failed."""


def api_exception_handler(exc, context):
    """Render CityPagesError as JSON; defer everything else to DRF."""
    if isinstance(exc, CityPagesError):
        if exc.status_code >= 500:
            logger.error("%s in %s: %s", type(exc).__name__,
                         context.get('view').__class__.__name__, exc.message)
        return Response({'error': exc.message}, status=exc.status_code)
    return exception_handler(exc, context)
