import logging

from django.core.exceptions import PermissionDenied
from django.http import Http404
from rest_framework import exceptions as drf_exceptions
from rest_framework import status
from rest_framework.response import Response

logger = logging.getLogger(__name__)


class MatchdayError(Exception):
    """Base class for errors raised by the matchday services."""
    status_code = status.HTTP_400_BAD_REQUEST
    code = 'error'

    def __init__(self, message, errors=None):
        super().__init__(message)
        self.message = message
        self.errors = errors


class ValidationError(MatchdayError):
    """Malformed or missing input, rejected before any write."""
    code = 'validation_error'


class NotFoundError(MatchdayError):
    status_code = status.HTTP_404_NOT_FOUND
    code = 'not_found'


class ConflictError(MatchdayError):
    """Duplicate team-in-group, duplicate fixture or a final result.

    Reported as a 400 so existing clients keep working; the ``conflict`` code
    lets them tell it apart from plain validation failures.
    """
    code = 'conflict'


class PermissionDeniedError(MatchdayError):
    status_code = status.HTTP_403_FORBIDDEN
    code = 'permission_denied'


def error_payload(message, code, errors=None):
    payload = {
        'success': False,
        'data': None,
        'message': message,
        'code': code,
    }
    if errors:
        payload['errors'] = errors
    return payload


def api_exception_handler(exc, context):
    """Render domain and DRF errors with the API response envelope."""
    if isinstance(exc, MatchdayError):
        logger.warning(f"{exc.code}: {exc.message}")
        return Response(
            error_payload(exc.message, exc.code, exc.errors),
            status=exc.status_code
        )

    if isinstance(exc, Http404):
        exc = drf_exceptions.NotFound()
    elif isinstance(exc, PermissionDenied):
        exc = drf_exceptions.PermissionDenied()

    if isinstance(exc, drf_exceptions.APIException):
        if isinstance(exc, drf_exceptions.ValidationError):
            return Response(
                error_payload('Invalid request data', 'validation_error', exc.detail),
                status=exc.status_code
            )
        return Response(
            error_payload(str(exc.detail), exc.default_code),
            status=exc.status_code
        )

    # Let Django's 500 handling deal with anything unexpected
    return None
