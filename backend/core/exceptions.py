"""
API error types and the project-wide DRF exception handler.

Every error leaving the API has the shape {"error": <message>, "details": <optional>}.
"""
import logging

from django.conf import settings
from django.core.exceptions import PermissionDenied, ValidationError as DjangoValidationError
from django.db import IntegrityError
from django.http import Http404
from rest_framework import exceptions, status
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class DomainValidationError(exceptions.APIException):
    """A request that is well-formed but breaks a business rule"""
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Invalid request.'
    default_code = 'invalid'

    def __init__(self, detail=None, details=None, code=None):
        super().__init__(detail, code)
        self.details = details


class ConflictError(DomainValidationError):
    """Unique constraint violated (duplicate email, article number, ...)"""
    default_detail = 'Duplicate value.'
    default_code = 'conflict'


class Forbidden(exceptions.PermissionDenied):
    default_detail = 'Access denied.'


def _first_message(data):
    """Pick a human readable message out of a DRF error structure"""
    if isinstance(data, dict):
        if 'detail' in data:
            return _first_message(data['detail'])
        if 'non_field_errors' in data:
            return _first_message(data['non_field_errors'])
        return 'Validation failed.'
    if isinstance(data, list):
        return _first_message(data[0]) if data else 'Validation failed.'
    return str(data)


def api_exception_handler(exc, context):
    if isinstance(exc, DjangoValidationError):
        detail = exc.message_dict if hasattr(exc, 'error_dict') else exc.messages
        exc = exceptions.ValidationError(detail=detail)
    elif isinstance(exc, Http404):
        exc = exceptions.NotFound(str(exc) or 'Not found.')
    elif isinstance(exc, PermissionDenied):
        exc = exceptions.PermissionDenied()
    elif isinstance(exc, IntegrityError):
        logger.warning(f"Integrity error in {context.get('view').__class__.__name__}: {exc}")
        exc = ConflictError('Duplicate value or invalid reference.')

    if isinstance(exc, DomainValidationError):
        body = {'error': str(exc.detail)}
        if exc.details:
            body['details'] = exc.details
        return Response(body, status=exc.status_code)

    response = exception_handler(exc, context)

    if response is None:
        logger.error(f"Unhandled error: {exc}", exc_info=exc)
        message = str(exc) if settings.DEBUG else 'Internal server error'
        return Response({'error': message}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

    data = response.data
    if isinstance(exc, exceptions.ValidationError):
        response.data = {'error': _first_message(data), 'details': data}
    else:
        response.data = {'error': _first_message(data)}
    return response
