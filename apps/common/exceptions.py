"""
Custom exception handlers for consistent API responses
"""
import logging

from rest_framework.views import exception_handler
from rest_framework import status

logger = logging.getLogger(__name__)

STATUS_MESSAGES = {
    status.HTTP_400_BAD_REQUEST: 'Validation error',
    status.HTTP_401_UNAUTHORIZED: 'Authentication required',
    status.HTTP_403_FORBIDDEN: 'Permission denied',
    status.HTTP_404_NOT_FOUND: 'Resource not found',
    status.HTTP_405_METHOD_NOT_ALLOWED: 'Method not allowed',
}


def custom_exception_handler(exc, context):
    """
    Wrap DRF errors in the {code, msg, errors} envelope
    """
    response = exception_handler(exc, context)
    if response is None:
        return response

    view = context.get('view')
    view_name = type(view).__name__ if view is not None else 'unknown view'
    if response.status_code >= 500:
        logger.error(f"API exception in {view_name}: {exc}", exc_info=True)
    else:
        logger.warning(f"API error {response.status_code} in {view_name}: {exc}")

    custom_response_data = {
        'code': response.status_code,
        'msg': STATUS_MESSAGES.get(response.status_code, 'An error occurred'),
        'errors': response.data
    }

    if response.status_code >= 500:
        custom_response_data['msg'] = 'Internal server error'
        # Don't expose internal errors to non-staff users
        request = context.get('request')
        if request is None or not getattr(request.user, 'is_staff', False):
            custom_response_data['errors'] = {'detail': 'Internal server error'}

    response.data = custom_response_data
    return response
