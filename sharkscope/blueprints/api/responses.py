"""JSON response helpers shared by the API endpoints."""

import logging

from flask import jsonify

from sharkscope.models import errors

logger = logging.getLogger(__name__)

# Error code -> HTTP status; codes not listed are validation errors (400)
HTTP_STATUS_BY_CODE = {
    errors.SESSION_NOT_FOUND: 404,
    errors.CAPTURE_INTERFACE_NOT_FOUND: 404,
    errors.CAPTURE_NO_RESULTS: 404,
    errors.ANALYSIS_FILE_NOT_FOUND: 404,
    errors.CONFIG_NOT_FOUND: 404,
    errors.SESSION_DUPLICATE: 409,
    errors.CAPTURE_SPAWN_FAILED: 500,
    errors.ANALYSIS_ENGINE_FAILED: 500,
    errors.TSHARK_NOT_FOUND: 503,
}


def http_status_for(code):
    """Return the HTTP status for an error code."""
    return HTTP_STATUS_BY_CODE.get(code, 400)


def success_response(result, status=200):
    """Build a success envelope."""
    return jsonify({
        'success': True,
        'result': result,
    }), status


def error_response(error):
    """Build an error envelope from a SharkScopeError."""
    return jsonify({
        'success': False,
        'error': error.to_dict(),
    }), http_status_for(error.code)


def internal_error_response(operation, exc):
    """Log an unexpected exception and build a 500 envelope."""
    logger.exception(f'Unexpected error during {operation} (error={str(exc)})')
    return jsonify({
        'success': False,
        'error': {
            'code': 'SYSTEM_INTERNAL_ERROR',
            'message': f'Unexpected error during {operation}: {str(exc)}',
            'details': {},
        },
    }), 500


def invalid_request_response(message='Request body must be a JSON object'):
    """Build the 400 envelope for a malformed request."""
    return jsonify({
        'success': False,
        'error': {
            'code': errors.SYSTEM_INVALID_REQUEST,
            'message': message,
            'details': {},
        },
    }), 400
