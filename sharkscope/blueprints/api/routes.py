"""API routes for SharkScope."""

import logging
from flask import jsonify, current_app

from . import api_bp

logger = logging.getLogger(__name__)


@api_bp.route('/health')
def health_check():
    """Health check endpoint.

    Returns:
        JSON response with status, version and tshark availability
    """
    from sharkscope import __version__

    return jsonify({
        'status': 'ok',
        'version': __version__,
        'tshark_available': bool(current_app.config.get('SHARKSCOPE_TSHARK_AVAILABLE')),
        'tshark_path': current_app.config.get('SHARKSCOPE_TSHARK_RESOLVED'),
    }), 200
