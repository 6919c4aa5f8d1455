"""Capture session API endpoints for SharkScope.

Provides REST API for starting, stopping and inspecting capture sessions.
"""

import logging
from flask import request

from . import api_bp
from .responses import (
    error_response,
    internal_error_response,
    invalid_request_response,
    success_response,
)
from sharkscope.models.errors import SharkScopeError
from sharkscope.services.capture_service import get_capture_service

logger = logging.getLogger(__name__)


@api_bp.route('/captures/start', methods=['POST'])
def start_capture():
    """Start a background capture session.

    Request Body (JSON):
        interface: str - Network interface (default: configured default, "auto")
        capture_filter: str - BPF capture filter (default: none)
        timeout: int - Auto-stop after this many seconds (1-86400, default: 60)
        max_packets: int - Packet limit (1-10000000, default: 100000)
        session_name: str - Session ID to use (default: generated)
        config_name: str - Saved configuration to apply

    Returns:
        JSON response with the new session

    Example:
        POST /api/captures/start
        {"interface": "eth0", "capture_filter": "port 443", "timeout": 30}
    """
    logger.info("POST /api/captures/start called")

    data = request.get_json(silent=True)
    if data is None:
        data = {}
    if not isinstance(data, dict):
        return invalid_request_response()

    try:
        service = get_capture_service()
        result = service.start_capture_session(
            interface=data.get("interface"),
            capture_filter=data.get("capture_filter"),
            timeout=data.get("timeout"),
            max_packets=data.get("max_packets"),
            session_name=data.get("session_name"),
            config_name=data.get("config_name"),
        )

        logger.info(
            f"Capture session started "
            f"(session_id={result.session.id}, interface={result.session.parameters.interface})"
        )

        return success_response(result.to_dict())

    except SharkScopeError as e:
        logger.warning(f"Capture start failed (code={e.code}, message={e.message})")
        return error_response(e)

    except Exception as e:
        return internal_error_response("capture start", e)


@api_bp.route('/captures/stop', methods=['POST'])
def stop_capture():
    """Stop a capture session and return its analysis.

    Request Body (JSON):
        session_id: str - Session to stop (required)
        display_filter: str - Display filter applied to the capture
        output_format: str - json, fields or text (default: text)
        custom_fields: str - Comma-separated fields for the fields format
        keylog_file: str - TLS key log file (default: SSLKEYLOGFILE)
        config_name: str - Saved configuration to apply

    Returns:
        JSON response with the analysis report
    """
    logger.info("POST /api/captures/stop called")

    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return invalid_request_response()

    session_id = data.get("session_id")
    if not session_id or not isinstance(session_id, str):
        return invalid_request_response(
            "session_id is required. List active sessions with GET /api/captures/sessions"
        )

    try:
        service = get_capture_service()
        report = service.stop_capture_session(
            session_id,
            display_filter=data.get("display_filter"),
            output_format=data.get("output_format"),
            custom_fields=data.get("custom_fields"),
            keylog_file=data.get("keylog_file"),
            config_name=data.get("config_name"),
        )

        logger.info(f"Capture session stopped (session_id={session_id}, truncated={report.truncated})")

        return success_response(report.to_dict())

    except SharkScopeError as e:
        logger.warning(f"Capture stop failed (session_id={session_id}, code={e.code})")
        return error_response(e)

    except Exception as e:
        return internal_error_response("capture stop", e)


@api_bp.route('/captures/sessions', methods=['GET'])
def list_sessions():
    """List capture sessions that have not been stopped yet.

    Returns:
        JSON response with session snapshots
    """
    logger.debug("GET /api/captures/sessions called")

    try:
        sessions = get_capture_service().list_capture_sessions()
        return success_response({
            "count": len(sessions),
            "sessions": [s.to_dict() for s in sessions],
        })

    except Exception as e:
        return internal_error_response("session listing", e)


@api_bp.route('/captures/sessions/<session_id>', methods=['GET'])
def get_session(session_id):
    """Get the status of one capture session.

    Returns:
        JSON response with the session snapshot
    """
    logger.debug(f"GET /api/captures/sessions/{session_id} called")

    try:
        session = get_capture_service().registry.get(session_id)
        return success_response({"session": session.to_dict()})

    except SharkScopeError as e:
        return error_response(e)

    except Exception as e:
        return internal_error_response("session lookup", e)
