"""Capture file analysis API endpoints for SharkScope."""

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


@api_bp.route('/analysis/pcap', methods=['POST'])
def analyze_pcap():
    """Analyze an existing capture file on the server.

    Request Body (JSON):
        file_path: str - Path of a .pcap/.pcapng file (required)
        display_filter: str - Display filter
        output_format: str - json, fields or text (default: text)
        custom_fields: str - Comma-separated fields for the fields format
        keylog_file: str - TLS key log file (default: SSLKEYLOGFILE)
        config_name: str - Saved configuration to apply

    Returns:
        JSON response with the analysis report
    """
    logger.info("POST /api/analysis/pcap called")

    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return invalid_request_response()

    file_path = data.get("file_path")
    if not file_path or not isinstance(file_path, str):
        return invalid_request_response(
            "file_path is required. Pass the path of a capture file readable by the server"
        )

    try:
        report = get_capture_service().analyze_pcap_file(
            file_path,
            display_filter=data.get("display_filter"),
            output_format=data.get("output_format"),
            custom_fields=data.get("custom_fields"),
            keylog_file=data.get("keylog_file"),
            config_name=data.get("config_name"),
        )

        logger.info(f"Capture file analyzed (file={file_path}, truncated={report.truncated})")

        return success_response(report.to_dict())

    except SharkScopeError as e:
        logger.warning(f"Analysis failed (file={file_path}, code={e.code})")
        return error_response(e)

    except Exception as e:
        return internal_error_response("analysis", e)
