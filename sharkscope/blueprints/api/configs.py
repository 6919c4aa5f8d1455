"""Named configuration API endpoint for SharkScope."""

import logging
from flask import request

from . import api_bp
from .responses import (
    error_response,
    internal_error_response,
    invalid_request_response,
    success_response,
)
from sharkscope.models.errors import ConfigError
from sharkscope.services.config_service import manage_config
from sharkscope.services.config_store import get_config_store

logger = logging.getLogger(__name__)


@api_bp.route('/configs', methods=['POST'])
def manage_configs():
    """Save, load, list, view or delete named configurations.

    Request Body (JSON):
        action: str - save, load, list, view or delete (required)
        name: str - Configuration name (save, load, delete)
        config: dict - Field values (save)
        detailed: bool - Detailed listing (list only)

    Returns:
        JSON response with the action result

    Example:
        POST /api/configs
        {"action": "save", "name": "https", "config": {"capture_filter": "port 443"}}
    """
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return invalid_request_response()

    action = data.get("action")
    logger.info(f"POST /api/configs called (action={action})")

    try:
        result = manage_config(
            get_config_store(),
            action,
            name=data.get("name"),
            config=data.get("config"),
            detailed=bool(data.get("detailed", False)),
        )
        return success_response(result.to_dict())

    except ConfigError as e:
        logger.warning(f"Configuration action failed (action={action}, code={e.code})")
        return error_response(e)

    except Exception as e:
        return internal_error_response("configuration management", e)
