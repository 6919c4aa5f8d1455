"""Network API endpoints for SharkScope.

Lists the interfaces a capture can be started on.
"""

import logging

from flask import current_app

from . import api_bp
from .responses import internal_error_response, success_response
from sharkscope.core.capture.interface_detector import (
    detect_interfaces,
    get_recommended_interface,
)

logger = logging.getLogger(__name__)


@api_bp.route('/network/interfaces')
def network_interfaces():
    """Get all detected network interfaces.

    Returns:
        JSON response with interfaces list:
        {
            "success": true,
            "result": {
                "interfaces": [
                    {
                        "name": "eth0",
                        "type": "ethernet",
                        "ip_address": "192.168.1.45",
                        "is_up": true,
                        "is_connected": true,
                        "mac_address": "dc:a6:32:xx:xx:xx"
                    }
                ],
                "recommended": "eth0",
                "default_interface": "auto"
            }
        }
    """
    try:
        interfaces = detect_interfaces()
        recommended = get_recommended_interface(interfaces)

        logger.debug(
            f"Network interfaces listed "
            f"(count={len(interfaces)}, recommended={recommended.name if recommended else None})"
        )

        return success_response({
            "interfaces": [iface.to_dict() for iface in interfaces],
            "recommended": recommended.name if recommended else None,
            "default_interface": current_app.config.get("SHARKSCOPE_DEFAULT_INTERFACE") or "auto",
        })

    except Exception as e:
        return internal_error_response("interface detection", e)
