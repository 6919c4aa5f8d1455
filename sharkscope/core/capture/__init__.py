# Network capture module

from sharkscope.core.capture.session_registry import (
    SessionRegistry,
    get_session_registry,
    reset_session_registry,
)
from sharkscope.core.capture.tshark_manager import (
    TsharkCaptureManager,
    build_capture_command,
    is_windows,
    STOP_GRACE_PERIOD,
)
from sharkscope.core.capture.tshark_locator import (
    find_tshark,
    verify_tshark,
)
from sharkscope.core.capture.interface_detector import (
    AUTO_INTERFACE,
    InterfaceType,
    NetworkInterface,
    detect_interfaces,
    get_recommended_interface,
    resolve_interface,
)

__all__ = [
    # Session registry
    "SessionRegistry",
    "get_session_registry",
    "reset_session_registry",
    # Capture process controller
    "TsharkCaptureManager",
    "build_capture_command",
    "is_windows",
    "STOP_GRACE_PERIOD",
    # Executable locator
    "find_tshark",
    "verify_tshark",
    # Interface detector
    "AUTO_INTERFACE",
    "InterfaceType",
    "NetworkInterface",
    "detect_interfaces",
    "get_recommended_interface",
    "resolve_interface",
]
