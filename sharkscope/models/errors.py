"""Error types for SharkScope.

Every failure that reaches a caller is one of these exceptions. They carry a
stable error code, a human-readable message that names the failing operation
and the next step, and optional details for the JSON error response.
"""

from __future__ import annotations

from typing import Any


class SharkScopeError(Exception):
    """Base exception for SharkScope errors.

    Attributes:
        code: Error code (e.g., 'SESSION_NOT_FOUND')
        message: Human-readable error message
        details: Additional error details
    """

    def __init__(
        self,
        code: str,
        message: str,
        details: dict[str, Any] | None = None,
    ):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON error response."""
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }


class CaptureError(SharkScopeError):
    """Capture session and capture process errors."""


class AnalysisError(SharkScopeError):
    """Errors raised while analyzing a capture file."""


class ConfigError(SharkScopeError):
    """Errors raised by the named configuration store."""


class TsharkNotFoundError(SharkScopeError):
    """Raised when the tshark executable cannot be located on the host."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(TSHARK_NOT_FOUND, message, details)


# Session / capture error codes
SESSION_DUPLICATE = "SESSION_DUPLICATE"
SESSION_NOT_FOUND = "SESSION_NOT_FOUND"
SESSION_INVALID_NAME = "SESSION_INVALID_NAME"
CAPTURE_SPAWN_FAILED = "CAPTURE_SPAWN_FAILED"
CAPTURE_NO_RESULTS = "CAPTURE_NO_RESULTS"
CAPTURE_INVALID_TIMEOUT = "CAPTURE_INVALID_TIMEOUT"
CAPTURE_INVALID_MAX_PACKETS = "CAPTURE_INVALID_MAX_PACKETS"
CAPTURE_INTERFACE_NOT_FOUND = "CAPTURE_INTERFACE_NOT_FOUND"

# Analysis error codes
ANALYSIS_FILE_NOT_FOUND = "ANALYSIS_FILE_NOT_FOUND"
ANALYSIS_ENGINE_FAILED = "ANALYSIS_ENGINE_FAILED"
ANALYSIS_INVALID_FORMAT = "ANALYSIS_INVALID_FORMAT"

# Configuration store error codes
CONFIG_NOT_FOUND = "CONFIG_NOT_FOUND"
CONFIG_INVALID = "CONFIG_INVALID"
CONFIG_MISSING_NAME = "CONFIG_MISSING_NAME"
CONFIG_MISSING_CONFIG = "CONFIG_MISSING_CONFIG"
CONFIG_UNKNOWN_ACTION = "CONFIG_UNKNOWN_ACTION"

# Host errors
TSHARK_NOT_FOUND = "TSHARK_NOT_FOUND"

# Request framing errors (HTTP API)
SYSTEM_INVALID_REQUEST = "SYSTEM_INVALID_REQUEST"
