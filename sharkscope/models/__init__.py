# Data models package

from sharkscope.models.errors import (
    SharkScopeError,
    CaptureError,
    AnalysisError,
    ConfigError,
    TsharkNotFoundError,
)
from sharkscope.models.capture import (
    CaptureParameters,
    CaptureSession,
    CaptureStatus,
    generate_session_id,
    validate_max_packets,
    validate_session_name,
    validate_timeout,
    DEFAULT_CAPTURE_TIMEOUT,
    DEFAULT_MAX_PACKETS,
)
from sharkscope.models.analysis import (
    AnalysisReport,
    AnalysisRequest,
    OutputFormat,
    validate_output_format,
    DEFAULT_FIELDS,
)
from sharkscope.models.filter_config import (
    FilterConfig,
    build_filter_config,
)

__all__ = [
    # Errors
    "SharkScopeError",
    "CaptureError",
    "AnalysisError",
    "ConfigError",
    "TsharkNotFoundError",
    # Capture models
    "CaptureParameters",
    "CaptureSession",
    "CaptureStatus",
    "generate_session_id",
    "validate_max_packets",
    "validate_session_name",
    "validate_timeout",
    "DEFAULT_CAPTURE_TIMEOUT",
    "DEFAULT_MAX_PACKETS",
    # Analysis models
    "AnalysisReport",
    "AnalysisRequest",
    "OutputFormat",
    "validate_output_format",
    "DEFAULT_FIELDS",
    # Named configurations
    "FilterConfig",
    "build_filter_config",
]
