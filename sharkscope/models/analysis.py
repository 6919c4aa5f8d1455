"""Analysis data models for SharkScope.

Defines the output formats, the per-call analysis request and the report
returned to callers.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any

from sharkscope.models.errors import AnalysisError, ANALYSIS_INVALID_FORMAT


class OutputFormat(Enum):
    """Rendering modes supported by the analysis engine."""

    JSON = "json"
    FIELDS = "fields"
    TEXT = "text"


DEFAULT_OUTPUT_FORMAT = OutputFormat.TEXT

# Used by OutputFormat.FIELDS when no custom field list is given
DEFAULT_FIELDS = (
    "frame.number",
    "frame.time_relative",
    "ip.src",
    "ip.dst",
    "tcp.srcport",
    "tcp.dstport",
)


@dataclass(frozen=True)
class AnalysisRequest:
    """Resolved parameters for a single analysis call.

    Attributes:
        file_path: Capture file to read
        display_filter: Display filter expression, passed through unchanged
        output_format: Rendering mode
        custom_fields: Comma-separated field list (fields format only)
        keylog_file: TLS key log file used for decryption
    """

    file_path: Path
    display_filter: str | None = None
    output_format: OutputFormat = DEFAULT_OUTPUT_FORMAT
    custom_fields: str | None = None
    keylog_file: str | None = None

    @property
    def fields(self) -> list[str]:
        """Field names for the fields format, in order."""
        if not self.custom_fields:
            return list(DEFAULT_FIELDS)
        return [f.strip() for f in self.custom_fields.split(",") if f.strip()]


@dataclass
class AnalysisReport:
    """Formatted result of an analysis, ready to hand back to the caller.

    Attributes:
        text: Full caller-facing text (header plus trimmed output)
        output: Trimmed engine output
        output_format: Rendering mode used
        display_filter: Display filter used, if any
        tls_decryption: Whether a key log file was supplied
        config_name: Saved configuration applied, if any
        source: Session ID or file path that was analyzed
        truncated: Whether the output hit its size ceiling
        duration_seconds: Capture duration (sessions only)
    """

    text: str
    output: str
    output_format: OutputFormat
    display_filter: str | None
    tls_decryption: bool
    config_name: str | None
    source: str
    truncated: bool = False
    duration_seconds: float | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        result = {
            "source": self.source,
            "output_format": self.output_format.value,
            "display_filter": self.display_filter,
            "tls_decryption": self.tls_decryption,
            "config_name": self.config_name,
            "truncated": self.truncated,
            "output": self.output,
            "text": self.text,
        }
        if self.duration_seconds is not None:
            result["duration_seconds"] = round(self.duration_seconds, 1)
        return result


def validate_output_format(value: OutputFormat | str | None) -> OutputFormat:
    """Coerce a caller-supplied output format.

    Args:
        value: OutputFormat, its string value, or None for the default

    Returns:
        OutputFormat

    Raises:
        AnalysisError: If the value is not a supported format
    """
    if value is None:
        return DEFAULT_OUTPUT_FORMAT
    if isinstance(value, OutputFormat):
        return value
    try:
        return OutputFormat(str(value).lower())
    except ValueError:
        raise AnalysisError(
            code=ANALYSIS_INVALID_FORMAT,
            message=(
                f"Unsupported output format '{value}'. "
                f"Use one of: {', '.join(f.value for f in OutputFormat)}"
            ),
            details={"provided": value},
        )
