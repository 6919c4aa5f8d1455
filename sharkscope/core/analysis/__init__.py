# Capture file analysis module

from sharkscope.core.analysis.tshark_analyzer import (
    analyze_capture_file,
    build_analysis_command,
    process_output,
)
from sharkscope.core.analysis.output_formatter import (
    MAX_OUTPUT_CHARS,
    TRUNCATION_MARGIN,
    render_analysis_report,
    trim_output,
)

__all__ = [
    "analyze_capture_file",
    "build_analysis_command",
    "process_output",
    "MAX_OUTPUT_CHARS",
    "TRUNCATION_MARGIN",
    "render_analysis_report",
    "trim_output",
]
