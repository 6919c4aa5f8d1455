"""Output size limits and report rendering for SharkScope."""

from __future__ import annotations

import logging

from sharkscope.models.analysis import OutputFormat

logger = logging.getLogger(__name__)

# Character ceilings per output format
MAX_OUTPUT_CHARS = {
    OutputFormat.JSON: 500_000,
    OutputFormat.FIELDS: 800_000,
    OutputFormat.TEXT: 720_000,
}

# Truncated output keeps this many characters below the ceiling
TRUNCATION_MARGIN = 500


def is_over_limit(output: str, output_format: OutputFormat) -> bool:
    return len(output) > MAX_OUTPUT_CHARS[output_format]


def trim_output(output: str, output_format: OutputFormat) -> str:
    """Cut output that exceeds its format's ceiling.

    Output at or under the ceiling is returned unchanged. Longer output is
    cut to (ceiling - TRUNCATION_MARGIN) characters and a visible marker
    is appended.

    Args:
        output: Engine output
        output_format: Format the output was rendered in

    Returns:
        Output no longer than the ceiling
    """
    max_chars = MAX_OUTPUT_CHARS[output_format]
    if len(output) <= max_chars:
        return output

    format_info = f" ({output_format.value} format)" if output_format != OutputFormat.TEXT else ""
    trimmed = (
        output[:max_chars - TRUNCATION_MARGIN]
        + f"\n\n... [Output truncated due to size{format_info}] ..."
    )
    logger.info(
        f"Trimmed output "
        f"(format={output_format.value}, before={len(output)}, after={len(trimmed)})"
    )
    return trimmed


def render_analysis_report(
    title: str,
    output: str,
    output_format: OutputFormat,
    display_filter: str | None,
    tls_decryption: bool,
    config_name: str | None = None,
    extra_lines: list[str] | None = None,
) -> str:
    """Build the caller-facing analysis text.

    Args:
        title: First line (e.g., "Capture session 'x' completed!")
        output: Trimmed engine output
        output_format: Format used
        display_filter: Display filter used, if any
        tls_decryption: Whether a key log file was supplied
        config_name: Saved configuration applied, if any
        extra_lines: Additional header lines placed after the config line

    Returns:
        Report text
    """
    lines = [title]
    if config_name:
        lines.append(f"Using saved config: {config_name}")
    lines.extend(extra_lines or [])
    lines.append(f"Display Filter: {display_filter or 'none'}")
    lines.append(f"Output Format: {output_format.value}")
    lines.append(f"TLS Decryption: {'Enabled' if tls_decryption else 'Disabled'}")
    lines.append("")
    lines.append("Packet Analysis Results:")
    lines.append(output)
    return "\n".join(lines)
