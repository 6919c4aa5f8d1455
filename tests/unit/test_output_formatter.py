"""Unit tests for output trimming and report rendering."""

import pytest

from sharkscope.core.analysis.output_formatter import (
    MAX_OUTPUT_CHARS,
    TRUNCATION_MARGIN,
    is_over_limit,
    render_analysis_report,
    trim_output,
)
from sharkscope.models.analysis import OutputFormat


class TestTrimOutput:
    """Tests for trim_output()."""

    def test_ceilings(self):
        """Test the per-format ceilings."""
        assert MAX_OUTPUT_CHARS == {
            OutputFormat.JSON: 500_000,
            OutputFormat.FIELDS: 800_000,
            OutputFormat.TEXT: 720_000,
        }

    @pytest.mark.parametrize("fmt", list(OutputFormat))
    def test_identity_at_or_under_ceiling(self, fmt):
        """Test output at or under the ceiling is returned unchanged."""
        for size in (0, 10, MAX_OUTPUT_CHARS[fmt]):
            output = "x" * size
            assert trim_output(output, fmt) == output
            assert is_over_limit(output, fmt) is False

    @pytest.mark.parametrize("fmt", [OutputFormat.JSON, OutputFormat.FIELDS])
    def test_structured_formats_name_the_format(self, fmt):
        """Test the marker for json and fields names the format."""
        ceiling = MAX_OUTPUT_CHARS[fmt]
        output = "y" * (ceiling + 1)

        trimmed = trim_output(output, fmt)

        marker = f"\n\n... [Output truncated due to size ({fmt.value} format)] ..."
        assert trimmed == "y" * (ceiling - TRUNCATION_MARGIN) + marker
        assert is_over_limit(output, fmt) is True

    def test_text_marker(self):
        """Test the text marker carries no format suffix."""
        ceiling = MAX_OUTPUT_CHARS[OutputFormat.TEXT]

        trimmed = trim_output("z" * (ceiling * 2), OutputFormat.TEXT)

        assert trimmed.endswith("\n\n... [Output truncated due to size] ...")
        assert trimmed.startswith("z" * (ceiling - TRUNCATION_MARGIN) + "\n")

    @pytest.mark.parametrize("fmt", list(OutputFormat))
    def test_trim_is_idempotent(self, fmt):
        """Test trimming twice equals trimming once."""
        output = "w" * (MAX_OUTPUT_CHARS[fmt] + 12345)

        once = trim_output(output, fmt)

        assert len(once) <= MAX_OUTPUT_CHARS[fmt]
        assert trim_output(once, fmt) == once


class TestRenderAnalysisReport:
    """Tests for render_analysis_report()."""

    def test_minimal(self):
        """Test the report layout without optional lines."""
        text = render_analysis_report(
            title="Analysis of '/tmp/a.pcap' complete!",
            output="PACKETS",
            output_format=OutputFormat.TEXT,
            display_filter=None,
            tls_decryption=False,
        )

        assert text == "\n".join([
            "Analysis of '/tmp/a.pcap' complete!",
            "Display Filter: none",
            "Output Format: text",
            "TLS Decryption: Disabled",
            "",
            "Packet Analysis Results:",
            "PACKETS",
        ])

    def test_with_config_and_extra_lines(self):
        """Test the config line comes before extra header lines."""
        text = render_analysis_report(
            title="Capture session 's1' completed!",
            output="",
            output_format=OutputFormat.JSON,
            display_filter="dns",
            tls_decryption=True,
            config_name="dns-only",
            extra_lines=["Interface: eth0", "Duration: 2.0s"],
        )

        lines = text.split("\n")
        assert lines[:7] == [
            "Capture session 's1' completed!",
            "Using saved config: dns-only",
            "Interface: eth0",
            "Duration: 2.0s",
            "Display Filter: dns",
            "Output Format: json",
            "TLS Decryption: Enabled",
        ]
        assert lines[-2:] == ["Packet Analysis Results:", ""]
