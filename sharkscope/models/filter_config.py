"""Named filter configuration model for SharkScope.

A FilterConfig is a reusable bundle of capture and analysis parameters that
callers save once and reference by name.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any

from sharkscope.models.analysis import OutputFormat
from sharkscope.models.errors import ConfigError, CONFIG_INVALID

CAPTURE_FIELDS = ("interface", "capture_filter", "timeout", "max_packets")
ANALYSIS_FIELDS = ("display_filter", "output_format", "custom_fields")

_STRING_FIELDS = (
    "description",
    "capture_filter",
    "display_filter",
    "custom_fields",
    "interface",
)
_POSITIVE_INT_FIELDS = ("timeout", "max_packets")


@dataclass
class FilterConfig:
    """Reusable capture/analysis configuration.

    Attributes:
        name: Configuration name (store key)
        description: What this configuration is for
        capture_filter: BPF capture filter
        display_filter: Display filter for analysis
        output_format: Output format value ('json', 'fields', 'text')
        custom_fields: Comma-separated field list for the fields format
        timeout: Capture timeout in seconds
        max_packets: Capture packet limit
        interface: Network interface
    """

    name: str
    description: str | None = None
    capture_filter: str | None = None
    display_filter: str | None = None
    output_format: str | None = None
    custom_fields: str | None = None
    timeout: int | None = None
    max_packets: int | None = None
    interface: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Serialize, omitting fields that were never set."""
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if getattr(self, f.name) is not None
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> FilterConfig:
        """Deserialize a stored entry."""
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})

    def present(self, names: tuple[str, ...]) -> dict[str, Any]:
        """Return the subset of `names` that this configuration sets."""
        return {
            name: getattr(self, name)
            for name in names
            if getattr(self, name) is not None
        }


def build_filter_config(name: str, config: dict[str, Any]) -> FilterConfig:
    """Validate caller input and build a FilterConfig.

    Args:
        name: Configuration name
        config: Field values supplied by the caller

    Returns:
        FilterConfig

    Raises:
        ConfigError: On unknown keys or wrongly typed values
    """
    if not isinstance(config, dict):
        raise ConfigError(
            code=CONFIG_INVALID,
            message="Configuration must be an object of field values",
        )

    allowed = {f.name for f in fields(FilterConfig)} - {"name"}
    unknown = sorted(set(config) - allowed)
    if unknown:
        raise ConfigError(
            code=CONFIG_INVALID,
            message=(
                f"Unknown configuration field(s): {', '.join(unknown)}. "
                f"Allowed fields: {', '.join(sorted(allowed))}"
            ),
            details={"unknown": unknown},
        )

    for key in _STRING_FIELDS:
        value = config.get(key)
        if value is not None and not isinstance(value, str):
            raise ConfigError(
                code=CONFIG_INVALID,
                message=f"Field '{key}' must be a string",
                details={"field": key},
            )

    for key in _POSITIVE_INT_FIELDS:
        value = config.get(key)
        if value is None:
            continue
        if isinstance(value, bool) or not isinstance(value, int) or value < 1:
            raise ConfigError(
                code=CONFIG_INVALID,
                message=f"Field '{key}' must be a positive integer",
                details={"field": key, "provided": value},
            )

    output_format = config.get("output_format")
    if output_format is not None:
        valid = [f.value for f in OutputFormat]
        if output_format not in valid:
            raise ConfigError(
                code=CONFIG_INVALID,
                message=f"Field 'output_format' must be one of: {', '.join(valid)}",
                details={"field": "output_format", "provided": output_format},
            )

    return FilterConfig(name=name, **config)
