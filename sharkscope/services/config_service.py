"""ManageConfig actions over the configuration store.

Each action returns a ConfigActionResult holding the caller-facing text and
the structured data behind it.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any

from sharkscope.models.errors import (
    ConfigError,
    CONFIG_MISSING_CONFIG,
    CONFIG_MISSING_NAME,
    CONFIG_UNKNOWN_ACTION,
)
from sharkscope.models.filter_config import FilterConfig, build_filter_config
from sharkscope.services.config_store import ConfigStore

logger = logging.getLogger(__name__)

ACTIONS = ("save", "load", "list", "view", "delete")

LIST_SEPARATOR = "─" * 50
VIEW_SEPARATOR = "─" * 60

NO_CONFIGS_TEXT = "No saved configurations found."

# (attribute, label, unit suffix) for the detailed listing
_DETAIL_LABELS = (
    ("description", "Description", ""),
    ("capture_filter", "Capture Filter", ""),
    ("display_filter", "Display Filter", ""),
    ("output_format", "Output Format", ""),
    ("custom_fields", "Custom Fields", ""),
    ("interface", "Interface", ""),
    ("timeout", "Timeout", "s"),
    ("max_packets", "Max Packets", ""),
)


@dataclass
class ConfigActionResult:
    """Outcome of a manage_config call."""

    action: str
    text: str
    data: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {"action": self.action, "text": self.text, **self.data}


def _dump(filter_config: FilterConfig) -> str:
    return json.dumps(filter_config.to_dict(), indent=2, ensure_ascii=False)


def _require_name(action: str, name: str | None) -> str:
    if not name:
        raise ConfigError(
            code=CONFIG_MISSING_NAME,
            message=f"Name is required for {action} action",
            details={"action": action},
        )
    return name


def _describe(filter_config: FilterConfig) -> str:
    lines = [f"Name: {filter_config.name}"]
    for attr, label, unit in _DETAIL_LABELS:
        value = getattr(filter_config, attr)
        if value is not None and value != "":
            lines.append(f"{label}: {value}{unit}")
    return "\n  ".join(lines)


def save_config(store: ConfigStore, name: str | None, config: dict[str, Any] | None) -> ConfigActionResult:
    if not name or config is None:
        raise ConfigError(
            code=CONFIG_MISSING_CONFIG if name else CONFIG_MISSING_NAME,
            message="Both name and config are required for save action",
            details={"action": "save"},
        )

    filter_config = store.save(build_filter_config(name, config))
    return ConfigActionResult(
        action="save",
        text=f"Configuration '{name}' saved successfully!\n\nSaved config:\n{_dump(filter_config)}",
        data={"config": filter_config.to_dict()},
    )


def load_config(store: ConfigStore, name: str | None) -> ConfigActionResult:
    name = _require_name("load", name)
    filter_config = store.require(name)
    return ConfigActionResult(
        action="load",
        text=f"Configuration '{name}' loaded:\n\n{_dump(filter_config)}",
        data={"config": filter_config.to_dict()},
    )


def list_configs(store: ConfigStore, detailed: bool = False) -> ConfigActionResult:
    configs = store.list_configs()
    data = {"configs": [c.to_dict() for c in configs]}
    if not configs:
        return ConfigActionResult(action="list", text=NO_CONFIGS_TEXT, data=data)

    if detailed:
        body = f"\n\n{LIST_SEPARATOR}\n\n".join(_describe(c) for c in configs)
        text = (
            f"Available configurations ({len(configs)}) - Detailed View:\n\n"
            f"{LIST_SEPARATOR}\n\n{body}\n\n{LIST_SEPARATOR}\n\n"
            f"Use 'load' action with a specific name to get the full JSON configuration."
        )
    else:
        body = "\n".join(
            f"• {c.name}: {c.description}" if c.description else f"• {c.name}"
            for c in configs
        )
        text = (
            f"Available configurations ({len(configs)}):\n\n{body}\n\n"
            f"Use 'load' action to get full details of any configuration, or use "
            f"'view' action to see all configurations with full details."
        )
    return ConfigActionResult(action="list", text=text, data=data)


def view_configs(store: ConfigStore) -> ConfigActionResult:
    configs = store.list_configs()
    data = {"configs": [c.to_dict() for c in configs]}
    if not configs:
        return ConfigActionResult(action="view", text=NO_CONFIGS_TEXT, data=data)

    body = f"\n\n{VIEW_SEPARATOR}\n\n".join(f"{c.name}:\n{_dump(c)}" for c in configs)
    text = (
        f"All configurations ({len(configs)}) - Full Details:\n\n"
        f"{VIEW_SEPARATOR}\n\n{body}\n\n{VIEW_SEPARATOR}"
    )
    return ConfigActionResult(action="view", text=text, data=data)


def delete_config(store: ConfigStore, name: str | None) -> ConfigActionResult:
    name = _require_name("delete", name)
    # Raises CONFIG_NOT_FOUND
    store.require(name)
    store.delete(name)
    return ConfigActionResult(
        action="delete",
        text=f"Configuration '{name}' deleted successfully.",
        data={"name": name},
    )


def manage_config(
    store: ConfigStore,
    action: str | None,
    name: str | None = None,
    config: dict[str, Any] | None = None,
    detailed: bool = False,
) -> ConfigActionResult:
    """Dispatch a configuration action.

    Args:
        store: Configuration store
        action: One of save, load, list, view, delete
        name: Configuration name (save, load, delete)
        config: Field values (save)
        detailed: Detailed listing (list only)

    Returns:
        ConfigActionResult

    Raises:
        ConfigError: CONFIG_UNKNOWN_ACTION, CONFIG_MISSING_NAME,
            CONFIG_MISSING_CONFIG, CONFIG_NOT_FOUND, CONFIG_INVALID
    """
    logger.debug(f"Managing configuration (action={action}, name={name})")

    if action == "save":
        return save_config(store, name, config)
    if action == "load":
        return load_config(store, name)
    if action == "list":
        return list_configs(store, detailed=bool(detailed))
    if action == "view":
        return view_configs(store)
    if action == "delete":
        return delete_config(store, name)

    raise ConfigError(
        code=CONFIG_UNKNOWN_ACTION,
        message=f"Unknown action '{action}'. Use save, load, list, view, or delete",
        details={"action": action, "allowed": list(ACTIONS)},
    )
