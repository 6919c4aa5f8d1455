"""Persistent store of named filter configurations.

The store is a single JSON document keyed by configuration name:
    {"version": "0.1.0", "configs": {"<name>": {...}}}

Every operation reads the whole document and every mutation rewrites it,
under one lock. There is no in-memory cache to go stale.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from threading import Lock
from typing import Any

from sharkscope.models.errors import ConfigError, CONFIG_NOT_FOUND
from sharkscope.models.filter_config import (
    ANALYSIS_FIELDS,
    CAPTURE_FIELDS,
    FilterConfig,
)

logger = logging.getLogger(__name__)

STORE_VERSION = "0.1.0"
DEFAULT_STORE_PATH = Path("data") / "config" / "sharkscope-configs.json"


class ConfigStore:
    """CRUD over named FilterConfigs with JSON persistence."""

    def __init__(self, filepath: str | Path) -> None:
        self._filepath = Path(filepath)
        self._lock = Lock()

    @property
    def filepath(self) -> Path:
        return self._filepath

    def save(self, filter_config: FilterConfig) -> FilterConfig:
        """Create or replace a configuration."""
        with self._lock:
            document = self._read()
            document["configs"][filter_config.name] = filter_config.to_dict()
            self._write(document)
        logger.info(f"Configuration saved (name={filter_config.name})")
        return filter_config

    def load(self, name: str) -> FilterConfig | None:
        """Return a configuration by name, or None."""
        with self._lock:
            entry = self._read()["configs"].get(name)
        return FilterConfig.from_dict(entry) if entry is not None else None

    def list_configs(self) -> list[FilterConfig]:
        """Return all configurations in insertion order."""
        with self._lock:
            entries = list(self._read()["configs"].values())
        return [FilterConfig.from_dict(e) for e in entries]

    def delete(self, name: str) -> bool:
        """Delete a configuration. Returns False if it did not exist."""
        with self._lock:
            document = self._read()
            if name not in document["configs"]:
                return False
            del document["configs"][name]
            self._write(document)
        logger.info(f"Configuration deleted (name={name})")
        return True

    def require(self, name: str) -> FilterConfig:
        """Like load(), but a missing configuration is an error.

        Raises:
            ConfigError: CONFIG_NOT_FOUND
        """
        filter_config = self.load(name)
        if filter_config is None:
            raise ConfigError(
                code=CONFIG_NOT_FOUND,
                message=(
                    f"Configuration '{name}' not found. Use manage_config with "
                    f"action 'list' to see available configurations"
                ),
                details={"name": name},
            )
        return filter_config

    def _read(self) -> dict[str, Any]:
        """Read the document, creating the default one if the file is missing."""
        if not self._filepath.exists():
            document = _default_document()
            self._write(document)
            return document
        try:
            document = json.loads(self._filepath.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            logger.error(f"Error loading configuration store (path={self._filepath}, error={exc})")
            return _default_document()

        if not isinstance(document, dict) or not isinstance(document.get("configs"), dict):
            logger.error(f"Configuration store has no 'configs' object (path={self._filepath})")
            return _default_document()
        return document

    def _write(self, document: dict[str, Any]) -> None:
        """Replace the document atomically (temp file + rename)."""
        self._filepath.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(
            dir=self._filepath.parent, prefix=".sharkscope-configs-", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(document, f, indent=2, ensure_ascii=False)
            os.replace(tmp_path, self._filepath)
        except BaseException:
            Path(tmp_path).unlink(missing_ok=True)
            raise


def _default_document() -> dict[str, Any]:
    return {"version": STORE_VERSION, "configs": {}}


def _resolve(
    store: ConfigStore,
    config_name: str | None,
    names: tuple[str, ...],
    caller_values: dict[str, Any],
) -> dict[str, Any]:
    resolved = dict(caller_values)
    if not config_name:
        return resolved

    saved = store.require(config_name)
    overrides = saved.present(names)
    resolved.update(overrides)
    logger.info(
        f"Using saved configuration (name={config_name}, overrides={sorted(overrides)})"
    )
    return resolved


def resolve_capture_parameters(
    store: ConfigStore,
    config_name: str | None,
    *,
    interface: Any = None,
    capture_filter: Any = None,
    timeout: Any = None,
    max_packets: Any = None,
) -> dict[str, Any]:
    """Apply a saved configuration over caller capture parameters.

    Every capture field set in the saved configuration wins; fields it
    leaves unset keep the caller's value.

    Raises:
        ConfigError: CONFIG_NOT_FOUND if config_name is given but unknown
    """
    return _resolve(store, config_name, CAPTURE_FIELDS, {
        "interface": interface,
        "capture_filter": capture_filter,
        "timeout": timeout,
        "max_packets": max_packets,
    })


def resolve_analysis_parameters(
    store: ConfigStore,
    config_name: str | None,
    *,
    display_filter: Any = None,
    output_format: Any = None,
    custom_fields: Any = None,
) -> dict[str, Any]:
    """Apply a saved configuration over caller analysis parameters.

    Same precedence rule as resolve_capture_parameters.

    Raises:
        ConfigError: CONFIG_NOT_FOUND if config_name is given but unknown
    """
    return _resolve(store, config_name, ANALYSIS_FIELDS, {
        "display_filter": display_filter,
        "output_format": output_format,
        "custom_fields": custom_fields,
    })


# Singleton
_instance: ConfigStore | None = None


def get_config_store() -> ConfigStore:
    """Return the ConfigStore singleton, located from the app config."""
    global _instance
    if _instance is None:
        from flask import current_app

        filepath = current_app.config.get("SHARKSCOPE_CONFIG_STORE_PATH") or (
            Path(current_app.root_path).parent / DEFAULT_STORE_PATH
        )
        _instance = ConfigStore(filepath)
    return _instance


def reset_config_store() -> None:
    """Reset the singleton (for testing)."""
    global _instance
    _instance = None
