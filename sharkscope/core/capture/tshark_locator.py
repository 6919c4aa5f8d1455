"""Locate the tshark executable on the host.

Checks an explicitly configured path first, then PATH, then the usual
install locations for the current platform. Every candidate is verified by
running `tshark -v`.
"""

from __future__ import annotations

import logging
import os
import platform
import shutil
import subprocess

from sharkscope.models.errors import TsharkNotFoundError

logger = logging.getLogger(__name__)

VERIFY_TIMEOUT_SECONDS = 5

INSTALL_HINT = (
    "Install Wireshark (https://www.wireshark.org/download.html) and make "
    "sure tshark is on PATH, or set SHARKSCOPE_TSHARK_PATH."
)


def get_fallback_paths() -> list[str]:
    """Platform-specific install locations tried when tshark is not on PATH.

    Returns:
        Candidate executable paths, most likely first
    """
    system = platform.system()

    if system == "Windows":
        paths = [
            "C:\\Program Files\\Wireshark\\tshark.exe",
            "C:\\Program Files (x86)\\Wireshark\\tshark.exe",
        ]
        for env_var in ("ProgramFiles", "ProgramFiles(x86)"):
            base = os.environ.get(env_var)
            if base:
                paths.append(f"{base}\\Wireshark\\tshark.exe")
        return paths

    if system == "Darwin":
        return [
            "/opt/homebrew/bin/tshark",
            "/usr/local/bin/tshark",
            "/Applications/Wireshark.app/Contents/MacOS/tshark",
            "/usr/bin/tshark",
        ]

    if system == "Linux":
        return [
            "/usr/bin/tshark",
            "/usr/local/bin/tshark",
            "/snap/bin/tshark",
            "/usr/sbin/tshark",
        ]

    return ["/usr/bin/tshark", "/usr/local/bin/tshark"]


def verify_tshark(path: str) -> bool:
    """Check that `path` is a working tshark binary.

    Args:
        path: Candidate executable path

    Returns:
        True if `path -v` runs and exits 0
    """
    try:
        result = subprocess.run(
            [path, "-v"],
            stdin=subprocess.DEVNULL,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            timeout=VERIFY_TIMEOUT_SECONDS,
            shell=False,
        )
    except (OSError, subprocess.TimeoutExpired) as e:
        logger.debug(f"tshark candidate rejected (path={path}, error={str(e)})")
        return False
    return result.returncode == 0


def find_tshark(configured_path: str | None = None) -> str:
    """Resolve the tshark executable.

    Args:
        configured_path: Explicit path from configuration, tried first

    Returns:
        Path of a verified tshark executable

    Raises:
        TsharkNotFoundError: If no working tshark is found
    """
    if configured_path:
        if verify_tshark(configured_path):
            logger.debug(f"Using configured tshark (path={configured_path})")
            return configured_path
        raise TsharkNotFoundError(
            message=f"Configured tshark path '{configured_path}' is not a working tshark. {INSTALL_HINT}",
            details={"configured_path": configured_path},
        )

    on_path = shutil.which("tshark")
    if on_path and verify_tshark(on_path):
        logger.debug(f"Found tshark on PATH (path={on_path})")
        return on_path

    logger.debug("tshark not found on PATH, trying fallback locations")
    candidates = get_fallback_paths()
    for candidate in candidates:
        if os.path.exists(candidate) and verify_tshark(candidate):
            logger.info(f"Found tshark at fallback location (path={candidate})")
            return candidate

    raise TsharkNotFoundError(
        message=f"tshark not found. {INSTALL_HINT}",
        details={"searched": candidates},
    )
