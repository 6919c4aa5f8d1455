"""Capture data models for SharkScope.

Defines dataclasses and enums for background capture sessions, plus the
validation helpers applied to caller-supplied capture parameters.
"""

from __future__ import annotations

import re
import subprocess
import threading
import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any

from sharkscope.models.errors import (
    CaptureError,
    CAPTURE_INVALID_MAX_PACKETS,
    CAPTURE_INVALID_TIMEOUT,
    SESSION_INVALID_NAME,
)


class CaptureStatus(Enum):
    """Status of a capture session."""

    RUNNING = "running"
    COMPLETED = "completed"
    ERROR = "error"


@dataclass(frozen=True)
class CaptureParameters:
    """Capture parameters, fixed when the session starts.

    Attributes:
        interface: Network interface name (e.g., 'eth0', 'lo')
        capture_filter: BPF capture filter, or None for no filter
        timeout_seconds: Auto-stop after this many seconds
        max_packets: Auto-stop after this many packets
    """

    interface: str
    capture_filter: str | None = None
    timeout_seconds: int = 60
    max_packets: int = 100000

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "interface": self.interface,
            "capture_filter": self.capture_filter,
            "timeout_seconds": self.timeout_seconds,
            "max_packets": self.max_packets,
        }


@dataclass(eq=False)
class CaptureSession:
    """Represents one active or recently finished background capture.

    Mutable fields (status, end_time, exit_code, process, error_message) are
    only written through SessionRegistry, under its lock.

    Attributes:
        id: Unique session identifier, also used to name the temp file
        parameters: Capture parameters
        temp_file: Path of the raw capture output owned by this session
        status: Current capture status
        start_time: Spawn timestamp
        end_time: Timestamp at which the process exit was observed
        exit_code: Process exit code, set once
        process: Handle of the capture process, None once reaped
        pid: Process ID of tshark
        error_message: Error description if status is ERROR
        exited: Set once the process exit has been observed
    """

    id: str
    parameters: CaptureParameters
    temp_file: Path
    status: CaptureStatus = CaptureStatus.RUNNING
    start_time: datetime | None = None
    end_time: datetime | None = None
    exit_code: int | None = None
    process: subprocess.Popen | None = field(default=None, repr=False)
    pid: int | None = None
    error_message: str | None = None
    exited: threading.Event = field(default_factory=threading.Event, repr=False)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "session_id": self.id,
            "parameters": self.parameters.to_dict(),
            "status": self.status.value,
            "start_time": self.start_time.isoformat() if self.start_time else None,
            "end_time": self.end_time.isoformat() if self.end_time else None,
            "exit_code": self.exit_code,
            "temp_file": str(self.temp_file),
            "pid": self.pid,
            "error_message": self.error_message,
            "duration_elapsed_seconds": round(self.duration_elapsed, 1),
        }

    @property
    def duration_elapsed(self) -> float:
        """Get elapsed duration in seconds."""
        if self.start_time is None:
            return 0.0
        end = self.end_time or datetime.now(timezone.utc)
        return (end - self.start_time).total_seconds()


# Validation constants
DEFAULT_CAPTURE_TIMEOUT = 60
MIN_CAPTURE_TIMEOUT = 1
MAX_CAPTURE_TIMEOUT = 86400
DEFAULT_MAX_PACKETS = 100000
MIN_MAX_PACKETS = 1
MAX_MAX_PACKETS = 10_000_000

SESSION_NAME_PATTERN = re.compile(r"^[A-Za-z0-9_.-]{1,64}$")


def _validate_int_range(
    value: Any,
    name: str,
    minimum: int,
    maximum: int,
    code: str,
) -> int:
    if isinstance(value, bool):
        raise CaptureError(
            code=code,
            message=f"{name} must be an integer, got bool",
        )
    if not isinstance(value, int):
        try:
            value = int(value)
        except (ValueError, TypeError):
            raise CaptureError(
                code=code,
                message=f"{name} must be an integer, got {type(value).__name__}",
            )

    if value < minimum or value > maximum:
        raise CaptureError(
            code=code,
            message=f"{name} must be between {minimum} and {maximum}",
            details={"provided": value, "min": minimum, "max": maximum},
        )
    return value


def validate_timeout(timeout: Any) -> int:
    """Validate capture timeout in seconds.

    Args:
        timeout: Timeout in seconds

    Returns:
        Validated timeout

    Raises:
        CaptureError: If timeout is not an integer in the valid range
    """
    return _validate_int_range(
        timeout, "Timeout", MIN_CAPTURE_TIMEOUT, MAX_CAPTURE_TIMEOUT,
        CAPTURE_INVALID_TIMEOUT,
    )


def validate_max_packets(max_packets: Any) -> int:
    """Validate the packet-count stop condition.

    Raises:
        CaptureError: If max_packets is not an integer in the valid range
    """
    return _validate_int_range(
        max_packets, "Max packets", MIN_MAX_PACKETS, MAX_MAX_PACKETS,
        CAPTURE_INVALID_MAX_PACKETS,
    )


def validate_session_name(name: str) -> str:
    """Validate a caller-supplied session name.

    The name becomes part of the temp file name, so only a conservative
    character set is accepted.

    Raises:
        CaptureError: If the name contains unsupported characters
    """
    if not isinstance(name, str) or not SESSION_NAME_PATTERN.match(name):
        raise CaptureError(
            code=SESSION_INVALID_NAME,
            message=(
                f"Invalid session name '{name}'. Use 1-64 characters from "
                f"letters, digits, '_', '-' and '.'"
            ),
            details={"session_name": name},
        )
    return name


def generate_session_id() -> str:
    """Generate a unique session ID (e.g., 'capture_1768400000000_3f9a2c1b7')."""
    return f"capture_{int(time.time() * 1000)}_{uuid.uuid4().hex[:9]}"
