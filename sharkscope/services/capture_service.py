"""Capture and analysis operations exposed to callers.

CaptureService ties together the session registry, the tshark capture
manager, the analyzer and the configuration store:

- start_capture_session: resolve parameters, spawn, register
- stop_capture_session: stop, remove, wait for the file, analyze, clean up
- analyze_pcap_file: analyze an existing file, no session involved
- list_capture_sessions: snapshot of the registry
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from sharkscope.core.analysis.output_formatter import (
    is_over_limit,
    render_analysis_report,
    trim_output,
)
from sharkscope.core.analysis.tshark_analyzer import analyze_capture_file
from sharkscope.core.capture.interface_detector import AUTO_INTERFACE, resolve_interface
from sharkscope.core.capture.session_registry import SessionRegistry, get_session_registry
from sharkscope.core.capture.tshark_locator import find_tshark
from sharkscope.core.capture.tshark_manager import TsharkCaptureManager
from sharkscope.models.analysis import (
    AnalysisReport,
    AnalysisRequest,
    validate_output_format,
)
from sharkscope.models.capture import (
    CaptureParameters,
    CaptureSession,
    DEFAULT_CAPTURE_TIMEOUT,
    DEFAULT_MAX_PACKETS,
    generate_session_id,
    validate_max_packets,
    validate_session_name,
    validate_timeout,
)
from sharkscope.models.errors import (
    AnalysisError,
    CaptureError,
    ANALYSIS_FILE_NOT_FOUND,
    CAPTURE_NO_RESULTS,
)
from sharkscope.services.config_store import (
    ConfigStore,
    resolve_analysis_parameters,
    resolve_capture_parameters,
)

logger = logging.getLogger(__name__)

# Upper bound on the wait for a stopped capture's file size to settle
FILE_SETTLE_DELAY = 1.0
FILE_SETTLE_POLL_INTERVAL = 0.25


def wait_for_file_settled(
    path: Path,
    max_wait: float = FILE_SETTLE_DELAY,
    interval: float = FILE_SETTLE_POLL_INTERVAL,
) -> bool:
    """Poll a file's size until two reads agree, for at most `max_wait`.

    This only narrows the window in which a slow filesystem still shows a
    partially written file; it does not guarantee the writer is done.

    Returns:
        True if the size settled before the deadline; False if it kept
        growing or the file could not be read
    """
    deadline = time.monotonic() + max_wait
    try:
        last_size = path.stat().st_size
        while time.monotonic() < deadline:
            time.sleep(min(interval, max(0.0, deadline - time.monotonic())))
            size = path.stat().st_size
            if size == last_size:
                return True
            last_size = size
    except OSError as e:
        logger.warning(f"Capture file unreadable while settling (path={path}, error={str(e)})")
        return False

    logger.debug(f"Capture file still growing after settle delay (path={path}, size={last_size})")
    return False


@dataclass
class CaptureStartResult:
    """Outcome of start_capture_session."""

    session: CaptureSession
    config_name: str | None
    text: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "session_id": self.session.id,
            "session": self.session.to_dict(),
            "config_name": self.config_name,
            "text": self.text,
        }


class CaptureService:
    """Caller-facing capture and analysis operations."""

    def __init__(
        self,
        registry: SessionRegistry,
        capture_manager: TsharkCaptureManager,
        config_store: ConfigStore,
        tshark_path: str | None = None,
        default_keylog_file: str | None = None,
        default_interface: str = AUTO_INTERFACE,
    ):
        self._registry = registry
        self._capture_manager = capture_manager
        self._config_store = config_store
        self._configured_tshark_path = tshark_path
        self._tshark_path: str | None = None
        self._default_keylog_file = default_keylog_file
        self._default_interface = default_interface

    @property
    def registry(self) -> SessionRegistry:
        return self._registry

    def tshark_path(self) -> str:
        """Locate tshark once and reuse the result.

        Raises:
            TsharkNotFoundError: If tshark cannot be located
        """
        if self._tshark_path is None:
            self._tshark_path = find_tshark(self._configured_tshark_path)
        return self._tshark_path

    def start_capture_session(
        self,
        interface: str | None = None,
        capture_filter: str | None = None,
        timeout: Any = None,
        max_packets: Any = None,
        session_name: str | None = None,
        config_name: str | None = None,
    ) -> CaptureStartResult:
        """Start a background capture session.

        Raises:
            ConfigError: CONFIG_NOT_FOUND
            CaptureError: SESSION_DUPLICATE, SESSION_INVALID_NAME,
                CAPTURE_INVALID_*, CAPTURE_SPAWN_FAILED
            TsharkNotFoundError: If tshark cannot be located
        """
        resolved = resolve_capture_parameters(
            self._config_store,
            config_name,
            interface=interface,
            capture_filter=capture_filter,
            timeout=timeout,
            max_packets=max_packets,
        )

        timeout = validate_timeout(
            resolved["timeout"] if resolved["timeout"] is not None else DEFAULT_CAPTURE_TIMEOUT
        )
        max_packets = validate_max_packets(
            resolved["max_packets"] if resolved["max_packets"] is not None else DEFAULT_MAX_PACKETS
        )
        session_id = validate_session_name(session_name) if session_name else generate_session_id()

        # Fail fast before touching the host
        self._registry.check_available(session_id)

        tshark_path = self.tshark_path()
        parameters = CaptureParameters(
            interface=resolve_interface(resolved["interface"] or self._default_interface),
            capture_filter=resolved["capture_filter"] or None,
            timeout_seconds=timeout,
            max_packets=max_packets,
        )

        session = self._capture_manager.start_capture(session_id, parameters, tshark_path)

        lines = ["Capture session started successfully!"]
        if config_name:
            lines.append(f"Using saved config: {config_name}")
        lines.extend([
            f"Session ID: {session.id}",
            f"Interface: {parameters.interface}",
            f"Capture Filter: {parameters.capture_filter or 'none'}",
            f"Timeout: {parameters.timeout_seconds}s (auto-stop)",
            f"Max Packets: {parameters.max_packets} (safety limit)",
            "",
            f"Capture will auto-stop after {parameters.timeout_seconds} seconds, or stop it "
            f"with stop_capture_session and session ID '{session.id}' to retrieve results.",
        ])

        return CaptureStartResult(session=session, config_name=config_name, text="\n".join(lines))

    def stop_capture_session(
        self,
        session_id: str,
        display_filter: str | None = None,
        output_format: Any = None,
        custom_fields: str | None = None,
        keylog_file: str | None = None,
        config_name: str | None = None,
    ) -> AnalysisReport:
        """Stop a capture session and analyze what it captured.

        The session leaves the registry before analysis starts, so its ID
        is reusable even if analysis fails.

        Raises:
            CaptureError: SESSION_NOT_FOUND, CAPTURE_NO_RESULTS
            ConfigError: CONFIG_NOT_FOUND (session left untouched)
            AnalysisError: ANALYSIS_INVALID_FORMAT
            TsharkNotFoundError: If tshark cannot be located
        """
        session = self._registry.get(session_id)

        resolved = resolve_analysis_parameters(
            self._config_store,
            config_name,
            display_filter=display_filter,
            output_format=output_format,
            custom_fields=custom_fields,
        )
        fmt = validate_output_format(resolved["output_format"])

        logger.info(f"Stopping capture session (session_id={session_id})")
        self._capture_manager.stop_capture(session)

        # Raises SESSION_NOT_FOUND if a concurrent stop already removed it
        self._registry.remove(session_id)

        temp_file = session.temp_file
        if not temp_file.exists():
            logger.warning(f"Capture file missing (session_id={session_id}, path={temp_file})")
            raise CaptureError(
                code=CAPTURE_NO_RESULTS,
                message=(
                    f"Error analyzing session '{session_id}': capture file not found. "
                    f"This usually means no packets were captured; check the "
                    f"interface and capture filter, then start a new session"
                ),
                details={
                    "session_id": session_id,
                    "status": session.status.value,
                    "exit_code": session.exit_code,
                    "error_message": session.error_message,
                },
            )

        wait_for_file_settled(temp_file)

        keylog = keylog_file or self._default_keylog_file
        request = AnalysisRequest(
            file_path=temp_file,
            display_filter=resolved["display_filter"] or None,
            output_format=fmt,
            custom_fields=resolved["custom_fields"] or None,
            keylog_file=keylog,
        )

        try:
            output = analyze_capture_file(self.tshark_path(), request)
        except AnalysisError as e:
            logger.error(f"Error analyzing session (session_id={session_id}, error={e.message})")
            raise CaptureError(
                code=CAPTURE_NO_RESULTS,
                message=(
                    f"Error analyzing session '{session_id}': capture file unreadable. "
                    f"This could mean no packets were captured. Details: {e.message}"
                ),
                details={"session_id": session_id, "temp_file": str(temp_file), **e.details},
            )

        try:
            temp_file.unlink()
        except OSError as e:
            logger.warning(f"Failed to delete capture file (path={temp_file}, error={str(e)})")

        duration = session.duration_elapsed
        trimmed = trim_output(output, fmt)
        text = render_analysis_report(
            title=f"Capture session '{session_id}' completed!",
            output=trimmed,
            output_format=fmt,
            display_filter=request.display_filter,
            tls_decryption=bool(keylog),
            config_name=config_name,
            extra_lines=[
                f"Interface: {session.parameters.interface}",
                f"Duration: {duration:.1f}s",
            ],
        )

        logger.info(
            f"Capture session analyzed "
            f"(session_id={session_id}, format={fmt.value}, chars={len(trimmed)})"
        )

        return AnalysisReport(
            text=text,
            output=trimmed,
            output_format=fmt,
            display_filter=request.display_filter,
            tls_decryption=bool(keylog),
            config_name=config_name,
            source=session_id,
            truncated=is_over_limit(output, fmt),
            duration_seconds=duration,
        )

    def analyze_pcap_file(
        self,
        file_path: str,
        display_filter: str | None = None,
        output_format: Any = None,
        custom_fields: str | None = None,
        keylog_file: str | None = None,
        config_name: str | None = None,
    ) -> AnalysisReport:
        """Analyze an existing capture file. Does not touch the registry.

        Raises:
            ConfigError: CONFIG_NOT_FOUND
            AnalysisError: ANALYSIS_FILE_NOT_FOUND, ANALYSIS_ENGINE_FAILED,
                ANALYSIS_INVALID_FORMAT
            TsharkNotFoundError: If tshark cannot be located
        """
        resolved = resolve_analysis_parameters(
            self._config_store,
            config_name,
            display_filter=display_filter,
            output_format=output_format,
            custom_fields=custom_fields,
        )
        fmt = validate_output_format(resolved["output_format"])

        path = Path(file_path).expanduser()
        if not path.is_file():
            raise AnalysisError(
                code=ANALYSIS_FILE_NOT_FOUND,
                message=(
                    f"Capture file '{file_path}' not found. Pass the absolute path "
                    f"of a .pcap or .pcapng file readable by the server"
                ),
                details={"file_path": file_path},
            )

        keylog = keylog_file or self._default_keylog_file
        request = AnalysisRequest(
            file_path=path,
            display_filter=resolved["display_filter"] or None,
            output_format=fmt,
            custom_fields=resolved["custom_fields"] or None,
            keylog_file=keylog,
        )

        output = analyze_capture_file(self.tshark_path(), request)
        trimmed = trim_output(output, fmt)
        text = render_analysis_report(
            title=f"Analysis of '{file_path}' complete!",
            output=trimmed,
            output_format=fmt,
            display_filter=request.display_filter,
            tls_decryption=bool(keylog),
            config_name=config_name,
        )

        return AnalysisReport(
            text=text,
            output=trimmed,
            output_format=fmt,
            display_filter=request.display_filter,
            tls_decryption=bool(keylog),
            config_name=config_name,
            source=str(file_path),
            truncated=is_over_limit(output, fmt),
        )

    def list_capture_sessions(self) -> list[CaptureSession]:
        """Return the sessions currently in the registry."""
        return self._registry.list_sessions()


# Singleton
_capture_service: CaptureService | None = None


def get_capture_service() -> CaptureService:
    """Return the CaptureService singleton, built from the app config."""
    global _capture_service

    if _capture_service is None:
        from flask import current_app
        from sharkscope.services.config_store import get_config_store

        registry = get_session_registry()
        _capture_service = CaptureService(
            registry=registry,
            capture_manager=TsharkCaptureManager(
                registry,
                capture_dir=current_app.config.get("SHARKSCOPE_CAPTURE_DIR"),
            ),
            config_store=get_config_store(),
            tshark_path=(
                current_app.config.get("SHARKSCOPE_TSHARK_RESOLVED")
                or current_app.config.get("SHARKSCOPE_TSHARK_PATH")
            ),
            default_keylog_file=current_app.config.get("SHARKSCOPE_TLS_KEYLOG_FILE"),
            default_interface=current_app.config.get("SHARKSCOPE_DEFAULT_INTERFACE") or AUTO_INTERFACE,
        )

    return _capture_service


def reset_capture_service() -> None:
    """Reset the CaptureService singleton (for testing)."""
    global _capture_service
    _capture_service = None
