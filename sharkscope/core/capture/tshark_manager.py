"""TsharkCaptureManager module for SharkScope.

Starts, observes and stops background tshark capture processes. Each
process writes to a private temp file and is watched by one supervisor
thread that reports its exit to the SessionRegistry.
"""

from __future__ import annotations

import logging
import platform
import subprocess
import tempfile
from collections import deque
from datetime import datetime, timezone
from pathlib import Path

from sharkscope.core.capture.session_registry import SessionRegistry
from sharkscope.models.capture import (
    CaptureParameters,
    CaptureSession,
    CaptureStatus,
)
from sharkscope.models.errors import CaptureError, CAPTURE_SPAWN_FAILED
from sharkscope.services.thread_manager import ThreadManager, get_thread_manager

logger = logging.getLogger(__name__)

# Seconds to wait for tshark to exit (and flush its file) after SIGTERM.
# stop_capture never kills; past this it proceeds with whatever is on disk.
STOP_GRACE_PERIOD = 2.0

STDERR_TAIL_LINES = 5


def is_windows() -> bool:
    """Detect if running on Windows."""
    return platform.system() == "Windows"


def build_capture_command(
    tshark_path: str,
    parameters: CaptureParameters,
    output_path: str,
) -> list[str]:
    """Build the tshark live-capture command.

    Duration and packet count are both handed to tshark as independent
    autostop conditions; whichever is hit first ends the capture.

    Args:
        tshark_path: tshark executable
        parameters: Capture parameters
        output_path: File tshark writes raw packets to

    Returns:
        Command as list of arguments (never a shell string)
    """
    cmd = [
        tshark_path,
        "-i", parameters.interface,
        "-a", f"duration:{parameters.timeout_seconds}",
        "-c", str(parameters.max_packets),
        "-w", output_path,
    ]
    if parameters.capture_filter:
        cmd.extend(["-f", parameters.capture_filter])
    return cmd


class TsharkCaptureManager:
    """Manages background tshark capture processes.

    Sessions are owned by the SessionRegistry handed in at construction;
    this class only spawns, watches and signals the processes.
    """

    def __init__(
        self,
        registry: SessionRegistry,
        capture_dir: str | Path | None = None,
        thread_manager: ThreadManager | None = None,
    ):
        self._registry = registry
        self._capture_dir = Path(capture_dir or tempfile.gettempdir())
        self._capture_dir.mkdir(parents=True, exist_ok=True)
        self._thread_manager = thread_manager or get_thread_manager()

        logger.info(
            f"TsharkCaptureManager initialized "
            f"(platform={platform.system()}, capture_dir={self._capture_dir})"
        )

    @property
    def capture_dir(self) -> Path:
        return self._capture_dir

    def temp_file_for(self, session_id: str) -> Path:
        """Temp file path for a session; unique because session IDs are."""
        return self._capture_dir / f"shark_{session_id}.pcap"

    def start_capture(
        self,
        session_id: str,
        parameters: CaptureParameters,
        tshark_path: str,
    ) -> CaptureSession:
        """Spawn a detached tshark capture and register its session.

        Args:
            session_id: Unique session ID
            parameters: Capture parameters
            tshark_path: tshark executable

        Returns:
            The registered, RUNNING CaptureSession

        Raises:
            CaptureError: SESSION_DUPLICATE if the ID is taken,
                CAPTURE_SPAWN_FAILED if the process cannot be started
        """
        # Claim the ID first so a duplicate never spawns a second writer
        # for the same temp file.
        self._registry.reserve(session_id)

        temp_file = self.temp_file_for(session_id)
        cmd = build_capture_command(tshark_path, parameters, str(temp_file))

        try:
            # A leftover file from an earlier session with this name would
            # otherwise be read back if this capture writes nothing.
            temp_file.unlink(missing_ok=True)

            logger.info(
                f"Starting capture "
                f"(session_id={session_id}, interface={parameters.interface}, "
                f"timeout={parameters.timeout_seconds}, max_packets={parameters.max_packets}, "
                f"filter={parameters.capture_filter})"
            )
            logger.debug(f"Built capture command (cmd={cmd})")

            process = subprocess.Popen(cmd, **self._popen_kwargs())

        except OSError as e:
            self._registry.release(session_id)
            logger.error(f"Capture failed to start (session_id={session_id}, error={str(e)})")
            raise CaptureError(
                code=CAPTURE_SPAWN_FAILED,
                message=(
                    f"Failed to start capture session '{session_id}': {str(e)}. "
                    f"Check that tshark is installed and allowed to capture"
                ),
                details={"session_id": session_id, "error": str(e)},
            )

        session = CaptureSession(
            id=session_id,
            parameters=parameters,
            temp_file=temp_file,
            status=CaptureStatus.RUNNING,
            start_time=datetime.now(timezone.utc),
            process=process,
            pid=process.pid,
        )
        self._registry.register(session)

        self._thread_manager.start_thread(
            f"capture-tshark-{session_id}", self._supervise, session, process,
        )

        logger.info(f"Capture started successfully (session_id={session_id}, pid={process.pid})")
        return session

    def stop_capture(self, session: CaptureSession) -> bool:
        """Ask a capture process to stop, best effort.

        Sends SIGTERM only if the process is alive and the session is still
        RUNNING, then waits at most STOP_GRACE_PERIOD for the exit
        notification. The process is never killed.

        Args:
            session: Session to stop

        Returns:
            True if the process exit has been observed
        """
        process = session.process

        if process is not None and session.status == CaptureStatus.RUNNING and process.poll() is None:
            logger.info(f"Terminating capture process (session_id={session.id}, pid={session.pid})")
            try:
                process.terminate()
            except OSError as e:
                logger.error(
                    f"Error terminating capture process "
                    f"(session_id={session.id}, error={str(e)})"
                )

            if session.exited.wait(STOP_GRACE_PERIOD):
                return True

            logger.warning(
                f"Capture process did not exit within grace period, proceeding "
                f"(session_id={session.id}, grace_period={STOP_GRACE_PERIOD}s)"
            )
            return False

        if session.status == CaptureStatus.COMPLETED:
            logger.info(f"Capture session already completed (session_id={session.id})")
        else:
            logger.info(
                f"Capture process already terminated "
                f"(session_id={session.id}, status={session.status.value})"
            )
        return session.exited.is_set()

    def _popen_kwargs(self) -> dict:
        kwargs = {
            "stdin": subprocess.DEVNULL,
            "stdout": subprocess.DEVNULL,
            "stderr": subprocess.PIPE,
            "shell": False,
        }
        # Detach from our process group so the capture's lifetime is its own
        if is_windows():
            kwargs["creationflags"] = subprocess.CREATE_NEW_PROCESS_GROUP
        else:
            kwargs["start_new_session"] = True
        return kwargs

    def _supervise(
        self,
        session: CaptureSession,
        process: subprocess.Popen,
    ) -> None:
        """Supervisor thread: log stderr, reap the process, report the exit."""
        stderr_tail: deque[str] = deque(maxlen=STDERR_TAIL_LINES)
        try:
            if process.stderr is not None:
                for raw in process.stderr:
                    line = raw.decode("utf-8", errors="replace").strip()
                    if line:
                        stderr_tail.append(line)
                        logger.debug(f"tshark stderr (session_id={session.id}): {line}")

            exit_code = process.wait()
            detail = " | ".join(stderr_tail) if exit_code != 0 else None
            self._registry.record_exit(session, exit_code, detail)

        except Exception as e:
            logger.error(f"Error supervising capture (session_id={session.id}, error={str(e)})")
            self._registry.record_error(session, f"Capture supervision failed: {str(e)}")

        finally:
            session.exited.set()
            if process.stderr is not None:
                process.stderr.close()
