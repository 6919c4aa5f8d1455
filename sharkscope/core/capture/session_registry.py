"""Session registry for SharkScope.

The registry is the authority on which capture sessions exist and what
state they are in. It is shared between request handlers and the
supervisor threads that observe capture processes, so every read and
write goes through one lock.
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime, timezone

from sharkscope.models.capture import CaptureSession, CaptureStatus
from sharkscope.models.errors import (
    CaptureError,
    SESSION_DUPLICATE,
    SESSION_NOT_FOUND,
)

logger = logging.getLogger(__name__)


class SessionRegistry:
    """Thread-safe map of session ID to CaptureSession."""

    def __init__(self) -> None:
        self._sessions: dict[str, CaptureSession] = {}
        # IDs claimed by a start that has not finished spawning yet
        self._reserved: set[str] = set()
        self._lock = threading.Lock()

    def reserve(self, session_id: str) -> None:
        """Claim an ID before its process is spawned.

        A reserved ID is invisible to get() but counts as taken for
        reserve() and register().

        Raises:
            CaptureError: SESSION_DUPLICATE if the ID is taken
        """
        with self._lock:
            self._check_available(session_id)
            self._reserved.add(session_id)

    def release(self, session_id: str) -> None:
        """Drop a reservation that will not be registered (e.g., spawn failed)."""
        with self._lock:
            self._reserved.discard(session_id)

    def register(self, session: CaptureSession) -> None:
        """Add a new session, consuming its reservation if there is one.

        Raises:
            CaptureError: SESSION_DUPLICATE if the ID is already registered
        """
        with self._lock:
            if session.id in self._reserved:
                self._reserved.discard(session.id)
            else:
                self._check_available(session.id)
            self._sessions[session.id] = session
        logger.debug(f"Session registered (session_id={session.id})")

    def check_available(self, session_id: str) -> None:
        """Raise SESSION_DUPLICATE if the ID is registered or reserved.

        Advisory only; reserve() is the authoritative claim.
        """
        with self._lock:
            self._check_available(session_id)

    def _check_available(self, session_id: str) -> None:
        # Caller holds self._lock
        existing = self._sessions.get(session_id)
        if existing is not None:
            raise CaptureError(
                code=SESSION_DUPLICATE,
                message=(
                    f"Session '{session_id}' already exists "
                    f"(status={existing.status.value}). Use a different "
                    f"session name or stop the existing session first"
                ),
                details={"session_id": session_id, "status": existing.status.value},
            )
        if session_id in self._reserved:
            raise CaptureError(
                code=SESSION_DUPLICATE,
                message=(
                    f"Session '{session_id}' is already being started. "
                    f"Use a different session name"
                ),
                details={"session_id": session_id, "status": "starting"},
            )

    def get(self, session_id: str) -> CaptureSession:
        """Look up a session.

        Raises:
            CaptureError: SESSION_NOT_FOUND if no such session is registered
        """
        with self._lock:
            session = self._sessions.get(session_id)
        if session is None:
            raise _not_found(session_id)
        return session

    def remove(self, session_id: str) -> CaptureSession:
        """Remove and return a session. Only the first caller succeeds.

        Raises:
            CaptureError: SESSION_NOT_FOUND if no such session is registered
        """
        with self._lock:
            session = self._sessions.pop(session_id, None)
        if session is None:
            raise _not_found(session_id)
        logger.debug(f"Session removed (session_id={session_id})")
        return session

    def list_sessions(self) -> list[CaptureSession]:
        """Snapshot of registered sessions, oldest first."""
        with self._lock:
            return list(self._sessions.values())

    def record_exit(
        self,
        session: CaptureSession,
        exit_code: int | None,
        detail: str | None = None,
    ) -> bool:
        """Apply the process-exit notification for `session`.

        No-op if the session is no longer registered, including when a newer
        session has since taken the same ID.

        Args:
            session: Session whose process exited
            exit_code: Process return code
            detail: Last stderr output, kept as error_message on failure

        Returns:
            True if the registered session was updated
        """
        with self._lock:
            if self._sessions.get(session.id) is not session:
                return False
            if session.end_time is not None:
                return False
            session.process = None
            session.end_time = datetime.now(timezone.utc)
            session.exit_code = exit_code
            if exit_code == 0:
                session.status = CaptureStatus.COMPLETED
            else:
                session.status = CaptureStatus.ERROR
                session.error_message = f"tshark exited with code {exit_code}"
                if detail:
                    session.error_message += f": {detail}"
            status = session.status

        logger.info(
            f"Session process exited "
            f"(session_id={session.id}, exit_code={exit_code}, status={status.value})"
        )
        return True

    def record_error(self, session: CaptureSession, message: str) -> bool:
        """Apply the process-error notification for `session`.

        Sets status to ERROR whatever the exit code. Same no-op rule as
        record_exit.

        Returns:
            True if the registered session was updated
        """
        with self._lock:
            if self._sessions.get(session.id) is not session:
                return False
            session.process = None
            session.status = CaptureStatus.ERROR
            session.error_message = message
            if session.end_time is None:
                session.end_time = datetime.now(timezone.utc)

        logger.error(f"Session process error (session_id={session.id}, error={message})")
        return True

    def __contains__(self, session_id: str) -> bool:
        with self._lock:
            return session_id in self._sessions

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)


def _not_found(session_id: str) -> CaptureError:
    return CaptureError(
        code=SESSION_NOT_FOUND,
        message=(
            f"No active session found with ID '{session_id}'. "
            f"List active sessions with GET /api/captures/sessions"
        ),
        details={"session_id": session_id},
    )


_session_registry: SessionRegistry | None = None


def get_session_registry() -> SessionRegistry:
    """Get the process-wide SessionRegistry instance."""
    global _session_registry

    if _session_registry is None:
        _session_registry = SessionRegistry()

    return _session_registry


def reset_session_registry() -> None:
    """Reset the SessionRegistry singleton (for testing)."""
    global _session_registry
    _session_registry = None
