"""Unit tests for TsharkCaptureManager."""

import io
import time
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from sharkscope.core.capture.session_registry import SessionRegistry
from sharkscope.core.capture.tshark_manager import (
    TsharkCaptureManager,
    build_capture_command,
    is_windows,
)
from sharkscope.models.capture import CaptureParameters, CaptureSession, CaptureStatus
from sharkscope.models.errors import CaptureError, CAPTURE_SPAWN_FAILED, SESSION_DUPLICATE
from sharkscope.services.thread_manager import ThreadManager

WAIT = 10


def make_process(exit_code=0, stderr=b""):
    process = MagicMock()
    process.pid = 4242
    process.stderr = io.BytesIO(stderr)
    process.wait.return_value = exit_code
    process.poll.return_value = None
    return process


@pytest.fixture
def registry():
    return SessionRegistry()


@pytest.fixture
def thread_manager():
    return ThreadManager()


@pytest.fixture
def manager(registry, thread_manager, tmp_path):
    return TsharkCaptureManager(registry, capture_dir=tmp_path, thread_manager=thread_manager)


class TestIsWindows:
    """Tests for is_windows() function."""

    def test_returns_true_on_windows(self, monkeypatch):
        """Test that is_windows returns True on Windows."""
        monkeypatch.setattr("platform.system", lambda: "Windows")
        assert is_windows() is True

    def test_returns_false_on_linux(self, monkeypatch):
        """Test that is_windows returns False on Linux."""
        monkeypatch.setattr("platform.system", lambda: "Linux")
        assert is_windows() is False


class TestBuildCaptureCommand:
    """Tests for build_capture_command()."""

    def test_without_filter(self):
        """Test command without a capture filter."""
        params = CaptureParameters(interface="eth0", timeout_seconds=30, max_packets=500)

        cmd = build_capture_command("/usr/bin/tshark", params, "/tmp/out.pcap")

        assert cmd == [
            "/usr/bin/tshark", "-i", "eth0",
            "-a", "duration:30", "-c", "500",
            "-w", "/tmp/out.pcap",
        ]

    def test_with_filter_as_single_argument(self):
        """Test the capture filter is passed as one argument."""
        params = CaptureParameters(interface="eth0", capture_filter="tcp port 443 and host 1.2.3.4")

        cmd = build_capture_command("tshark", params, "/tmp/out.pcap")

        assert cmd[-2:] == ["-f", "tcp port 443 and host 1.2.3.4"]


class TestStartCaptureMocked:
    """Tests for start_capture() with a mocked process."""

    @patch("sharkscope.core.capture.tshark_manager.subprocess.Popen")
    def test_start_registers_session(self, mock_popen, manager, registry, tmp_path):
        """Test a started session is registered with its temp file."""
        mock_popen.return_value = make_process()
        params = CaptureParameters(interface="eth0")

        session = manager.start_capture("s1", params, "tshark")

        assert registry.get("s1") is session
        assert session.temp_file == tmp_path / "shark_s1.pcap"
        assert session.pid == 4242
        assert session.start_time is not None
        cmd = mock_popen.call_args[0][0]
        assert cmd[cmd.index("-w") + 1] == str(tmp_path / "shark_s1.pcap")
        assert session.exited.wait(WAIT)

    @patch("sharkscope.core.capture.tshark_manager.is_windows", return_value=False)
    @patch("sharkscope.core.capture.tshark_manager.subprocess.Popen")
    def test_process_is_detached(self, mock_popen, mock_windows, manager):
        """Test the process gets its own session and no shell."""
        mock_popen.return_value = make_process()

        manager.start_capture("s1", CaptureParameters(interface="eth0"), "tshark")

        kwargs = mock_popen.call_args[1]
        assert kwargs["start_new_session"] is True
        assert kwargs["shell"] is False

    @patch("sharkscope.core.capture.tshark_manager.subprocess.Popen")
    def test_spawn_failure_releases_id(self, mock_popen, manager, registry):
        """Test a spawn failure reports CAPTURE_SPAWN_FAILED and frees the ID."""
        mock_popen.side_effect = FileNotFoundError("tshark")

        with pytest.raises(CaptureError) as exc_info:
            manager.start_capture("s1", CaptureParameters(interface="eth0"), "tshark")

        assert exc_info.value.code == CAPTURE_SPAWN_FAILED
        assert "s1" not in registry
        registry.reserve("s1")

    @patch("sharkscope.core.capture.tshark_manager.subprocess.Popen")
    def test_duplicate_never_spawns(self, mock_popen, manager):
        """Test a duplicate ID fails before a second process is spawned."""
        mock_popen.return_value = make_process()
        params = CaptureParameters(interface="eth0")
        session = manager.start_capture("s1", params, "tshark")
        session.exited.wait(WAIT)

        with pytest.raises(CaptureError) as exc_info:
            manager.start_capture("s1", params, "tshark")

        assert exc_info.value.code == SESSION_DUPLICATE
        assert mock_popen.call_count == 1

    @patch("sharkscope.core.capture.tshark_manager.subprocess.Popen")
    def test_stale_temp_file_removed(self, mock_popen, manager, tmp_path):
        """Test a leftover file with the session's name is deleted before spawn."""
        stale = tmp_path / "shark_s1.pcap"
        stale.write_bytes(b"old")
        mock_popen.return_value = make_process()

        manager.start_capture("s1", CaptureParameters(interface="eth0"), "tshark")

        assert not stale.exists()

    @patch("sharkscope.core.capture.tshark_manager.subprocess.Popen")
    def test_supervisor_records_failure(self, mock_popen, manager):
        """Test a non-zero exit is recorded with the stderr tail."""
        mock_popen.return_value = make_process(
            exit_code=1, stderr=b"Capturing on 'eth9'\ntshark: no such device\n",
        )

        session = manager.start_capture("s1", CaptureParameters(interface="eth9"), "tshark")

        assert session.exited.wait(WAIT)
        assert session.status == CaptureStatus.ERROR
        assert session.exit_code == 1
        assert "no such device" in session.error_message

    @patch("sharkscope.core.capture.tshark_manager.subprocess.Popen")
    def test_supervisor_exception_records_error(self, mock_popen, manager):
        """Test an exception while waiting is reported as an error notification."""
        process = make_process()
        process.wait.side_effect = OSError("wait failed")
        mock_popen.return_value = process

        session = manager.start_capture("s1", CaptureParameters(interface="eth0"), "tshark")

        assert session.exited.wait(WAIT)
        assert session.status == CaptureStatus.ERROR
        assert "wait failed" in session.error_message


class TestStopCaptureMocked:
    """Tests for stop_capture() with hand-built sessions."""

    def _session(self, process, status=CaptureStatus.RUNNING):
        return CaptureSession(
            id="s1",
            parameters=CaptureParameters(interface="eth0"),
            temp_file=Path("/tmp/shark_s1.pcap"),
            status=status,
            process=process,
        )

    def test_grace_period_is_bounded_and_never_kills(self, manager):
        """Test stop gives up after the grace period without killing."""
        process = make_process()
        session = self._session(process)

        with patch("sharkscope.core.capture.tshark_manager.STOP_GRACE_PERIOD", 0.2):
            started = time.monotonic()
            exited = manager.stop_capture(session)
            elapsed = time.monotonic() - started

        assert exited is False
        assert elapsed < 2
        process.terminate.assert_called_once()
        process.kill.assert_not_called()

    def test_returns_when_exit_observed(self, manager):
        """Test stop returns as soon as the exit notification is set."""
        process = make_process()
        session = self._session(process)
        process.terminate.side_effect = lambda: session.exited.set()

        assert manager.stop_capture(session) is True

    def test_completed_session_not_signalled(self, manager):
        """Test an already completed session is not terminated."""
        process = make_process()
        session = self._session(process, status=CaptureStatus.COMPLETED)
        session.exited.set()

        assert manager.stop_capture(session) is True
        process.terminate.assert_not_called()

    def test_dead_process_not_signalled(self, manager):
        """Test a process that already exited is not terminated."""
        process = make_process()
        process.poll.return_value = 0
        session = self._session(process)

        manager.stop_capture(session)

        process.terminate.assert_not_called()

    def test_reaped_session_without_process(self, manager):
        """Test a session whose process handle is gone."""
        session = self._session(None, status=CaptureStatus.ERROR)
        session.exited.set()

        assert manager.stop_capture(session) is True

    def test_terminate_failure_is_logged_only(self, manager):
        """Test an OSError from terminate does not propagate."""
        process = make_process()
        process.terminate.side_effect = ProcessLookupError("gone")
        session = self._session(process)

        with patch("sharkscope.core.capture.tshark_manager.STOP_GRACE_PERIOD", 0.1):
            assert manager.stop_capture(session) is False


class TestCaptureLifecycle:
    """Tests running the fake tshark as a real process."""

    def test_completes_on_its_own(self, manager, thread_manager, fake_tshark):
        """Test a short capture finishes by itself and leaves its file."""
        params = CaptureParameters(interface="fake0", timeout_seconds=1, max_packets=10)

        session = manager.start_capture("short", params, fake_tshark)
        threads = thread_manager.get_active_threads()

        assert "capture-tshark-short" in threads
        assert session.exited.wait(WAIT)
        assert session.status == CaptureStatus.COMPLETED
        assert session.exit_code == 0
        assert session.process is None
        assert session.temp_file.stat().st_size > 0

        threads["capture-tshark-short"].join(WAIT)
        assert thread_manager.get_active_threads() == {}

    def test_stop_terminates_running_capture(self, manager, registry, fake_tshark):
        """Test stop ends a long capture within the grace period."""
        params = CaptureParameters(interface="fake0", timeout_seconds=60)
        session = manager.start_capture("long", params, fake_tshark)

        # Give the process time to install its signal handler
        deadline = time.monotonic() + WAIT
        while not session.temp_file.exists() and time.monotonic() < deadline:
            time.sleep(0.05)

        assert manager.stop_capture(session) is True
        assert registry.get("long").status == CaptureStatus.COMPLETED

    def test_engine_failure_recorded(self, manager, fake_tshark):
        """Test an unknown interface ends the session in error."""
        params = CaptureParameters(interface="bogus0", timeout_seconds=5)

        session = manager.start_capture("bad", params, fake_tshark)

        assert session.exited.wait(WAIT)
        assert session.status == CaptureStatus.ERROR
        assert session.exit_code == 1
        assert "bogus0" in session.error_message
