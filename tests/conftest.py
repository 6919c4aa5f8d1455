"""Pytest fixtures for SharkScope tests."""

import stat
import sys

import pytest

from sharkscope import create_app
from sharkscope.core.capture.session_registry import reset_session_registry
from sharkscope.services.capture_service import reset_capture_service
from sharkscope.services.config_store import reset_config_store
from sharkscope.services.thread_manager import get_thread_manager, reset_thread_manager


# Stand-in for tshark covering the options SharkScope uses:
#   -v                          version banner
#   -i IF -a duration:N -c N -w FILE [-f FILTER]
#                               writes a pcap header, exits 0 on SIGTERM or
#                               after the duration; interface "bogus0" fails
#   -r FILE [-o ..] [-Y F] [-T json|fields -e ..]
#                               read mode; -Y nomatch prints nothing,
#                               -Y "bad((" fails like an invalid filter
FAKE_TSHARK_SCRIPT = r'''#!@PYTHON@
import json
import os
import signal
import sys
import time

PCAP_HEADER = bytes.fromhex("d4c3b2a1020004000000000000000000ffff000001000000")


def option(args, flag, default=None):
    if flag in args:
        index = args.index(flag)
        if index + 1 < len(args):
            return args[index + 1]
    return default


def capture(args):
    interface = option(args, "-i")
    if interface == "bogus0":
        sys.stderr.write("tshark: There is no device named \"bogus0\".\n")
        sys.stderr.flush()
        return 1

    duration = 60.0
    autostop = option(args, "-a", "")
    if autostop.startswith("duration:"):
        duration = float(autostop.split(":", 1)[1])

    stopping = []
    signal.signal(signal.SIGTERM, lambda signum, frame: stopping.append(signum))

    with open(option(args, "-w"), "wb") as f:
        f.write(PCAP_HEADER)
        f.flush()
        sys.stderr.write("Capturing on '%s'\n" % interface)
        sys.stderr.flush()
        deadline = time.monotonic() + duration
        while not stopping and time.monotonic() < deadline:
            time.sleep(0.05)
    return 0


def read(args):
    path = option(args, "-r")
    if not os.path.isfile(path):
        sys.stderr.write("tshark: The file \"%s\" doesn't exist.\n" % path)
        return 2

    display_filter = option(args, "-Y")
    if display_filter == "bad((":
        sys.stderr.write("tshark: \"(\" was unexpected in this context.\n")
        return 4
    if display_filter == "nomatch":
        return 0

    output_format = option(args, "-T", "text")
    if output_format == "json":
        sys.stdout.write(json.dumps([
            {"_source": {"layers": {"frame": {"frame.number": "1"}}}},
        ]))
    elif output_format == "fields":
        fields = [args[i + 1] for i, arg in enumerate(args) if arg == "-e"]
        sys.stdout.write("\t".join("<%s>" % f for f in fields) + "\n")
    else:
        keylog = os.environ.get("SSLKEYLOGFILE")
        if keylog:
            sys.stdout.write("keylog %s\n" % keylog)
        sys.stdout.write("    1   0.000000     10.0.0.1 -> 10.0.0.2     TCP 66 443 -> 51234 [ACK]\n")
    return 0


def main(args):
    if "-v" in args:
        sys.stdout.write("TShark (Wireshark) 4.2.0 (fake)\n")
        return 0
    if "-w" in args:
        return capture(args)
    if "-r" in args:
        return read(args)
    sys.stderr.write("tshark: unsupported arguments %r\n" % (args,))
    return 1


sys.exit(main(sys.argv[1:]))
'''


def _reset_singletons():
    reset_capture_service()
    reset_config_store()
    reset_session_registry()
    reset_thread_manager()


def _terminate_leftover_captures():
    """Stop capture processes a failing test left behind."""
    from sharkscope.core.capture.session_registry import get_session_registry

    for session in get_session_registry().list_sessions():
        process = session.process
        if process is not None and process.poll() is None:
            process.terminate()
    get_thread_manager().join_all(timeout=5)


@pytest.fixture
def app(tmp_path):
    """Create application for testing.

    The configuration store and capture directory live under tmp_path.

    Returns:
        Flask: Application configured for testing
    """
    _reset_singletons()
    app = create_app('testing')
    app.config['SHARKSCOPE_CONFIG_STORE_PATH'] = str(tmp_path / 'configs.json')
    app.config['SHARKSCOPE_CAPTURE_DIR'] = str(tmp_path / 'captures')
    app.config['SHARKSCOPE_TLS_KEYLOG_FILE'] = None
    yield app
    _terminate_leftover_captures()
    _reset_singletons()


@pytest.fixture
def client(app):
    """Create test client.

    Args:
        app: Flask application fixture

    Returns:
        FlaskClient: Test client for making requests
    """
    return app.test_client()


@pytest.fixture
def runner(app):
    """Create test CLI runner.

    Args:
        app: Flask application fixture

    Returns:
        FlaskCliRunner: CLI runner for testing commands
    """
    return app.test_cli_runner()


@pytest.fixture
def fake_tshark(tmp_path):
    """Write an executable tshark stand-in and return its path.

    Returns:
        str: Path of the fake tshark script
    """
    if sys.platform == 'win32':
        pytest.skip('fake tshark relies on a POSIX shebang')

    path = tmp_path / 'bin' / 'tshark'
    path.parent.mkdir()
    path.write_text(FAKE_TSHARK_SCRIPT.replace('@PYTHON@', sys.executable), encoding='utf-8')
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return str(path)


@pytest.fixture
def fake_app(app, fake_tshark):
    """Application wired to the fake tshark."""
    app.config['SHARKSCOPE_TSHARK_PATH'] = fake_tshark
    app.config['SHARKSCOPE_DEFAULT_INTERFACE'] = 'fake0'
    return app


@pytest.fixture
def fake_client(fake_app):
    """Test client for the application wired to the fake tshark."""
    return fake_app.test_client()


@pytest.fixture
def pcap_file(tmp_path):
    """A minimal capture file (pcap global header only)."""
    path = tmp_path / 'sample.pcap'
    path.write_bytes(bytes.fromhex('d4c3b2a1020004000000000000000000ffff000001000000'))
    return path


@pytest.fixture(autouse=True)
def _no_inherited_keylog(monkeypatch):
    """Keep a developer's SSLKEYLOGFILE out of the tests."""
    monkeypatch.delenv('SSLKEYLOGFILE', raising=False)
