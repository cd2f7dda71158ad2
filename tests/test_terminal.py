"""Tests for raw-mode entry and restore on a pseudo-terminal."""

import io
import os
import signal
import termios
import time

import pytest
from rich.control import Control

from cardtrader_sales_tracker.tui.terminal import RawTerminal

SHOW_CURSOR = str(Control.show_cursor(True))
HIDE_CURSOR = str(Control.show_cursor(False))


@pytest.fixture
def pty():
    """A (master, slave) pty pair, with the slave wrapped as stdin."""
    master, slave = os.openpty()
    stdin = open(slave, "rb", buffering=0, closefd=False)
    yield master, slave, stdin
    stdin.close()
    os.close(master)
    os.close(slave)


def read_until(terminal: RawTerminal, expected: str, timeout: float = 2.0) -> str:
    """Read until the expected text arrived or the timeout passed."""
    text = ""
    deadline = time.monotonic() + timeout
    while len(text) < len(expected) and time.monotonic() < deadline:
        text += terminal.read(timeout=0.1)
    return text


def make_terminal(stdin) -> tuple[RawTerminal, io.StringIO]:
    stdout = io.StringIO()
    return RawTerminal(stdin=stdin, stdout=stdout), stdout


def test_enter_switches_to_raw_mode(pty):
    _, slave, stdin = pty
    terminal, stdout = make_terminal(stdin)

    with terminal:
        attrs = termios.tcgetattr(slave)
        assert not attrs[3] & termios.ECHO
        assert not attrs[3] & termios.ICANON
        assert not attrs[3] & termios.ISIG
        assert stdout.getvalue().endswith(HIDE_CURSOR)


def test_normal_exit_restores_mode_and_cursor(pty):
    _, slave, stdin = pty
    saved = termios.tcgetattr(slave)
    terminal, stdout = make_terminal(stdin)

    with terminal:
        pass

    assert termios.tcgetattr(slave) == saved
    assert stdout.getvalue().endswith(SHOW_CURSOR)
    assert "\x1b[0m" in stdout.getvalue()


def test_exception_restores_mode_and_cursor(pty):
    _, slave, stdin = pty
    saved = termios.tcgetattr(slave)
    terminal, stdout = make_terminal(stdin)

    with pytest.raises(RuntimeError, match="boom"), terminal:
        raise RuntimeError("boom")

    assert termios.tcgetattr(slave) == saved
    assert stdout.getvalue().endswith(SHOW_CURSOR)


def test_sigterm_restores_mode_cursor_and_handler(pty):
    """SIGTERM becomes SystemExit, so the restore path runs and the old handler returns."""
    _, slave, stdin = pty
    saved = termios.tcgetattr(slave)
    previous = {s: signal.getsignal(s) for s in (signal.SIGTERM, signal.SIGHUP)}
    terminal, stdout = make_terminal(stdin)

    with pytest.raises(SystemExit) as exc_info, terminal:
        os.kill(os.getpid(), signal.SIGTERM)
        time.sleep(5)

    assert exc_info.value.code == 128 + signal.SIGTERM
    assert termios.tcgetattr(slave) == saved
    assert stdout.getvalue().endswith(SHOW_CURSOR)
    assert {s: signal.getsignal(s) for s in previous} == previous


def test_handlers_restored_after_normal_exit(pty):
    _, _, stdin = pty
    before = {s: signal.getsignal(s) for s in (signal.SIGTERM, signal.SIGHUP)}
    terminal, _ = make_terminal(stdin)

    with terminal:
        assert signal.getsignal(signal.SIGTERM) != before[signal.SIGTERM]

    assert {s: signal.getsignal(s) for s in before} == before


def test_restore_is_idempotent(pty):
    _, slave, stdin = pty
    saved = termios.tcgetattr(slave)
    terminal, _ = make_terminal(stdin)

    with terminal:
        terminal.restore()
    terminal.restore()

    assert termios.tcgetattr(slave) == saved


def test_read_returns_input_or_empty_on_timeout(pty):
    master, _, stdin = pty
    terminal, _ = make_terminal(stdin)

    with terminal:
        assert terminal.read(timeout=0.01) == ""
        os.write(master, "jé".encode())
        assert read_until(terminal, "jé") == "jé"


def test_read_joins_split_utf8(pty):
    master, _, stdin = pty
    terminal, _ = make_terminal(stdin)
    encoded = "✓".encode()

    with terminal:
        os.write(master, encoded[:1])
        # A lone lead byte decodes to nothing yet
        assert terminal.read(timeout=1.0) == ""
        os.write(master, encoded[1:])
        assert read_until(terminal, "✓") == "✓"
