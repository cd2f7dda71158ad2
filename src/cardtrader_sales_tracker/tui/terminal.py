"""Raw-mode terminal access with unconditional restore."""

import codecs
import logging
import os
import select
import shutil
import signal
import sys
import termios
import tty
from types import FrameType
from typing import TextIO

from rich.control import Control

from cardtrader_sales_tracker.tui.render import TerminalSize

logger = logging.getLogger(__name__)

RESET = "\x1b[0m"

# Signals converted into SystemExit so context managers unwind and restore the terminal
EXIT_SIGNALS = (signal.SIGTERM, signal.SIGHUP)


def _raise_exit(signum: int, frame: FrameType | None) -> None:
    raise SystemExit(128 + signum)


class RawTerminal:
    """
    The controlling terminal in raw mode.

    Entering the context switches stdin to raw mode (no line buffering, no
    echo, no signal keys) and hides the cursor. Leaving it, on every path
    including exceptions and SIGTERM/SIGHUP, restores the saved mode, resets
    styles and shows the cursor again.

    Parameters
    ----------
    stdin : TextIO | None
        Input stream backed by a tty. Uses sys.stdin if None.
    stdout : TextIO | None
        Output stream. Uses sys.stdout if None.

    """

    def __init__(self, stdin: TextIO | None = None, stdout: TextIO | None = None) -> None:
        self.stdin = stdin or sys.stdin
        self.stdout = stdout or sys.stdout
        self._fd = self.stdin.fileno()
        self._saved_mode: list | None = None
        self._saved_handlers: dict[int, object] = {}
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")

    def __enter__(self) -> "RawTerminal":
        """Switch to raw mode and hide the cursor."""
        self._saved_mode = termios.tcgetattr(self._fd)
        for signum in EXIT_SIGNALS:
            self._saved_handlers[signum] = signal.signal(signum, _raise_exit)
        tty.setraw(self._fd)
        self.write(str(Control.show_cursor(False)))
        return self

    def __exit__(
        self,
        exc_type: type | None,
        exc_val: Exception | None,
        exc_tb: object | None,
    ) -> None:
        """Restore the terminal mode, styles, and cursor."""
        self.restore()

    def restore(self) -> None:
        """Undo everything __enter__ changed. Safe to call more than once."""
        try:
            self.write(RESET + str(Control.clear()) + str(Control.home()) + str(Control.show_cursor(True)))
        except OSError as e:
            logger.debug("Could not reset terminal output: %s", e)
        finally:
            if self._saved_mode is not None:
                termios.tcsetattr(self._fd, termios.TCSADRAIN, self._saved_mode)
                self._saved_mode = None
            for signum, handler in self._saved_handlers.items():
                signal.signal(signum, handler)
            self._saved_handlers.clear()

    def read(self, timeout: float | None = None) -> str:
        """
        Read whatever input is available.

        Parameters
        ----------
        timeout : float | None
            Seconds to wait for input. Waits indefinitely if None.

        Returns
        -------
        str
            Decoded characters, or '' if the timeout elapsed

        Raises
        ------
        EOFError
            If stdin was closed

        """
        readable, _, _ = select.select([self._fd], [], [], timeout)
        if not readable:
            return ""
        data = os.read(self._fd, 1024)
        if not data:
            raise EOFError("stdin closed")
        return self._decoder.decode(data)

    def write(self, text: str) -> None:
        self.stdout.write(text)
        self.stdout.flush()

    def size(self) -> TerminalSize:
        """Current terminal size, re-read on every call so resizes show up on the next paint."""
        columns, rows = shutil.get_terminal_size()
        return TerminalSize(columns=columns, rows=rows)
