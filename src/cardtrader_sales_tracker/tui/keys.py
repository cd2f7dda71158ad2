"""Key events decoded from raw terminal input."""

from enum import StrEnum

from pydantic import BaseModel, ConfigDict

ESC = "\x1b"

# Sequences completing ESC + two characters. Both CSI and SS3 (application
# cursor mode) forms are reported by common terminals.
ARROW_SEQUENCES = {
    "[A": "up",
    "[B": "down",
    "OA": "up",
    "OB": "down",
}


class KeyKind(StrEnum):
    """Kind of logical keypress."""

    CHAR = "char"
    ENTER = "enter"
    BACKSPACE = "backspace"
    ESCAPE = "escape"
    UP = "up"
    DOWN = "down"
    SPACE = "space"
    QUIT = "quit"
    FILTER = "filter"
    INTERRUPT = "interrupt"


class KeyEvent(BaseModel):
    """
    A single logical keypress.

    Attributes
    ----------
    kind : KeyKind
        What was pressed
    char : str
        The typed character for CHAR, SPACE, QUIT and FILTER events, else ''

    """

    model_config = ConfigDict(frozen=True)

    kind: KeyKind
    char: str = ""

    @property
    def is_text(self) -> bool:
        """True when the key types a character into filter text."""
        return bool(self.char)


def classify(ch: str) -> KeyEvent | None:
    """
    Map a single input character to a key event.

    Parameters
    ----------
    ch : str
        One character, other than ESC

    Returns
    -------
    KeyEvent | None
        Event, or None for characters with no meaning

    """
    if ch in ("\r", "\n"):
        return KeyEvent(kind=KeyKind.ENTER)
    if ch in ("\x7f", "\x08"):
        return KeyEvent(kind=KeyKind.BACKSPACE)
    if ch == "\x03":
        return KeyEvent(kind=KeyKind.INTERRUPT)
    if ch == " ":
        return KeyEvent(kind=KeyKind.SPACE, char=ch)
    if ch == "q":
        return KeyEvent(kind=KeyKind.QUIT, char=ch)
    if ch == "/":
        return KeyEvent(kind=KeyKind.FILTER, char=ch)
    if ch.isprintable():
        return KeyEvent(kind=KeyKind.CHAR, char=ch)
    return None


class KeyDecoder:
    """
    Turns a stream of input characters into key events.

    A lone ESC is ambiguous: it is either the Escape key or the start of an
    arrow-key sequence. After ESC the decoder waits ``escape_timeout``
    seconds. Two more characters forming a known arrow sequence become one
    UP/DOWN event; any other three-character sequence is dropped. If the
    deadline passes with only the ESC buffered, it becomes an ESCAPE event.

    Time is passed in explicitly so callers decide how the deadline is
    waited for (the terminal loop uses it as a select() timeout).

    Parameters
    ----------
    escape_timeout : float
        Seconds to wait for the rest of an escape sequence

    """

    def __init__(self, escape_timeout: float = 0.05) -> None:
        self.escape_timeout = escape_timeout
        self._buffer = ""
        self._deadline: float | None = None

    @property
    def deadline(self) -> float | None:
        """Time at which a buffered lone ESC becomes an ESCAPE event, if armed."""
        return self._deadline

    @property
    def pending(self) -> str:
        return self._buffer

    def timeout(self, now: float) -> float | None:
        """
        Seconds until the escape deadline, for use as a read timeout.

        Parameters
        ----------
        now : float
            Current monotonic time

        Returns
        -------
        float | None
            Remaining time (never negative), or None if nothing is pending

        """
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - now)

    def expire(self, now: float) -> list[KeyEvent]:
        """
        Fire the escape timer if its deadline has passed.

        Parameters
        ----------
        now : float
            Current monotonic time

        Returns
        -------
        list[KeyEvent]
            A single ESCAPE event, or nothing

        """
        if self._deadline is None or now < self._deadline:
            return []
        self._deadline = None
        if self._buffer == ESC:
            self._buffer = ""
            return [KeyEvent(kind=KeyKind.ESCAPE)]
        return []

    def feed(self, text: str, now: float) -> list[KeyEvent]:
        """
        Decode newly received characters.

        Parameters
        ----------
        text : str
            Characters read from the terminal
        now : float
            Monotonic time at which they were read

        Returns
        -------
        list[KeyEvent]
            Events in input order

        """
        events = self.expire(now)
        for ch in text:
            if self._buffer:
                event = self._continue_sequence(ch)
            elif ch == ESC:
                self._buffer = ESC
                self._deadline = now + self.escape_timeout
                continue
            else:
                event = classify(ch)
            if event is not None:
                events.append(event)
        return events

    def _continue_sequence(self, ch: str) -> KeyEvent | None:
        # Once past the lone ESC the timer no longer applies
        self._deadline = None
        self._buffer += ch
        if len(self._buffer) < 3:
            return None
        tail = self._buffer[1:]
        self._buffer = ""
        direction = ARROW_SEQUENCES.get(tail)
        if direction is None:
            return None
        return KeyEvent(kind=KeyKind(direction))
