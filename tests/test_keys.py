"""Tests for key decoding and escape-sequence disambiguation."""

import pytest

from cardtrader_sales_tracker.tui.keys import KeyDecoder, KeyEvent, KeyKind, classify

TIMEOUT = 0.05


def kinds(events: list[KeyEvent]) -> list[KeyKind]:
    return [e.kind for e in events]


@pytest.mark.parametrize(
    ("ch", "expected"),
    [
        ("\r", KeyEvent(kind=KeyKind.ENTER)),
        ("\n", KeyEvent(kind=KeyKind.ENTER)),
        ("\x7f", KeyEvent(kind=KeyKind.BACKSPACE)),
        ("\x08", KeyEvent(kind=KeyKind.BACKSPACE)),
        ("\x03", KeyEvent(kind=KeyKind.INTERRUPT)),
        (" ", KeyEvent(kind=KeyKind.SPACE, char=" ")),
        ("q", KeyEvent(kind=KeyKind.QUIT, char="q")),
        ("/", KeyEvent(kind=KeyKind.FILTER, char="/")),
        ("a", KeyEvent(kind=KeyKind.CHAR, char="a")),
        ("é", KeyEvent(kind=KeyKind.CHAR, char="é")),
        ("\x01", None),
    ],
)
def test_classify(ch, expected):
    assert classify(ch) == expected


def test_arrow_up_in_one_read_is_single_event():
    """ESC [ A delivered together yields exactly one UP event."""
    decoder = KeyDecoder(TIMEOUT)

    assert kinds(decoder.feed("\x1b[A", now=0.0)) == [KeyKind.UP]
    assert decoder.deadline is None
    assert decoder.expire(now=1.0) == []


def test_arrow_down_split_across_reads():
    """Sequence bytes arriving separately within the window still form one event."""
    decoder = KeyDecoder(TIMEOUT)

    assert decoder.feed("\x1b", now=0.0) == []
    assert decoder.deadline == pytest.approx(TIMEOUT)
    assert decoder.feed("[", now=0.01) == []
    assert decoder.deadline is None
    assert kinds(decoder.feed("B", now=0.02)) == [KeyKind.DOWN]


def test_application_cursor_arrows():
    decoder = KeyDecoder(TIMEOUT)

    assert kinds(decoder.feed("\x1bOA\x1bOB", now=0.0)) == [KeyKind.UP, KeyKind.DOWN]


def test_lone_escape_after_timeout():
    """A lone ESC becomes exactly one ESCAPE event once the timer fires."""
    decoder = KeyDecoder(TIMEOUT)

    assert decoder.feed("\x1b", now=0.0) == []
    assert decoder.expire(now=0.01) == []
    assert kinds(decoder.expire(now=0.06)) == [KeyKind.ESCAPE]
    assert decoder.expire(now=0.2) == []
    assert decoder.pending == ""


def test_late_input_flushes_pending_escape_first():
    """Input arriving after the deadline is not glued onto the old ESC."""
    decoder = KeyDecoder(TIMEOUT)

    decoder.feed("\x1b", now=0.0)
    events = decoder.feed("j", now=0.5)

    assert events == [KeyEvent(kind=KeyKind.ESCAPE), KeyEvent(kind=KeyKind.CHAR, char="j")]


def test_unrecognized_sequence_is_discarded():
    """ESC [ C (right arrow) produces nothing, and no stray characters."""
    decoder = KeyDecoder(TIMEOUT)

    assert decoder.feed("\x1b[C", now=0.0) == []
    assert kinds(decoder.feed("k", now=0.01)) == [KeyKind.CHAR]


def test_timer_superseded_once_sequence_grows():
    """With two characters buffered, the timer no longer produces ESCAPE."""
    decoder = KeyDecoder(TIMEOUT)

    decoder.feed("\x1b[", now=0.0)

    assert decoder.expire(now=1.0) == []
    assert kinds(decoder.feed("A", now=1.1)) == [KeyKind.UP]


def test_mixed_input_keeps_order():
    decoder = KeyDecoder(TIMEOUT)

    events = decoder.feed("j\x1b[Bq\r", now=0.0)

    assert kinds(events) == [KeyKind.CHAR, KeyKind.DOWN, KeyKind.QUIT, KeyKind.ENTER]


def test_timeout_reports_remaining_time():
    decoder = KeyDecoder(TIMEOUT)
    assert decoder.timeout(now=0.0) is None

    decoder.feed("\x1b", now=1.0)

    assert decoder.timeout(now=1.02) == pytest.approx(0.03)
    assert decoder.timeout(now=2.0) == 0.0
