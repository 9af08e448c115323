"""Keyboard input for the selector: single keystrokes and arrow sequences.

Arrow keys arrive as ESC [ A..D. A lone ESC is the cancel key, so after ESC
the reader waits briefly for the rest of a sequence; if nothing follows in
time the ESC stands alone.
"""

import codecs
import logging
import os
import select
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

_logging = logging.getLogger(__name__)

ESCAPE_TIMEOUT = 0.1

ESC = "\x1b"


class Key(Enum):
    UP = "up"
    DOWN = "down"
    LEFT = "left"
    RIGHT = "right"
    ENTER = "enter"
    ESCAPE = "escape"
    BACKSPACE = "backspace"
    SPACE = "space"
    CHAR = "char"


@dataclass(frozen=True)
class KeyEvent:
    key: Key
    char: str = ""


ARROWS = {
    "A": Key.UP,
    "B": Key.DOWN,
    "C": Key.RIGHT,
    "D": Key.LEFT,
}


class ParserState(Enum):
    IDLE = "idle"
    SAW_ESC = "saw_esc"
    SAW_ESC_BRACKET = "saw_esc_bracket"
    DONE = "done"


class EscapeParser:
    """State machine turning characters into key events.

    IDLE --ESC--> SAW_ESC --[--> SAW_ESC_BRACKET --A/B/C/D--> DONE
    Any other character after ESC, or a timeout while waiting, yields a bare
    Escape and returns the parser to IDLE.
    """

    def __init__(self):
        self.state = ParserState.IDLE

    @property
    def pending(self) -> bool:
        return self.state in (ParserState.SAW_ESC, ParserState.SAW_ESC_BRACKET)

    def feed(self, ch: str) -> KeyEvent | None:
        """Consume one character; return an event once one is complete."""
        if self.state is ParserState.SAW_ESC:
            if ch == "[":
                self.state = ParserState.SAW_ESC_BRACKET
                return None
            return self._finish(KeyEvent(Key.ESCAPE))

        if self.state is ParserState.SAW_ESC_BRACKET:
            key = ARROWS.get(ch)
            if key is None:
                _logging.debug(f"unrecognized escape sequence ESC [ {ch!r}")
                return self._finish(KeyEvent(Key.ESCAPE))
            return self._finish(KeyEvent(key))

        self.state = ParserState.IDLE
        if ch == ESC:
            self.state = ParserState.SAW_ESC
            return None
        return self._finish(_plain_key(ch))

    def timeout(self) -> KeyEvent:
        """No more input arrived while a sequence was pending."""
        return self._finish(KeyEvent(Key.ESCAPE))

    def _finish(self, event: KeyEvent) -> KeyEvent:
        self.state = ParserState.DONE
        return event

    def reset(self) -> None:
        self.state = ParserState.IDLE


def _plain_key(ch: str) -> KeyEvent:
    if ch in ("\r", "\n"):
        return KeyEvent(Key.ENTER)
    if ch in ("\x7f", "\x08"):
        return KeyEvent(Key.BACKSPACE)
    if ch == " ":
        return KeyEvent(Key.SPACE)
    return KeyEvent(Key.CHAR, ch)


class CharSource(Protocol):
    def read_char(self, timeout: float | None = None) -> str | None:
        """Return the next character, or None if timeout expires first."""
        ...


class TerminalInput:
    """Read characters from a raw-mode file descriptor."""

    def __init__(self, fd: int):
        self.fd = fd
        self._decoder = codecs.getincrementaldecoder("utf-8")("replace")
        self._buffer = ""

    def read_char(self, timeout: float | None = None) -> str | None:
        while not self._buffer:
            if timeout is not None:
                ready, _, _ = select.select([self.fd], [], [], timeout)
                if not ready:
                    return None
            data = os.read(self.fd, 1)
            if not data:
                raise EOFError("terminal input closed")
            self._buffer += self._decoder.decode(data)
        ch, self._buffer = self._buffer[0], self._buffer[1:]
        return ch


def read_key(source: CharSource, escape_timeout: float = ESCAPE_TIMEOUT) -> KeyEvent:
    """Block for one keystroke and return it as an event.

    Only the characters following an ESC are read with a timeout; at most
    two are consumed, enough to tell an arrow key from a bare Escape.
    """
    parser = EscapeParser()
    ch = source.read_char(None)
    if ch is None:
        return parser.timeout()
    event = parser.feed(ch)
    while event is None:
        ch = source.read_char(escape_timeout)
        if ch is None:
            return parser.timeout()
        event = parser.feed(ch)
    return event


__all__ = [
    "ESCAPE_TIMEOUT",
    "Key",
    "KeyEvent",
    "ParserState",
    "EscapeParser",
    "CharSource",
    "TerminalInput",
    "read_key",
]
