from __future__ import annotations

import codecs
import collections
import os
import select
import sys
import termios
import tty
from typing import List, Optional, Tuple

from .errors import TerminalError
from .keys import CONTROL, NO_MODIFIERS, Key, KeyEvent, Modifier
from .logging import JsonLogger

ESC = "\x1b"


class RawModeGuard:
    """Context manager holding the host terminal in raw mode.

    Entering saves the current termios attributes and switches to raw input (no
    line buffering, no echo, no signal keys). Leaving restores the saved
    attributes, whichever way the block is left. A failed restore is reported
    on stderr and through the logger but never replaces the block's own result
    or exception.
    """

    def __init__(self, fd: Optional[int] = None, logger: Optional[JsonLogger] = None):
        self._fd = fd
        self.logger = logger
        self._saved = None
        self._saved_line_end = None

    @property
    def active(self) -> bool:
        return self._saved is not None

    def __enter__(self):
        self.acquire()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.release()
        return False

    def acquire(self):
        fd = sys.stdin.fileno() if self._fd is None else self._fd
        self._fd = fd
        if not os.isatty(fd):
            raise TerminalError("stdin is not a terminal; the monitor needs an interactive TTY")
        try:
            saved = termios.tcgetattr(fd)
            tty.setraw(fd)
        except (termios.error, OSError) as e:
            raise TerminalError(f"cannot enter raw terminal mode: {e}") from e
        self._saved = saved
        if self.logger is not None:
            self._saved_line_end = self.logger.line_end
            self.logger.line_end = "\r\n"

    def release(self):
        if self._saved is None:
            return
        saved, self._saved = self._saved, None
        if self.logger is not None:
            self.logger.line_end = self._saved_line_end
        try:
            termios.tcsetattr(self._fd, termios.TCSADRAIN, saved)
        except (termios.error, OSError) as e:
            print(f"WARNING: failed to restore terminal mode: {e}", file=sys.stderr, flush=True)
            if self.logger is not None:
                self.logger.emit("terminal_restore_failed", error=str(e))


# ---------------- Key decoding ----------------

# CSI final byte -> key ("ESC [ A", also "ESC [ 1 ; 5 A" with modifiers)
CSI_FINAL_KEYS = {
    "A": Key.UP,
    "B": Key.DOWN,
    "C": Key.RIGHT,
    "D": Key.LEFT,
    "H": Key.HOME,
    "F": Key.END,
    "Z": Key.BACK_TAB,
}

# "ESC [ n ~" -> key; several numbers per key to cover xterm, rxvt and linux consoles
TILDE_KEYS = {
    "1": Key.HOME,
    "7": Key.HOME,
    "4": Key.END,
    "8": Key.END,
    "2": Key.INSERT,
    "3": Key.DELETE,
    "5": Key.PAGE_UP,
    "6": Key.PAGE_DOWN,
    "11": Key.F1,
    "12": Key.F2,
    "13": Key.F3,
    "14": Key.F4,
}

# Application cursor mode ("ESC O x")
SS3_KEYS = {
    "A": Key.UP,
    "B": Key.DOWN,
    "C": Key.RIGHT,
    "D": Key.LEFT,
    "H": Key.HOME,
    "F": Key.END,
    "P": Key.F1,
    "Q": Key.F2,
    "R": Key.F3,
    "S": Key.F4,
}


def _csi_modifiers(field: str) -> frozenset:
    """Decode the xterm modifier parameter (1 + shift|alt<<1|ctrl<<2)."""
    try:
        bits = int(field) - 1
    except ValueError:
        return NO_MODIFIERS
    mods = set()
    if bits & 1:
        mods.add(Modifier.SHIFT)
    if bits & 2:
        mods.add(Modifier.ALT)
    if bits & 4:
        mods.add(Modifier.CONTROL)
    return frozenset(mods)


def char_event(ch: str, modifiers: frozenset = NO_MODIFIERS) -> KeyEvent:
    """Map a single decoded input character to a key event.

    In raw mode the terminal delivers control keys as C0 bytes: 0x01..0x1A are
    Ctrl+letter (0x0A is Ctrl+J, only CR is Enter), 0x00 is Ctrl+space and
    0x1C..0x1F are reported as Ctrl+4..7.
    """
    o = ord(ch)
    if ch == "\r":
        return KeyEvent(Key.ENTER, modifiers)
    if ch == "\t":
        return KeyEvent(Key.TAB, modifiers)
    if ch in ("\x7f", "\x08"):
        return KeyEvent(Key.BACKSPACE, modifiers)
    if o == 0:
        return KeyEvent(" ", modifiers | CONTROL)
    if 0x01 <= o <= 0x1A:
        return KeyEvent(chr(o - 0x01 + ord("a")), modifiers | CONTROL)
    if 0x1C <= o <= 0x1F:
        return KeyEvent(chr(o - 0x1C + ord("4")), modifiers | CONTROL)
    return KeyEvent(ch, modifiers)


class KeyDecoder:
    """Incremental decoder from raw terminal input bytes to key events.

    Input is decoded as UTF-8 across calls. An ESC at the end of the input is
    held back until more bytes arrive or flush() is called, since a lone ESC
    and the start of an escape sequence look the same.
    """

    def __init__(self):
        self._decoder = codecs.getincrementaldecoder("utf-8")("replace")
        self._buf = ""

    @property
    def pending(self) -> bool:
        return bool(self._buf)

    def feed(self, data: bytes) -> List[KeyEvent]:
        self._buf += self._decoder.decode(data)
        return self._drain()

    def flush(self) -> List[KeyEvent]:
        """Resolve a held-back partial escape sequence as a plain Escape key."""
        if not self._buf:
            return []
        rest = self._buf[1:]
        self._buf = rest
        return [KeyEvent(Key.ESCAPE)] + self._drain()

    def _drain(self) -> List[KeyEvent]:
        events = []
        while self._buf:
            event, used = self._parse(self._buf)
            if used == 0:
                break
            self._buf = self._buf[used:]
            if event is not None:
                events.append(event)
        return events

    def _parse(self, buf: str) -> Tuple[Optional[KeyEvent], int]:
        """Parse one key from the front of buf.

        Returns (event, consumed). consumed == 0 means more input is needed;
        event is None for recognized-but-unmapped sequences, which are dropped.
        """
        ch = buf[0]
        if ch != ESC:
            return char_event(ch), 1
        if len(buf) == 1:
            return None, 0
        nxt = buf[1]
        if nxt == "[":
            return self._parse_csi(buf)
        if nxt == "O":
            if len(buf) < 3:
                return None, 0
            key = SS3_KEYS.get(buf[2])
            return (KeyEvent(key) if key else None), 3
        if nxt == ESC:
            return KeyEvent(Key.ESCAPE), 1
        return char_event(nxt, frozenset({Modifier.ALT})), 2

    def _parse_csi(self, buf: str) -> Tuple[Optional[KeyEvent], int]:
        i = 2
        while i < len(buf):
            c = buf[i]
            if "\x40" <= c <= "\x7e":
                break
            if not ("\x20" <= c <= "\x3f"):
                # Malformed: drop the introducer, keep c for the next key.
                return None, i
            i += 1
        else:
            return None, 0

        final = buf[i]
        fields = buf[2:i].split(";")
        mods = _csi_modifiers(fields[1]) if len(fields) > 1 else NO_MODIFIERS
        if final == "~":
            key = TILDE_KEYS.get(fields[0])
        else:
            key = CSI_FINAL_KEYS.get(final)
        return (KeyEvent(key, mods) if key else None), i + 1


class TerminalInput:
    """Poll-then-read source of key events from a raw-mode terminal."""

    # How long to wait for the rest of an escape sequence before treating ESC as a key.
    ESC_WAIT_S = 0.025

    def __init__(self, fd: Optional[int] = None):
        self._fd = sys.stdin.fileno() if fd is None else fd
        self._decoder = KeyDecoder()
        self._events = collections.deque()

    def poll(self, timeout: float = 0.0) -> bool:
        """Return True if a key event is ready; never blocks longer than timeout."""
        if self._events:
            return True
        if self._readable(timeout):
            self._fill()
        return bool(self._events)

    def read(self) -> KeyEvent:
        """Return the next key event, blocking until one arrives."""
        while not self._events:
            self._readable(None)
            self._fill()
        return self._events.popleft()

    def _readable(self, timeout: Optional[float]) -> bool:
        r, _, _ = select.select([self._fd], [], [], timeout)
        return bool(r)

    def _fill(self):
        while True:
            data = os.read(self._fd, 1024)
            if not data:
                raise TerminalError("terminal input closed")
            self._events.extend(self._decoder.feed(data))
            if not self._decoder.pending:
                return
            if not self._readable(self.ESC_WAIT_S):
                self._events.extend(self._decoder.flush())
                return
