from __future__ import annotations

from dataclasses import dataclass
from typing import FrozenSet, Optional


class Key:
    """Named constants for non-character keys."""

    BACKSPACE = "key_backspace"
    ENTER = "key_enter"
    LEFT = "key_left"
    RIGHT = "key_right"
    UP = "key_up"
    DOWN = "key_down"
    HOME = "key_home"
    END = "key_end"
    TAB = "key_tab"
    DELETE = "key_delete"
    INSERT = "key_insert"
    ESCAPE = "key_escape"
    BACK_TAB = "key_back_tab"
    PAGE_UP = "key_page_up"
    PAGE_DOWN = "key_page_down"
    F1 = "key_f1"
    F2 = "key_f2"
    F3 = "key_f3"
    F4 = "key_f4"


class Modifier:
    CONTROL = "control"
    ALT = "alt"
    SHIFT = "shift"


NO_MODIFIERS: FrozenSet[str] = frozenset()
CONTROL: FrozenSet[str] = frozenset({Modifier.CONTROL})


@dataclass(frozen=True)
class KeyEvent:
    """One key press from the host terminal.

    ``code`` is either a single character or one of the ``Key`` constants."""
    code: str
    modifiers: FrozenSet[str] = NO_MODIFIERS

    @property
    def is_char(self) -> bool:
        return len(self.code) == 1

    @property
    def ctrl(self) -> bool:
        return Modifier.CONTROL in self.modifiers

    def is_ctrl_char(self, ch: str) -> bool:
        return self.ctrl and self.code == ch


# Escape sequences follow what MicroPython's REPL (and most VT100 firmware
# consoles) expect.
KEY_BYTES = {
    Key.BACKSPACE: b"\x08",
    Key.ENTER: b"\r",
    Key.LEFT: b"\x1b[D",
    Key.RIGHT: b"\x1b[C",
    Key.HOME: b"\x1b[H",
    Key.END: b"\x1b[F",
    Key.UP: b"\x1b[A",
    Key.DOWN: b"\x1b[B",
    Key.TAB: b"\x09",
    Key.DELETE: b"\x1b[3~",
    Key.INSERT: b"\x1b[2~",
    Key.ESCAPE: b"\x1b",
}


def translate(event: KeyEvent) -> Optional[bytes]:
    """Convert a key event into the bytes a device terminal expects.

    Named keys map through ``KEY_BYTES`` regardless of modifiers. Control-held
    letters and space become C0 control codes; Ctrl-4..Ctrl-7 land on
    0x1C..0x1F because terminals report those with the plain digit. Any other
    character is sent as UTF-8. Keys with no mapping return None.
    """
    if event.code in KEY_BYTES:
        return KEY_BYTES[event.code]
    if not event.is_char:
        return None

    ch = event.code
    if event.ctrl:
        if "a" <= ch <= "z" or ch == " ":
            return bytes([ord(ch) & 0x1F])
        if "4" <= ch <= "7":
            return bytes([(ord(ch) + 8) & 0x1F])
    return ch.encode("utf-8")
