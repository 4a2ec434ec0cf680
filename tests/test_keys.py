import string

import pytest

from espmon.keys import CONTROL, Key, KeyEvent, Modifier, translate


NAMED = [
    (Key.BACKSPACE, b"\x08"),
    (Key.ENTER, b"\r"),
    (Key.LEFT, b"\x1b[D"),
    (Key.RIGHT, b"\x1b[C"),
    (Key.HOME, b"\x1b[H"),
    (Key.END, b"\x1b[F"),
    (Key.UP, b"\x1b[A"),
    (Key.DOWN, b"\x1b[B"),
    (Key.TAB, b"\x09"),
    (Key.DELETE, b"\x1b[3~"),
    (Key.INSERT, b"\x1b[2~"),
    (Key.ESCAPE, b"\x1b"),
]


@pytest.mark.parametrize("key,expected", NAMED)
def test_named_keys_ignore_modifiers(key, expected):
    for mods in (frozenset(), CONTROL, frozenset({Modifier.ALT, Modifier.SHIFT})):
        assert translate(KeyEvent(key, mods)) == expected


def test_ctrl_letters_and_space_clear_high_bits():
    for ch in string.ascii_lowercase + " ":
        out = translate(KeyEvent(ch, CONTROL))
        assert out == bytes([ord(ch) & 0x1F])
        assert len(out) == 1
    assert translate(KeyEvent("c", CONTROL)) == b"\x03"
    assert translate(KeyEvent(" ", CONTROL)) == b"\x00"


def test_ctrl_4_to_7_map_onto_file_separator_range():
    assert translate(KeyEvent("4", CONTROL)) == b"\x1c"
    assert translate(KeyEvent("5", CONTROL)) == b"\x1d"
    assert translate(KeyEvent("6", CONTROL)) == b"\x1e"
    assert translate(KeyEvent("7", CONTROL)) == b"\x1f"
    for ch in "4567":
        assert translate(KeyEvent(ch, CONTROL)) == bytes([(ord(ch) + 8) & 0x1F])


def test_other_ctrl_characters_are_sent_as_text():
    assert translate(KeyEvent("3", CONTROL)) == b"3"
    assert translate(KeyEvent("A", CONTROL)) == b"A"
    assert translate(KeyEvent("é", CONTROL)) == "é".encode("utf-8")


def test_plain_characters_use_utf8():
    assert translate(KeyEvent("a")) == b"a"
    assert translate(KeyEvent("€")) == b"\xe2\x82\xac"
    assert translate(KeyEvent("a", frozenset({Modifier.ALT}))) == b"a"


@pytest.mark.parametrize("key", [Key.PAGE_UP, Key.PAGE_DOWN, Key.F1, Key.F4, Key.BACK_TAB, "key_unknown"])
def test_unmapped_keys_produce_nothing(key):
    assert translate(KeyEvent(key)) is None
    assert translate(KeyEvent(key, CONTROL)) is None
