from __future__ import annotations

import pytest

from pgnavtui import keys


@pytest.mark.parametrize(
    "key,character,expected",
    [
        ("up", None, keys.UP),
        ("pagedown", None, keys.PAGE_DOWN),
        ("escape", "\x1b", keys.ESCAPE),
        ("enter", "\r", keys.ENTER),
        ("space", " ", " "),
        ("q", "q", "q"),
        ("S", "S", "S"),
        ("exclamation_mark", "!", "!"),
        ("ctrl+x", "\x18", None),
        ("f1", None, None),
    ],
)
def test_translate_key(key, character, expected):
    assert keys.translate_key(key, character) == expected


def test_is_char():
    assert keys.is_char("a")
    assert keys.is_char(" ")
    assert not keys.is_char(keys.ENTER)
    assert not keys.is_char("\t")
