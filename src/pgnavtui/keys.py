"""Key symbols consumed by the navigator.

A symbol is either one of the named keys below or a single printable
character. Terminal key events are mapped onto symbols by ``translate_key``.
"""

from typing import Optional

UP = "up"
DOWN = "down"
LEFT = "left"
RIGHT = "right"
PAGE_UP = "pageup"
PAGE_DOWN = "pagedown"
HOME = "home"
END = "end"
ENTER = "enter"
ESCAPE = "escape"
BACKSPACE = "backspace"
DELETE = "delete"

NAMED_KEYS = frozenset(
    [UP, DOWN, LEFT, RIGHT, PAGE_UP, PAGE_DOWN, HOME, END, ENTER, ESCAPE, BACKSPACE, DELETE]
)

QUIT = "q"


def is_char(symbol: str) -> bool:
    return len(symbol) == 1 and symbol.isprintable()


def translate_key(key: str, character: Optional[str] = None) -> Optional[str]:
    """Map a terminal key name (and its character, if any) to a symbol."""
    if key in NAMED_KEYS:
        return key
    if key == "space":
        return " "
    if character is not None and is_char(character):
        return character
    return None
