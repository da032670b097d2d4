"""Wrap-around selection cursor over a list-like collection."""

from typing import Optional


def next_index(current: Optional[int], length: int) -> Optional[int]:
    """Move forward one item, wrapping from the last item to the first."""
    if length <= 0:
        return None
    if current is None or current >= length - 1:
        return 0
    return current + 1


def previous_index(current: Optional[int], length: int) -> Optional[int]:
    """Move back one item, wrapping from the first item to the last."""
    if length <= 0:
        return None
    if current is None:
        return 0
    if current == 0 or current > length - 1:
        return length - 1
    return current - 1


def first_index(length: int) -> Optional[int]:
    return 0 if length > 0 else None
