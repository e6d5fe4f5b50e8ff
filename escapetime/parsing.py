"""Parsing of ``<left><sep><right>`` pairs such as ``"800x600"`` or ``"-0.5,1.25"``."""

from __future__ import annotations

from typing import Callable, Optional, TypeVar

T = TypeVar("T")


def parse_pair(text: str, separator: str, convert: Callable[[str], T] = int) -> Optional[tuple[T, T]]:
    """Parse ``text`` as two values split at the first ``separator``.

    Both halves go through ``convert`` (``int``, ``float`` or any callable
    that raises ``ValueError`` on bad input). Returns ``None`` when the
    separator is missing or either half does not convert in full.
    """

    left, sep, right = text.partition(separator)
    if not sep:
        return None
    try:
        return convert(left), convert(right)
    except ValueError:
        return None


def parse_complex(text: str) -> Optional[complex]:
    """Parse ``"<re>,<im>"`` into a complex number."""

    pair = parse_pair(text, ",", float)
    if pair is None:
        return None
    return complex(*pair)
