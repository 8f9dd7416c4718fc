"""Code block attribute keys and the parsers applied to their values."""

from __future__ import annotations

from collections.abc import Iterable
from enum import Enum
import os
from pathlib import Path

from .exceptions import SpecificationError


class AttributeKey(str, Enum):
    """Attribute keys consumed by plotsmith on plotting code blocks."""

    CAPTION = "caption"
    DIRECTORY = "directory"
    FORMAT = "format"
    DPI = "dpi"
    SOURCE = "source"
    PREAMBLE = "preamble"
    FILE = "file"
    DEPENDENCIES = "dependencies"


INCLUSION_KEYS: frozenset[str] = frozenset(key.value for key in AttributeKey)

_TRUE_TOKENS = frozenset({"true", "1"})
_FALSE_TOKENS = frozenset({"false", "0"})


def attribute_map(pairs: Iterable[tuple[str, str]]) -> dict[str, str]:
    """Collapse attribute pairs into a mapping where the last occurrence wins."""
    mapping: dict[str, str] = {}
    for key, value in pairs:
        mapping[key] = value
    return mapping


def parse_bool(text: str) -> bool:
    """Parse a boolean attribute value.

    ``True``/``False`` are accepted in any case, optionally wrapped in single
    quotes, as well as ``1`` and ``0``.
    """
    token = text.strip()
    if len(token) >= 2 and token[0] == token[-1] == "'":
        token = token[1:-1]
    lowered = token.lower()
    if lowered in _TRUE_TOKENS:
        return True
    if lowered in _FALSE_TOKENS:
        return False
    raise SpecificationError(
        f"Could not parse '{text}' into a boolean. Please use 'True' or 'False'"
    )


def parse_dpi(text: str) -> int:
    """Parse a strictly positive integer resolution."""
    try:
        dpi = int(text.strip())
    except ValueError as exc:
        raise SpecificationError(f"Could not parse '{text}' into a DPI value") from exc
    if dpi <= 0:
        raise SpecificationError(f"DPI must be a positive integer, got '{text}'")
    return dpi


def parse_dependencies(text: str) -> list[Path]:
    """Parse a bracketed, comma-separated file list such as ``[foo.csv, bar.txt]``."""
    stripped = text.strip().strip("[]")
    if not stripped.strip():
        return []
    return [
        Path(os.path.normpath(entry.strip())) for entry in stripped.split(",") if entry.strip()
    ]


def residual_attributes(
    pairs: Iterable[tuple[str, str]], private_keys: Iterable[str]
) -> list[tuple[str, str]]:
    """Return the attribute pairs that plotsmith does not consume, in order."""
    hidden = INCLUSION_KEYS | frozenset(private_keys)
    return [(key, value) for key, value in pairs if key not in hidden]


__all__ = [
    "INCLUSION_KEYS",
    "AttributeKey",
    "attribute_map",
    "parse_bool",
    "parse_dependencies",
    "parse_dpi",
    "residual_attributes",
]
