"""Toolkit registry exposing lookup helpers over the built-in toolkits."""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from typing import TYPE_CHECKING

from plotsmith.core.exceptions import ToolkitNotFoundError

from .base import Toolkit
from .builtin import BUILTIN_TOOLKITS


if TYPE_CHECKING:
    from plotsmith.core.config import Configuration


class ToolkitRegistry:
    """Registry storing toolkits in registration order."""

    def __init__(self, toolkits: Iterable[Toolkit] = ()) -> None:
        self._toolkits: dict[str, Toolkit] = {}
        for toolkit in toolkits:
            self.register(toolkit)

    def register(self, toolkit: Toolkit) -> None:
        """Register a toolkit under its tag."""
        self._toolkits[toolkit.tag] = toolkit

    def get(self, tag: str) -> Toolkit:
        """Return a registered toolkit or raise a lookup error."""
        try:
            return self._toolkits[tag]
        except KeyError as exc:
            known = ", ".join(self._toolkits)
            raise ToolkitNotFoundError(
                f"No toolkit registered for '{tag}'. Known toolkits: {known}"
            ) from exc

    def is_registered(self, tag: str) -> bool:
        """Return True when a toolkit has been registered under the given tag."""
        return tag in self._toolkits

    def names(self) -> list[str]:
        """Return registered tags in registration order."""
        return list(self._toolkits)

    def for_classes(self, classes: Iterable[str]) -> Toolkit | None:
        """Return the first registered toolkit whose tag appears in ``classes``.

        Registration order decides when several toolkit tags are present.
        """
        present = set(classes)
        for tag, toolkit in self._toolkits.items():
            if tag in present:
                return toolkit
        return None

    def private_keys(self) -> frozenset[str]:
        """Return every toolkit-specific attribute key."""
        keys: set[str] = set()
        for toolkit in self._toolkits.values():
            keys.update(toolkit.extra_attributes)
        return frozenset(keys)

    def __iter__(self) -> Iterator[Toolkit]:
        return iter(self._toolkits.values())

    def __len__(self) -> int:
        return len(self._toolkits)


registry = ToolkitRegistry(BUILTIN_TOOLKITS)


def get_toolkit(tag: str) -> Toolkit:
    """Return the toolkit registered under ``tag``."""
    return registry.get(tag)


def toolkit_for_classes(classes: Iterable[str]) -> Toolkit | None:
    """Return the toolkit selected by a code block's classes, if any."""
    return registry.for_classes(classes)


def available_toolkits(configuration: Configuration) -> list[Toolkit]:
    """Return the toolkits whose executables pass their availability check."""
    return [toolkit for toolkit in registry if toolkit.is_available(configuration)]


def unavailable_toolkits(configuration: Configuration) -> list[Toolkit]:
    """Return the toolkits that cannot currently be used."""
    return [toolkit for toolkit in registry if not toolkit.is_available(configuration)]


__all__ = [
    "Toolkit",
    "ToolkitRegistry",
    "available_toolkits",
    "get_toolkit",
    "registry",
    "toolkit_for_classes",
    "unavailable_toolkits",
]
