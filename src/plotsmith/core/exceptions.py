"""Exception hierarchy for the figure rendering pipeline."""

from __future__ import annotations


class PlotsmithError(RuntimeError):
    """Base exception for figure rendering failures."""


class ConfigurationError(PlotsmithError):
    """Raised when the configuration cannot be loaded or validated."""


class SpecificationError(PlotsmithError):
    """Raised when a code block cannot be turned into a figure specification."""


class ToolkitNotFoundError(SpecificationError):
    """Raised when a toolkit tag does not match any registered toolkit."""


class ToolkitUnavailableError(PlotsmithError):
    """Raised when the executable backing a toolkit cannot be located or spawned."""


class RenderExecutionError(PlotsmithError):
    """Raised when a toolkit fails to produce the requested figure."""


class RenderTimeoutError(RenderExecutionError):
    """Raised when a toolkit exceeds the configured time budget."""


def exception_messages(exc: BaseException) -> list[str]:
    """Return the collected message chain for an exception and its causes."""
    messages: list[str] = []
    visited: set[int] = set()
    current: BaseException | None = exc
    while current is not None and id(current) not in visited:
        visited.add(id(current))
        text = str(current).strip()
        if text:
            first_line = text.splitlines()[0].strip()
            if first_line:
                messages.append(first_line)
        current = current.__cause__ or current.__context__
    return messages


def exception_hint(exc: BaseException) -> str | None:
    """Return the most specific message available for an exception chain."""
    messages = exception_messages(exc)
    return messages[-1] if messages else None


__all__ = [
    "ConfigurationError",
    "PlotsmithError",
    "RenderExecutionError",
    "RenderTimeoutError",
    "SpecificationError",
    "ToolkitNotFoundError",
    "ToolkitUnavailableError",
    "exception_hint",
    "exception_messages",
]
