"""Diagnostic abstractions shared across the rendering pipeline."""

from __future__ import annotations

from collections.abc import Mapping
import logging
from threading import Lock
from typing import Any, Protocol, runtime_checkable


logger = logging.getLogger(__name__)


@runtime_checkable
class DiagnosticEmitter(Protocol):
    """Interface used to surface warnings, errors, and structured events."""

    debug_enabled: bool

    def warning(self, message: str, exc: BaseException | None = None) -> None: ...

    def error(self, message: str, exc: BaseException | None = None) -> None: ...

    def event(self, name: str, payload: Mapping[str, Any]) -> None: ...


class NullEmitter:
    """Emitter that ignores every diagnostic."""

    debug_enabled: bool = False

    def warning(self, message: str, exc: BaseException | None = None) -> None:
        return

    def error(self, message: str, exc: BaseException | None = None) -> None:
        return

    def event(self, name: str, payload: Mapping[str, Any]) -> None:
        return


class LoggingEmitter:
    """Emitter that forwards diagnostics to the standard logging module.

    Render tasks share a single emitter, so every record is written while
    holding a lock to keep messages from concurrent workers whole.
    """

    def __init__(
        self, *, logger_obj: logging.Logger | None = None, debug_enabled: bool = False
    ) -> None:
        self._logger = logger_obj or logger
        self._lock = Lock()
        self.debug_enabled = debug_enabled

    def warning(self, message: str, exc: BaseException | None = None) -> None:
        with self._lock:
            if exc is not None:
                self._logger.warning(message, exc_info=exc)
            else:
                self._logger.warning(message)

    def error(self, message: str, exc: BaseException | None = None) -> None:
        with self._lock:
            if exc is not None:
                self._logger.error(message, exc_info=exc)
            else:
                self._logger.error(message)

    def event(self, name: str, payload: Mapping[str, Any]) -> None:
        message = format_event_message(name, payload)
        with self._lock:
            if message:
                self._logger.info(message)
                return
            self._logger.debug("diagnostic event %s: %s", name, dict(payload))


def ensure_emitter(emitter: DiagnosticEmitter | None) -> DiagnosticEmitter:
    """Return a usable emitter, defaulting to the null implementation."""
    return emitter if emitter is not None else NullEmitter()


def record_event(
    emitter: DiagnosticEmitter | None,
    event: str,
    payload: Mapping[str, Any],
) -> None:
    """Forward a structured diagnostic event."""
    ensure_emitter(emitter).event(event, payload)


def format_event_message(name: str, payload: Mapping[str, Any]) -> str | None:
    """Return a human-friendly summary for selected diagnostic events."""
    data = dict(payload)

    if name == "figure_rendered":
        toolkit = data.get("toolkit") or "<unknown>"
        path = data.get("path") or "<unknown>"
        elapsed = data.get("elapsed")
        suffix = f" in {elapsed:.2f}s" if isinstance(elapsed, (int, float)) else ""
        return f"Rendered {toolkit} figure: {path}{suffix}"

    if name == "figure_cached":
        path = data.get("path") or "<unknown>"
        return f"Reusing cached figure: {path}"

    if name == "figure_source_loaded":
        path = data.get("path") or "<unknown>"
        return f"Loading figure content from {path}"

    if name == "render_retry":
        toolkit = data.get("toolkit") or "<unknown>"
        attempt = data.get("attempt")
        return f"Retrying {toolkit} render (attempt {attempt})"

    return None


__all__ = [
    "DiagnosticEmitter",
    "LoggingEmitter",
    "NullEmitter",
    "ensure_emitter",
    "format_event_message",
    "record_event",
]
