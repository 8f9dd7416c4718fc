from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import pytest


class RecordingEmitter:
    """Emitter collecting diagnostics for assertions."""

    def __init__(self, *, debug_enabled: bool = False) -> None:
        self.debug_enabled = debug_enabled
        self.warnings: list[str] = []
        self.errors: list[str] = []
        self.events: list[tuple[str, dict[str, Any]]] = []

    def warning(self, message: str, exc: BaseException | None = None) -> None:
        self.warnings.append(message)

    def error(self, message: str, exc: BaseException | None = None) -> None:
        self.errors.append(message)

    def event(self, name: str, payload: Mapping[str, Any]) -> None:
        self.events.append((name, dict(payload)))

    def event_names(self) -> list[str]:
        return [name for name, _ in self.events]


def make_code_block(content: str, *classes: str, identifier: str = "", **attributes: str):
    pairs = [[key, value] for key, value in attributes.items()]
    return {"t": "CodeBlock", "c": [[identifier, list(classes), pairs], content]}


def make_document(*blocks: Any) -> dict[str, Any]:
    return {"pandoc-api-version": [1, 23, 1], "meta": {}, "blocks": list(blocks)}


@pytest.fixture
def emitter() -> RecordingEmitter:
    return RecordingEmitter()


@pytest.fixture
def code_block():
    return make_code_block


@pytest.fixture
def document():
    return make_document


def _fake_which(name, *_args, **_kwargs):
    return name if name.startswith("/") else f"/usr/bin/{name}"


@pytest.fixture
def fake_which(monkeypatch):
    """Pretend every executable is installed under /usr/bin."""
    monkeypatch.setattr("shutil.which", _fake_which)
