"""Content fingerprints and the render/skip decision.

The rendered figure is its own cache entry: its file name is the fingerprint
of everything that influences the output, so an existing file at that path is
a valid result from an earlier run.
"""

from __future__ import annotations

from hashlib import sha256
import json
from pathlib import Path
from typing import TYPE_CHECKING, Any

from .spec import FigureSpec


if TYPE_CHECKING:
    from plotsmith.toolkits import Toolkit


def _serialise_dependency(path: Path) -> dict[str, Any]:
    if path.is_file():
        return {"path": path.as_posix(), "sha256": sha256(path.read_bytes()).hexdigest()}
    return {"path": path.as_posix(), "missing": True}


def fingerprint(spec: FigureSpec) -> str:
    """Return a stable digest of the render-relevant content of ``spec``."""
    payload = {
        "toolkit": spec.toolkit,
        "script": spec.script,
        "format": spec.save_format.value,
        "dpi": spec.dpi,
        "extra": dict(spec.extra),
        "dependencies": [_serialise_dependency(path) for path in spec.dependencies],
    }
    encoded = json.dumps(payload, sort_keys=True, separators=(",", ":")).encode("utf-8")
    return sha256(encoded).hexdigest()


def figure_path(spec: FigureSpec, *, key: str | None = None) -> Path:
    """Return the path of the rendered figure for ``spec``."""
    stem = key or fingerprint(spec)
    return spec.directory / f"{stem}{spec.save_format.extension}"


def source_path(spec: FigureSpec, toolkit: Toolkit, *, key: str | None = None) -> Path:
    """Return the path of the persisted script for ``spec``."""
    stem = key or fingerprint(spec)
    return spec.directory / f"{stem}{toolkit.script_suffix}"


def should_render(spec: FigureSpec, output_path: Path, *, force: bool = False) -> bool:
    """Return True unless a previously rendered output can be reused."""
    if force:
        return True
    return not output_path.is_file()


__all__ = ["figure_path", "fingerprint", "should_render", "source_path"]
