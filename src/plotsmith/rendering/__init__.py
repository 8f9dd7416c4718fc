"""Figure rendering: toolkit subprocess driver and document scheduler."""

from __future__ import annotations

from .renderer import RenderResult, exponential_backoff, render_figure
from .scheduler import BlockFailure, ProcessOutcome, process_blocks, process_document


__all__ = [
    "BlockFailure",
    "ProcessOutcome",
    "RenderResult",
    "exponential_backoff",
    "process_blocks",
    "process_document",
    "render_figure",
]
