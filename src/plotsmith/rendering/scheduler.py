"""Walk a Pandoc document, render its figures concurrently, and substitute them."""

from __future__ import annotations

from collections.abc import Callable, Hashable, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

from plotsmith.core.cache import figure_path
from plotsmith.core.config import Configuration
from plotsmith.core.diagnostics import DiagnosticEmitter, ensure_emitter
from plotsmith.core.document import (
    CodeBlock,
    Node,
    document_blocks,
    error_node,
    figure_node,
    iter_code_blocks,
    link_node,
    replace_code_blocks,
)
from plotsmith.core.exceptions import PlotsmithError, RenderExecutionError, exception_messages
from plotsmith.core.spec import FigureSpec, build_figure_spec
from plotsmith.toolkits import registry

from .renderer import RenderResult, render_figure


Renderer = Callable[..., RenderResult]


@dataclass(frozen=True, slots=True)
class BlockFailure:
    """A code block that could not be turned into a figure."""

    ordinal: int
    toolkit: str | None
    error: PlotsmithError

    @property
    def message(self) -> str:
        return str(self.error)


@dataclass(slots=True)
class ProcessOutcome:
    """Processed document together with the blocks that failed."""

    document: Any
    failures: list[BlockFailure] = field(default_factory=list)
    rendered: int = 0
    cached: int = 0

    @property
    def ok(self) -> bool:
        return not self.failures


def _replacement_nodes(
    spec: FigureSpec, figure: Path, source: Path | None, configuration: Configuration
) -> list[Node]:
    nodes = [
        figure_node(
            figure,
            caption=spec.caption,
            identifier=spec.identifier,
            classes=spec.classes,
            attributes=spec.attributes,
        )
    ]
    if source is not None:
        nodes.append(link_node(source, configuration.source_label))
    return nodes


def _report(emitter: DiagnosticEmitter, summary: str, error: PlotsmithError) -> None:
    """Emit a block failure, listing the cause chain when debugging."""
    if emitter.debug_enabled:
        chain = exception_messages(error)
        if len(chain) > 1:
            details = "\n".join(f"- {line}" for line in chain)
            summary = f"{summary}\nDetails:\n{details}"
    emitter.error(summary, exc=error)


def _output_key(ordinal: int, spec: FigureSpec) -> Hashable:
    """Return the figure path ``spec`` renders to, grouping identical figures."""
    try:
        return figure_path(spec)
    except OSError:
        # The renderer reports the unreadable dependency for this block alone.
        return ordinal


def _share_result(result: RenderResult, spec: FigureSpec) -> RenderResult:
    """Hand a render result over to another block targeting the same figure."""
    if result.spec is spec:
        return result
    return replace(
        result,
        spec=spec,
        source_path=result.source_path if spec.with_source else None,
        cached=result.ok,
    )


def process_blocks(
    blocks: Sequence[Any],
    configuration: Configuration,
    *,
    version: str,
    emitter: DiagnosticEmitter | None = None,
    renderer: Renderer = render_figure,
) -> ProcessOutcome:
    """Render every plotting code block found in ``blocks``.

    Specifications are resolved on the calling thread in document order; only
    the render step runs on the worker pool. Blocks resolving to the same
    figure file are rendered once and share the result. The returned block
    list is a new tree, ``blocks`` is left untouched.
    """
    emitter = ensure_emitter(emitter)
    failures: list[BlockFailure] = []
    replacements: dict[int, list[Node]] = {}
    specs: dict[int, FigureSpec] = {}

    for ordinal, node in enumerate(iter_code_blocks(blocks)):
        tag: str | None = None
        try:
            block = CodeBlock.from_node(node)
            toolkit = registry.for_classes(block.classes)
            tag = toolkit.tag if toolkit is not None else None
            spec = build_figure_spec(block, configuration, version=version, emitter=emitter)
        except PlotsmithError as exc:
            _report(emitter, f"Skipping figure #{ordinal + 1}: {exc}", exc)
            failures.append(BlockFailure(ordinal=ordinal, toolkit=tag, error=exc))
            replacements[ordinal] = [error_node(str(exc), node)]
            continue
        if spec is not None:
            specs[ordinal] = spec

    def _render(spec: FigureSpec) -> RenderResult:
        try:
            return renderer(spec, configuration=configuration, emitter=emitter)
        except PlotsmithError as exc:
            return RenderResult(spec=spec, error=exc)
        except OSError as exc:
            error = RenderExecutionError(f"Unexpected filesystem error: {exc}")
            error.__cause__ = exc
            return RenderResult(spec=spec, error=error)
        except Exception as exc:
            error = RenderExecutionError(f"Unexpected error while rendering: {exc}")
            error.__cause__ = exc
            return RenderResult(spec=spec, error=error)

    groups: dict[Hashable, list[int]] = {}
    for ordinal, spec in specs.items():
        groups.setdefault(_output_key(ordinal, spec), []).append(ordinal)

    results: dict[int, RenderResult] = {}
    if groups:
        members = list(groups.values())
        # Prefer a block asking for its source so the script file gets written.
        leaders = [
            next((specs[o] for o in ordinals if specs[o].with_source), specs[ordinals[0]])
            for ordinals in members
        ]
        workers = min(configuration.workers, len(leaders))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="plotsmith") as pool:
            for ordinals, shared in zip(members, pool.map(_render, leaders)):
                for ordinal in ordinals:
                    results[ordinal] = _share_result(shared, specs[ordinal])

    rendered = cached = 0
    errors: dict[int, PlotsmithError] = {}
    for ordinal in sorted(results):
        result = results[ordinal]
        figure = result.figure_path
        if result.error is None and figure is not None:
            replacements[ordinal] = _replacement_nodes(
                result.spec, figure, result.source_path, configuration
            )
            if result.cached:
                cached += 1
            else:
                rendered += 1
            continue
        error = result.error or RenderExecutionError(
            f"{result.spec.toolkit} renderer returned no figure"
        )
        summary = f"Failed to render {result.spec.toolkit} figure #{ordinal + 1}: {error}"
        _report(emitter, summary, error)
        failures.append(BlockFailure(ordinal=ordinal, toolkit=result.spec.toolkit, error=error))
        errors[ordinal] = error

    def _substitute(ordinal: int, node: Node) -> list[Node] | None:
        if ordinal in errors:
            return [error_node(str(errors[ordinal]), node)]
        return replacements.get(ordinal)

    failures.sort(key=lambda failure: failure.ordinal)
    return ProcessOutcome(
        document=replace_code_blocks(blocks, _substitute),
        failures=failures,
        rendered=rendered,
        cached=cached,
    )


def process_document(
    document: dict[str, Any],
    configuration: Configuration,
    *,
    version: str,
    emitter: DiagnosticEmitter | None = None,
    renderer: Renderer = render_figure,
) -> ProcessOutcome:
    """Render the figures of a Pandoc JSON document."""
    outcome = process_blocks(
        document_blocks(document),
        configuration,
        version=version,
        emitter=emitter,
        renderer=renderer,
    )
    processed = {key: value for key, value in document.items() if key != "blocks"}
    processed["blocks"] = outcome.document
    outcome.document = processed
    return outcome


__all__ = ["BlockFailure", "ProcessOutcome", "process_blocks", "process_document"]
