"""Figure specifications derived from plotting code blocks."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
import os
from pathlib import Path
from typing import TYPE_CHECKING

from .attributes import (
    AttributeKey,
    attribute_map,
    parse_bool,
    parse_dependencies,
    parse_dpi,
    residual_attributes,
)
from .diagnostics import DiagnosticEmitter, ensure_emitter, record_event
from .document import CodeBlock
from .exceptions import SpecificationError
from .formats import SaveFormat


if TYPE_CHECKING:
    from plotsmith.toolkits import Toolkit

    from .config import Configuration


HEADER_TEMPLATE = "Generated by plotsmith {version}"


@dataclass(frozen=True, slots=True)
class FigureSpec:
    """Fully resolved description of one figure to render."""

    toolkit: str
    script: str
    directory: Path
    save_format: SaveFormat
    dpi: int
    caption: str = ""
    with_source: bool = False
    dependencies: tuple[Path, ...] = ()
    extra: tuple[tuple[str, str], ...] = ()
    identifier: str = ""
    classes: tuple[str, ...] = ()
    attributes: tuple[tuple[str, str], ...] = ()

    def __post_init__(self) -> None:
        pairs = self.extra.items() if isinstance(self.extra, Mapping) else self.extra
        object.__setattr__(self, "extra", tuple(sorted((str(k), str(v)) for k, v in pairs)))


def _read_text(path: Path, *, purpose: str) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise SpecificationError(f"{purpose} '{path}' does not exist") from exc
    except UnicodeDecodeError as exc:
        raise SpecificationError(f"{purpose} '{path}' is not valid UTF-8 text: {exc}") from exc
    except OSError as exc:
        raise SpecificationError(f"Cannot read {purpose.lower()} '{path}': {exc}") from exc


def _normalise_directory(raw: str | Path) -> Path:
    text = str(raw).strip()
    if not text:
        raise SpecificationError("Output directory must not be empty")
    if "\x00" in text:
        raise SpecificationError(f"Invalid output directory '{raw}'")
    return Path(os.path.normpath(os.path.expanduser(text)))


def _script_content(
    block: CodeBlock, attributes: dict[str, str], emitter: DiagnosticEmitter
) -> str:
    """Return the script body, preferring the ``file`` attribute over inline content."""
    reference = attributes.get(AttributeKey.FILE.value)
    if reference is None:
        return block.content

    path = Path(os.path.normpath(reference))
    if block.content.strip():
        emitter.warning(
            f"Figure refers to a file ({path}) but also has content in the document. "
            "The file content will be preferred."
        )
    record_event(emitter, "figure_source_loaded", {"path": str(path)})
    return _read_text(path, purpose="Figure source file")


def assemble_script(*segments: str) -> str:
    """Join script segments with newlines, dropping blank ones."""
    return "\n".join(segment for segment in segments if segment.strip())


def build_figure_spec(
    block: CodeBlock,
    configuration: Configuration,
    *,
    version: str,
    emitter: DiagnosticEmitter | None = None,
) -> FigureSpec | None:
    """Resolve a code block into a figure specification.

    Returns ``None`` when no toolkit class is present on the block. Raises
    :class:`SpecificationError` when the block selects a toolkit but one of
    its attributes cannot be honoured.
    """
    from plotsmith.toolkits import registry

    toolkit = registry.for_classes(block.classes)
    if toolkit is None:
        return None

    emitter = ensure_emitter(emitter)
    attributes = attribute_map(block.attributes)

    body = _script_content(block, attributes, emitter)

    preamble_ref = attributes.get(AttributeKey.PREAMBLE.value)
    if preamble_ref is not None:
        preamble = _read_text(Path(os.path.normpath(preamble_ref)), purpose="Preamble file")
    else:
        preamble = toolkit.preamble(configuration)

    header = toolkit.comment(HEADER_TEMPLATE.format(version=version))
    script = assemble_script(header, preamble, body)

    save_format = configuration.format
    if (raw_format := attributes.get(AttributeKey.FORMAT.value)) is not None:
        save_format = SaveFormat.parse(raw_format)

    dpi = configuration.dpi
    if (raw_dpi := attributes.get(AttributeKey.DPI.value)) is not None:
        dpi = parse_dpi(raw_dpi)

    with_source = configuration.source
    if (raw_source := attributes.get(AttributeKey.SOURCE.value)) is not None:
        with_source = parse_bool(raw_source)

    directory = _normalise_directory(
        attributes.get(AttributeKey.DIRECTORY.value, configuration.directory)
    )

    dependencies = list(configuration.dependencies)
    dependencies.extend(parse_dependencies(attributes.get(AttributeKey.DEPENDENCIES.value, "")))

    if not toolkit.supports(save_format):
        supported = ", ".join(fmt.value for fmt in toolkit.supported_formats)
        raise SpecificationError(
            f"Save format '{save_format.value}' not supported by {toolkit.name} "
            f"({toolkit.tag}). Supported formats: {supported}"
        )

    return FigureSpec(
        toolkit=toolkit.tag,
        script=script,
        directory=directory,
        save_format=save_format,
        dpi=dpi,
        caption=attributes.get(AttributeKey.CAPTION.value, ""),
        with_source=with_source,
        dependencies=tuple(dependencies),
        extra=_resolve_extra(toolkit, attributes, configuration),
        identifier=block.identifier,
        classes=tuple(cls for cls in block.classes if cls != toolkit.tag),
        attributes=tuple(residual_attributes(block.attributes, registry.private_keys())),
    )


def _resolve_extra(
    toolkit: Toolkit, attributes: dict[str, str], configuration: Configuration
) -> dict[str, str]:
    configured = configuration.toolkit_settings(toolkit.tag).extra
    resolved: dict[str, str] = {}
    for key, default in toolkit.extra_attributes.items():
        resolved[key] = attributes.get(key, configured.get(key, default))
    return toolkit.normalise_extra(resolved)


__all__ = ["HEADER_TEMPLATE", "FigureSpec", "assemble_script", "build_figure_spec"]
