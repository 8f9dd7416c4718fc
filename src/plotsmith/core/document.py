"""Pandoc JSON helpers used to find code blocks and build replacement nodes.

Nodes are the plain dictionaries produced by ``pandoc --to json``: each node
has a ``t`` (type) key and, for most types, a ``c`` (content) key. Only code
blocks are inspected; every other node is copied through unchanged.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator, Sequence
from dataclasses import dataclass
import itertools
from pathlib import Path
from typing import Any

from .exceptions import PlotsmithError


Node = dict[str, Any]
Replacement = Callable[[int, Node], list[Node] | None]

ERROR_CLASS = "plotsmith-error"


class InvalidDocumentError(PlotsmithError):
    """Raised when a payload does not look like a Pandoc JSON document."""


@dataclass(frozen=True, slots=True)
class CodeBlock:
    """View over a Pandoc ``CodeBlock`` node."""

    identifier: str = ""
    classes: tuple[str, ...] = ()
    attributes: tuple[tuple[str, str], ...] = ()
    content: str = ""

    @classmethod
    def from_node(cls, node: Node) -> CodeBlock:
        """Build a view from a ``CodeBlock`` node."""
        if node.get("t") != "CodeBlock":
            raise InvalidDocumentError(f"Expected a CodeBlock node, got '{node.get('t')}'")
        try:
            (identifier, classes, attributes), content = node["c"]
        except (KeyError, TypeError, ValueError) as exc:
            raise InvalidDocumentError("Malformed CodeBlock node") from exc
        return cls(
            identifier=identifier,
            classes=tuple(classes),
            attributes=tuple((key, value) for key, value in attributes),
            content=content,
        )

    def to_node(self) -> Node:
        """Return the Pandoc node for this block."""
        return {
            "t": "CodeBlock",
            "c": [
                [self.identifier, list(self.classes), [list(pair) for pair in self.attributes]],
                self.content,
            ],
        }


def document_blocks(document: Any) -> list[Node]:
    """Return the top-level block list of a Pandoc JSON document."""
    if not isinstance(document, dict) or not isinstance(document.get("blocks"), list):
        raise InvalidDocumentError("Pandoc JSON documents must contain a 'blocks' list")
    return document["blocks"]


def iter_code_blocks(blocks: Sequence[Any]) -> Iterator[Node]:
    """Yield every ``CodeBlock`` node, depth first, in document order."""
    for item in blocks:
        yield from _iter_value(item)


def _iter_value(value: Any) -> Iterator[Node]:
    if isinstance(value, dict):
        if value.get("t") == "CodeBlock":
            yield value
            return
        for child in value.values():
            yield from _iter_value(child)
    elif isinstance(value, list):
        for child in value:
            yield from _iter_value(child)


def replace_code_blocks(blocks: Sequence[Any], replacement: Replacement) -> list[Any]:
    """Return a copy of ``blocks`` with code blocks substituted.

    ``replacement`` receives the ordinal of each code block (matching
    :func:`iter_code_blocks`) and the node; it returns the nodes spliced in
    its place, or ``None`` to keep the block.
    """
    counter = itertools.count()
    return _replace_list(blocks, replacement, counter)


def _replace_list(items: Sequence[Any], replacement: Replacement, counter: Iterator[int]) -> list:
    rebuilt: list[Any] = []
    for item in items:
        if isinstance(item, dict) and item.get("t") == "CodeBlock":
            substituted = replacement(next(counter), item)
            if substituted is None:
                rebuilt.append(item)
            else:
                rebuilt.extend(substituted)
        else:
            rebuilt.append(_replace_value(item, replacement, counter))
    return rebuilt


def _replace_value(value: Any, replacement: Replacement, counter: Iterator[int]) -> Any:
    if isinstance(value, list):
        return _replace_list(value, replacement, counter)
    if isinstance(value, dict):
        return {key: _replace_value(child, replacement, counter) for key, child in value.items()}
    return value


def text_inlines(text: str) -> list[Node]:
    """Split plain text into ``Str`` and ``Space`` inline nodes."""
    inlines: list[Node] = []
    for word in text.split():
        if inlines:
            inlines.append({"t": "Space"})
        inlines.append({"t": "Str", "c": word})
    return inlines


def _url(path: Path) -> str:
    return path.as_posix()


def figure_node(
    path: Path,
    *,
    caption: str = "",
    identifier: str = "",
    classes: Sequence[str] = (),
    attributes: Sequence[tuple[str, str]] = (),
) -> Node:
    """Return a Pandoc ``Figure`` block showing the image at ``path``."""
    inlines = text_inlines(caption)
    image = {
        "t": "Image",
        "c": [
            ["", list(classes), [list(pair) for pair in attributes]],
            inlines,
            [_url(path), ""],
        ],
    }
    caption_blocks = [{"t": "Plain", "c": inlines}] if inlines else []
    return {
        "t": "Figure",
        "c": [
            [identifier, [], []],
            [None, caption_blocks],
            [{"t": "Plain", "c": [image]}],
        ],
    }


def link_node(path: Path, label: str) -> Node:
    """Return a paragraph holding a single link to ``path``."""
    link = {"t": "Link", "c": [["", [], []], text_inlines(label), [_url(path), ""]]}
    return {"t": "Para", "c": [link]}


def error_node(message: str, original: Node) -> Node:
    """Return a visible marker wrapping a code block that failed to render."""
    label = [{"t": "Strong", "c": text_inlines("Figure rendering failed:")}]
    paragraph = {"t": "Para", "c": [*label, {"t": "Space"}, *text_inlines(message)]}
    return {"t": "Div", "c": [["", [ERROR_CLASS], []], [paragraph, original]]}


__all__ = [
    "ERROR_CLASS",
    "CodeBlock",
    "InvalidDocumentError",
    "Node",
    "document_blocks",
    "error_node",
    "figure_node",
    "iter_code_blocks",
    "link_node",
    "replace_code_blocks",
    "text_inlines",
]
