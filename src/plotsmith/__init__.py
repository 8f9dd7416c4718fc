"""Primary public API for plotsmith."""

from __future__ import annotations

from plotsmith.core.cache import figure_path, fingerprint, should_render
from plotsmith.core.config import Configuration, ToolkitSettings, load_configuration
from plotsmith.core.diagnostics import DiagnosticEmitter, LoggingEmitter, NullEmitter
from plotsmith.core.document import CodeBlock, InvalidDocumentError
from plotsmith.core.exceptions import (
    ConfigurationError,
    PlotsmithError,
    RenderExecutionError,
    RenderTimeoutError,
    SpecificationError,
    ToolkitNotFoundError,
    ToolkitUnavailableError,
)
from plotsmith.core.formats import SaveFormat
from plotsmith.core.spec import FigureSpec, build_figure_spec
from plotsmith.rendering import (
    BlockFailure,
    ProcessOutcome,
    RenderResult,
    process_blocks,
    process_document,
    render_figure,
)
from plotsmith.toolkits import Toolkit, ToolkitRegistry, registry
from plotsmith.version import get_version


__version__ = get_version()

__all__ = [
    "BlockFailure",
    "CodeBlock",
    "Configuration",
    "ConfigurationError",
    "DiagnosticEmitter",
    "FigureSpec",
    "InvalidDocumentError",
    "LoggingEmitter",
    "NullEmitter",
    "PlotsmithError",
    "ProcessOutcome",
    "RenderExecutionError",
    "RenderResult",
    "RenderTimeoutError",
    "SaveFormat",
    "SpecificationError",
    "Toolkit",
    "ToolkitNotFoundError",
    "ToolkitRegistry",
    "ToolkitSettings",
    "ToolkitUnavailableError",
    "__version__",
    "build_figure_spec",
    "figure_path",
    "fingerprint",
    "get_version",
    "load_configuration",
    "process_blocks",
    "process_document",
    "registry",
    "render_figure",
    "should_render",
]
