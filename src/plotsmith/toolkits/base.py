"""Toolkit descriptors driving external plotting programs uniformly."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path
import shutil
import subprocess
from typing import TYPE_CHECKING, Any

from plotsmith.core.formats import SaveFormat


if TYPE_CHECKING:
    from plotsmith.core.config import Configuration
    from plotsmith.core.spec import FigureSpec


@dataclass(frozen=True, slots=True)
class Toolkit:
    """Static capability table for one plotting toolkit.

    ``arguments`` and ``availability_check`` are argument templates: each item
    is formatted with ``executable``, ``script``, ``figure``, ``format`` and
    ``dpi``. ``capture_template`` holds the statements saving the current
    figure, formatted with the same fields plus the toolkit extras.
    """

    tag: str
    name: str
    executable: str
    comment_prefix: str
    script_suffix: str
    supported_formats: tuple[SaveFormat, ...]
    arguments: tuple[str, ...]
    capture_template: str = ""
    availability_check: tuple[str, ...] = ()
    default_preamble: str = ""
    comment_suffix: str = ""
    extra_attributes: Mapping[str, str] = field(default_factory=dict)

    def resolve_executable(self, configuration: Configuration) -> str:
        """Return the configured executable, resolved on ``PATH`` when possible."""
        candidate = configuration.toolkit_settings(self.tag).executable or self.executable
        try:
            resolved = shutil.which(candidate)
        except (OSError, ValueError):
            resolved = None
        return resolved or candidate

    def preamble(self, configuration: Configuration) -> str:
        """Return the preamble configured for this toolkit."""
        configured = configuration.toolkit_settings(self.tag).preamble
        return configured if configured is not None else self.default_preamble

    def comment(self, text: str) -> str:
        """Return ``text`` as a single-line comment of the toolkit language."""
        if self.comment_suffix:
            return f"{self.comment_prefix} {text} {self.comment_suffix}"
        return f"{self.comment_prefix} {text}"

    def normalise_extra(self, extra: Mapping[str, str]) -> dict[str, str]:
        """Validate toolkit-specific attribute values, returning canonical strings."""
        return dict(extra)

    def supports(self, save_format: SaveFormat) -> bool:
        """Return True when the toolkit can produce ``save_format``."""
        return save_format in self.supported_formats

    def template_values(self, spec: FigureSpec, figure_path: Path) -> dict[str, Any]:
        """Return the fields available to argument and capture templates."""
        values: dict[str, Any] = dict(spec.extra)
        values.update(
            figure=figure_path.as_posix(),
            format=spec.save_format.value,
            dpi=spec.dpi,
        )
        return values

    def capture(self, spec: FigureSpec, figure_path: Path) -> str:
        """Return the runnable script saving the figure to ``figure_path``."""
        if not self.capture_template:
            return spec.script
        statements = self.capture_template.format_map(self.template_values(spec, figure_path))
        return f"{spec.script}\n{statements}\n"

    def build_invocation(
        self,
        executable: str,
        script_path: Path,
        figure_path: Path,
        spec: FigureSpec,
    ) -> list[str]:
        """Return the argument list rendering ``script_path`` into ``figure_path``."""
        values = self.template_values(spec, figure_path)
        values.update(executable=executable, script=str(script_path), figure=str(figure_path))
        return _format_arguments(self.arguments, values)

    def is_available(self, configuration: Configuration, *, timeout: float = 30.0) -> bool:
        """Return True when the toolkit executable runs its availability check."""
        executable = self.resolve_executable(configuration)
        if shutil.which(executable) is None:
            return False
        if not self.availability_check:
            return True
        command = _format_arguments(self.availability_check, {"executable": executable})
        try:
            result = subprocess.run(
                command,
                check=False,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                timeout=timeout,
            )
        except (OSError, subprocess.TimeoutExpired):
            return False
        return result.returncode == 0


def _format_arguments(template: Sequence[str], values: Mapping[str, Any]) -> list[str]:
    return [item.format_map(values) for item in template]


__all__ = ["Toolkit"]
