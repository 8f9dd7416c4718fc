"""Drive toolkit executables to turn figure specifications into files."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
import shutil
import subprocess
import tempfile
import time

from plotsmith.core.cache import figure_path, fingerprint, should_render, source_path
from plotsmith.core.config import Configuration
from plotsmith.core.diagnostics import DiagnosticEmitter, ensure_emitter, record_event
from plotsmith.core.exceptions import (
    PlotsmithError,
    RenderExecutionError,
    RenderTimeoutError,
    ToolkitUnavailableError,
)
from plotsmith.core.spec import FigureSpec
from plotsmith.toolkits import Toolkit, get_toolkit


EXCERPT_LINES = 5


@dataclass(frozen=True, slots=True)
class RenderResult:
    """Outcome of rendering one figure."""

    spec: FigureSpec
    figure_path: Path | None = None
    source_path: Path | None = None
    error: PlotsmithError | None = None
    cached: bool = False

    @property
    def ok(self) -> bool:
        """Return True when the figure is available on disk."""
        return self.error is None

    @property
    def excerpt(self) -> str:
        """Return the first lines of the script, for failure reports."""
        return "\n".join(self.spec.script.splitlines()[:EXCERPT_LINES])


def exponential_backoff(
    base_delay: float = 0.5, factor: float = 2.0, max_delay: float = 5.0
) -> Callable[[int], float]:
    """Return a simple exponential backoff policy."""

    def policy(attempt: int) -> float:
        delay = base_delay * (factor ** (attempt - 1))
        return min(delay, max_delay)

    return policy


def _locate_executable(toolkit: Toolkit, configuration: Configuration) -> str:
    executable = toolkit.resolve_executable(configuration)
    try:
        located = shutil.which(executable)
    except (OSError, ValueError):
        located = None
    if located is None:
        raise ToolkitUnavailableError(
            f"{toolkit.name} ({toolkit.tag}) is not available: '{executable}' could not be "
            f"found. Install it or set 'executable' in the '{toolkit.tag}' configuration section."
        )
    return located


def _run_toolkit(
    command: list[str],
    *,
    toolkit: Toolkit,
    cwd: Path,
    timeout: float | None,
    emitter: DiagnosticEmitter,
) -> None:
    """Execute a toolkit command, raising a render error on failure."""
    try:
        result = subprocess.run(
            command,
            check=False,
            stdin=subprocess.DEVNULL,
            capture_output=True,
            text=True,
            cwd=cwd,
            timeout=timeout,
        )
    except subprocess.TimeoutExpired as exc:
        raise RenderTimeoutError(
            f"{toolkit.name} ({toolkit.tag}) did not finish within {timeout:g} seconds"
        ) from exc
    except OSError as exc:
        raise ToolkitUnavailableError(
            f"Failed to execute {toolkit.name} ({toolkit.tag}): {exc}"
        ) from exc

    if emitter.debug_enabled:
        detail = (result.stderr or "").strip() or (result.stdout or "").strip()
        if detail:
            record_event(
                emitter, "render_output", {"toolkit": toolkit.tag, "output": detail}
            )

    if result.returncode != 0:
        raise RenderExecutionError(
            f"{toolkit.name} ({toolkit.tag}) exited with status {result.returncode}. "
            "Check that the script runs on its own and that its dependencies are installed."
        )


def _execute(
    spec: FigureSpec,
    toolkit: Toolkit,
    executable: str,
    target: Path,
    *,
    timeout: float | None,
    emitter: DiagnosticEmitter,
) -> None:
    with tempfile.TemporaryDirectory(prefix="plotsmith-") as workdir:
        script = Path(workdir) / f"figure{toolkit.script_suffix}"
        script.write_text(toolkit.capture(spec, target), encoding="utf-8")
        command = toolkit.build_invocation(executable, script, target, spec)
        record_event(emitter, "render_command", {"toolkit": toolkit.tag, "command": command})
        _run_toolkit(command, toolkit=toolkit, cwd=Path.cwd(), timeout=timeout, emitter=emitter)

    if not target.is_file():
        raise RenderExecutionError(
            f"{toolkit.name} ({toolkit.tag}) exited successfully but did not produce "
            f"'{target}'. Check that the script creates a figure."
        )


def render_figure(
    spec: FigureSpec,
    *,
    configuration: Configuration,
    emitter: DiagnosticEmitter | None = None,
    backoff: Callable[[int], float] | None = None,
) -> RenderResult:
    """Render ``spec`` unless a cached output exists.

    Block-level failures are returned in the result rather than raised so that
    one broken figure never interrupts the others.
    """
    emitter = ensure_emitter(emitter)
    backoff = backoff or exponential_backoff()
    toolkit = get_toolkit(spec.toolkit)

    try:
        key = fingerprint(spec)
        target = figure_path(spec, key=key)
        script_target = source_path(spec, toolkit, key=key) if spec.with_source else None
        spec.directory.mkdir(parents=True, exist_ok=True)
        if script_target is not None:
            _persist_source(spec, script_target)
    except OSError as exc:
        error = RenderExecutionError(f"Cannot write figure files to '{spec.directory}': {exc}")
        error.__cause__ = exc
        return RenderResult(spec=spec, error=error)

    if not should_render(spec, target, force=configuration.force):
        record_event(emitter, "figure_cached", {"toolkit": spec.toolkit, "path": str(target)})
        return RenderResult(spec=spec, figure_path=target, source_path=script_target, cached=True)

    try:
        executable = _locate_executable(toolkit, configuration)
    except ToolkitUnavailableError as exc:
        return RenderResult(spec=spec, error=exc)

    started = time.perf_counter()
    attempts = configuration.retries + 1
    for attempt in range(1, attempts + 1):
        try:
            _execute(
                spec,
                toolkit,
                executable,
                target,
                timeout=configuration.timeout,
                emitter=emitter,
            )
        except RenderTimeoutError as exc:
            return RenderResult(spec=spec, error=exc)
        except RenderExecutionError as exc:
            if attempt >= attempts:
                return RenderResult(spec=spec, error=exc)
            record_event(emitter, "render_retry", {"toolkit": spec.toolkit, "attempt": attempt + 1})
            delay = backoff(attempt)
            if delay > 0:
                time.sleep(delay)
        except PlotsmithError as exc:
            return RenderResult(spec=spec, error=exc)
        except OSError as exc:
            error = RenderExecutionError(f"Cannot prepare {toolkit.name} script: {exc}")
            error.__cause__ = exc
            return RenderResult(spec=spec, error=error)
        else:
            break

    record_event(
        emitter,
        "figure_rendered",
        {
            "toolkit": spec.toolkit,
            "path": str(target),
            "elapsed": time.perf_counter() - started,
        },
    )
    return RenderResult(spec=spec, figure_path=target, source_path=script_target)


def _persist_source(spec: FigureSpec, path: Path) -> None:
    content = spec.script.encode("utf-8")
    if path.is_file() and path.read_bytes() == content:
        return
    path.write_bytes(content)


__all__ = ["RenderResult", "exponential_backoff", "render_figure"]
