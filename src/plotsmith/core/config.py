"""Configuration models used by the figure renderer.

Configuration

`directory` (`Path`)
: Default output directory for figures and persisted scripts. Blocks override
  it with the `directory` attribute.

`format` (`SaveFormat`)
: Default output format. The toolkit must support it or the block is rejected.

`dpi` (`int`)
: Default figure resolution, forwarded to toolkits that honour it.

`source` (`bool`)
: Persist the assembled script beside the figure and link it from the
  document.

`dependencies` (`list[Path]`)
: Files every figure depends on. Their content participates in the
  fingerprint, so editing a data file re-renders the figures using it.

`workers` (`int`)
: Number of figures rendered concurrently.

`timeout` (`float | None`)
: Per-render time budget in seconds. `None` waits for the toolkit to exit.

`force` (`bool`)
: Render every figure even when a cached output already exists.

`retries` (`int`)
: Additional attempts granted to a toolkit that exits with a non-zero status.

`source_label` (`str`)
: Text of the link pointing at the persisted script.

`toolkits` (`dict[str, ToolkitSettings]`)
: Per-toolkit overrides keyed by toolkit tag.

ToolkitSettings

`executable` (`str | None`)
: Command name or path used instead of the toolkit's default executable.

`preamble` (`str | None`)
: Script text prepended to every figure of the toolkit. In YAML files the
  value names a file, resolved relative to the configuration file.

`extra` (`dict[str, str]`)
: Defaults for toolkit-specific attributes such as matplotlib's
  `tight_bbox`.
"""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
import yaml

from .exceptions import ConfigurationError, SpecificationError
from .formats import SaveFormat


DEFAULT_CONFIG_FILENAME = ".plotsmith.yml"


class ToolkitSettings(BaseModel):
    """Overrides applied to a single toolkit."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    executable: str | None = None
    preamble: str | None = None
    extra: dict[str, str] = Field(default_factory=dict)


class Configuration(BaseModel):
    """Process-wide rendering configuration, immutable once loaded."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    directory: Path = Path("plots")
    format: SaveFormat = SaveFormat.PNG
    dpi: int = Field(default=80, gt=0)
    source: bool = False
    dependencies: tuple[Path, ...] = ()
    workers: int = Field(default=4, ge=1)
    timeout: float | None = Field(default=None, gt=0)
    force: bool = False
    retries: int = Field(default=0, ge=0)
    source_label: str = "Source code"
    toolkits: dict[str, ToolkitSettings] = Field(default_factory=dict)

    @field_validator("format", mode="before")
    @classmethod
    def _parse_format(cls, value: Any) -> Any:
        if isinstance(value, str):
            try:
                return SaveFormat.parse(value)
            except SpecificationError as exc:
                raise ValueError(str(exc)) from exc
        return value

    @field_validator("toolkits")
    @classmethod
    def _known_toolkits(cls, value: dict[str, ToolkitSettings]) -> dict[str, ToolkitSettings]:
        from plotsmith.toolkits import registry

        unknown = sorted(tag for tag in value if not registry.is_registered(tag))
        if unknown:
            raise ValueError(f"Unknown toolkit(s): {', '.join(unknown)}")
        return value

    def toolkit_settings(self, tag: str) -> ToolkitSettings:
        """Return the settings for a toolkit, falling back to empty overrides."""
        return self.toolkits.get(tag) or ToolkitSettings()

    def evolve(self, **changes: Any) -> Configuration:
        """Return a validated copy with the given fields replaced."""
        payload = self.model_dump()
        payload.update(changes)
        try:
            return Configuration.model_validate(payload)
        except ValidationError as exc:
            raise ConfigurationError(f"Invalid configuration: {exc}") from exc


def _toolkit_section(tag: str, raw: Any, base_dir: Path) -> ToolkitSettings:
    if raw is None:
        return ToolkitSettings()
    if not isinstance(raw, Mapping):
        raise ConfigurationError(f"Configuration for toolkit '{tag}' must be a mapping")

    section = dict(raw)
    executable = section.pop("executable", None)
    preamble_ref = section.pop("preamble", None)

    preamble: str | None = None
    if preamble_ref is not None:
        preamble_path = Path(str(preamble_ref)).expanduser()
        if not preamble_path.is_absolute():
            preamble_path = base_dir / preamble_path
        try:
            preamble = preamble_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise ConfigurationError(
                f"Cannot read preamble '{preamble_path}' configured for toolkit '{tag}': {exc}"
            ) from exc

    extra = {str(key): _stringify(value) for key, value in section.items()}
    return ToolkitSettings(
        executable=str(executable) if executable is not None else None,
        preamble=preamble,
        extra=extra,
    )


def _stringify(value: Any) -> str:
    if isinstance(value, bool):
        return "True" if value else "False"
    return str(value)


def configuration_from_mapping(data: Mapping[str, Any], *, base_dir: Path) -> Configuration:
    """Build a configuration from a parsed YAML mapping.

    Toolkit sections may appear at the top level, keyed by toolkit tag, or
    under a ``toolkits`` mapping.
    """
    from plotsmith.toolkits import registry

    payload = dict(data)
    sections: dict[str, Any] = dict(payload.pop("toolkits", None) or {})
    for tag in registry.names():
        if tag in payload:
            sections[tag] = payload.pop(tag)

    unknown = sorted(tag for tag in sections if not registry.is_registered(tag))
    if unknown:
        raise ConfigurationError(f"Unknown toolkit(s) in configuration: {', '.join(unknown)}")

    payload["toolkits"] = {
        tag: _toolkit_section(tag, raw, base_dir) for tag, raw in sections.items()
    }

    if "directory" in payload and payload["directory"] is not None:
        directory = Path(str(payload["directory"])).expanduser()
        payload["directory"] = directory

    try:
        return Configuration.model_validate(payload)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid configuration: {exc}") from exc


def load_configuration(path: Path | str | None = None) -> Configuration:
    """Load a configuration file, returning defaults when no file is given."""
    if path is None:
        return Configuration()

    config_path = Path(path)
    try:
        text = config_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigurationError(f"Cannot read configuration '{config_path}': {exc}") from exc

    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Malformed configuration '{config_path}': {exc}") from exc

    if data is None:
        return Configuration()
    if not isinstance(data, Mapping):
        raise ConfigurationError(f"Configuration '{config_path}' must contain a mapping")

    return configuration_from_mapping(data, base_dir=config_path.parent)


__all__ = [
    "DEFAULT_CONFIG_FILENAME",
    "Configuration",
    "ToolkitSettings",
    "configuration_from_mapping",
    "load_configuration",
]
