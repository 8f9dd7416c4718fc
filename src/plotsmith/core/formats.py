"""Output formats understood by the plotting toolkits."""

from __future__ import annotations

from enum import Enum

from .exceptions import SpecificationError


class SaveFormat(str, Enum):
    """Closed set of figure formats a toolkit may be asked to produce."""

    PNG = "png"
    PDF = "pdf"
    SVG = "svg"
    JPG = "jpg"
    EPS = "eps"
    GIF = "gif"
    TIF = "tif"
    WEBP = "webp"
    HTML = "html"

    @property
    def extension(self) -> str:
        """Return the file extension, including the leading dot."""
        return f".{self.value}"

    @classmethod
    def parse(cls, text: str) -> SaveFormat:
        """Return the format named by ``text``, accepting common aliases."""
        candidate = text.strip().lower().lstrip(".")
        candidate = _ALIASES.get(candidate, candidate)
        try:
            return cls(candidate)
        except ValueError as exc:
            choices = ", ".join(member.value for member in cls)
            raise SpecificationError(
                f"Unknown save format '{text}'. Expected one of: {choices}"
            ) from exc


_ALIASES = {
    "jpeg": "jpg",
    "tiff": "tif",
    "htm": "html",
}


__all__ = ["SaveFormat"]
