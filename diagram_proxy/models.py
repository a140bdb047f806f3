from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from pydantic import BaseModel


OUTPUT_FORMATS = ("svg", "png")


@dataclass(frozen=True)
class DiagramRequest:
    lang: str
    path: str
    format: str = "svg"


class InlineDiagramRequest(BaseModel):
    lang: str
    source: str
    fmt: str = "svg"


@dataclass(frozen=True)
class ResolvedPath:
    """Absolute path known to lie inside the base directory.

    Only security.resolve_path creates these. ``relative`` is the base-relative
    form and is the only one that may appear in messages.
    """

    path: Path
    relative: str

    @property
    def directory(self) -> Path:
        return self.path.parent


@dataclass
class ExpansionContext:
    # Ancestors of the file currently being expanded, in order.
    visited: list[Path] = field(default_factory=list)
    depth: int = 0
    accumulated_bytes: int = 0


@dataclass(frozen=True)
class ExpandedDocument:
    content: str
    size_bytes: int

    @classmethod
    def from_text(cls, content: str) -> "ExpandedDocument":
        return cls(content=content, size_bytes=len(content.encode("utf-8")))
