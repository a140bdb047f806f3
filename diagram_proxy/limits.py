from __future__ import annotations

from dataclasses import dataclass

from .config import Settings
from .errors import FileTooLarge, TotalSizeExceeded
from .models import ExpandedDocument


@dataclass(frozen=True)
class SizeLimits:
    max_file_bytes: int
    max_total_bytes: int

    @classmethod
    def from_settings(cls, settings: Settings) -> "SizeLimits":
        return cls(max_file_bytes=settings.max_file_bytes, max_total_bytes=settings.max_total_bytes)


def check_file_size(size: int, limits: SizeLimits, name: str) -> None:
    if size > limits.max_file_bytes:
        raise FileTooLarge(name, limits.max_file_bytes)


def check_total_size(size: int, limits: SizeLimits) -> None:
    if size > limits.max_total_bytes:
        raise TotalSizeExceeded(limits.max_total_bytes)


def guard_document(doc: ExpandedDocument, limits: SizeLimits) -> ExpandedDocument:
    """Final check on the assembled document before it goes upstream."""
    size = len(doc.content.encode("utf-8"))
    if size != doc.size_bytes:
        doc = ExpandedDocument(content=doc.content, size_bytes=size)
    check_total_size(doc.size_bytes, limits)
    return doc
