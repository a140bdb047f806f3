"""
Inclusion expansion for diagram sources.

A line of the form ``!include path/to/file.puml`` (``!include_once`` and
``!include_many`` are accepted as aliases, the path may be double-quoted) is
replaced by the expanded text of the named file. Paths are relative to the
directory of the including file and may never leave the base directory.

Standard-library includes (``!include <C4/C4_Container>``) and URLs are not
local files; those lines are left for the backend to deal with.

Sources are decoded as UTF-8, falling back to cp1252 then Latin-1. Sizes after
decoding are counted in UTF-8, the encoding sent upstream, so a non-UTF-8 file
can weigh up to twice its on-disk size against the aggregate limit. The
per-file limit applies to the raw bytes on disk.

Expansion walks an explicit stack of frames instead of recursing, so the depth
limit, not the interpreter's recursion limit, is what bounds a long chain.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from .errors import CircularInclude, FileNotFound, InclusionDepthExceeded
from .limits import SizeLimits, check_file_size, check_total_size
from .models import ExpandedDocument, ExpansionContext, ResolvedPath
from .security import resolve_path

logger = logging.getLogger(__name__)


_INCLUDE_RE = re.compile(
    r"""^[ \t]*!include(?:_once|_many)?[ \t]+"""
    r"""(?:"(?P<quoted>[^"\r\n]+)"|(?P<bare>[^'"\r\n]+?))"""
    r"""[ \t]*(?:'.*)?$"""
)

# Lines including their terminator, so the text can be put back together byte for byte.
_LINE_RE = re.compile(r"[^\n]*\n|[^\n]+")

_ENCODINGS = ("utf-8", "cp1252", "latin-1")


def parse_include(line: str) -> Optional[str]:
    """Return the local include target of a directive line, or None."""
    m = _INCLUDE_RE.match(line.rstrip("\r\n"))
    if not m:
        return None
    target = (m.group("quoted") or m.group("bare") or "").strip()
    if not target or target.startswith("<") or "://" in target:
        return None
    return target


def _read_source(path: Path, limit: int) -> bytes:
    # Never read more than one byte past the limit.
    with path.open("rb") as fh:
        return fh.read(limit + 1)


def _decode(raw: bytes) -> str:
    for enc in _ENCODINGS:
        try:
            return raw.decode(enc)
        except UnicodeDecodeError:
            continue
    return raw.decode("utf-8", errors="replace")


@dataclass
class _Frame:
    source: ResolvedPath
    lines: list[str]
    # Line ending of the directive this file replaces ("" for the top-level file).
    ending: str
    index: int = 0
    parts: list[str] = field(default_factory=list)


class IncludeExpander:
    def __init__(self, base_dir: Path, limits: SizeLimits, max_depth: int) -> None:
        self.base_dir = base_dir.resolve()
        self.limits = limits
        self.max_depth = max_depth

    def expand(self, path: ResolvedPath, ctx: Optional[ExpansionContext] = None) -> ExpandedDocument:
        ctx = ctx if ctx is not None else ExpansionContext()
        stack = [self._enter(path, ctx, ending="")]
        content = ""

        while stack:
            frame = stack[-1]
            if frame.index < len(frame.lines):
                line = frame.lines[frame.index]
                frame.index += 1
                target = parse_include(line)
                if target is None:
                    self._emit(frame, line, ctx)
                    continue
                child = resolve_path(self.base_dir, target, relative_to=frame.source.directory)
                ending = line[len(line.rstrip("\r\n")):]
                stack.append(self._enter(child, ctx, ending=ending))
                continue

            # Frame exhausted: splice its text into the parent and backtrack.
            stack.pop()
            self._leave(ctx)
            text = "".join(frame.parts)
            if not stack:
                content = text
                break
            parent = stack[-1]
            parent.parts.append(text)
            if frame.ending and not text.endswith("\n"):
                self._emit(parent, frame.ending, ctx)

        return ExpandedDocument.from_text(content)

    def _enter(self, path: ResolvedPath, ctx: ExpansionContext, ending: str) -> _Frame:
        if path.path in ctx.visited:
            chain = [self._display(p) for p in ctx.visited] + [path.relative]
            raise CircularInclude(chain)
        if ctx.depth > self.max_depth:
            raise InclusionDepthExceeded(path.relative, self.max_depth)

        try:
            raw = _read_source(path.path, self.limits.max_file_bytes)
        except OSError:
            raise FileNotFound(path.relative) from None
        check_file_size(len(raw), self.limits, path.relative)

        ctx.visited.append(path.path)
        ctx.depth += 1
        logger.debug("[DiagramProxy] Expanding %s (depth %d)", path.relative, ctx.depth - 1)
        return _Frame(source=path, lines=_LINE_RE.findall(_decode(raw)), ending=ending)

    def _leave(self, ctx: ExpansionContext) -> None:
        ctx.visited.pop()
        ctx.depth -= 1

    def _emit(self, frame: _Frame, text: str, ctx: ExpansionContext) -> None:
        ctx.accumulated_bytes += len(text.encode("utf-8"))
        check_total_size(ctx.accumulated_bytes, self.limits)
        frame.parts.append(text)

    def _display(self, path: Path) -> str:
        return path.relative_to(self.base_dir).as_posix()
