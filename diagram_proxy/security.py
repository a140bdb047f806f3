from __future__ import annotations

from pathlib import Path
from typing import Optional
from urllib.parse import unquote

from .errors import FileNotFound, PathTraversal
from .models import ResolvedPath


# Enough for any sane double/triple encoding; anything still changing after
# this many rounds is rejected outright.
_MAX_DECODE_ROUNDS = 4


def decode_caller_path(caller_path: str) -> str:
    """Undo repeated percent-encoding and normalize separators.

    ``..%2f`` and ``..%252f`` must be judged by what they decode to, and a
    backslash is treated as a separator so mixed forms cannot hide a ``..``.
    """
    if not isinstance(caller_path, str):
        raise PathTraversal(str(caller_path))
    decoded = caller_path
    for _ in range(_MAX_DECODE_ROUNDS):
        step = unquote(decoded)
        if step == decoded:
            break
        decoded = step
    else:
        if unquote(decoded) != decoded:
            raise PathTraversal(caller_path)
    if "\x00" in decoded:
        raise PathTraversal(caller_path)
    return decoded.replace("\\", "/")


def resolve_path(base_dir: Path, caller_path: str, relative_to: Optional[Path] = None) -> ResolvedPath:
    """Join a caller path and ensure the result stays strictly inside base_dir.

    ``relative_to`` is the directory to join onto (the including file's
    directory for includes); the containment check is always against base_dir.
    Compares resolved path components, so ``/app/diagrams-evil`` never passes
    for base ``/app/diagrams``, and symlinks pointing out of the tree are caught.
    """
    base_dir = base_dir.resolve()
    decoded = decode_caller_path(caller_path)

    anchor = base_dir if relative_to is None else relative_to
    try:
        resolved = (anchor / decoded).resolve()
    except (OSError, RuntimeError, ValueError):
        # Symlink loops and the like.
        raise PathTraversal(caller_path) from None

    if base_dir not in resolved.parents:
        raise PathTraversal(caller_path)

    relative = resolved.relative_to(base_dir).as_posix()
    if not resolved.is_file():
        raise FileNotFound(relative)
    return ResolvedPath(path=resolved, relative=relative)
