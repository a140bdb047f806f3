"""
Error taxonomy for the diagram proxy.

Every failure is scoped to a single request. Components raise these; the HTTP
layer turns them into responses in one place (see responses.error_response).

Messages must only ever mention caller-relative paths, never absolute ones.
"""

from __future__ import annotations

from typing import Any


class DiagramError(Exception):
    """Base class for all request-scoped failures."""

    kind = "DiagramError"
    status_code = 500

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_body(self) -> dict[str, Any]:
        body: dict[str, Any] = {"error": self.kind, "message": self.message}
        body.update(self.details)
        return body


# Input rejection: never retried.


class InputRejected(DiagramError):
    status_code = 400


class InvalidRequest(InputRejected):
    kind = "InvalidRequest"


class PathTraversal(InputRejected):
    kind = "PathTraversal"

    def __init__(self, caller_path: str) -> None:
        super().__init__(f"Path escapes the diagram directory: {caller_path}")


class UnsupportedLanguage(InputRejected):
    kind = "UnsupportedLanguage"

    def __init__(self, tag: str) -> None:
        super().__init__(f"Unsupported diagram language: {tag}")


class UnsupportedFormat(InputRejected):
    kind = "UnsupportedFormat"

    def __init__(self, fmt: str) -> None:
        super().__init__(f"Unsupported output format: {fmt} (expected svg or png)")


class FileNotFound(InputRejected):
    kind = "FileNotFound"
    status_code = 404

    def __init__(self, caller_path: str) -> None:
        super().__init__(f"Diagram file not found: {caller_path}")


# Resource limits: deterministic for a given input.


class ResourceLimitExceeded(DiagramError):
    status_code = 413


class FileTooLarge(ResourceLimitExceeded):
    kind = "FileTooLarge"

    def __init__(self, name: str, limit: int) -> None:
        super().__init__(f"{name} exceeds the per-file limit of {limit} bytes", {"limit": limit})


class TotalSizeExceeded(ResourceLimitExceeded):
    kind = "TotalSizeExceeded"

    def __init__(self, limit: int) -> None:
        super().__init__(f"Expanded diagram exceeds the total limit of {limit} bytes", {"limit": limit})


class CircularInclude(ResourceLimitExceeded):
    kind = "CircularInclude"
    status_code = 422

    def __init__(self, chain: list[str]) -> None:
        super().__init__("Circular include: " + " -> ".join(chain), {"chain": chain})


class InclusionDepthExceeded(ResourceLimitExceeded):
    kind = "InclusionDepthExceeded"
    status_code = 422

    def __init__(self, name: str, limit: int) -> None:
        super().__init__(f"Include depth limit of {limit} exceeded at {name}", {"limit": limit})


# Upstream: transient, retry is left to the caller.


class UpstreamError(DiagramError):
    status_code = 502


class UpstreamUnavailable(UpstreamError):
    kind = "UpstreamUnavailable"


class UpstreamRejected(UpstreamError):
    kind = "UpstreamRejected"

    def __init__(self, upstream_status: int, upstream_message: str) -> None:
        self.upstream_status = upstream_status
        super().__init__(
            f"Rendering backend returned {upstream_status}: {upstream_message}",
            {"upstream_status": upstream_status},
        )
