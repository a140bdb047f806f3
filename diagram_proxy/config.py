from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Mapping, Optional


# Tag -> backend diagram type. Several tags may share one renderer.
DEFAULT_LANGUAGES: Mapping[str, str] = MappingProxyType(
    {
        "plantuml": "plantuml",
        "puml": "plantuml",
        "c4": "c4plantuml",
        "c4plantuml": "c4plantuml",
        "mermaid": "mermaid",
        "mmd": "mermaid",
        "graphviz": "graphviz",
        "dot": "graphviz",
        "d2": "d2",
        "ditaa": "ditaa",
        "erd": "erd",
        "bpmn": "bpmn",
        "structurizr": "structurizr",
        "dsl": "structurizr",
        "excalidraw": "excalidraw",
        "nomnoml": "nomnoml",
        "svgbob": "svgbob",
        "vega": "vega",
        "vegalite": "vegalite",
        "wavedrom": "wavedrom",
        "blockdiag": "blockdiag",
        "seqdiag": "seqdiag",
        "actdiag": "actdiag",
        "nwdiag": "nwdiag",
    }
)

MODES = ("development", "production")
TRANSPORTS = ("post", "get")

# diagram_proxy/ -> project root
_DEFAULT_BASE_DIR = Path(__file__).resolve().parent.parent / "diagrams"


@dataclass(frozen=True)
class Settings:
    """Process-wide configuration. Built once at startup and never mutated."""

    base_dir: Path = _DEFAULT_BASE_DIR
    max_file_bytes: int = 256 * 1024
    max_total_bytes: int = 1024 * 1024
    max_include_depth: int = 10
    backend_url: str = "http://localhost:8000"
    backend_timeout_seconds: float = 5.0
    backend_transport: str = "post"
    languages: Mapping[str, str] = field(default_factory=lambda: DEFAULT_LANGUAGES)
    lang_case_sensitive: bool = False
    mode: str = "development"
    cache_max_age_seconds: int = 3600
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        object.__setattr__(self, "base_dir", Path(self.base_dir).resolve())
        # Copy the mapping so callers keep no mutable handle on it.
        object.__setattr__(self, "languages", MappingProxyType(dict(self.languages)))
        object.__setattr__(self, "backend_url", self.backend_url.rstrip("/"))
        if self.max_file_bytes <= 0 or self.max_total_bytes <= 0:
            raise ValueError("Size limits must be positive")
        if self.max_include_depth < 0:
            raise ValueError("Include depth must not be negative")
        if self.backend_timeout_seconds <= 0:
            raise ValueError("Backend timeout must be positive")
        if self.backend_transport not in TRANSPORTS:
            raise ValueError(f"Unknown backend transport: {self.backend_transport}")
        if self.mode not in MODES:
            raise ValueError(f"Unknown mode: {self.mode}")
        if not self.languages:
            raise ValueError("Language mapping must not be empty")

    @property
    def is_production(self) -> bool:
        return self.mode == "production"


def parse_languages(raw: str) -> dict[str, str]:
    """Parse ``tag=type,tag=type`` into a mapping."""
    mapping: dict[str, str] = {}
    for item in raw.split(","):
        item = item.strip()
        if not item:
            continue
        tag, sep, backend_type = item.partition("=")
        tag, backend_type = tag.strip(), backend_type.strip()
        if not sep or not tag or not backend_type:
            raise ValueError(f"Invalid language entry: {item!r}")
        mapping[tag] = backend_type
    if not mapping:
        raise ValueError("DIAGRAMS_LANGUAGES is empty")
    return mapping


def _parse_bool(raw: str) -> bool:
    value = raw.strip().lower()
    if value in ("1", "true", "yes", "on"):
        return True
    if value in ("0", "false", "no", "off", ""):
        return False
    raise ValueError(f"Invalid boolean: {raw!r}")


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """Build Settings from DIAGRAMS_* environment variables."""
    env = os.environ if environ is None else environ

    # Override with env var DIAGRAMS_BASE_DIR; default is ./diagrams in the project root.
    base_raw = env.get("DIAGRAMS_BASE_DIR")
    base_dir = Path(base_raw) if base_raw and base_raw.strip() else _DEFAULT_BASE_DIR

    languages_raw = env.get("DIAGRAMS_LANGUAGES")
    languages = parse_languages(languages_raw) if languages_raw else DEFAULT_LANGUAGES

    return Settings(
        base_dir=base_dir,
        max_file_bytes=int(env.get("DIAGRAMS_MAX_FILE_BYTES", str(256 * 1024))),  # 256KB
        max_total_bytes=int(env.get("DIAGRAMS_MAX_TOTAL_BYTES", str(1024 * 1024))),  # 1MB
        max_include_depth=int(env.get("DIAGRAMS_MAX_INCLUDE_DEPTH", "10")),
        backend_url=env.get("DIAGRAMS_BACKEND_URL", "http://localhost:8000"),
        backend_timeout_seconds=float(env.get("DIAGRAMS_BACKEND_TIMEOUT_SECONDS", "5")),
        backend_transport=env.get("DIAGRAMS_BACKEND_TRANSPORT", "post").strip().lower(),
        languages=languages,
        lang_case_sensitive=_parse_bool(env.get("DIAGRAMS_LANG_CASE_SENSITIVE", "false")),
        mode=env.get("DIAGRAMS_MODE", "development").strip().lower(),
        cache_max_age_seconds=int(env.get("DIAGRAMS_CACHE_MAX_AGE_SECONDS", "3600")),
        log_level=env.get("DIAGRAMS_LOG_LEVEL", "INFO").strip().upper(),
    )
