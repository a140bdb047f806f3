from __future__ import annotations

from types import MappingProxyType
from typing import Mapping

from .errors import UnsupportedLanguage


class LanguageMapper:
    """Maps caller-facing language tags to backend diagram types."""

    def __init__(self, mapping: Mapping[str, str], case_sensitive: bool = False) -> None:
        self.case_sensitive = case_sensitive
        table: dict[str, str] = {}
        for tag, backend_type in mapping.items():
            key = self._key(tag)
            if key in table and table[key] != backend_type:
                raise ValueError(f"Conflicting language tag: {tag}")
            table[key] = backend_type
        self._table = MappingProxyType(table)

    def _key(self, tag: str) -> str:
        # Tags are matched exactly; only letter case may be folded.
        return tag if self.case_sensitive else tag.lower()

    def resolve(self, tag: str) -> str:
        if not isinstance(tag, str) or not tag:
            raise UnsupportedLanguage(str(tag or ""))
        try:
            return self._table[self._key(tag)]
        except KeyError:
            raise UnsupportedLanguage(tag) from None

    def tags(self) -> Mapping[str, str]:
        return self._table
