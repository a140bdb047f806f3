from __future__ import annotations

import logging

from starlette.concurrency import run_in_threadpool

from .config import Settings
from .includes import IncludeExpander
from .languages import LanguageMapper
from .limits import SizeLimits, check_file_size, guard_document
from .models import DiagramRequest, ExpandedDocument, ExpansionContext
from .render import RenderClient, check_format
from .security import resolve_path

logger = logging.getLogger(__name__)


class DiagramService:
    """Request pipeline: language, path, includes, size guard, render."""

    def __init__(self, settings: Settings, renderer: RenderClient) -> None:
        self.settings = settings
        self.languages = LanguageMapper(settings.languages, case_sensitive=settings.lang_case_sensitive)
        self.limits = SizeLimits.from_settings(settings)
        self.expander = IncludeExpander(settings.base_dir, self.limits, settings.max_include_depth)
        self.renderer = renderer

    def load(self, caller_path: str) -> ExpandedDocument:
        resolved = resolve_path(self.settings.base_dir, caller_path)
        return self.expander.expand(resolved, ExpansionContext())

    async def render_file(self, request: DiagramRequest) -> bytes:
        backend_type = self.languages.resolve(request.lang)
        check_format(request.format)
        # Blocking file reads stay off the event loop.
        doc = await run_in_threadpool(self.load, request.path)
        return await self._render(doc, backend_type, request.format)

    async def render_inline(self, lang: str, source: str, fmt: str) -> bytes:
        backend_type = self.languages.resolve(lang)
        check_format(fmt)
        doc = ExpandedDocument.from_text(source)
        # Inline text counts as one file for the per-file limit as well.
        check_file_size(doc.size_bytes, self.limits, "inline source")
        return await self._render(doc, backend_type, fmt)

    async def _render(self, doc: ExpandedDocument, backend_type: str, fmt: str) -> bytes:
        doc = guard_document(doc, self.limits)
        data = await self.renderer.render(doc, backend_type, fmt)
        logger.info(
            "[DiagramProxy] Rendered %s as %s (%d source bytes -> %d bytes)",
            backend_type,
            fmt,
            doc.size_bytes,
            len(data),
        )
        return data
