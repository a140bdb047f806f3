from __future__ import annotations

import base64
import logging
import zlib

import httpx

from .errors import UnsupportedFormat, UpstreamRejected, UpstreamUnavailable
from .models import OUTPUT_FORMATS, ExpandedDocument

logger = logging.getLogger(__name__)

# Upstream error bodies can be whole HTML pages; keep what we forward short.
_MAX_UPSTREAM_MESSAGE = 400


def check_format(fmt: str) -> str:
    if fmt not in OUTPUT_FORMATS:
        raise UnsupportedFormat(str(fmt))
    return fmt


def encode_source(source: str) -> str:
    """Deflate + URL-safe base64, the encoded form used in backend GET URLs."""
    compressed = zlib.compress(source.encode("utf-8"), 9)
    return base64.urlsafe_b64encode(compressed).decode("ascii")


class RenderClient:
    """Thin client for a Kroki-compatible rendering backend.

    The httpx client is owned by the caller (the app lifespan) and shared
    across requests; it carries the base URL and timeout.
    """

    def __init__(self, client: httpx.AsyncClient, transport: str = "post") -> None:
        self.client = client
        self.transport = transport

    async def render(self, doc: ExpandedDocument, backend_type: str, fmt: str) -> bytes:
        check_format(fmt)
        try:
            if self.transport == "get":
                response = await self.client.get(f"/{backend_type}/{fmt}/{encode_source(doc.content)}")
            else:
                response = await self.client.post(
                    f"/{backend_type}/{fmt}",
                    content=doc.content.encode("utf-8"),
                    headers={"Content-Type": "text/plain; charset=utf-8"},
                )
        except httpx.TimeoutException:
            logger.error("[DiagramProxy] Backend timeout rendering %s/%s", backend_type, fmt)
            raise UpstreamUnavailable("Rendering backend timed out") from None
        except httpx.HTTPError as e:
            logger.error("[DiagramProxy] Backend unreachable: %s", e.__class__.__name__)
            raise UpstreamUnavailable("Rendering backend is unavailable") from None

        if not response.is_success:
            message = response.text.strip()[:_MAX_UPSTREAM_MESSAGE]
            logger.error("[DiagramProxy] Backend rejected %s/%s: %s", backend_type, fmt, response.status_code)
            raise UpstreamRejected(response.status_code, message or response.reason_phrase)

        return response.content
