from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from typing import Optional

import httpx
from fastapi import FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from diagram_proxy.config import Settings, load_settings
from diagram_proxy.errors import DiagramError, InvalidRequest, UpstreamError
from diagram_proxy.logging_utils import configure_logging
from diagram_proxy.models import DiagramRequest, InlineDiagramRequest
from diagram_proxy.render import RenderClient
from diagram_proxy.responses import error_response, image_response
from diagram_proxy.service import DiagramService

logger = logging.getLogger("diagram_proxy.server")

_DIAGRAM_PARAMS = ("lang", "path", "source", "fmt")


def create_app(
    settings: Optional[Settings] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
    settings = settings or load_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # One pooled client for the process; closed on shutdown.
        client = httpx.AsyncClient(
            base_url=settings.backend_url,
            timeout=httpx.Timeout(settings.backend_timeout_seconds),
            transport=transport,
            headers={"Accept": "image/svg+xml, image/png, */*"},
        )
        renderer = RenderClient(client, transport=settings.backend_transport)
        app.state.service = DiagramService(settings, renderer)
        logger.info(
            "[DiagramProxy] Serving %s via %s (%s mode)",
            settings.base_dir.name,
            settings.backend_url,
            settings.mode,
        )
        try:
            yield
        finally:
            await client.aclose()

    app = FastAPI(lifespan=lifespan)

    # Docs pages are usually served from another origin and embed these images.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    @app.exception_handler(DiagramError)
    async def _diagram_error(request: Request, exc: DiagramError) -> JSONResponse:
        level = logging.ERROR if isinstance(exc, UpstreamError) else logging.WARNING
        logger.log(level, "[DiagramProxy] %s %s: %s", request.url.path, exc.kind, exc.message)
        return error_response(exc)

    @app.exception_handler(RequestValidationError)
    async def _validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        # Report only which fields are wrong; never echo the submitted values.
        fields = set()
        for err in exc.errors():
            # loc starts with "body" / "query"; the rest names the field.
            fields.add(".".join(str(part) for part in err.get("loc", ())[1:]) or "body")
        message = "Invalid or missing fields: " + ", ".join(sorted(fields))
        return await _diagram_error(request, InvalidRequest(message))

    @app.get("/health")
    async def health() -> JSONResponse:
        return JSONResponse({"status": "ok"})

    @app.get("/diagram/languages")
    async def languages(request: Request) -> JSONResponse:
        service: DiagramService = request.app.state.service
        return JSONResponse({"languages": dict(service.languages.tags())})

    @app.get("/diagram")
    async def get_diagram(
        request: Request,
        lang: Optional[str] = Query(None, description="Diagram language tag, e.g. plantuml"),
        path: Optional[str] = Query(None, description="Path relative to the diagrams directory"),
        source: Optional[str] = Query(None, description="Inline diagram source instead of a path"),
        fmt: str = Query("svg", description="Output format: svg or png"),
    ) -> Response:
        service: DiagramService = request.app.state.service
        for name in _DIAGRAM_PARAMS:
            if len(request.query_params.getlist(name)) > 1:
                raise InvalidRequest(f"Duplicate {name} parameter")
        if not lang:
            raise InvalidRequest("Missing lang parameter")
        if (path is None) == (source is None):
            raise InvalidRequest("Exactly one of path or source is required")

        if path is not None:
            data = await service.render_file(DiagramRequest(lang=lang, path=path, format=fmt))
        else:
            data = await service.render_inline(lang, source, fmt)
        return image_response(data, fmt, settings)

    @app.post("/diagram")
    async def post_diagram(payload: InlineDiagramRequest, request: Request) -> Response:
        service: DiagramService = request.app.state.service
        data = await service.render_inline(payload.lang, payload.source, payload.fmt)
        return image_response(data, payload.fmt, settings)

    return app


_settings = load_settings()
configure_logging(_settings.log_level)
app = create_app(_settings)


if __name__ == "__main__":
    # Convenience: python server.py
    import uvicorn

    port = int(os.environ.get("PORT", "8010"))
    uvicorn.run("server:app", host="127.0.0.1", port=port, reload=False)
