from __future__ import annotations

from fastapi.responses import JSONResponse, Response

from .config import Settings
from .errors import DiagramError


MEDIA_TYPES = {
    "svg": "image/svg+xml",
    "png": "image/png",
}


def cache_control(settings: Settings) -> str:
    # Interactive/dev use must always re-fetch edited diagrams.
    if settings.is_production:
        return f"public, max-age={settings.cache_max_age_seconds}"
    return "no-store"


def image_response(data: bytes, fmt: str, settings: Settings) -> Response:
    headers = {
        "Cache-Control": cache_control(settings),
        "X-Content-Type-Options": "nosniff",
    }
    return Response(content=data, media_type=MEDIA_TYPES[fmt], headers=headers)


def error_response(exc: DiagramError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_body(),
        headers={"Cache-Control": "no-store", "X-Content-Type-Options": "nosniff"},
    )
