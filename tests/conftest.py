"""
Shared fixtures: a temporary diagrams directory, settings pointing at it, and
a fake rendering backend built on httpx.MockTransport.
"""

from pathlib import Path

import httpx
import pytest
from fastapi.testclient import TestClient

from diagram_proxy.config import Settings
from server import create_app


class FakeBackend:
    """Records every upstream request and answers with a canned image."""

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.status_code = 200
        self.body = b"<svg xmlns='http://www.w3.org/2000/svg'/>"
        self.error: Exception | None = None

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return httpx.Response(self.status_code, content=self.body)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


@pytest.fixture
def base_dir(tmp_path) -> Path:
    root = tmp_path / "diagrams"
    root.mkdir()
    return root


@pytest.fixture
def write(base_dir):
    """Write a file under the diagrams directory and return its path."""

    def _write(relative: str, text: str) -> Path:
        target = base_dir / relative
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(text.encode("utf-8"))
        return target

    return _write


@pytest.fixture
def settings(base_dir) -> Settings:
    return Settings(
        base_dir=base_dir,
        max_file_bytes=1024,
        max_total_bytes=4096,
        max_include_depth=3,
        backend_url="http://renderer.test",
        backend_timeout_seconds=2.0,
    )


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def client(settings, backend):
    app = create_app(settings, transport=backend.transport)
    with TestClient(app) as test_client:
        yield test_client
