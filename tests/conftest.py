from collections.abc import Callable, Iterator

import httpx
import pytest
from fastapi.testclient import TestClient

from app import create_app
from core.config import Config

UPSTREAM = "https://erp.example.com"


class RecordingLogger:
    """Collects logger calls instead of drawing a dashboard."""

    def __init__(self) -> None:
        self.forwards: list[tuple[str, str, str, dict[str, str]]] = []
        self.responses: list[tuple[str, str, str, int]] = []
        self.errors: list[tuple[str, int, str]] = []

    def log_forward(self, method, target, url, headers) -> None:
        self.forwards.append((method, target, url, headers))

    def log_response(self, method, target, url, status, elapsed_ms) -> None:
        self.responses.append((method, target, url, status))

    def log_error(self, target, status, message) -> None:
        self.errors.append((target, status, message))


@pytest.fixture
def config(tmp_path) -> Config:
    config = Config()
    config.proxy.debug = False
    config.proxy.static_dir = str(tmp_path / "build")
    return config


@pytest.fixture
def logger() -> RecordingLogger:
    return RecordingLogger()


@pytest.fixture
def upstream_calls() -> list[httpx.Request]:
    return []


@pytest.fixture
def make_client(
    config: Config,
    logger: RecordingLogger,
    upstream_calls: list[httpx.Request],
) -> Iterator[Callable[[Callable[[httpx.Request], httpx.Response]], TestClient]]:
    """Build a TestClient whose upstream is answered by ``handler``."""
    opened: list[TestClient] = []

    def factory(handler: Callable[[httpx.Request], httpx.Response]) -> TestClient:
        def recording(request: httpx.Request) -> httpx.Response:
            request.read()
            upstream_calls.append(request)
            return handler(request)

        upstream = httpx.AsyncClient(transport=httpx.MockTransport(recording))
        client = TestClient(create_app(config, logger, client=upstream))
        client.__enter__()
        opened.append(client)
        return client

    yield factory

    for client in opened:
        client.__exit__(None, None, None)


def json_handler(status: int = 200, payload: object = None) -> Callable[[httpx.Request], httpx.Response]:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status, json=payload if payload is not None else {"data": []})

    return handler
