from typing import Callable, List, Tuple

import httpx
import pytest

from quiver.client import Client

BASE_URL = "https://example.com/api/"

Handler = Callable[[httpx.Request], httpx.Response]


class RecordingTransport(httpx.MockTransport):
    """MockTransport that keeps every request it served."""

    def __init__(self, handler: Handler) -> None:
        self.requests: List[httpx.Request] = []

        def record(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            return handler(request)

        super().__init__(record)


@pytest.fixture
def base_url() -> str:
    return BASE_URL


@pytest.fixture
def client(base_url: str) -> Client:
    """Client whose executor fails loudly if a test forgets to mock it."""

    def unexpected(request: httpx.Request) -> httpx.Response:
        raise AssertionError(f"unexpected request: {request.method} {request.url}")

    return Client(base_url, executor=httpx.Client(transport=httpx.MockTransport(unexpected)))


@pytest.fixture
def mock_client(base_url: str) -> Callable[[Handler], Tuple[Client, RecordingTransport]]:
    """Build a client that answers every request with `handler`."""

    def factory(handler: Handler) -> Tuple[Client, RecordingTransport]:
        transport = RecordingTransport(handler)
        return Client(base_url, executor=httpx.Client(transport=transport)), transport

    return factory
