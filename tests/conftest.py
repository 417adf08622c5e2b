import httpx
import pytest

from core.config import Config
from core.request_types import InboundRequest, SecretConfig
from services.forwarding import ForwardingHandler
from services.upstream import UpstreamClient

TEST_SECRET = "test-secret-key-123456"


class RecordingLogger:
    """RequestLogger that keeps calls in memory."""

    def __init__(self):
        self.forwards = []
        self.errors = []

    def log_forward(self, method, path, status, *, url, elapsed_ms):
        self.forwards.append({"method": method, "path": path, "status": status, "url": url})

    def log_error(self, route, status, message):
        self.errors.append({"route": route, "status": status, "message": message})


class FakeUpstream:
    """Records outbound requests and replies with a configurable response."""

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.status_code = 200
        self.headers = {"content-type": "application/json; charset=UTF-8"}
        self.text = '{"candidates": []}'
        self.error: Exception | None = None

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return httpx.Response(self.status_code, headers=self.headers, content=self.text.encode())

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]


@pytest.fixture
def config():
    return Config()


@pytest.fixture
def secret():
    return SecretConfig(api_key=TEST_SECRET)


@pytest.fixture
def logger():
    return RecordingLogger()


@pytest.fixture
def fake_upstream():
    return FakeUpstream()


@pytest.fixture
def make_handler(config, logger, fake_upstream):
    """Build a ForwardingHandler wired to the fake upstream."""
    clients = []

    def _make(cfg: Config | None = None) -> ForwardingHandler:
        client = httpx.AsyncClient(transport=httpx.MockTransport(fake_upstream))
        clients.append(client)
        return ForwardingHandler(
            config=cfg or config,
            logger=logger,
            upstream=UpstreamClient(client),
        )

    return _make


@pytest.fixture
def inbound():
    """Factory for InboundRequest with sensible defaults."""

    def _make(**kwargs) -> InboundRequest:
        kwargs.setdefault("method", "POST")
        kwargs.setdefault("raw_path", "/api-proxy/v1beta/models/gemini-2.5-flash:generateContent")
        return InboundRequest(**kwargs)

    return _make
