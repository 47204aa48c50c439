"""Pytest configuration and shared fixtures for nest2alexa tests."""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional

import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestServer

from models import Directive

TOKEN = "Atza|secret-access-token"


class RecordingResponder:
    """Responder that records every succeed/fail call."""

    def __init__(self) -> None:
        self.succeeded: List[Dict[str, Any]] = []
        self.failed: List[Dict[str, Any]] = []

    def succeed(self, response: Dict[str, Any]) -> None:
        self.succeeded.append(response)

    def fail(self, response: Dict[str, Any]) -> None:
        self.failed.append(response)

    @property
    def calls(self) -> int:
        return len(self.succeeded) + len(self.failed)


@pytest.fixture
def token() -> str:
    """Fixture providing the bearer token used in sample directives."""
    return TOKEN


@pytest.fixture
def responder() -> RecordingResponder:
    """Fixture providing a fresh recording responder."""
    return RecordingResponder()


@pytest.fixture
def make_request() -> Callable[..., Dict[str, Any]]:
    """Fixture providing a factory for inbound Alexa requests.

    Discover directives carry the token in payload.scope, all others in
    endpoint.scope, as Alexa sends them.
    """

    def _make(
        namespace: str,
        name: str,
        endpoint_id: Optional[str] = "structure-1",
        token: str = TOKEN,
    ) -> Dict[str, Any]:
        header = {
            "namespace": namespace,
            "name": name,
            "payloadVersion": "3",
            "messageId": "1bd5d003-31b9-476f-ad03-71d471922820",
        }
        scope = {"type": "BearerToken", "token": token}
        if name == "Discover":
            return {"directive": {"header": header, "payload": {"scope": scope}}}
        header["correlationToken"] = "dFMb0z+PgpgdDmluhJ1LddFvSqZ/jCc8ptlAKulUj90jSqg=="
        endpoint: Dict[str, Any] = {"scope": scope, "cookie": {}}
        if endpoint_id is not None:
            endpoint["endpointId"] = endpoint_id
        return {"directive": {"header": header, "endpoint": endpoint, "payload": {}}}

    return _make


@pytest.fixture
def report_state_directive(make_request) -> Directive:
    """Fixture providing a parsed ReportState directive."""
    return Directive.from_request(make_request("Alexa", "ReportState"))


@pytest.fixture
def discover_directive(make_request) -> Directive:
    """Fixture providing a parsed Discover directive."""
    return Directive.from_request(make_request("Alexa.Discovery", "Discover"))


@pytest_asyncio.fixture
async def serve():
    """Fixture providing a factory that serves an aiohttp app on localhost.

    Returns:
        Coroutine taking a web.Application and returning its started TestServer
    """
    servers: List[TestServer] = []

    async def _serve(app: web.Application) -> TestServer:
        server = TestServer(app)
        await server.start_server()
        servers.append(server)
        return server

    yield _serve

    for server in servers:
        await server.close()


def base_url(server: TestServer) -> str:
    return str(server.make_url("/")).rstrip("/")


@pytest.fixture
def server_url() -> Callable[[TestServer], str]:
    """Fixture providing the base URL of a TestServer without trailing slash."""
    return base_url
