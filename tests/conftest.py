"""Pytest configuration and fixtures."""

from __future__ import annotations

import json
import logging
from collections.abc import Callable, Generator
from typing import Any

import httpx
import pytest
from flask import Flask
from flask.testing import FlaskClient

from rpverify.app import create_app
from rpverify.core.logging import get_traffic_recorder, set_traffic_recorder

SERVICE_PROVIDER_HOST = "http://vsp.test"

EXAMPLE_AUTHN_REQUEST = {
    "samlRequest": "some-saml-request",
    "requestId": "some-request-id",
    "ssoLocation": "https://hub.test/SAML2/SSO",
}


class MockServiceProvider:
    """Stand-in for the verify service provider, served through httpx.MockTransport.

    Responses are queued per path; every request is recorded.
    """

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.responses: dict[str, list[httpx.Response]] = {}
        self.handler: Callable[[httpx.Request], httpx.Response] | None = None

    def respond(self, path: str, status: int, body: Any) -> None:
        """Queue a response for a path."""
        if isinstance(body, (dict, list)):
            response = httpx.Response(status, json=body)
        else:
            response = httpx.Response(status, text=body)
        self.responses.setdefault(path, []).append(response)

    def payloads(self, path: str) -> list[dict[str, Any]]:
        """JSON payloads sent to a path."""
        return [json.loads(r.content) for r in self.requests if r.url.path == path]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.handler is not None:
            return self.handler(request)
        queued = self.responses.get(request.url.path)
        if not queued:
            return httpx.Response(404, text="Not Found")
        return queued.pop(0)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


@pytest.fixture(autouse=True)
def restore_package_logger() -> Generator[None, None, None]:
    """configure_logging replaces the package logger handlers and the traffic recorder."""
    package_logger = logging.getLogger("rpverify")
    handlers = list(package_logger.handlers)
    level = package_logger.level
    recorder = get_traffic_recorder()
    yield
    package_logger.handlers[:] = handlers
    package_logger.setLevel(level)
    set_traffic_recorder(recorder)


@pytest.fixture
def service_provider() -> MockServiceProvider:
    """Mock verify service provider."""
    return MockServiceProvider()


@pytest.fixture
def app(service_provider: MockServiceProvider) -> Generator[Flask, None, None]:
    """Create application for testing, wired to the mock service provider."""
    app = create_app(
        {
            "TESTING": True,
            "SECRET_KEY": "test-secret-key",
            "VERIFY_SERVICE_PROVIDER_HOST": SERVICE_PROVIDER_HOST,
            "VERIFY_JOURNEY_TYPE": "identity",
            "VERIFY_TRANSPORT": service_provider.transport,
        }
    )
    yield app


@pytest.fixture
def matching_app(service_provider: MockServiceProvider) -> Flask:
    """Create application configured for a matching journey."""
    return create_app(
        {
            "TESTING": True,
            "SECRET_KEY": "test-secret-key",
            "VERIFY_SERVICE_PROVIDER_HOST": SERVICE_PROVIDER_HOST,
            "VERIFY_JOURNEY_TYPE": "matching",
            "VERIFY_ENTITY_ID": "https://service.test/entity",
            "VERIFY_TRANSPORT": service_provider.transport,
        }
    )


@pytest.fixture
def client(app: Flask) -> FlaskClient:
    """Create test client."""
    return app.test_client()
