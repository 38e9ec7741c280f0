"""
Tequila SSO Test Suite: Shared Fixtures
"""

import httpx
import pytest
from starlette.testclient import TestClient

from tequila_core.exceptions.hierarchy import TequilaError
from tequila_sso.auth.protocol import TequilaClient
from tequila_sso.core.settings import (
    ObservabilitySettings,
    SessionSettings,
    Settings,
    TequilaSettings,
)
from tequila_sso.gateway.app import create_app

TEQUILA_HOST = "tequila.example.org"


class FakeTequilaClient(TequilaClient):
    """
    TequilaClient with the two remote calls replaced by recorders.

    URL building, request_auth and logout are the real ones.
    """

    def __init__(self, settings: TequilaSettings, attributes: dict[str, str] | None = None):
        super().__init__(settings)
        self.attributes = attributes if attributes is not None else {"user": "lecom"}
        self.create_calls: list[str] = []
        self.fetch_keys: list[str] = []
        self.create_error: TequilaError | None = None
        self.fetch_error: TequilaError | None = None
        self.logout_error: Exception | None = None
        self._next_key = 0

    async def create_request(self, request) -> str:
        self.create_calls.append(self.original_url(request))
        if self.create_error:
            raise self.create_error
        self._next_key += 1
        return f"KEY{self._next_key}"

    async def fetch_attributes(self, key: str) -> dict[str, str]:
        self.fetch_keys.append(key)
        if self.fetch_error:
            raise self.fetch_error
        return dict(self.attributes)

    def logout(self, request, continuation_url: str):
        if self.logout_error:
            raise self.logout_error
        return super().logout(request, continuation_url)


def make_tequila_settings(**overrides) -> TequilaSettings:
    values = {
        "service": "Test app",
        "host": TEQUILA_HOST,
        "request": ["displayname", "firstname", "name"],
    }
    values.update(overrides)
    return TequilaSettings(**values)


def make_settings(**tequila_overrides) -> Settings:
    return Settings(
        tequila=make_tequila_settings(**tequila_overrides),
        session=SessionSettings(secret_key="test-secret-key-that-is-long-enough"),
        observability=ObservabilitySettings(level="DEBUG", format="human"),
    )


def mock_client(handler, **overrides) -> TequilaClient:
    """Real TequilaClient talking to an httpx.MockTransport."""
    return TequilaClient(make_tequila_settings(**overrides), transport=httpx.MockTransport(handler))


@pytest.fixture
def tequila_settings() -> TequilaSettings:
    return make_tequila_settings()


@pytest.fixture
def attributes() -> dict[str, str]:
    return {
        "user": "lecom",
        "displayname": "Claude Lecommandeur",
        "firstname": "Claude",
        "name": "Lecommandeur",
        "email": "claude.lecommandeur@example.org",
        "uniqueid": "105640",
    }


@pytest.fixture
def make_gate(attributes):
    """
    Build (TestClient, FakeTequilaClient) for the demo app.

    Keyword arguments override TequilaSettings fields.
    """

    def _make(**tequila_overrides):
        settings = make_settings(**tequila_overrides)
        fake = FakeTequilaClient(settings.tequila, attributes=attributes)
        app = create_app(settings, client=fake, setup_logging=False)
        return TestClient(app, follow_redirects=False), fake

    return _make


@pytest.fixture
def make_mock_client():
    """Factory for a real TequilaClient backed by httpx.MockTransport."""
    return mock_client


@pytest.fixture
def fake_client(attributes) -> FakeTequilaClient:
    return FakeTequilaClient(make_tequila_settings(), attributes=attributes)


@pytest.fixture
def demo_settings() -> Settings:
    return make_settings()
