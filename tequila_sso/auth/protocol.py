# Tequila SSO - Web Single Sign-On Client
# Copyright (c) 2026 George Scott Foley
# ORCID: 0009-0006-4957-0540
# Email: Georgescottfoley@proton.me
# Licensed under the MIT License - see LICENSE file for details

"""
Tequila Protocol Client

The four remote operations of the Tequila handshake:

    createrequest    server -> Tequila   register a login attempt, get a key
    requestauth      browser -> Tequila  user logs in, comes back with ?key=
    fetchattributes  server -> Tequila   trade the key for user attributes
    logout           browser -> Tequila  end the Tequila session

Server-to-server calls POST ``name=value`` lines and read the answer in the
same format, e.g.::

    service=My app
    request=displayname,firstname
    urlaccess=https://app.example.com/private

Usage:
    client = TequilaClient(settings.tequila)

    key = await client.create_request(request)
    return client.request_auth(key)

    # ...later, back with ?key=...
    attributes = await client.fetch_attributes(key)
"""

import logging
import urllib.parse

import httpx
from pydantic import BaseModel, ConfigDict, Field, field_validator
from starlette.requests import Request
from starlette.responses import RedirectResponse

from tequila_core.exceptions.hierarchy import ConfigurationError, NetworkError, ProtocolError
from tequila_core.security.sanitization import is_same_origin

from ..core.settings import TequilaSettings

logger = logging.getLogger(__name__)


# ============================================================
# AUTHENTICATION REQUEST
# ============================================================


class AuthenticationRequest(BaseModel):
    """What we ask Tequila for. Built once, reused for every handshake."""

    model_config = ConfigDict(frozen=True)

    service: str
    request: tuple[str, ...] = Field(default_factory=tuple)
    require: str | None = None
    allows: tuple[str, ...] | None = None

    @field_validator("service")
    @classmethod
    def validate_service(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("service name must not be empty")
        return v

    @classmethod
    def from_settings(cls, settings: TequilaSettings) -> "AuthenticationRequest":
        if not settings.service or not settings.service.strip():
            raise ConfigurationError("Tequila service name is not set", config_key="service")
        return cls(
            service=settings.service,
            request=tuple(settings.request),
            require=settings.require,
            allows=tuple(settings.allows) if settings.allows is not None else None,
        )

    def to_fields(self) -> dict[str, str]:
        """createrequest fields; unset options are not sent at all."""
        fields = {"service": self.service}
        if self.request:
            fields["request"] = ",".join(self.request)
        if self.require:
            fields["require"] = self.require
        if self.allows:
            fields["allows"] = ",".join(self.allows)
        return fields


# ============================================================
# WIRE FORMAT
# ============================================================


def encode_fields(fields: dict[str, str]) -> str:
    """Encode a dict as Tequila ``name=value`` lines."""
    return "".join(f"{name}={value}\n" for name, value in fields.items())


def decode_fields(body: str) -> dict[str, str]:
    """
    Decode Tequila ``name=value`` lines.

    Blank lines are skipped. A line without ``=`` means the body is not
    a Tequila answer at all (an HTML error page, typically).
    """
    fields: dict[str, str] = {}
    for line in body.splitlines():
        line = line.strip()
        if not line:
            continue
        name, sep, value = line.partition("=")
        if not sep:
            raise ValueError(f"Malformed line in Tequila response: {line[:40]!r}")
        fields[name] = value
    return fields


# ============================================================
# CLIENT
# ============================================================


class TequilaClient:
    """
    Async client for a Tequila identity server.

    Holds no per-handshake state: keys travel in URLs only. The one shared
    resource is the pooled httpx client.
    """

    def __init__(
        self,
        settings: TequilaSettings,
        auth_request: AuthenticationRequest | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """
        Initialize the client.

        Args:
            settings: Identity server endpoints and timeout
            auth_request: Request to send; built from settings if omitted
            transport: httpx transport override (tests, proxies)

        Raises:
            ConfigurationError: If no service name is configured
        """
        self.settings = settings
        self.auth_request = auth_request or AuthenticationRequest.from_settings(settings)
        self._transport = transport
        self._http_client: httpx.AsyncClient | None = None

    # --------------------------------------------------------
    # URLS
    # --------------------------------------------------------

    def endpoint_url(self, path: str) -> str:
        return f"{self.settings.base_url}{path}"

    def request_auth_url(self, key: str) -> str:
        query = urllib.parse.urlencode({"requestkey": key})
        return f"{self.endpoint_url(self.settings.requestauth_path)}?{query}"

    def logout_url(self, continuation_url: str) -> str:
        query = urllib.parse.urlencode({"urlaccess": continuation_url})
        return f"{self.endpoint_url(self.settings.logout_path)}?{query}"

    @staticmethod
    def redirect_url(request: Request, path: str) -> str:
        """
        Absolute URL on the relying application for a path.

        Absolute URLs pointing at another host are replaced by our own
        root, so a crafted return URL cannot bounce the browser elsewhere.
        """
        origin = f"{request.url.scheme}://{request.url.netloc}"
        target = urllib.parse.urlsplit(path)
        if target.scheme or target.netloc or path.startswith("/\\"):
            if is_same_origin(path, origin):
                return path
            logger.warning("Refusing off-site redirect target", extra={"origin": origin})
            return origin + "/"
        if not path.startswith("/"):
            path = "/" + path
        return origin + path

    @staticmethod
    def original_url(request: Request) -> str:
        """Path and query of the incoming request, as the browser sent them."""
        path = request.url.path
        query = request.url.query
        return f"{path}?{query}" if query else path

    # --------------------------------------------------------
    # HTTP
    # --------------------------------------------------------

    async def _get_http_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.settings.timeout),
                transport=self._transport,
            )
        return self._http_client

    async def aclose(self) -> None:
        """Close the pooled HTTP client."""
        if self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None

    async def _post(self, endpoint: str, path: str, fields: dict[str, str]) -> dict[str, str]:
        """POST fields to a Tequila endpoint and decode the answer."""
        client = await self._get_http_client()
        url = self.endpoint_url(path)

        try:
            response = await client.post(
                url,
                content=encode_fields(fields).encode("utf-8"),
                headers={"Content-Type": "text/plain; charset=utf-8"},
            )
        except httpx.TimeoutException as e:
            raise NetworkError(
                f"Tequila {endpoint} timed out after {self.settings.timeout}s",
                endpoint=endpoint,
                original_error=e,
            ) from e
        except httpx.TransportError as e:
            raise NetworkError(
                f"Tequila {endpoint} unreachable: {type(e).__name__}",
                endpoint=endpoint,
                original_error=e,
            ) from e

        if response.status_code != 200:
            raise ProtocolError(
                f"Tequila {endpoint} returned HTTP {response.status_code}",
                endpoint=endpoint,
                status_code=response.status_code,
            )

        try:
            return decode_fields(response.text)
        except ValueError as e:
            raise ProtocolError(str(e), endpoint=endpoint, status_code=200) from e

    # --------------------------------------------------------
    # PROTOCOL OPERATIONS
    # --------------------------------------------------------

    async def create_request(self, request: Request) -> str:
        """
        Register a login attempt with Tequila.

        Args:
            request: Incoming request; its URL is where Tequila sends the
                browser back, with ``key=`` appended

        Returns:
            The handshake key

        Raises:
            NetworkError: Tequila unreachable or timed out
            ProtocolError: Tequila rejected the request or answered without a key
        """
        fields = {
            "urlaccess": self.redirect_url(request, self.original_url(request)),
            **self.auth_request.to_fields(),
        }
        result = await self._post("createrequest", self.settings.createrequest_path, fields)

        key = result.get("key")
        if not key:
            raise ProtocolError("Tequila createrequest answered without a key", endpoint="createrequest")

        logger.debug("Tequila request created", extra={"service": self.auth_request.service})
        return key

    def request_auth(self, key: str) -> RedirectResponse:
        """Send the browser to the Tequila login page for this key."""
        return RedirectResponse(url=self.request_auth_url(key), status_code=302)

    async def fetch_attributes(self, key: str) -> dict[str, str]:
        """
        Trade a key for the user's attributes, server to server.

        The key is single use: whatever the outcome, it is never sent again.

        Raises:
            NetworkError: Tequila unreachable or timed out
            ProtocolError: Key invalid, expired or already used
        """
        result = await self._post(
            "fetchattributes", self.settings.fetchattributes_path, {"key": key}
        )

        status = result.pop("status", None)
        if status != "ok":
            raise ProtocolError(
                f"Tequila refused the key (status={status})",
                endpoint="fetchattributes",
                status_code=200,
            )

        # Tequila echoes the key; it must not end up in the session
        result.pop("key", None)
        return result

    def logout(self, request: Request, continuation_url: str) -> RedirectResponse:
        """Send the browser to the Tequila logout page, then on to continuation_url."""
        target = self.redirect_url(request, continuation_url)
        return RedirectResponse(url=self.logout_url(target), status_code=302)


__all__ = [
    "AuthenticationRequest",
    "TequilaClient",
    "encode_fields",
    "decode_fields",
]
