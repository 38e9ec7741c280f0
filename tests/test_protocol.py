"""
Test Suite: Tequila Protocol Client
===================================

Remote calls go through httpx.MockTransport; nothing leaves the process.
"""

import urllib.parse

import httpx
import pytest
from starlette.requests import Request

from tequila_core.exceptions.hierarchy import ConfigurationError, NetworkError, ProtocolError
from tequila_sso.auth.protocol import (
    AuthenticationRequest,
    TequilaClient,
    decode_fields,
    encode_fields,
)
from tequila_sso.core.settings import TequilaSettings


def make_request(path="/private", query=b"", host="app.example.org", scheme="https") -> Request:
    scope = {
        "type": "http",
        "method": "GET",
        "scheme": scheme,
        "path": path,
        "root_path": "",
        "query_string": query,
        "headers": [(b"host", host.encode())],
        "server": (host, 443 if scheme == "https" else 80),
    }
    return Request(scope)


class Recorder:
    """MockTransport handler returning canned answers and keeping the requests."""

    def __init__(self, status_code=200, text="", exc=None):
        self.status_code = status_code
        self.text = text
        self.exc = exc
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.exc is not None:
            raise self.exc(f"simulated {self.exc.__name__}", request=request)
        return httpx.Response(self.status_code, text=self.text)

    def body_fields(self, index=0) -> dict[str, str]:
        return decode_fields(self.requests[index].content.decode())


# ============================================================
# Wire format
# ============================================================


class TestWireFormat:

    def test_encode_fields(self):
        assert encode_fields({"service": "My app", "key": "abc"}) == "service=My app\nkey=abc\n"

    def test_decode_fields(self):
        body = "user=lecom\n\nfirstname=Claude\r\ngroup=a=b\n"
        assert decode_fields(body) == {"user": "lecom", "firstname": "Claude", "group": "a=b"}

    def test_decode_rejects_non_tequila_body(self):
        with pytest.raises(ValueError):
            decode_fields("<html><body>Internal error</body></html>")


# ============================================================
# AuthenticationRequest
# ============================================================


class TestAuthenticationRequest:

    def test_from_settings(self, tequila_settings):
        auth = AuthenticationRequest.from_settings(tequila_settings)
        assert auth.service == "Test app"
        assert auth.request == ("displayname", "firstname", "name")
        assert auth.require is None
        assert auth.allows is None

    def test_to_fields_skips_unset_options(self):
        auth = AuthenticationRequest(service="App")
        assert auth.to_fields() == {"service": "App"}

    def test_to_fields_joins_lists(self):
        auth = AuthenticationRequest(
            service="App",
            request=("displayname", "email"),
            require="group=admins",
            allows=("categorie=shibboleth", "categorie=guest"),
        )
        assert auth.to_fields() == {
            "service": "App",
            "request": "displayname,email",
            "require": "group=admins",
            "allows": "categorie=shibboleth,categorie=guest",
        }

    def test_is_immutable(self):
        auth = AuthenticationRequest(service="App")
        with pytest.raises(ValueError):
            auth.service = "Other"

    def test_empty_service_fails_fast(self):
        settings = TequilaSettings.model_construct(service="")
        with pytest.raises(ConfigurationError):
            AuthenticationRequest.from_settings(settings)

    def test_client_refuses_empty_service(self):
        with pytest.raises(ConfigurationError):
            TequilaClient(TequilaSettings.model_construct(service="   "))


# ============================================================
# URLs
# ============================================================


class TestUrls:

    def test_request_auth_redirect(self, tequila_settings):
        client = TequilaClient(tequila_settings)
        response = client.request_auth("abc123")
        assert response.status_code == 302
        assert response.headers["location"] == (
            "https://tequila.example.org/cgi-bin/tequila/requestauth?requestkey=abc123"
        )

    def test_custom_port_and_paths(self):
        settings = TequilaSettings(
            service="App",
            host="localhost",
            port=8443,
            requestauth_path="/auth",
            logout_path="logout",
        )
        client = TequilaClient(settings)
        assert client.request_auth_url("k") == "https://localhost:8443/auth?requestkey=k"
        assert client.logout_url("/").startswith("https://localhost:8443/logout?")

    def test_logout_redirect_carries_absolute_continuation(self, tequila_settings):
        client = TequilaClient(tequila_settings)
        response = client.logout(make_request(), "/bye")
        location = response.headers["location"]
        assert location.startswith("https://tequila.example.org/cgi-bin/tequila/logout?")
        query = urllib.parse.parse_qs(urllib.parse.urlsplit(location).query)
        assert query["urlaccess"] == ["https://app.example.org/bye"]

    def test_redirect_url_is_built_on_own_host(self):
        request = make_request(host="app.example.org:8080", scheme="http")
        assert TequilaClient.redirect_url(request, "/x?y=1") == "http://app.example.org:8080/x?y=1"
        assert TequilaClient.redirect_url(request, "x") == "http://app.example.org:8080/x"

    def test_redirect_url_with_url_in_query(self):
        request = make_request()
        assert TequilaClient.redirect_url(request, "/private?next=https://app.example.org/x") == (
            "https://app.example.org/private?next=https://app.example.org/x"
        )

    def test_redirect_url_refuses_other_hosts(self):
        request = make_request()
        assert TequilaClient.redirect_url(request, "https://evil.example.com/") == (
            "https://app.example.org/"
        )
        assert TequilaClient.redirect_url(request, "//evil.example.com/") == (
            "https://app.example.org/"
        )
        assert TequilaClient.redirect_url(request, "https://app.example.org/ok") == (
            "https://app.example.org/ok"
        )

    def test_original_url(self):
        assert TequilaClient.original_url(make_request(query=b"a=1&key=2")) == "/private?a=1&key=2"
        assert TequilaClient.original_url(make_request()) == "/private"


# ============================================================
# createrequest
# ============================================================


class TestCreateRequest:

    @pytest.mark.asyncio
    async def test_returns_key_and_sends_request(self, make_mock_client):
        recorder = Recorder(text="key=abc123\n")
        client = make_mock_client(recorder, require="group=staff", allows=["categorie=guest"])

        key = await client.create_request(make_request(query=b"foo=bar"))

        assert key == "abc123"
        assert len(recorder.requests) == 1
        sent = recorder.requests[0]
        assert sent.method == "POST"
        assert str(sent.url) == "https://tequila.example.org/cgi-bin/tequila/createrequest"
        assert recorder.body_fields() == {
            "urlaccess": "https://app.example.org/private?foo=bar",
            "service": "Test app",
            "request": "displayname,firstname,name",
            "require": "group=staff",
            "allows": "categorie=guest",
        }
        await client.aclose()

    @pytest.mark.asyncio
    async def test_urlaccess_is_absolute_with_url_in_query(self, make_mock_client):
        recorder = Recorder(text="key=abc123\n")
        client = make_mock_client(recorder)

        await client.create_request(make_request(query=b"next=https://app.example.org/x"))

        assert recorder.body_fields()["urlaccess"] == (
            "https://app.example.org/private?next=https://app.example.org/x"
        )

    @pytest.mark.asyncio
    async def test_rejected_service_is_protocol_error(self, make_mock_client):
        client = make_mock_client(Recorder(status_code=400, text="error=unknown service\n"))
        with pytest.raises(ProtocolError) as exc_info:
            await client.create_request(make_request())
        assert exc_info.value.status_code == 400
        assert exc_info.value.details["endpoint"] == "createrequest"

    @pytest.mark.asyncio
    async def test_answer_without_key_is_protocol_error(self, make_mock_client):
        client = make_mock_client(Recorder(text="status=ok\n"))
        with pytest.raises(ProtocolError):
            await client.create_request(make_request())

    @pytest.mark.asyncio
    async def test_html_answer_is_protocol_error(self, make_mock_client):
        client = make_mock_client(Recorder(text="<html>maintenance</html>"))
        with pytest.raises(ProtocolError):
            await client.create_request(make_request())

    @pytest.mark.asyncio
    async def test_unreachable_is_network_error(self, make_mock_client):
        client = make_mock_client(Recorder(exc=httpx.ConnectError))
        with pytest.raises(NetworkError) as exc_info:
            await client.create_request(make_request())
        assert exc_info.value.details["original_error"] == "ConnectError"


# ============================================================
# fetchattributes
# ============================================================


class TestFetchAttributes:

    @pytest.mark.asyncio
    async def test_returns_attributes(self, make_mock_client):
        recorder = Recorder(
            text="key=abc123\nstatus=ok\nuser=lecom\nfirstname=Claude\ndisplayname=Claude L\n"
        )
        client = make_mock_client(recorder)

        result = await client.fetch_attributes("abc123")

        assert result == {"user": "lecom", "firstname": "Claude", "displayname": "Claude L"}
        assert str(recorder.requests[0].url) == (
            "https://tequila.example.org/cgi-bin/tequila/fetchattributes"
        )
        assert recorder.body_fields() == {"key": "abc123"}

    @pytest.mark.asyncio
    async def test_echoed_key_is_not_returned(self, make_mock_client):
        client = make_mock_client(Recorder(text="key=abc123\nstatus=ok\nuser=lecom\n"))
        result = await client.fetch_attributes("abc123")
        assert "key" not in result

    @pytest.mark.asyncio
    async def test_rejected_key_is_protocol_error(self, make_mock_client):
        client = make_mock_client(Recorder(status_code=451, text="error=invalid key\n"))
        with pytest.raises(ProtocolError) as exc_info:
            await client.fetch_attributes("used-key")
        assert exc_info.value.status_code == 451

    @pytest.mark.asyncio
    async def test_status_not_ok_is_protocol_error(self, make_mock_client):
        client = make_mock_client(Recorder(text="status=fail\n"))
        with pytest.raises(ProtocolError):
            await client.fetch_attributes("abc")

    @pytest.mark.asyncio
    async def test_answer_without_status_is_protocol_error(self, make_mock_client):
        client = make_mock_client(Recorder(text="user=lecom\n"))
        with pytest.raises(ProtocolError) as exc_info:
            await client.fetch_attributes("abc")
        assert "status=None" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_timeout_is_network_error(self, make_mock_client):
        recorder = Recorder(exc=httpx.ReadTimeout)
        client = make_mock_client(recorder, timeout=0.5)
        with pytest.raises(NetworkError) as exc_info:
            await client.fetch_attributes("abc")
        assert "timed out" in exc_info.value.message
        # No automatic retry
        assert len(recorder.requests) == 1

    @pytest.mark.asyncio
    async def test_timeout_is_applied_to_http_client(self, make_mock_client):
        client = make_mock_client(Recorder(text="status=ok\nuser=lecom\n"), timeout=2.5)
        http_client = await client._get_http_client()
        assert http_client.timeout == httpx.Timeout(2.5)
        await client.aclose()
        assert client._http_client is None
