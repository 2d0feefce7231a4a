"""Tests for Basic, Bearer and custom header authenticators and selection."""

import base64

import httpx
import pytest

from reqcli.app.auth import (
    AuthConfig,
    BasicAuth,
    BearerAuth,
    CustomHeaderAuth,
    OAuth2ClientCredentials,
    new_authenticator,
)
from reqcli.app.core.config import Settings


def make_request() -> httpx.Request:
    return httpx.Request("GET", "https://api.example.com/items", headers={"Accept": "*/*"})


class TestBasicAuth:
    """Tests for HTTP Basic authentication."""

    @pytest.mark.asyncio
    async def test_sets_basic_header(self):
        request = make_request()
        await BasicAuth("alice", "s3cret").apply(request)

        expected = base64.b64encode(b"alice:s3cret").decode()
        assert request.headers["Authorization"] == f"Basic {expected}"

    @pytest.mark.asyncio
    async def test_username_only(self):
        request = make_request()
        await BasicAuth("alice", "").apply(request)
        assert request.headers["Authorization"] == "Basic " + base64.b64encode(b"alice:").decode()

    @pytest.mark.asyncio
    async def test_empty_credentials_leave_headers_unchanged(self):
        request = make_request()
        before = list(request.headers.multi_items())

        await BasicAuth("", "").apply(request)
        assert list(request.headers.multi_items()) == before

    def test_encode_credentials(self):
        auth = BasicAuth("user", "pass:word")
        assert auth.encode_credentials() == base64.b64encode(b"user:pass:word").decode()


class TestBearerAuth:
    """Tests for static bearer tokens."""

    @pytest.mark.asyncio
    async def test_sets_bearer_header(self):
        request = make_request()
        await BearerAuth("tok-123").apply(request)
        assert request.headers["Authorization"] == "Bearer tok-123"

    @pytest.mark.asyncio
    async def test_empty_token_leaves_headers_unchanged(self):
        request = make_request()
        before = list(request.headers.multi_items())

        await BearerAuth("").apply(request)
        assert list(request.headers.multi_items()) == before

    @pytest.mark.asyncio
    async def test_replaces_existing_authorization(self):
        request = make_request()
        request.headers["Authorization"] = "Basic old"
        await BearerAuth("new").apply(request)
        assert request.headers.get_list("Authorization") == ["Bearer new"]


class TestCustomHeaderAuth:
    """Tests for arbitrary header authentication."""

    @pytest.mark.asyncio
    async def test_sets_custom_header(self):
        request = make_request()
        await CustomHeaderAuth("X-API-Key", "k-1").apply(request)
        assert request.headers["X-API-Key"] == "k-1"
        assert "Authorization" not in request.headers

    @pytest.mark.asyncio
    @pytest.mark.parametrize(("header", "value"), [("", "v"), ("X-API-Key", ""), ("", "")])
    async def test_incomplete_config_leaves_headers_unchanged(self, header, value):
        request = make_request()
        before = list(request.headers.multi_items())

        await CustomHeaderAuth(header, value).apply(request)
        assert list(request.headers.multi_items()) == before


class TestNewAuthenticator:
    """Tests for precedence-based authenticator selection."""

    def test_no_credentials(self):
        assert new_authenticator(AuthConfig()) is None

    def test_basic_wins_over_everything(self):
        config = AuthConfig(
            username="u",
            bearer_token="t",
            client_id="id",
            client_secret="secret",
            token_url="https://auth.example.com/token",
            custom_header="X-Key",
            custom_value="v",
        )
        assert isinstance(new_authenticator(config), BasicAuth)

    def test_password_alone_selects_basic(self):
        assert isinstance(new_authenticator(AuthConfig(password="p")), BasicAuth)

    def test_bearer_over_oauth2(self):
        config = AuthConfig(
            bearer_token="t",
            client_id="id",
            client_secret="secret",
            token_url="https://auth.example.com/token",
        )
        assert isinstance(new_authenticator(config), BearerAuth)

    def test_oauth2_over_custom(self):
        config = AuthConfig(
            client_id="id",
            client_secret="secret",
            token_url="https://auth.example.com/token",
            scopes=["read"],
            custom_header="X-Key",
            custom_value="v",
        )
        auth = new_authenticator(config)
        assert isinstance(auth, OAuth2ClientCredentials)
        assert auth.scopes == ["read"]

    def test_partial_oauth2_falls_through(self):
        config = AuthConfig(client_id="id", token_url="https://auth.example.com/token")
        assert new_authenticator(config) is None

        config.custom_header = "X-Key"
        config.custom_value = "v"
        assert isinstance(new_authenticator(config), CustomHeaderAuth)

    def test_from_settings(self, monkeypatch):
        monkeypatch.setenv("REQCLI_BEARER_TOKEN", "env-token")
        monkeypatch.setenv("REQCLI_SCOPES", "read write")

        config = AuthConfig.from_settings(Settings(_env_file=None))
        assert config.bearer_token == "env-token"
        assert config.scopes == ["read", "write"]
        assert isinstance(new_authenticator(config), BearerAuth)
