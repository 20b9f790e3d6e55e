"""Tests for the Google OAuth helpers (token endpoint faked with MockTransport)."""

import dataclasses
from urllib.parse import parse_qs, urlparse

import httpx
import pytest

from core.auth import (
    ADWORDS_SCOPE,
    exchange_code_for_token,
    generate_auth_url,
    get_valid_access_token,
    refresh_access_token,
)
from core.errors import ConfigurationError, OAuthError, TransportError

TOKEN_PATH = "/token"


def _form(request: httpx.Request) -> dict:
    return {k: v[0] for k, v in parse_qs(request.content.decode()).items()}


class TestAuthUrl:
    def test_offline_consent(self):
        url = urlparse(generate_auth_url("my-client"))
        params = {k: v[0] for k, v in parse_qs(url.query).items()}

        assert url.netloc == "accounts.google.com"
        assert params["client_id"] == "my-client"
        assert params["scope"] == ADWORDS_SCOPE
        assert params["access_type"] == "offline"
        assert params["prompt"] == "consent"
        assert params["response_type"] == "code"


class TestTokenRequests:
    @pytest.mark.asyncio
    async def test_exchange_code(self, fake_server):
        fake_server.routes[("POST", TOKEN_PATH)] = (200, {"access_token": "a", "refresh_token": "r"})

        tokens = await exchange_code_for_token("code-1", "cid", "secret",
                                               transport=fake_server.transport)

        assert tokens["refresh_token"] == "r"
        form = _form(fake_server.requests[0])
        assert form["grant_type"] == "authorization_code"
        assert form["code"] == "code-1"

    @pytest.mark.asyncio
    async def test_exchange_error_payload(self, fake_server):
        fake_server.routes[("POST", TOKEN_PATH)] = (
            400, {"error": "invalid_grant", "error_description": "Bad Request"},
        )

        with pytest.raises(OAuthError) as info:
            await exchange_code_for_token("code-1", "cid", "secret", transport=fake_server.transport)

        assert info.value.error == "invalid_grant"
        assert str(info.value) == "OAuth error: invalid_grant - Bad Request"

    @pytest.mark.asyncio
    async def test_refresh_error_prefix(self, fake_server):
        fake_server.routes[("POST", TOKEN_PATH)] = (400, {"error": "invalid_client"})

        with pytest.raises(OAuthError, match="^Token refresh error: invalid_client"):
            await refresh_access_token("r", "cid", "secret", transport=fake_server.transport)

    @pytest.mark.asyncio
    async def test_non_json_response(self, fake_server):
        fake_server.routes[("POST", TOKEN_PATH)] = lambda request: httpx.Response(502, text="Bad Gateway")

        with pytest.raises(TransportError):
            await refresh_access_token("r", "cid", "secret", transport=fake_server.transport)


class TestValidAccessToken:
    @pytest.mark.asyncio
    async def test_requires_client_credentials(self, settings):
        with pytest.raises(ConfigurationError):
            await get_valid_access_token(dataclasses.replace(settings, google_client_id=""))

    @pytest.mark.asyncio
    async def test_refreshes(self, settings, fake_server):
        fake_server.routes[("POST", TOKEN_PATH)] = (200, {"access_token": "fresh"})
        config = dataclasses.replace(settings, google_refresh_token="r", google_access_token="stale")

        assert await get_valid_access_token(config, transport=fake_server.transport) == "fresh"

    @pytest.mark.asyncio
    async def test_falls_back_to_static_token(self, settings, fake_server):
        fake_server.routes[("POST", TOKEN_PATH)] = (400, {"error": "invalid_grant"})
        config = dataclasses.replace(settings, google_refresh_token="r", google_access_token="stale")

        assert await get_valid_access_token(config, transport=fake_server.transport) == "stale"

    @pytest.mark.asyncio
    async def test_nothing_available(self, settings, fake_server):
        with pytest.raises(ConfigurationError, match="complete OAuth flow"):
            await get_valid_access_token(settings, transport=fake_server.transport)
