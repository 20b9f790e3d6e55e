# =============================================================================
# core/auth.py  —  Google OAuth 2.0 Helpers
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   The credential-provider side of the Google integration:
#
#     generate_auth_url       consent-screen URL (offline access → refresh token)
#     exchange_code_for_token authorization code → access + refresh token
#     refresh_access_token    refresh token → new access token
#     get_valid_access_token  "give me a token that works right now"
#
#   The google-ads library refreshes its own tokens once it has a refresh
#   token; these helpers are how you GET that refresh token in the first
#   place (see `python main.py oauth`).
#
# TOKEN ENDPOINT ERRORS:
#   Google answers failures with JSON like
#     {"error": "invalid_grant", "error_description": "Bad Request"}
#   which becomes OAuthError.  Network trouble and non-JSON bodies become
#   TransportError.
# =============================================================================

import logging
from typing import Optional
from urllib.parse import urlencode

import httpx

from core.config import Settings
from core.errors import ConfigurationError, OAuthError, TransportError

logger = logging.getLogger(__name__)

AUTH_ENDPOINT = "https://accounts.google.com/o/oauth2/v2/auth"
TOKEN_ENDPOINT = "https://oauth2.googleapis.com/token"
OOB_REDIRECT_URI = "urn:ietf:wg:oauth:2.0:oob"
ADWORDS_SCOPE = "https://www.googleapis.com/auth/adwords"


def generate_auth_url(
    client_id: str,
    redirect_uri: str = OOB_REDIRECT_URI,
    scopes: Optional[list[str]] = None,
) -> str:
    """URL of the Google consent screen for the Ads API scope."""
    params = {
        "client_id": client_id,
        "redirect_uri": redirect_uri,
        "scope": " ".join(scopes or [ADWORDS_SCOPE]),
        "response_type": "code",
        "access_type": "offline",
        "prompt": "consent",
    }
    return f"{AUTH_ENDPOINT}?{urlencode(params)}"


async def _post_token_request(
    form: dict,
    error_prefix: str,
    failure_prefix: str,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    timeout: float = 15.0,
) -> dict:
    try:
        async with httpx.AsyncClient(timeout=timeout, transport=transport) as client:
            response = await client.post(TOKEN_ENDPOINT, data=form)
    except httpx.HTTPError as exc:
        raise TransportError(f"{failure_prefix}: {exc}") from exc

    try:
        payload = response.json()
    except ValueError as exc:
        raise TransportError(f"Failed to parse token response: {exc}") from exc

    if isinstance(payload, dict) and payload.get("error"):
        raise OAuthError(payload["error"], payload.get("error_description"), prefix=error_prefix)
    return payload


async def exchange_code_for_token(
    code: str,
    client_id: str,
    client_secret: str,
    redirect_uri: str = OOB_REDIRECT_URI,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> dict:
    """Trade an authorization code for {access_token, refresh_token, ...}."""
    form = {
        "code": code,
        "client_id": client_id,
        "client_secret": client_secret,
        "redirect_uri": redirect_uri,
        "grant_type": "authorization_code",
    }
    return await _post_token_request(form, "OAuth error", "Token exchange failed", transport)


async def refresh_access_token(
    refresh_token: str,
    client_id: str,
    client_secret: str,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> dict:
    form = {
        "refresh_token": refresh_token,
        "client_id": client_id,
        "client_secret": client_secret,
        "grant_type": "refresh_token",
    }
    return await _post_token_request(form, "Token refresh error", "Token refresh failed", transport)


async def get_valid_access_token(
    settings: Settings,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> str:
    """Refresh if we can, otherwise fall back to the static access token."""
    if not settings.google_client_id or not settings.google_client_secret:
        raise ConfigurationError("Google OAuth credentials not configured")

    if settings.google_refresh_token:
        try:
            response = await refresh_access_token(
                settings.google_refresh_token,
                settings.google_client_id,
                settings.google_client_secret,
                transport=transport,
            )
            if response.get("access_token"):
                return response["access_token"]
        except (OAuthError, TransportError) as exc:
            logger.warning("Failed to refresh token: %s", exc)

    if settings.google_access_token:
        return settings.google_access_token

    raise ConfigurationError("No valid access token available. Please complete OAuth flow first.")

