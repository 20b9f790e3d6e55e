# =============================================================================
# core/config.py  —  Process Configuration
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Reads every environment variable the adapters need into ONE Settings
#   object.  The adapters receive Settings in their constructor and never
#   touch os.environ themselves.
#
# WHEN ARE MISSING VALUES REPORTED?
#   Not here.  load_settings() never fails on a missing credential; an
#   empty string is stored instead.  Each adapter operation checks the
#   values it needs at call time and raises ConfigurationError before any
#   network call.  So a server without ClickUp credentials can still serve
#   the Google Ads tools, and vice versa.
#
# .env SUPPORT:
#   load_settings() calls python-dotenv first, so a local .env file works
#   exactly like exported shell variables.
# =============================================================================

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from dotenv import load_dotenv

from core.normalize import to_float

# ClickUp space used when a caller does not name one.
DEFAULT_SPACE_ID = "6942940"
DEFAULT_HTTP_TIMEOUT = 15.0

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    """All credentials and toggles, captured once at startup."""

    # --- ClickUp ---
    clickup_token: str = ""
    clickup_space_id: str = DEFAULT_SPACE_ID
    clickup_audit_list_id: str = ""    # Where audit tasks land by default

    # --- Google Ads API ---
    google_ads_client_id: str = ""
    google_ads_client_secret: str = ""
    google_ads_developer_token: str = ""
    google_ads_refresh_token: str = ""
    google_ads_login_customer_id: str = ""   # The MCC, digits only

    # --- Google OAuth (token helpers in core/auth.py) ---
    google_client_id: str = ""
    google_client_secret: str = ""
    google_refresh_token: str = ""
    google_access_token: str = ""

    # --- Behaviour ---
    use_sample_fallback: bool = True   # Serve sample data when Google Ads fails
    http_timeout_seconds: float = DEFAULT_HTTP_TIMEOUT


def _flag(value: Optional[str], default: bool) -> bool:
    if value is None or value.strip() == "":
        return default
    return value.strip().lower() in _TRUTHY


def _timeout(value: Optional[str]) -> float:
    seconds = to_float(value, DEFAULT_HTTP_TIMEOUT)
    return seconds if seconds > 0 else DEFAULT_HTTP_TIMEOUT


def load_settings(env: Optional[Mapping[str, str]] = None) -> Settings:
    """Build Settings from the environment (or from an explicit mapping).

    Passing ``env`` skips the .env file entirely; tests use that to get a
    fully controlled configuration.
    """
    if env is None:
        load_dotenv()
        env = os.environ

    def get(name: str, default: str = "") -> str:
        return (env.get(name) or default).strip()

    return Settings(
        clickup_token=get("CLICKUP_TOKEN"),
        clickup_space_id=get("CLICKUP_SPACE_ID", DEFAULT_SPACE_ID),
        clickup_audit_list_id=get("CLICKUP_AUDIT_LIST_ID"),
        google_ads_client_id=get("GOOGLE_ADS_CLIENT_ID"),
        google_ads_client_secret=get("GOOGLE_ADS_CLIENT_SECRET"),
        google_ads_developer_token=get("GOOGLE_ADS_DEVELOPER_TOKEN"),
        google_ads_refresh_token=get("GOOGLE_ADS_REFRESH_TOKEN"),
        google_ads_login_customer_id=get("GOOGLE_ADS_LOGIN_CUSTOMER_ID").replace("-", ""),
        google_client_id=get("GOOGLE_CLIENT_ID"),
        google_client_secret=get("GOOGLE_CLIENT_SECRET"),
        google_refresh_token=get("GOOGLE_REFRESH_TOKEN"),
        google_access_token=get("GOOGLE_OAUTH_ACCESS_TOKEN"),
        use_sample_fallback=_flag(env.get("USE_SAMPLE_FALLBACK"), True),
        http_timeout_seconds=_timeout(env.get("HTTP_TIMEOUT_SECONDS")),
    )
