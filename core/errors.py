# =============================================================================
# core/errors.py  —  Error Taxonomy
# =============================================================================
#
# Two kinds of failure flow through this codebase:
#
#   RAISED (exceptions below)
#     ConfigurationError  a credential / env value is missing
#     ValidationError     a required argument is missing or empty
#     TransportError      network failure or unparseable response body
#     OAuthError          the token endpoint answered with an OAuth error
#
#   RETURNED (plain dicts built by remote_failure)
#     The upstream API answered, but with a non-2xx status.  The caller gets
#     {"success": False, "error": ..., "status_code": ...} and can branch on
#     it without a try/except.
#
# The tool dispatcher turns every raised error into {"success": False,
# "error": str(exc)}, so nothing escapes the tool boundary.
# =============================================================================

from typing import Any, Optional


class MediaAssistantError(Exception):
    """Base class for every error raised by the adapters."""


class ConfigurationError(MediaAssistantError):
    """A required credential or environment value is not configured."""


class ValidationError(MediaAssistantError):
    """A required call argument is missing, empty, or out of range."""


class TransportError(MediaAssistantError):
    """The request never produced a usable response (network or parse)."""


class OAuthError(MediaAssistantError):
    """The OAuth token endpoint returned an error payload."""

    def __init__(self, error: str, description: Optional[str] = None, prefix: str = "OAuth error"):
        self.error = error
        self.description = description
        message = f"{prefix}: {error}"
        if description:
            message += f" - {description}"
        super().__init__(message)


def remote_failure(error: Any, status_code: int, **extra: Any) -> dict:
    """Structured result for an upstream non-success status."""
    result = {"success": False, "error": error, "status_code": status_code}
    result.update(extra)
    return result
