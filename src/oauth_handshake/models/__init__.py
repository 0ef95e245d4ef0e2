"""Pydantic models for OAuth flow results."""

from oauth_handshake.models.auth import AccessToken, AuthorizationURL, CallbackResult, RequestToken

__all__ = [
    "AccessToken",
    "AuthorizationURL",
    "CallbackResult",
    "RequestToken",
]
