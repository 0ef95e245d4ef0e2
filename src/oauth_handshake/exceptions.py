"""Typed exceptions for the OAuth handshake library."""

from typing import Any


class OAuthHandshakeError(Exception):
    """Base exception for all oauth-handshake errors."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ConfigurationError(OAuthHandshakeError):
    """Provider credentials or settings are missing or invalid."""

    def __init__(self, message: str, *, provider: str | None = None) -> None:
        self.provider = provider
        super().__init__(message)


class UnsupportedProviderError(OAuthHandshakeError):
    """Provider name is not registered as an OAuth1 or OAuth2 provider."""

    def __init__(self, message: str, *, provider: str) -> None:
        self.provider = provider
        super().__init__(message)


class MalformedStateError(OAuthHandshakeError):
    """Round-trip state token could not be decoded."""


class PendingAuthorizationNotFoundError(OAuthHandshakeError):
    """No pending OAuth1 authorization exists for the key (missing or expired)."""

    def __init__(self, message: str, *, key: str | None = None) -> None:
        self.key = key
        super().__init__(message)


class AuthorizationError(OAuthHandshakeError):
    """Authorization flow error."""

    def __init__(self, message: str, *, stage: str | None = None) -> None:
        self.stage = stage  # e.g., "request_token", "callback", "access_token"
        super().__init__(message)


class UserDeniedAuthorizationError(AuthorizationError):
    """End user refused to grant access at the provider."""

    def __init__(self, message: str = "User denied OAuth permissions") -> None:
        super().__init__(message, stage="callback")


class MissingTokenError(AuthorizationError):
    """A required callback parameter (oauth_token, code) is absent."""

    def __init__(self, message: str, *, parameter: str) -> None:
        self.parameter = parameter
        super().__init__(message, stage="callback")


class ProviderError(AuthorizationError):
    """Provider reported an error on the callback other than a denial."""

    def __init__(self, message: str, *, error_code: str | None = None) -> None:
        self.error_code = error_code
        super().__init__(message, stage="callback")


class TokenExchangeError(AuthorizationError):
    """Provider rejected a request-token or access-token request."""

    def __init__(
        self,
        message: str,
        *,
        stage: str = "access_token",
        status_code: int | None = None,
        response_body: dict[str, Any] | str | None = None,
    ) -> None:
        self.status_code = status_code
        self.response_body = response_body
        super().__init__(message, stage=stage)


class ProviderUnavailableError(AuthorizationError):
    """Provider endpoint could not be reached or timed out. Safe for the caller to retry."""
