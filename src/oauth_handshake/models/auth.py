"""OAuth token and flow result models."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import Any

from pydantic import BaseModel, Field

from oauth_handshake.providers.registry import ProtocolVariant


def _scope_text(scope: Any) -> str | None:
    """Granted scope as a string; some providers send a JSON list."""
    if isinstance(scope, list):
        return " ".join(str(s) for s in scope)
    return scope


class RequestToken(BaseModel):
    """OAuth1 temporary credentials (first leg of the flow)."""

    token: str = Field(description="Request token value")
    token_secret: str = Field(description="Request token secret, never sent to the browser")
    callback_confirmed: bool = Field(default=False, description="oauth_callback_confirmed flag")


class AccessToken(BaseModel):
    """Access token issued at the end of a successful flow."""

    provider: str = Field(description="Provider the token was issued by")
    variant: ProtocolVariant = Field(description="Protocol used to obtain the token")
    access_token: str = Field(description="Access token value")
    token_secret: str | None = Field(default=None, description="OAuth1 access token secret")
    refresh_token: str | None = Field(default=None, description="OAuth2 refresh token")
    token_type: str | None = Field(default=None, description="OAuth2 token type, e.g. bearer")
    scope: str | None = Field(default=None, description="Scope granted by the provider")
    expires_at: datetime | None = Field(default=None, description="Expiry, if provided")
    raw: dict[str, Any] = Field(default_factory=dict, description="Full token response")

    @property
    def is_expired(self) -> bool:
        return self.expires_at is not None and datetime.now(UTC) >= self.expires_at

    @classmethod
    def from_oauth2_response(cls, provider: str, data: dict[str, Any]) -> AccessToken:
        """Build a token from an RFC 6749 token response body."""
        expires_at = None
        expires_in = data.get("expires_in")
        if expires_in not in (None, ""):
            expires_at = datetime.now(UTC) + timedelta(seconds=int(float(expires_in)))

        return cls(
            provider=provider,
            variant=ProtocolVariant.OAUTH2,
            access_token=data["access_token"],
            refresh_token=data.get("refresh_token"),
            token_type=data.get("token_type"),
            scope=_scope_text(data.get("scope")),
            expires_at=expires_at,
            raw=data,
        )

    @classmethod
    def from_oauth1_response(cls, provider: str, data: dict[str, str]) -> AccessToken:
        """Build a token from an RFC 5849 access-token response body."""
        return cls(
            provider=provider,
            variant=ProtocolVariant.OAUTH1,
            access_token=data["oauth_token"],
            token_secret=data["oauth_token_secret"],
            raw=dict(data),
        )


class AuthorizationURL(BaseModel):
    """Where to send the end user to start authorization."""

    provider: str = Field(description="Provider name")
    url: str = Field(description="Fully formed authorization URL")
    state: str = Field(description="Encoded round-trip state")
    request_token: str | None = Field(default=None, description="OAuth1 request token")


class CallbackResult(BaseModel):
    """Outcome of handling a provider callback."""

    token: AccessToken = Field(description="Issued access token")
    redirect: str | None = Field(default=None, description="Post-login redirect target, if any")
