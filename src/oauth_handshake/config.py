"""Provider credentials and library configuration."""

from __future__ import annotations

import json
import os
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from oauth_handshake.exceptions import ConfigurationError

DEFAULT_ROUTE_PREFIX = "oauth"
DEFAULT_TIMEOUT = 10.0


def get_config_dir() -> Path:
    """Get XDG-compliant config directory for provider credentials.

    Uses XDG_CONFIG_HOME if set, otherwise ~/.config/oauth-handshake.
    """
    xdg_config = os.environ.get("XDG_CONFIG_HOME")
    if xdg_config:
        return Path(xdg_config) / "oauth-handshake"
    return Path.home() / ".config" / "oauth-handshake"


def parse_scopes(scope: str | Iterable[str] | None) -> tuple[str, ...]:
    """Normalize a scope setting into an ordered tuple.

    Accepts a comma-separated string or a list. Items are trimmed and empty
    items dropped, so ``""`` and ``None`` mean "no scope requested".
    """
    if scope is None:
        return ()
    items = scope.split(",") if isinstance(scope, str) else scope
    return tuple(s.strip() for s in items if s and s.strip())


@dataclass(frozen=True, slots=True)
class Credentials:
    """OAuth client credentials for one provider."""

    client_id: str
    client_secret: str = field(repr=False)
    redirect_uri: str


@dataclass(frozen=True, slots=True)
class ProviderSettings:
    """Configured client id, secret and scopes for one provider."""

    client_id: str
    client_secret: str = field(repr=False)
    scopes: tuple[str, ...] = ()
    redirect_uri: str | None = None

    @classmethod
    def from_dict(cls, provider: str, data: Mapping[str, Any]) -> ProviderSettings:
        """Build settings from a config mapping.

        ``key``/``secret`` are accepted as aliases for ``client_id``/``client_secret``.
        """
        if not isinstance(data, Mapping):
            msg = f"Settings for provider '{provider}' must be an object"
            raise ConfigurationError(msg, provider=provider)

        client_id = data.get("client_id") or data.get("key")
        client_secret = data.get("client_secret") or data.get("secret")

        if not client_id or not client_secret:
            msg = f"Missing client_id or client_secret for provider '{provider}'"
            raise ConfigurationError(msg, provider=provider)
        if not isinstance(client_id, str) or not isinstance(client_secret, str):
            msg = f"client_id and client_secret for provider '{provider}' must be strings"
            raise ConfigurationError(msg, provider=provider)

        scope = data.get("scope", data.get("scopes"))
        if not (
            scope is None
            or isinstance(scope, str)
            or (isinstance(scope, list) and all(isinstance(s, str) for s in scope))
        ):
            msg = f"Scope for provider '{provider}' must be a string or list of strings"
            raise ConfigurationError(msg, provider=provider)

        return cls(
            client_id=client_id,
            client_secret=client_secret,
            scopes=parse_scopes(scope),
            redirect_uri=data.get("redirect_uri"),
        )


@dataclass(frozen=True, slots=True)
class OAuthConfig:
    """Library configuration: callback routing plus per-provider settings."""

    callback_base_url: str
    providers: Mapping[str, ProviderSettings] = field(default_factory=dict)
    route_prefix: str = DEFAULT_ROUTE_PREFIX
    timeout: float = DEFAULT_TIMEOUT
    pending_ttl: int = 600

    def settings(self, provider: str) -> ProviderSettings:
        """Get settings for a provider."""
        settings = self.providers.get(provider.lower())
        if settings is None:
            msg = f"No credentials configured for provider '{provider}'"
            raise ConfigurationError(msg, provider=provider)
        return settings

    def is_configured(self, provider: str) -> bool:
        return provider.lower() in self.providers

    def credentials(self, provider: str) -> Credentials:
        """Build the credentials used for one authorization attempt."""
        settings = self.settings(provider)
        return Credentials(
            client_id=settings.client_id,
            client_secret=settings.client_secret,
            redirect_uri=settings.redirect_uri or self.route_url(provider, "callback"),
        )

    def scopes(self, provider: str) -> tuple[str, ...]:
        return self.settings(provider).scopes

    def route_url(self, provider: str, action: str) -> str:
        """Get the host route for a provider, e.g. ``.../oauth/github/callback``."""
        base = self.callback_base_url.rstrip("/")
        prefix = self.route_prefix.strip("/")
        return f"{base}/{prefix}/{provider.lower()}/{action}"

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> OAuthConfig:
        """Create config from a parsed mapping (the JSON file format)."""
        if not isinstance(data, Mapping):
            raise ConfigurationError("Config must be a JSON object")

        callback_base_url = data.get("callback_base_url")
        if not callback_base_url:
            raise ConfigurationError("Missing required setting: callback_base_url")
        if not isinstance(callback_base_url, str):
            raise ConfigurationError("Setting 'callback_base_url' must be a string")

        provider_data = data.get("providers", {})
        if not isinstance(provider_data, Mapping):
            raise ConfigurationError("Setting 'providers' must be an object")

        providers = {
            name.lower(): ProviderSettings.from_dict(name, settings)
            for name, settings in provider_data.items()
        }

        try:
            timeout = float(data.get("timeout", DEFAULT_TIMEOUT))
            pending_ttl = int(data.get("pending_ttl", 600))
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid timeout or pending_ttl: {e}") from e

        return cls(
            callback_base_url=callback_base_url,
            providers=providers,
            route_prefix=data.get("route_prefix", DEFAULT_ROUTE_PREFIX),
            timeout=timeout,
            pending_ttl=pending_ttl,
        )

    @classmethod
    def from_env(cls, providers: Iterable[str]) -> OAuthConfig:
        """Create config from environment variables.

        Expected env vars:
        - OAUTH_CALLBACK_BASE_URL
        - OAUTH_<PROVIDER>_CLIENT_ID
        - OAUTH_<PROVIDER>_CLIENT_SECRET
        - OAUTH_<PROVIDER>_SCOPE (optional, comma separated)
        """
        callback_base_url = os.environ.get("OAUTH_CALLBACK_BASE_URL")
        if not callback_base_url:
            raise ConfigurationError(
                "Missing required environment variable: OAUTH_CALLBACK_BASE_URL"
            )

        settings: dict[str, ProviderSettings] = {}
        for provider in providers:
            prefix = f"OAUTH_{provider.upper()}_"
            client_id = os.environ.get(f"{prefix}CLIENT_ID")
            client_secret = os.environ.get(f"{prefix}CLIENT_SECRET")
            if not client_id and not client_secret:
                continue
            settings[provider.lower()] = ProviderSettings.from_dict(
                provider,
                {
                    "client_id": client_id,
                    "client_secret": client_secret,
                    "scope": os.environ.get(f"{prefix}SCOPE"),
                },
            )

        try:
            timeout = float(os.environ.get("OAUTH_TIMEOUT", DEFAULT_TIMEOUT))
        except ValueError as e:
            raise ConfigurationError(f"Invalid OAUTH_TIMEOUT: {e}") from e

        return cls(callback_base_url=callback_base_url, providers=settings, timeout=timeout)

    @classmethod
    def from_file(cls, path: Path | None = None) -> OAuthConfig:
        """Load config from JSON file.

        Default path: ~/.config/oauth-handshake/config.json

        Expected format:
        {
            "callback_base_url": "https://example.com",
            "providers": {
                "github": {"client_id": "...", "client_secret": "...", "scope": "user,repo"}
            }
        }
        """
        if path is None:
            path = get_config_dir() / "config.json"

        if not path.exists():
            msg = f"Config file not found: {path}"
            raise FileNotFoundError(msg)

        try:
            with path.open() as f:
                data = json.load(f)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise ConfigurationError(f"Invalid config file {path}: {e}") from e

        return cls.from_dict(data)

    @classmethod
    def load(cls, providers: Iterable[str], path: Path | None = None) -> OAuthConfig:
        """Load config from file with environment variable overrides.

        Falls back to environment-only config when no file exists.
        """
        providers = list(providers)
        try:
            base = cls.from_file(path)
        except FileNotFoundError:
            return cls.from_env(providers)

        merged = dict(base.providers)
        for provider in providers:
            prefix = f"OAUTH_{provider.upper()}_"
            overrides = {
                "client_id": os.environ.get(f"{prefix}CLIENT_ID"),
                "client_secret": os.environ.get(f"{prefix}CLIENT_SECRET"),
                "scope": os.environ.get(f"{prefix}SCOPE"),
            }
            if not any(overrides.values()):
                continue
            current = merged.get(provider.lower())
            data: dict[str, Any] = {
                "client_id": current.client_id if current else None,
                "client_secret": current.client_secret if current else None,
                "scope": list(current.scopes) if current else None,
                "redirect_uri": current.redirect_uri if current else None,
            }
            data.update({k: v for k, v in overrides.items() if v is not None})
            merged[provider.lower()] = ProviderSettings.from_dict(provider, data)

        return cls(
            callback_base_url=os.environ.get("OAUTH_CALLBACK_BASE_URL", base.callback_base_url),
            providers=merged,
            route_prefix=base.route_prefix,
            timeout=base.timeout,
            pending_ttl=base.pending_ttl,
        )
