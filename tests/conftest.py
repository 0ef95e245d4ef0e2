"""Shared fixtures for unit tests."""

import pytest

from oauth_handshake.auth import MemoryBackend, PendingAuthorizationStore
from oauth_handshake.config import OAuthConfig, ProviderSettings
from oauth_handshake.providers import ProviderRegistry, default_registry


@pytest.fixture
def config() -> OAuthConfig:
    """Create a test configuration with one OAuth2 and one OAuth1 provider."""
    return OAuthConfig(
        callback_base_url="https://app.example.com",
        providers={
            "github": ProviderSettings(
                client_id="gh-id",
                client_secret="gh-secret",
                scopes=("user", "repo"),
            ),
            "twitter": ProviderSettings(
                client_id="tw-key",
                client_secret="tw-secret",
            ),
        },
    )


@pytest.fixture
def registry() -> ProviderRegistry:
    return default_registry()


@pytest.fixture
def backend() -> MemoryBackend:
    return MemoryBackend()


@pytest.fixture
def store(backend: MemoryBackend) -> PendingAuthorizationStore:
    return PendingAuthorizationStore(backend, "session-a")
