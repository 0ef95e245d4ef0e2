"""OAuth1/OAuth2 authorization handshake library.

Framework-independent engine for the "Sign in with <provider>" round trip:
build the authorization URL, carry state across the redirect, and exchange
the callback's code or verifier for an access token.

Example:
    from oauth_handshake import (
        AuthorizationFlow,
        MemoryBackend,
        OAuthConfig,
        PendingAuthorizationStore,
        default_registry,
    )

    config = OAuthConfig.load(["github", "twitter"])
    backend = MemoryBackend()  # shared by all sessions

    # Login route
    store = PendingAuthorizationStore(backend, session_id=request.session.id)
    async with AuthorizationFlow(default_registry(), config, store) as flow:
        auth = await flow.begin_authorization("github", redirect="/dashboard")
    return redirect_to(auth.url)

    # Callback route
    async with AuthorizationFlow(default_registry(), config, store) as flow:
        result = await flow.finish_authorization("github", request.query_params)
    save_token(result.token)
    return redirect_to(result.redirect or "/")
"""

from oauth_handshake.auth import (
    FileBackend,
    MemoryBackend,
    PendingAuthorizationStore,
    RedisBackend,
    StateCodec,
)
from oauth_handshake.config import Credentials, OAuthConfig, ProviderSettings
from oauth_handshake.exceptions import (
    AuthorizationError,
    ConfigurationError,
    MalformedStateError,
    MissingTokenError,
    OAuthHandshakeError,
    PendingAuthorizationNotFoundError,
    ProviderError,
    ProviderUnavailableError,
    TokenExchangeError,
    UnsupportedProviderError,
    UserDeniedAuthorizationError,
)
from oauth_handshake.flow import AuthorizationFlow
from oauth_handshake.models import AccessToken, AuthorizationURL, CallbackResult
from oauth_handshake.providers import (
    ProtocolVariant,
    ProviderDescriptor,
    ProviderRegistry,
    default_registry,
)

__version__ = "0.1.0"

__all__ = [
    # Engine
    "AuthorizationFlow",
    # Collaborators
    "Credentials",
    "OAuthConfig",
    "ProviderSettings",
    "ProtocolVariant",
    "ProviderDescriptor",
    "ProviderRegistry",
    "default_registry",
    "StateCodec",
    "PendingAuthorizationStore",
    "FileBackend",
    "MemoryBackend",
    "RedisBackend",
    # Models
    "AccessToken",
    "AuthorizationURL",
    "CallbackResult",
    # Exceptions
    "AuthorizationError",
    "ConfigurationError",
    "MalformedStateError",
    "MissingTokenError",
    "OAuthHandshakeError",
    "PendingAuthorizationNotFoundError",
    "ProviderError",
    "ProviderUnavailableError",
    "TokenExchangeError",
    "UnsupportedProviderError",
    "UserDeniedAuthorizationError",
]
