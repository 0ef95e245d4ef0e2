"""Authorization flow engine."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING
from urllib.parse import urlencode

import httpx

from oauth_handshake.auth import OAuth1Client, OAuth2Client, StateCodec
from oauth_handshake.exceptions import (
    MalformedStateError,
    MissingTokenError,
    PendingAuthorizationNotFoundError,
    ProviderError,
    UserDeniedAuthorizationError,
)
from oauth_handshake.models.auth import AccessToken, AuthorizationURL, CallbackResult

if TYPE_CHECKING:
    from types import TracebackType

    from oauth_handshake.auth import PendingAuthorizationStore
    from oauth_handshake.config import Credentials, OAuthConfig
    from oauth_handshake.providers import ProviderDescriptor, ProviderRegistry

logger = logging.getLogger(__name__)

CallbackParams = Mapping[str, str]


class AuthorizationFlow:
    """Drives OAuth1 and OAuth2 authorization handshakes.

    Every collaborator is injected: the provider registry, the configured
    credentials, and the pending-authorization store for the current user
    session. The engine keeps no per-user state of its own.

    The host application wires two routes to it:

        GET /oauth/{provider}/login?redirect=<target>
            -> await flow.begin_authorization(provider, redirect)
        GET /oauth/{provider}/callback?...
            -> await flow.finish_authorization(provider, request.query_params)

    Usage:
        async with AuthorizationFlow(registry, config, store) as flow:
            auth = await flow.begin_authorization("github", "/dashboard")
            ...
            result = await flow.finish_authorization("github", callback_params)
    """

    def __init__(
        self,
        registry: ProviderRegistry,
        config: OAuthConfig,
        pending_store: PendingAuthorizationStore,
        *,
        state_codec: StateCodec | None = None,
        http_client: httpx.AsyncClient | None = None,
        timeout: float | None = None,
    ) -> None:
        """Initialize the engine.

        Args:
            registry: Supported providers
            config: Provider credentials and callback routing
            pending_store: OAuth1 pending-authorization store for this session
            state_codec: Codec for round-trip state (default: StateCodec())
            http_client: Optional httpx.AsyncClient for connection pooling.
                        If provided, the engine uses this pool and does NOT close it.
            timeout: Provider call timeout in seconds (default: config.timeout)
        """
        self.registry = registry
        self.config = config
        self.pending_store = pending_store
        self.state_codec = state_codec or StateCodec()
        self.timeout = timeout if timeout is not None else config.timeout

        self._http_client = http_client
        self._owns_http_client = http_client is None

        self.oauth1 = OAuth1Client(http_client, timeout=self.timeout)
        self.oauth2 = OAuth2Client(http_client, timeout=self.timeout)

    def _set_http_client(self, http_client: httpx.AsyncClient | None) -> None:
        self._http_client = http_client
        self.oauth1.set_http_client(http_client)
        self.oauth2.set_http_client(http_client)

    async def open(self) -> None:
        """Open a connection pool for provider requests."""
        if self._http_client is None and self._owns_http_client:
            self._set_http_client(httpx.AsyncClient(timeout=self.timeout))

    async def close(self) -> None:
        """Close the connection pool if this engine owns it."""
        if self._owns_http_client and self._http_client is not None:
            await self._http_client.aclose()
            self._set_http_client(None)

    async def __aenter__(self) -> AuthorizationFlow:
        await self.open()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.close()

    def login_url(self, provider: str, redirect: str | None = None) -> str:
        """Get the host's login route for a provider, e.g. for a "Sign in" link."""
        url = self.config.route_url(provider, "login")
        if redirect is not None:
            url = f"{url}?{urlencode({'redirect': redirect})}"
        return url

    async def begin_authorization(
        self, provider: str, redirect: str | None = None
    ) -> AuthorizationURL:
        """Phase A: build the URL that sends the user to the provider.

        OAuth2 carries the encoded state in the URL. OAuth1 fetches a request
        token and keeps its secret and the state in the pending store.

        Raises:
            UnsupportedProviderError: Unknown provider (no network call made).
            ConfigurationError: Provider has no configured credentials.
            TokenExchangeError: OAuth1 request-token request rejected.
            ProviderUnavailableError: OAuth1 request-token endpoint unreachable.
        """
        descriptor = self.registry.resolve(provider)
        credentials = self.config.credentials(descriptor.name)
        state = self.state_codec.encode({"redirect": redirect})

        if descriptor.is_oauth2:
            url = self.oauth2.authorization_url(
                descriptor,
                credentials,
                state=state,
                scopes=self.config.scopes(descriptor.name),
            )
            logger.info("Starting OAuth2 authorization with %s", descriptor.name)
            return AuthorizationURL(provider=descriptor.name, url=url, state=state)

        request_token = await self.oauth1.get_request_token(descriptor, credentials)
        self.pending_store.put(request_token.token, request_token.token_secret, state)

        url = self.oauth1.authorization_url(descriptor, request_token.token)
        logger.info("Starting OAuth1 authorization with %s", descriptor.name)
        return AuthorizationURL(
            provider=descriptor.name,
            url=url,
            state=state,
            request_token=request_token.token,
        )

    def recover_redirect_target(self, provider: str, params: CallbackParams) -> str | None:
        """Phase B: get the redirect target chosen when the flow began.

        Returns None when no redirect was requested.

        Raises:
            MalformedStateError: State missing or not decodable.
            MissingTokenError: OAuth1 callback without oauth_token.
            PendingAuthorizationNotFoundError: OAuth1 entry missing or expired.
        """
        descriptor = self.registry.resolve(provider)

        if descriptor.is_oauth2:
            token = params.get("state")
            if not token:
                raise MalformedStateError("Callback did not include a state parameter")
        else:
            request_token = self._require_oauth_token(params)
            token = self.pending_store.get(request_token).state
            if not token:
                raise MalformedStateError("Pending authorization has no state")

        payload = self.state_codec.decode(token)
        redirect = payload.get("redirect")
        return redirect if isinstance(redirect, str) else None

    async def complete_authorization(self, provider: str, params: CallbackParams) -> AccessToken:
        """Phase C: exchange the callback's code or verifier for an access token.

        Raises:
            UserDeniedAuthorizationError: User refused access.
            ProviderError: OAuth2 callback carried a non-denial error.
            MissingTokenError: Required callback parameter absent.
            PendingAuthorizationNotFoundError: OAuth1 entry missing, expired or used.
            TokenExchangeError: Provider rejected the exchange.
            ProviderUnavailableError: Token endpoint unreachable.
        """
        descriptor = self.registry.resolve(provider)

        if descriptor.is_oauth2:
            code = self._check_oauth2_callback(params)
            credentials = self.config.credentials(descriptor.name)
            return await self.oauth2.exchange_code(descriptor, credentials, code)

        request_token = self._check_oauth1_callback(params)
        credentials = self.config.credentials(descriptor.name)
        return await self._complete_oauth1(descriptor, credentials, request_token, params)

    async def finish_authorization(self, provider: str, params: CallbackParams) -> CallbackResult:
        """Handle a provider callback: recover the redirect, then exchange the token.

        Redirect recovery runs first because the OAuth1 pending entry is
        consumed by the exchange. Recovery failures only mean "no redirect".
        """
        try:
            redirect = self.recover_redirect_target(provider, params)
        except (MalformedStateError, MissingTokenError, PendingAuthorizationNotFoundError) as e:
            logger.warning("Could not recover redirect target for %s: %s", provider, e.message)
            redirect = None

        token = await self.complete_authorization(provider, params)
        return CallbackResult(token=token, redirect=redirect)

    async def _complete_oauth1(
        self,
        descriptor: ProviderDescriptor,
        credentials: Credentials,
        request_token: str,
        params: CallbackParams,
    ) -> AccessToken:
        # Taking the entry makes a concurrent second callback fail with NotFound
        pending = self.pending_store.take(request_token)
        try:
            return await self.oauth1.get_access_token(
                descriptor,
                credentials,
                request_token=request_token,
                request_token_secret=pending.token_secret,
                verifier=params.get("oauth_verifier"),
            )
        except Exception:
            self.pending_store.restore(request_token, pending)
            raise

    def _check_oauth1_callback(self, params: CallbackParams) -> str:
        denied = params.get("denied")
        if denied or params.get("oauth_token") == "denied":
            # Twitter-style providers send the refused request token as ?denied=
            if denied:
                self.pending_store.delete(denied)
            raise UserDeniedAuthorizationError()

        return self._require_oauth_token(params)

    def _check_oauth2_callback(self, params: CallbackParams) -> str:
        error = params.get("error")
        if error:
            message = params.get("error_description") or error
            if error == "access_denied":
                raise UserDeniedAuthorizationError(message)
            raise ProviderError(message, error_code=error)

        code = params.get("code")
        if not code:
            raise MissingTokenError("Authorization code not found", parameter="code")
        return code

    @staticmethod
    def _require_oauth_token(params: CallbackParams) -> str:
        token = params.get("oauth_token")
        if not token:
            raise MissingTokenError("OAuth token not found", parameter="oauth_token")
        return token
