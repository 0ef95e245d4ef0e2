"""Built-in provider endpoints."""

from functools import partial

from oauth_handshake.providers.registry import (
    DescriptorFactory,
    ProtocolVariant,
    ProviderDescriptor,
    ProviderRegistry,
)

OAUTH2_PROVIDERS: dict[str, dict[str, object]] = {
    "bitbucket": {
        "authorization_url": "https://bitbucket.org/site/oauth2/authorize",
        "token_url": "https://bitbucket.org/site/oauth2/access_token",
    },
    "box": {
        "authorization_url": "https://account.box.com/api/oauth2/authorize",
        "token_url": "https://api.box.com/oauth2/token",
    },
    "dropbox": {
        "authorization_url": "https://www.dropbox.com/oauth2/authorize",
        "token_url": "https://api.dropboxapi.com/oauth2/token",
    },
    "facebook": {
        "authorization_url": "https://www.facebook.com/dialog/oauth",
        "token_url": "https://graph.facebook.com/oauth/access_token",
        "scope_separator": ",",
    },
    "github": {
        "authorization_url": "https://github.com/login/oauth/authorize",
        "token_url": "https://github.com/login/oauth/access_token",
    },
    "google": {
        "authorization_url": "https://accounts.google.com/o/oauth2/v2/auth",
        "token_url": "https://oauth2.googleapis.com/token",
        "authorization_params": {"access_type": "online"},
    },
    "instagram": {
        "authorization_url": "https://api.instagram.com/oauth/authorize",
        "token_url": "https://api.instagram.com/oauth/access_token",
        "scope_separator": ",",
    },
    "linkedin": {
        "authorization_url": "https://www.linkedin.com/oauth/v2/authorization",
        "token_url": "https://www.linkedin.com/oauth/v2/accessToken",
    },
    "microsoft": {
        "authorization_url": "https://login.microsoftonline.com/common/oauth2/v2.0/authorize",
        "token_url": "https://login.microsoftonline.com/common/oauth2/v2.0/token",
    },
}

OAUTH1_PROVIDERS: dict[str, dict[str, object]] = {
    "etsy": {
        "request_token_url": "https://openapi.etsy.com/v2/oauth/request_token",
        "authorization_url": "https://www.etsy.com/oauth/signin",
        "token_url": "https://openapi.etsy.com/v2/oauth/access_token",
    },
    "flickr": {
        "request_token_url": "https://www.flickr.com/services/oauth/request_token",
        "authorization_url": "https://www.flickr.com/services/oauth/authorize",
        "token_url": "https://www.flickr.com/services/oauth/access_token",
    },
    "tumblr": {
        "request_token_url": "https://www.tumblr.com/oauth/request_token",
        "authorization_url": "https://www.tumblr.com/oauth/authorize",
        "token_url": "https://www.tumblr.com/oauth/access_token",
    },
    "twitter": {
        "request_token_url": "https://api.twitter.com/oauth/request_token",
        "authorization_url": "https://api.twitter.com/oauth/authenticate",
        "token_url": "https://api.twitter.com/oauth/access_token",
    },
    "xing": {
        "request_token_url": "https://api.xing.com/v1/request_token",
        "authorization_url": "https://api.xing.com/v1/authorize",
        "token_url": "https://api.xing.com/v1/access_token",
    },
}


def _factory(
    name: str, variant: ProtocolVariant, endpoints: dict[str, object]
) -> DescriptorFactory:
    return partial(
        ProviderDescriptor, name=name, variant=variant, **endpoints  # type: ignore[arg-type]
    )


def default_registry() -> ProviderRegistry:
    """Create a registry with all built-in providers."""
    registry = ProviderRegistry()
    for name, endpoints in OAUTH2_PROVIDERS.items():
        registry.register(name, _factory(name, ProtocolVariant.OAUTH2, endpoints))
    for name, endpoints in OAUTH1_PROVIDERS.items():
        registry.register(name, _factory(name, ProtocolVariant.OAUTH1, endpoints))
    return registry
