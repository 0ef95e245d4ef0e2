"""Registry mapping provider names to OAuth1/OAuth2 descriptors."""

from collections.abc import Callable, Iterator, Mapping
from dataclasses import dataclass, field
from enum import StrEnum

from oauth_handshake.exceptions import UnsupportedProviderError


class ProtocolVariant(StrEnum):
    """OAuth protocol generation spoken by a provider."""

    OAUTH1 = "oauth1"
    OAUTH2 = "oauth2"


@dataclass(frozen=True, slots=True)
class ProviderDescriptor:
    """Wire-level endpoints needed to drive one provider's handshake.

    Attributes:
        name: Registry name (lowercase).
        variant: OAuth1 or OAuth2.
        authorization_url: Where the end user is sent to grant access.
        token_url: Access-token endpoint (OAuth1 access_token / OAuth2 token).
        request_token_url: OAuth1 temporary-credentials endpoint.
        signature_method: OAuth1 signature method.
        scope_separator: Separator used when joining OAuth2 scopes.
        authorization_params: Extra fixed query parameters for the authorization URL.
    """

    name: str
    variant: ProtocolVariant
    authorization_url: str
    token_url: str
    request_token_url: str | None = None
    signature_method: str = "HMAC-SHA1"
    scope_separator: str = " "
    authorization_params: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.variant == ProtocolVariant.OAUTH1 and not self.request_token_url:
            msg = f"OAuth1 provider '{self.name}' requires a request_token_url"
            raise ValueError(msg)

    @property
    def is_oauth1(self) -> bool:
        return self.variant == ProtocolVariant.OAUTH1

    @property
    def is_oauth2(self) -> bool:
        return self.variant == ProtocolVariant.OAUTH2


DescriptorFactory = Callable[[], ProviderDescriptor]


class ProviderRegistry:
    """Explicit set of supported providers.

    Factories are called on every ``resolve`` so each authorization attempt
    gets its own descriptor.
    """

    def __init__(self, factories: Mapping[str, DescriptorFactory] | None = None) -> None:
        self._factories: dict[str, DescriptorFactory] = {}
        for name, factory in (factories or {}).items():
            self.register(name, factory)

    def register(self, name: str, factory: DescriptorFactory) -> None:
        """Register (or replace) a provider."""
        self._factories[name.lower()] = factory

    def unregister(self, name: str) -> None:
        self._factories.pop(name.lower(), None)

    def resolve(self, name: str) -> ProviderDescriptor:
        """Get the descriptor for a provider.

        Raises:
            UnsupportedProviderError: If the provider is not registered.
        """
        factory = self._factories.get(name.lower())
        if factory is None:
            raise UnsupportedProviderError(
                f"{name} is not a supported OAuth1 or OAuth2 service provider",
                provider=name,
            )
        return factory()

    def variant(self, name: str) -> ProtocolVariant:
        return self.resolve(name).variant

    def is_oauth1(self, name: str) -> bool:
        return name in self and self.resolve(name).is_oauth1

    def is_oauth2(self, name: str) -> bool:
        return name in self and self.resolve(name).is_oauth2

    def names(self) -> list[str]:
        """Sorted names of all registered providers."""
        return sorted(self._factories)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.lower() in self._factories

    def __iter__(self) -> Iterator[ProviderDescriptor]:
        for name in self.names():
            yield self.resolve(name)

    def __len__(self) -> int:
        return len(self._factories)
