"""Provider registry and built-in provider endpoints."""

from oauth_handshake.providers.builtin import default_registry
from oauth_handshake.providers.registry import (
    DescriptorFactory,
    ProtocolVariant,
    ProviderDescriptor,
    ProviderRegistry,
)

__all__ = [
    "DescriptorFactory",
    "ProtocolVariant",
    "ProviderDescriptor",
    "ProviderRegistry",
    "default_registry",
]
