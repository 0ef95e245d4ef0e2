"""CLI configuration with XDG-compliant paths and environment variable overrides."""

from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path

from oauth_handshake.auth import FileBackend, PendingAuthorizationStore
from oauth_handshake.auth.pending import get_data_dir
from oauth_handshake.config import OAuthConfig, get_config_dir
from oauth_handshake.providers import ProviderRegistry, default_registry


class OutputFormat(StrEnum):
    """Output format options."""

    TABLE = "table"
    JSON = "json"


@dataclass
class CLIConfig:
    """Configuration passed through Typer context.

    Attributes:
        session: Session id used to scope pending OAuth1 authorizations.
        verbose: Enable verbose output.
        config_dir: Directory holding config.json (provider credentials).
        data_dir: Directory holding pending.json (OAuth1 request-token secrets).
    """

    session: str = "cli"
    verbose: bool = False
    config_dir: Path = field(default_factory=get_config_dir)
    data_dir: Path = field(default_factory=get_data_dir)
    registry: ProviderRegistry = field(default_factory=default_registry)

    @property
    def config_path(self) -> Path:
        return self.config_dir / "config.json"

    @property
    def pending_path(self) -> Path:
        return self.data_dir / "pending.json"

    def load_config(self) -> OAuthConfig:
        """Load provider config from config.json with environment variable overrides.

        Raises:
            ConfigurationError: If no usable configuration can be found.
        """
        return OAuthConfig.load(self.registry.names(), path=self.config_path)

    def pending_store(self, ttl: int) -> PendingAuthorizationStore:
        """Pending store persisted on disk so login and callback can run separately."""
        return PendingAuthorizationStore(FileBackend(self.pending_path), self.session, ttl=ttl)
