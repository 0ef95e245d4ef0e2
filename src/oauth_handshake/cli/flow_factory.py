"""Flow factory for CLI commands."""

from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from oauth_handshake.flow import AuthorizationFlow

if TYPE_CHECKING:
    from oauth_handshake.cli.config import CLIConfig


@asynccontextmanager
async def get_flow(config: CLIConfig) -> AsyncGenerator[AuthorizationFlow]:
    """Create an AuthorizationFlow for CLI use.

    This context manager:
    1. Loads provider credentials from config.json with env var overrides
    2. Uses a file-backed pending store under XDG_DATA_HOME
    3. Manages connection pooling lifecycle

    Usage:
        async with get_flow(cli_config) as flow:
            auth = await flow.begin_authorization("twitter")
    """
    oauth_config = config.load_config()
    store = config.pending_store(oauth_config.pending_ttl)

    async with AuthorizationFlow(config.registry, oauth_config, store) as flow:
        yield flow
