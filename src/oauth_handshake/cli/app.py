"""Main Typer application."""

import logging
from pathlib import Path

import typer

from oauth_handshake.auth.pending import get_data_dir
from oauth_handshake.cli.config import CLIConfig
from oauth_handshake.config import get_config_dir

# Create main app
app = typer.Typer(
    name="oauth-handshake",
    help="Run OAuth1/OAuth2 authorization handshakes from the command line.",
    no_args_is_help=True,
)


@app.callback()
def main(
    ctx: typer.Context,
    session: str = typer.Option(
        "cli",
        "--session",
        help="Session id used to scope pending OAuth1 authorizations.",
        envvar="OAUTH_HANDSHAKE_SESSION",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose output (debug logging).",
    ),
    config_dir: Path | None = typer.Option(
        None,
        "--config-dir",
        "-c",
        help="Config directory (default: ~/.config/oauth-handshake).",
        envvar="OAUTH_HANDSHAKE_CONFIG_DIR",
    ),
    data_dir: Path | None = typer.Option(
        None,
        "--data-dir",
        help="Data directory for pending authorizations (default: ~/.local/share/oauth-handshake).",
        envvar="OAUTH_HANDSHAKE_DATA_DIR",
    ),
) -> None:
    """Run OAuth1/OAuth2 authorization handshakes from the command line.

    Provider credentials are read from config.json in the config directory,
    with OAUTH_<PROVIDER>_CLIENT_ID / OAUTH_<PROVIDER>_CLIENT_SECRET overrides.
    """
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    ctx.obj = CLIConfig(
        session=session,
        verbose=verbose,
        config_dir=config_dir or get_config_dir(),
        data_dir=data_dir or get_data_dir(),
    )
