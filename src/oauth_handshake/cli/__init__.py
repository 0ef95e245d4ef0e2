"""oauth-handshake CLI - run authorization handshakes from the command line."""

from oauth_handshake.cli.app import app

# Import command modules to register them with the app
from oauth_handshake.cli.commands import auth, providers, state

# Register sub-apps
app.add_typer(auth.app, name="auth", help="Authorization flow commands.")
app.add_typer(providers.app, name="providers", help="Supported providers.")
app.add_typer(state.app, name="state", help="Encode and decode state tokens.")


def main() -> None:
    """Entry point for the CLI."""
    app()


__all__ = ["app", "main"]
