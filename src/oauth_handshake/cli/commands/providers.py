"""Provider listing commands."""

import typer

from oauth_handshake.cli.config import CLIConfig, OutputFormat
from oauth_handshake.cli.formatters import format_output
from oauth_handshake.exceptions import ConfigurationError

app = typer.Typer(no_args_is_help=True)


@app.command("list")
def list_providers(
    ctx: typer.Context,
    output: OutputFormat = typer.Option(
        OutputFormat.TABLE,
        "--format",
        "-f",
        help="Output format.",
    ),
) -> None:
    """List supported providers and whether credentials are configured."""
    config: CLIConfig = ctx.obj

    try:
        oauth_config = config.load_config()
    except ConfigurationError:
        oauth_config = None

    rows = [
        {
            "name": descriptor.name,
            "variant": str(descriptor.variant),
            "configured": oauth_config is not None and oauth_config.is_configured(descriptor.name),
            "authorization_url": descriptor.authorization_url,
        }
        for descriptor in config.registry
    ]

    format_output(rows, output, title="OAuth Providers")
