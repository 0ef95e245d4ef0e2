"""Authorization commands."""

import webbrowser
from urllib.parse import parse_qsl, urlsplit

import typer

from oauth_handshake.cli.async_runner import async_command
from oauth_handshake.cli.config import CLIConfig, OutputFormat
from oauth_handshake.cli.flow_factory import get_flow
from oauth_handshake.cli.formatters import console, format_output, print_info, print_success

app = typer.Typer(no_args_is_help=True)


@app.command("login")
@async_command
async def login(
    ctx: typer.Context,
    provider: str = typer.Argument(..., help="Provider name, e.g. github or twitter."),
    redirect: str | None = typer.Option(
        None,
        "--redirect",
        "-r",
        help="Post-login redirect target to carry through the round trip.",
    ),
    no_browser: bool = typer.Option(
        False,
        "--no-browser",
        help="Don't open browser automatically.",
    ),
) -> None:
    """Start an authorization flow and print the provider URL.

    For OAuth1 providers the request-token secret is kept in the data
    directory until 'oauth-handshake auth callback' consumes it.
    """
    config: CLIConfig = ctx.obj

    print_info(f"Starting authorization with {provider}...")
    async with get_flow(config) as flow:
        auth = await flow.begin_authorization(provider, redirect)

    if no_browser:
        console.print("\nOpen this URL in your browser:")
    else:
        print_info("Opening browser for authorization...")
        webbrowser.open(auth.url)
        console.print("\n[dim]If browser didn't open, visit:[/dim]")
    console.print(f"[link]{auth.url}[/link]", soft_wrap=True)

    console.print()
    print_info(
        f"After authorizing, run: oauth-handshake auth callback {auth.provider} '<callback url>'"
    )


@app.command("callback")
@async_command
async def callback(
    ctx: typer.Context,
    provider: str = typer.Argument(..., help="Provider name."),
    callback_url: str = typer.Argument(..., help="Full callback URL the provider redirected to."),
    output: OutputFormat = typer.Option(
        OutputFormat.JSON,
        "--format",
        "-f",
        help="Output format.",
    ),
) -> None:
    """Finish an authorization flow from the provider's callback URL."""
    config: CLIConfig = ctx.obj

    params = dict(parse_qsl(urlsplit(callback_url).query, keep_blank_values=True))

    print_info("Exchanging callback for access token...")
    async with get_flow(config) as flow:
        result = await flow.finish_authorization(provider, params)

    print_success(f"Authorized with {result.token.provider}")
    if result.redirect:
        print_info(f"Redirect target: {result.redirect}")

    format_output(
        result.token,
        output,
        title="Access Token",
        columns=["provider", "variant", "access_token", "token_type", "scope", "expires_at"],
    )
