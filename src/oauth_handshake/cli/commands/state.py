"""State token commands."""

import json

import typer

from oauth_handshake.auth import StateCodec
from oauth_handshake.cli.formatters import console, print_error
from oauth_handshake.exceptions import MalformedStateError

app = typer.Typer(no_args_is_help=True)


@app.command("encode")
def encode(
    items: list[str] = typer.Argument(..., help="KEY=VALUE pairs, e.g. redirect=/dashboard."),
) -> None:
    """Encode KEY=VALUE pairs into a state token."""
    payload: dict[str, str] = {}
    for item in items:
        key, sep, value = item.partition("=")
        if not sep or not key:
            print_error(f"Expected KEY=VALUE, got {item!r}")
            raise typer.Exit(1)
        payload[key] = value

    console.print(StateCodec().encode(payload), soft_wrap=True)


@app.command("decode")
def decode(token: str = typer.Argument(..., help="State token to decode.")) -> None:
    """Decode a state token and print its payload as JSON."""
    try:
        payload = StateCodec().decode(token)
    except MalformedStateError as e:
        print_error(e.message)
        raise typer.Exit(1) from None

    console.print_json(json.dumps(payload))
