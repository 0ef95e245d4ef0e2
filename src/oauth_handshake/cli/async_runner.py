"""Async command support for Typer."""

import asyncio
from collections.abc import Callable, Coroutine
from functools import wraps
from typing import Any, TypeVar

import typer

from oauth_handshake.exceptions import OAuthHandshakeError

T = TypeVar("T")


def async_command(f: Callable[..., Coroutine[Any, Any, T]]) -> Callable[..., T]:
    """Decorator to run async Typer commands.

    Library errors are printed and turned into exit code 1.

    Usage:
        @app.command()
        @async_command
        async def my_command(ctx: typer.Context):
            async with get_flow(ctx.obj) as flow:
                ...
    """

    @wraps(f)
    def wrapper(*args: Any, **kwargs: Any) -> T:
        try:
            return asyncio.run(f(*args, **kwargs))
        except OAuthHandshakeError as e:
            from oauth_handshake.cli.formatters import print_error

            print_error(e.message)
            raise typer.Exit(1) from None

    return wrapper
