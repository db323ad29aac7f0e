"""CLI commands: login, register, logout, refresh."""

from __future__ import annotations

import click

from codesentry.api.auth import AuthApi
from codesentry.cli.common import console, fail, get_config, make_client
from codesentry.errors import CodeSentryError


@click.command()
@click.option("--account", "-a", prompt=True, help="Account name.")
@click.option("--password", prompt=True, hide_input=True, help="Account password.")
@click.pass_context
def login(ctx: click.Context, account: str, password: str) -> None:
    """Log in and store the session token."""
    config = get_config(ctx)
    with make_client(config) as client:
        try:
            AuthApi(client).login(account, password)
        except CodeSentryError as exc:
            fail(exc)
    console.print(f"[green]Logged in as[/green] [cyan]{account}[/cyan]")


@click.command()
@click.option("--account", "-a", prompt=True, help="Account name.")
@click.option("--name", "-n", prompt=True, help="Display name.")
@click.option(
    "--password",
    prompt=True,
    hide_input=True,
    confirmation_prompt=True,
    help="Account password.",
)
@click.pass_context
def register(ctx: click.Context, account: str, name: str, password: str) -> None:
    """Create a new account."""
    config = get_config(ctx)
    with make_client(config) as client:
        try:
            AuthApi(client).register(account, password, name)
        except CodeSentryError as exc:
            fail(exc)
    console.print("[green]Account created.[/green] Log in with `codesentry login`.")


@click.command()
@click.pass_context
def logout(ctx: click.Context) -> None:
    """End the session and forget the stored token."""
    config = get_config(ctx)
    with make_client(config) as client:
        try:
            AuthApi(client).logout()
        except CodeSentryError as exc:
            console.print(f"[yellow]Server logout failed:[/yellow] {exc}")
    console.print("Logged out.")


@click.command()
@click.pass_context
def refresh(ctx: click.Context) -> None:
    """Exchange the stored token for a fresh one."""
    config = get_config(ctx)
    with make_client(config) as client:
        try:
            AuthApi(client).refresh_token()
        except CodeSentryError as exc:
            fail(exc)
    console.print("[green]Token refreshed.[/green]")
