"""CLI entry point — Click group with global options."""

from __future__ import annotations

import logging

import click

from codesentry import __version__
from codesentry.cli.common import fail
from codesentry.config import CodeSentryConfig


@click.group()
@click.version_option(version=__version__, prog_name="codesentry")
@click.option("--api-url", envvar="CODESENTRY_API_URL", help="Base URL of the API.")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.pass_context
def main(ctx: click.Context, api_url: str | None, verbose: bool) -> None:
    """CodeSentry — generate code with AI and scan it for vulnerabilities."""
    ctx.ensure_object(dict)

    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )

    try:
        config = CodeSentryConfig.load()
    except ValueError as exc:
        fail(f"Invalid configuration: {exc}")
    if api_url:
        config.api_base_url = api_url
    config.verbose = verbose
    ctx.obj["config"] = config


def _register_commands() -> None:
    from codesentry.cli.auth import login, logout, refresh, register  # noqa: F811
    from codesentry.cli.chat import chat  # noqa: F811
    from codesentry.cli.codes import codes, dashboard  # noqa: F811
    from codesentry.cli.generate import generate, models  # noqa: F811
    from codesentry.cli.scan import recheck, report, scan  # noqa: F811
    from codesentry.cli.server import server  # noqa: F811

    main.add_command(login)
    main.add_command(register)
    main.add_command(logout)
    main.add_command(refresh)
    main.add_command(generate)
    main.add_command(models)
    main.add_command(codes)
    main.add_command(dashboard)
    main.add_command(scan)
    main.add_command(report)
    main.add_command(recheck)
    main.add_command(chat)
    main.add_command(server)


_register_commands()
