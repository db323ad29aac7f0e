"""CLI command: codesentry server — start the local scan dashboard."""

from __future__ import annotations

import click

from codesentry.cli.common import console, get_config


@click.command()
@click.option(
    "--port",
    type=int,
    default=None,
    help="Port to listen on (default: 8471).",
)
@click.pass_context
def server(ctx: click.Context, port: int | None) -> None:
    """Start the local scan dashboard API."""
    try:
        import uvicorn
    except ImportError:
        console.print(
            "[red]Web dependencies not installed.[/red]\n"
            "Install with: pip install codesentry[web]"
        )
        raise SystemExit(1)

    config = get_config(ctx)
    if port is not None:
        config.web_port = port

    console.print(
        f"[bold]CodeSentry[/bold] dashboard starting on "
        f"[cyan]http://{config.web_host}:{config.web_port}[/cyan]"
    )
    console.print("  [dim]Bound to 127.0.0.1 only[/dim]\n")

    import asyncio

    from codesentry.web.app import create_app

    async def _run() -> None:
        app = await create_app(config)
        server_config = uvicorn.Config(
            app,
            host=config.web_host,
            port=config.web_port,
            log_level="info",
        )
        srv = uvicorn.Server(server_config)
        await srv.serve()

    asyncio.run(_run())
