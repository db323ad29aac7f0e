"""CLI commands: codes list/show/delete, dashboard."""

from __future__ import annotations

import asyncio

import click
from rich.syntax import Syntax
from rich.table import Table

from codesentry.api.codegen import GeneratedCodeApi
from codesentry.cli.common import (
    console,
    fail,
    get_config,
    make_client,
    status_badge,
)
from codesentry.config import CodeSentryConfig
from codesentry.errors import CodeSentryError
from codesentry.scan.models import ScanStatus, Severity
from codesentry.storage.db import get_db
from codesentry.storage.repos import ReportRepo


@click.group()
def codes() -> None:
    """Browse generated code documents."""


@codes.command("list")
@click.option("--limit", type=int, default=None, help="Show at most N documents.")
@click.pass_context
def list_codes(ctx: click.Context, limit: int | None) -> None:
    """List generated code documents with their scan status."""
    config = get_config(ctx)
    with make_client(config) as client:
        try:
            documents = GeneratedCodeApi(client).list_codes()
        except CodeSentryError as exc:
            fail(exc)

    if not documents:
        console.print("[dim]No generated code yet.[/dim]")
        return

    table = Table(title="Generated code", show_lines=False)
    table.add_column("ID", style="cyan")
    table.add_column("Language")
    table.add_column("Model")
    table.add_column("Created")
    table.add_column("Scan")
    table.add_column("Prompt", max_width=40)

    for doc in documents[:limit] if limit else documents:
        table.add_row(
            doc.id,
            doc.language,
            doc.ai_model,
            doc.created_at,
            status_badge(doc.scan_status),
            doc.prompt[:40],
        )
    console.print(table)


@codes.command("show")
@click.argument("code_id")
@click.pass_context
def show_code(ctx: click.Context, code_id: str) -> None:
    """Show a generated code document."""
    config = get_config(ctx)
    with make_client(config) as client:
        try:
            doc = GeneratedCodeApi(client).get_code(code_id)
        except CodeSentryError as exc:
            fail(exc)

    details = Table(show_header=False, box=None, padding=(0, 2))
    details.add_column(style="dim")
    details.add_column()
    details.add_row("ID", doc.id)
    details.add_row("Language", doc.language)
    details.add_row("Model", doc.ai_model)
    details.add_row("Created", doc.created_at)
    details.add_row("Scan", status_badge(doc.scan_status))
    details.add_row("Prompt", doc.prompt)
    console.print(details)
    console.print(Syntax(doc.content, doc.language or "text", line_numbers=True))

    if doc.scan_status == ScanStatus.COMPLETED:
        console.print(f"\nView the report with: codesentry report {doc.id}")
    elif doc.scan_status != ScanStatus.SCANNING:
        console.print(f"\nStart a scan with: codesentry scan {doc.id}")


@codes.command("delete")
@click.argument("code_id")
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation.")
@click.pass_context
def delete_code(ctx: click.Context, code_id: str, yes: bool) -> None:
    """Delete a generated code document."""
    if not yes:
        click.confirm(f"Delete {code_id}?", abort=True)

    config = get_config(ctx)
    with make_client(config) as client:
        try:
            GeneratedCodeApi(client).delete_code(code_id)
        except CodeSentryError as exc:
            fail(exc)
    console.print(f"Deleted [cyan]{code_id}[/cyan]")


@click.command()
@click.pass_context
def dashboard(ctx: click.Context) -> None:
    """Summary of generated code and scan results."""
    config = get_config(ctx)
    with make_client(config) as client:
        try:
            documents = GeneratedCodeApi(client).list_codes()
        except CodeSentryError as exc:
            fail(exc)

    completed = [d for d in documents if d.scan_status == ScanStatus.COMPLETED]
    critical = asyncio.run(_count_critical(config, [d.id for d in completed]))

    stats = Table(show_header=False, box=None, padding=(0, 2))
    stats.add_column(style="dim")
    stats.add_column(justify="right")
    stats.add_row("Generated code", str(len(documents)))
    stats.add_row("Completed scans", str(len(completed)))
    stats.add_row("Critical findings (local reports)", str(critical))
    console.print("[bold]Dashboard[/bold]")
    console.print(stats)

    if documents:
        recent = Table(title="Recent", show_lines=False)
        recent.add_column("ID", style="cyan")
        recent.add_column("Language")
        recent.add_column("Created")
        recent.add_column("Scan")
        for doc in documents[:5]:
            recent.add_row(
                doc.id, doc.language, doc.created_at, status_badge(doc.scan_status)
            )
        console.print(recent)


async def _count_critical(config: CodeSentryConfig, code_ids: list[str]) -> int:
    db = await get_db(config.db_path)
    try:
        repo = ReportRepo(db)
        total = 0
        for code_id in code_ids:
            report = await repo.get(code_id)
            if report is not None:
                total += report.severity_counts()[Severity.CRITICAL]
        return total
    finally:
        await db.close()
