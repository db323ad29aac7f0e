"""CLI commands: scan, report, recheck — security scans of generated code."""

from __future__ import annotations

import asyncio
import signal
import sys

import click
from rich.table import Table

from codesentry.api.security import CodeSecurityApi
from codesentry.cli.common import (
    SEVERITY_COLORS,
    console,
    fail,
    get_config,
    make_client,
    score_color,
    status_badge,
)
from codesentry.config import CodeSentryConfig
from codesentry.errors import CodeSentryError
from codesentry.scan.models import (
    Outcome,
    ScanStatus,
    Severity,
    SubmissionOutcome,
    TerminalOutcome,
    TickEvent,
    VulnerabilityReport,
)
from codesentry.scan.tracker import ScanTracker
from codesentry.storage.db import get_db
from codesentry.storage.repos import ReportRepo, ScanJobRepo

EXIT_FAILED = 1
EXIT_TIMED_OUT = 2
EXIT_CANCELLED = 130


@click.command()
@click.argument("code_id")
@click.option("--no-wait", is_flag=True, help="Submit the scan and return immediately.")
@click.option(
    "--max-attempts",
    type=click.IntRange(min=1),
    default=None,
    help="Status checks before giving up (default: 10).",
)
@click.option(
    "--interval",
    type=click.FloatRange(min=0, min_open=True),
    default=None,
    help="Seconds between status checks (default: 3).",
)
@click.pass_context
def scan(
    ctx: click.Context,
    code_id: str,
    no_wait: bool,
    max_attempts: int | None,
    interval: float | None,
) -> None:
    """Start a security scan of CODE_ID and wait for the report."""
    config = get_config(ctx)
    if max_attempts is not None:
        config.max_attempts = max_attempts
    if interval is not None:
        config.poll_interval = interval
        config.clamp_status_timeout()

    console.print(
        f"[bold]CodeSentry[/bold] scanning [cyan]{code_id}[/cyan] "
        f"(up to {config.max_attempts} checks every {config.poll_interval:g}s)\n"
    )

    try:
        submission, outcome = asyncio.run(_scan(config, code_id, wait=not no_wait))
    except CodeSentryError as exc:
        fail(exc)

    if submission.enhanced is not None:
        _print_enhanced(submission)
    if outcome is None:
        console.print(f"Scan submitted. Check later with: codesentry recheck {code_id}")
        return
    _finish(outcome)


@click.command()
@click.argument("code_id")
@click.option("--offline", is_flag=True, help="Read the locally saved report only.")
@click.pass_context
def report(ctx: click.Context, code_id: str, offline: bool) -> None:
    """Show the vulnerability report of CODE_ID."""
    config = get_config(ctx)

    if offline:
        result = asyncio.run(_load_report(config, code_id))
        if result is None:
            fail(f"No saved report for {code_id}")
    else:
        with make_client(config) as client:
            try:
                result = CodeSecurityApi(client).get_scan_result(code_id)
            except CodeSentryError as exc:
                fail(exc)
        asyncio.run(_save_report(config, code_id, result))

    print_report(result)


@click.command()
@click.argument("code_ids", nargs=-1)
@click.pass_context
def recheck(ctx: click.Context, code_ids: tuple[str, ...]) -> None:
    """Poll scans that timed out earlier (or the given CODE_IDS) again."""
    config = get_config(ctx)

    try:
        outcomes = asyncio.run(_recheck(config, list(code_ids)))
    except CodeSentryError as exc:
        fail(exc)

    if not outcomes:
        console.print("[green]No unfinished scans.[/green]")
        return

    table = Table(title="Recheck", show_lines=False)
    table.add_column("Code", style="cyan")
    table.add_column("Outcome")
    table.add_column("Checks", justify="right")
    table.add_column("Score", justify="right")
    for outcome in outcomes:
        score = ""
        if outcome.report is not None:
            color = score_color(outcome.report.security_score)
            score = f"[{color}]{outcome.report.security_score}[/{color}]"
        table.add_row(
            outcome.code_id,
            _OUTCOME_LABELS[outcome.outcome],
            str(outcome.attempts),
            score,
        )
    console.print(table)


_OUTCOME_LABELS = {
    Outcome.COMPLETED: "[green]completed[/green]",
    Outcome.FAILED: "[red]failed[/red]",
    Outcome.TIMED_OUT: "[yellow]still running[/yellow]",
    Outcome.CANCELLED: "[dim]cancelled[/dim]",
}


def print_report(result: VulnerabilityReport) -> None:
    color = score_color(result.security_score)
    overview = Table(show_header=False, box=None, padding=(0, 2))
    overview.add_column(style="dim")
    overview.add_column()
    overview.add_row("Security score", f"[{color}]{result.security_score}/100[/{color}]")
    overview.add_row("Findings", str(len(result.vulnerabilities)))
    overview.add_row("Scanned at", result.scan_time)
    console.print(overview)

    if result.summary:
        console.print(f"\n{result.summary}\n")

    if not result.vulnerabilities:
        console.print("[green]No vulnerabilities found.[/green]")
        return

    # Server order is kept; it is not re-sorted by severity.
    table = Table(title="Vulnerabilities", show_lines=True)
    table.add_column("Severity", style="bold", width=10)
    table.add_column("Type")
    table.add_column("Line", justify="right")
    table.add_column("Description")
    table.add_column("Suggestion")
    for vuln in result.vulnerabilities:
        sev_color = SEVERITY_COLORS[vuln.severity]
        table.add_row(
            f"[{sev_color}]{vuln.severity.value}[/{sev_color}]",
            vuln.type,
            str(vuln.line),
            vuln.description + (f"\n[dim]{vuln.code_snippet}[/dim]" if vuln.code_snippet else ""),
            vuln.suggestion,
        )
    console.print(table)


async def _scan(
    config: CodeSentryConfig,
    code_id: str,
    wait: bool,
) -> tuple[SubmissionOutcome, TerminalOutcome | None]:
    db = await get_db(config.db_path)
    client = make_client(config)
    try:
        tracker = ScanTracker(
            CodeSecurityApi(client, status_timeout=config.status_timeout),
            db,
            max_attempts=config.max_attempts,
            poll_interval=config.poll_interval,
            on_status=_print_status,
            on_tick=_print_tick,
        )
        submission = await tracker.submit(code_id)
        if not wait:
            return submission, None

        loop = asyncio.get_running_loop()
        loop.add_signal_handler(signal.SIGINT, tracker.cancel)
        try:
            outcome = await tracker.poll(code_id)
        finally:
            loop.remove_signal_handler(signal.SIGINT)
        return submission, outcome
    finally:
        client.close()
        await db.close()


async def _recheck(config: CodeSentryConfig, code_ids: list[str]) -> list[TerminalOutcome]:
    db = await get_db(config.db_path)
    client = make_client(config)
    try:
        if not code_ids:
            code_ids = [row["code_id"] for row in await ScanJobRepo(db).list_unfinished()]

        security = CodeSecurityApi(client, status_timeout=config.status_timeout)
        outcomes = []
        for code_id in code_ids:
            console.print(f"Rechecking [cyan]{code_id}[/cyan]")
            tracker = ScanTracker(
                security,
                db,
                max_attempts=config.max_attempts,
                poll_interval=config.poll_interval,
                on_tick=_print_tick,
            )
            outcomes.append(await tracker.poll(code_id))
        return outcomes
    finally:
        client.close()
        await db.close()


async def _load_report(config: CodeSentryConfig, code_id: str) -> VulnerabilityReport | None:
    db = await get_db(config.db_path)
    try:
        return await ReportRepo(db).get(code_id)
    finally:
        await db.close()


async def _save_report(
    config: CodeSentryConfig, code_id: str, result: VulnerabilityReport
) -> None:
    db = await get_db(config.db_path)
    try:
        await ReportRepo(db).save(code_id, result)
    finally:
        await db.close()


def _print_status(code_id: str, status: ScanStatus) -> None:
    console.print(f"  [dim]{code_id}[/dim] → {status_badge(status)}")


def _print_tick(event: TickEvent) -> None:
    if event.error:
        console.print(f"  [dim]check {event.attempt}: [yellow]unreachable[/yellow] ({event.error})[/dim]")
    else:
        console.print(f"  [dim]check {event.attempt}: {event.status.value.lower()}[/dim]")


def _print_enhanced(submission: SubmissionOutcome) -> None:
    enhanced = submission.enhanced
    console.print("[bold]Knowledge-graph context[/bold]")
    for query in enhanced.queries:
        console.print(f"  [dim]query:[/dim] {query}")
    console.print(f"  {len(enhanced.retrieved_nodes)} related node(s) retrieved\n")


def _finish(outcome: TerminalOutcome) -> None:
    if outcome.outcome == Outcome.COMPLETED:
        console.print()
        if outcome.report is None:
            console.print("[green]Scan completed.[/green]")
            return
        print_report(outcome.report)
        critical = outcome.report.severity_counts()[Severity.CRITICAL]
        if critical > 0:
            console.print(f"\n[red]{critical} critical finding(s)[/red]")
            sys.exit(EXIT_FAILED)
    elif outcome.outcome == Outcome.FAILED:
        console.print("\n[red]Scan failed on the server.[/red]")
        sys.exit(EXIT_FAILED)
    elif outcome.outcome == Outcome.TIMED_OUT:
        console.print(
            f"\n[yellow]No result after {outcome.attempts} checks — the scan may "
            f"still be running.[/yellow] Check back later with: "
            f"codesentry recheck {outcome.code_id}"
        )
        sys.exit(EXIT_TIMED_OUT)
    else:
        console.print("\n[dim]Stopped waiting.[/dim]")
        sys.exit(EXIT_CANCELLED)
