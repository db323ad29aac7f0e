"""Helpers shared by the CLI commands."""

from __future__ import annotations

import sys
from typing import NoReturn

import click
from rich.console import Console

from codesentry.api.client import ApiClient
from codesentry.api.token import TokenStore
from codesentry.config import CodeSentryConfig
from codesentry.scan.models import ScanStatus, Severity

console = Console(stderr=True)

SEVERITY_COLORS = {
    Severity.CRITICAL: "bold red",
    Severity.HIGH: "dark_orange",
    Severity.MEDIUM: "yellow",
    Severity.LOW: "green",
}

STATUS_BADGES = {
    ScanStatus.PENDING: ("pending", "dim"),
    ScanStatus.SCANNING: ("scanning", "yellow"),
    ScanStatus.COMPLETED: ("completed", "green"),
    ScanStatus.FAILED: ("failed", "red"),
}


def get_config(ctx: click.Context) -> CodeSentryConfig:
    return ctx.obj["config"]


def make_client(config: CodeSentryConfig, timeout: float | None = None) -> ApiClient:
    return ApiClient(
        config.api_base_url,
        token_store=TokenStore(config.token_path),
        timeout=timeout if timeout is not None else config.request_timeout,
    )


def status_badge(status: ScanStatus) -> str:
    text, color = STATUS_BADGES[status]
    return f"[{color}]{text}[/{color}]"


def score_color(score: int) -> str:
    if score >= 80:
        return "green"
    if score >= 60:
        return "yellow"
    if score >= 40:
        return "dark_orange"
    return "red"


def fail(message: object, code: int = 1) -> NoReturn:
    console.print(f"[red]Error:[/red] {message}")
    sys.exit(code)
