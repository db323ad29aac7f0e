"""CLI commands: generate, models — AI code generation."""

from __future__ import annotations

import click
from rich.syntax import Syntax

from codesentry.api.codegen import CodeGenApi
from codesentry.cli.common import console, fail, get_config, make_client
from codesentry.errors import CodeSentryError


@click.command()
@click.argument("prompt")
@click.option("--language", "-l", required=True, help="Target programming language.")
@click.option("--model", "-m", default=None, help="Model to generate with.")
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False, writable=True),
    default=None,
    help="Also write the generated code to this file.",
)
@click.pass_context
def generate(
    ctx: click.Context,
    prompt: str,
    language: str,
    model: str | None,
    output: str | None,
) -> None:
    """Generate code from a natural-language PROMPT."""
    config = get_config(ctx)
    with make_client(config) as client:
        try:
            with console.status("Generating..."):
                result = CodeGenApi(client).generate_code(prompt, language, model_type=model)
        except CodeSentryError as exc:
            fail(exc)

    console.print(
        f"[bold]Code[/bold] [cyan]{result.code_id}[/cyan] "
        f"({result.language}, {result.model_used or 'default model'})\n"
    )
    console.print(Syntax(result.content, result.language or "text", line_numbers=True))

    if output:
        with open(output, "w", encoding="utf-8") as fh:
            fh.write(result.content)
        console.print(f"\nWritten to [cyan]{output}[/cyan]")
    console.print(f"\nScan it with: codesentry scan {result.code_id}")


@click.command()
@click.pass_context
def models(ctx: click.Context) -> None:
    """List the models the generator supports."""
    config = get_config(ctx)
    with make_client(config) as client:
        try:
            names = CodeGenApi(client).supported_models()
        except CodeSentryError as exc:
            fail(exc)

    for name in names:
        click.echo(name)
