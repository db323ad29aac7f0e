"""CLI command: chat — interactive conversation with a model."""

from __future__ import annotations

import click

from codesentry.api.conversation import ConversationApi
from codesentry.cli.common import console, fail, get_config, make_client
from codesentry.conversation.session import ChatSession
from codesentry.errors import CodeSentryError

_EXIT_WORDS = {"/exit", "/quit"}


@click.command()
@click.option(
    "--model",
    "-m",
    type=click.Choice(["claude", "deepseek", "openai"]),
    default=None,
    help="Model to talk to (server default if omitted).",
)
@click.option(
    "--user-id",
    type=int,
    default=None,
    help="Your user id; needed to close the conversation on the server.",
)
@click.pass_context
def chat(ctx: click.Context, model: str | None, user_id: int | None) -> None:
    """Chat with an AI model. Type /exit to end the conversation."""
    config = get_config(ctx)
    user_id = user_id if user_id is not None else config.user_id

    with make_client(config) as client:
        session = ChatSession(ConversationApi(client), user_id=user_id)
        try:
            conversation = session.start(model)
        except CodeSentryError as exc:
            fail(exc)

        console.print(
            f"[bold]Conversation[/bold] [cyan]{conversation.id}[/cyan] "
            f"with [cyan]{conversation.model_type}[/cyan] — /exit to end\n"
        )

        try:
            while True:
                text = click.prompt("you", prompt_suffix="> ").strip()
                if not text:
                    continue
                if text in _EXIT_WORDS:
                    break
                try:
                    with console.status("Thinking..."):
                        reply = session.send(text)
                except CodeSentryError as exc:
                    console.print(f"[red]Message not sent:[/red] {exc}")
                    continue
                console.print(f"[bold magenta]{conversation.model_type}[/bold magenta]> {reply}\n")
        except (click.Abort, EOFError):
            console.print()
        finally:
            try:
                session.end()
            except CodeSentryError as exc:
                console.print(f"[yellow]Could not close conversation:[/yellow] {exc}")

    console.print("[dim]Conversation ended.[/dim]")
