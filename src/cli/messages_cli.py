"""Typer CLI for authoring canned Facebook messages."""

import os

os.environ.setdefault("LOGFIRE_IGNORE_NO_CONFIG", "1")

from pathlib import Path

_project_root = Path(__file__).resolve().parent.parent.parent
from dotenv import load_dotenv

load_dotenv(_project_root / ".env")
load_dotenv(_project_root / ".env.local")

import questionary
import typer
from pydantic import ValidationError

from src.db.repository import (
    RepositoryError,
    create_facebook_message,
    get_facebook_message,
    list_facebook_messages,
)
from src.models.facebook_message_models import (
    FacebookMessage,
    FacebookMessageCreate,
    MessageCategory,
    QuickReply,
)

app = typer.Typer(help="Manage the bot's canned Facebook messages.")

CATEGORY_CHOICES = [category.label for category in MessageCategory]


def _format_message(message: FacebookMessage) -> str:
    lines = [
        f"#{message.id} {message.name} [{message.category.label}]",
        f"  {message.body}",
    ]
    for reply in message.quick_replies:
        lines.append(f"  quick reply: {reply.title} -> {reply.payload}")
    for button in message.buttons:
        lines.append(f"  button: {button.title} ({button.type})")
    return "\n".join(lines)


def _parse_category(value: str) -> MessageCategory:
    try:
        return MessageCategory.parse(value)
    except ValueError:
        typer.echo(
            f"✗ Unknown category {value!r}. Choose from: {', '.join(CATEGORY_CHOICES)}",
            err=True,
        )
        raise typer.Exit(1)


def _prompt_quick_replies() -> list[QuickReply]:
    """Ask for quick replies until the user declines to add another."""
    replies: list[QuickReply] = []
    while questionary.confirm("Add a quick reply?", default=False).ask():
        title = questionary.text("Quick reply title").ask()
        payload = questionary.text("Quick reply payload").ask()
        if not title or not payload:
            typer.echo("  Skipped: title and payload are both required.")
            continue
        replies.append(QuickReply(title=title, payload=payload))
    return replies


@app.command("list")
def list_messages(
    category: str = typer.Option(None, help="Only show this category"),
):
    """List canned messages."""
    selected = _parse_category(category) if category else None
    messages = list_facebook_messages(selected)
    if not messages:
        typer.echo("No canned messages found.")
        return
    for message in messages:
        typer.echo(_format_message(message))


@app.command()
def show(category: str = typer.Argument(..., help="Message category")):
    """Show the message the bot would use for a category."""
    message = get_facebook_message(_parse_category(category))
    if message is None:
        typer.echo(f"No {category} message has been authored.")
        raise typer.Exit(1)
    typer.echo(_format_message(message))


@app.command()
def add(
    name: str = typer.Option(None, help="Human-readable label"),
    category: str = typer.Option(None, help="Message category"),
    body: str = typer.Option(None, help="Message text"),
):
    """Author a new canned message (prompts for anything not given)."""
    if name is None:
        name = questionary.text("Name").ask()
    if category is None:
        category = questionary.select("Category", choices=CATEGORY_CHOICES).ask()
    if body is None:
        body = questionary.text("Body").ask()
    if name is None or category is None or body is None:
        raise typer.Exit(0)

    selected = _parse_category(category)
    quick_replies = _prompt_quick_replies()

    try:
        draft = FacebookMessageCreate(
            name=name,
            category=selected,
            body=body,
            quick_replies=quick_replies,
        )
    except ValidationError as e:
        for error in e.errors():
            field = ".".join(str(part) for part in error["loc"])
            typer.echo(f"✗ {field}: {error['msg']}", err=True)
        raise typer.Exit(1)

    try:
        created = create_facebook_message(draft)
    except RepositoryError as e:
        typer.echo(f"✗ {e}", err=True)
        raise typer.Exit(1)

    typer.echo("✓ Message stored")
    typer.echo(_format_message(created))


if __name__ == "__main__":
    app()
