"""CLI commands for flashchat."""

import asyncio
import sys

import click
from rich.console import Console
from rich.table import Table

from . import __version__
from .config import PROVIDERS, format_config_display, load_config, save_config, set_provider
from .logging_setup import setup_logging
from .store import JsonStore, StoreError

console = Console()


@click.group()
@click.version_option(version=__version__)
@click.option("-v", "--verbose", is_flag=True, help="Show debug logs")
def cli(verbose: bool) -> None:
    """FlashMath AI - chat with an assistant about your flashcards.

    Configure an LLM provider with 'flashchat config' first.
    """
    setup_logging(verbose)


@cli.command()
def chat() -> None:
    """Start interactive AI chat about your flashcards.

    The assistant can look up decks, due cards and review history, create
    cards, propose batches for confirmation and write into an open draft.
    """
    from .chat import run_chat
    run_chat()


@cli.command()
@click.option("-p", "--provider", type=click.Choice(PROVIDERS), help="LLM provider")
@click.option("-m", "--model", help="Model name")
@click.option("--base-url", help="Custom API base URL (empty string resets)")
@click.option("--max-rounds", type=click.IntRange(1, 20), help="Maximum tool rounds per turn")
def config(
    provider: str | None,
    model: str | None,
    base_url: str | None,
    max_rounds: int | None,
) -> None:
    """Show or change the LLM configuration.

    Without options, shows the current configuration. API keys are read
    from the environment (or a .env file), never stored.
    """
    cfg = load_config()
    changed = False

    if provider is not None:
        set_provider(cfg, provider, model)
        changed = True
    elif model is not None:
        cfg.model = model
        changed = True
    if base_url is not None:
        cfg.base_url = base_url
        changed = True
    if max_rounds is not None:
        cfg.max_tool_rounds = max_rounds
        changed = True

    if changed:
        save_config(cfg)
        console.print("[green]✓ Configuration saved[/green]")
    console.print(format_config_display(cfg))


@cli.command()
def collections() -> None:
    """List all collections with study stats."""
    store = JsonStore()

    async def load():
        rows = []
        for c in await store.list_collections():
            rows.append((c, await store.get_study_stats(c.id)))
        return rows

    try:
        rows = asyncio.run(load())
    except StoreError as e:
        console.print(f"[red]✗ Error: {e}[/red]")
        sys.exit(1)

    if not rows:
        console.print("[yellow]No collections found[/yellow]")
        console.print("[dim]Create one with 'flashchat add-collection <name>'.[/dim]")
        return

    table = Table(title="Your Collections")
    table.add_column("Collection", style="cyan")
    table.add_column("ID", style="dim")
    table.add_column("Cards", justify="right")
    table.add_column("Due", justify="right", style="bold")
    table.add_column("Reviewed today", justify="right", style="green")
    table.add_column("Accuracy", justify="right")

    for c, stats in rows:
        name = f"{c.emoji} {c.name}" if c.emoji else c.name
        table.add_row(
            name,
            c.id,
            str(stats.total_cards),
            str(stats.due_today),
            str(stats.reviewed_today),
            f"{round(stats.accuracy_today * 100)}%",
        )

    console.print(table)


@cli.command()
@click.argument("collection_id", required=False)
def due(collection_id: str | None) -> None:
    """List cards due for review, optionally for one collection."""
    store = JsonStore()
    try:
        records = asyncio.run(store.list_due_records(collection_id))
    except StoreError as e:
        console.print(f"[red]✗ Error: {e}[/red]")
        sys.exit(1)

    if not records:
        console.print("[green]Nothing due. Nice work![/green]")
        return

    table = Table(title=f"Due cards ({len(records)})")
    table.add_column("ID", style="dim")
    table.add_column("Question")
    table.add_column("Due", style="cyan")
    for r in records:
        question = "[image]" if r.has_image_question else r.question_content
        if len(question) > 60:
            question = question[:60] + "..."
        table.add_row(r.id, question, r.due_date or "new")

    console.print(table)


@cli.command("add-collection")
@click.argument("name")
@click.option("-e", "--emoji", help="Emoji shown next to the collection")
@click.option("-d", "--deadline", help="Exam deadline (YYYY-MM-DD)")
def add_collection(name: str, emoji: str | None, deadline: str | None) -> None:
    """Create a new collection."""
    try:
        collection = JsonStore().create_collection(name, emoji=emoji, deadline=deadline)
    except StoreError as e:
        console.print(f"[red]✗ Error: {e}[/red]")
        sys.exit(1)
    console.print(f"[green]✓ Collection '{collection.name}' created (ID: {collection.id})[/green]")


@cli.command()
@click.option("-n", "--count", default=10, show_default=True, help="Number of exchanges to show")
def history(count: int) -> None:
    """Show recent chat history."""
    from .chat_log import format_history_for_display
    console.print(format_history_for_display(count))


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
