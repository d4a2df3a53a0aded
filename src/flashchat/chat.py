"""Terminal chat UI for the study assistant."""

import asyncio
import sys

from prompt_toolkit import PromptSession
from prompt_toolkit.history import FileHistory
from prompt_toolkit.styles import Style
from rich import box
from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .assistant import SessionBusyError, StudyAssistant
from .chat_log import clear_log, format_history_for_display
from .config import load_config
from .conversation_store import get_conversation_age
from .editor_bridge import DraftEditor, EditorContext
from .models import Collection, ProposedRecord, RecordInput
from .paths import DATA_DIR, HISTORY_FILE
from .store import StoreError
from .tools import tool_label
from .transport import TransportError

# Style for prompt_toolkit
PROMPT_STYLE = Style.from_dict({
    "prompt": "cyan bold",
})

CONFIG_HINT = "Make sure your LLM provider is configured ([cyan]flashchat config[/cyan])."


def proposals_table(records: list[ProposedRecord]) -> Table:
    """Table of proposed cards awaiting confirmation."""
    table = Table(title="Proposed flashcards", box=box.ROUNDED, show_lines=True)
    table.add_column("#", style="cyan", justify="right")
    table.add_column("Question")
    table.add_column("Answer", style="dim")
    for i, record in enumerate(records, 1):
        table.add_row(str(i), record.question, record.answer or "-")
    return table


def draft_panel(draft: DraftEditor, context: EditorContext | None) -> Panel:
    """Panel showing the card currently open in the editor."""
    body = Text()
    body.append("Question\n", style="bold")
    body.append((draft.question or "(empty)") + "\n\n")
    body.append("Answer\n", style="bold")
    body.append((draft.answer or "(empty)") + "\n\n")
    body.append(f"Timer: {draft.timer_mode} ({draft.timer_seconds}s)", style="dim")
    where = f" in {context.collection_name}" if context and context.collection_name else ""
    return Panel(body, title=f"[bold]Card draft{where}[/bold]", border_style="magenta")


def find_collection(collections: list[Collection], query: str) -> Collection | None:
    """Match a collection by ID, exact name, or unique name prefix."""
    query = query.strip().lower()
    for c in collections:
        if c.id == query or c.name.lower() == query:
            return c
    matches = [c for c in collections if c.name.lower().startswith(query)]
    return matches[0] if len(matches) == 1 else None


async def _open_draft(console: Console, assistant: StudyAssistant, arg: str) -> DraftEditor | None:
    try:
        collections = await assistant.data.list_collections()
    except StoreError as e:
        console.print(f"[red]✗ Could not load collections: {e}[/red]")
        return None
    collection = find_collection(collections, arg) if arg else None
    if arg and collection is None:
        console.print(f"[yellow]No collection matches '{arg}'.[/yellow]")
        return None
    draft = DraftEditor()
    assistant.editor.register(draft, EditorContext(
        collection_id=collection.id if collection else None,
        collection_name=collection.name if collection else None,
        is_editing=False,
    ))
    console.print("[green]Card editor open.[/green] [dim]Ask the assistant to help write it; 'save' or 'close' when done.[/dim]")
    return draft


async def _save_draft(console: Console, assistant: StudyAssistant, draft: DraftEditor) -> bool:
    if not draft.question.strip():
        console.print("[yellow]The draft has no question yet.[/yellow]")
        return False
    context = assistant.editor.context
    try:
        record = await assistant.data.create_record(RecordInput(
            collection_id=context.collection_id if context else None,
            question_content=draft.question,
            answer_type="latex" if draft.answer else None,
            answer_content=draft.answer or None,
            timer_mode=draft.timer_mode,
            timer_seconds=draft.timer_seconds,
        ))
    except StoreError as e:
        console.print(f"[red]✗ Could not save card: {e}[/red]")
        return False
    assistant.editor.unregister(draft)
    console.print(f"[green]✓ Card saved[/green] [dim](ID: {record.id})[/dim]")
    return True


async def _confirm(console: Console, assistant: StudyAssistant) -> None:
    if not assistant.proposals.pending:
        console.print("[dim]No proposed cards waiting.[/dim]")
        return
    result = await assistant.confirm_proposals()
    created = len(result.created_ids)
    if result.ok:
        console.print(f"[green]✓ Created {created} flashcard{'s' if created != 1 else ''}.[/green]")
    else:
        console.print(
            f"[red]✗ Stopped after {created} card(s): {result.error}[/red]\n"
            f"[dim]{len(assistant.proposals.pending)} card(s) still pending. "
            "Type 'confirm' to retry or 'dismiss' to drop them.[/dim]"
        )


async def _chat_loop(console: Console, assistant: StudyAssistant) -> None:
    try:
        DATA_DIR.mkdir(parents=True, exist_ok=True)
        session: PromptSession = PromptSession(
            history=FileHistory(str(HISTORY_FILE)),
            style=PROMPT_STYLE,
        )
    except OSError:
        session = PromptSession(style=PROMPT_STYLE)

    def on_proposed(records: list[ProposedRecord]) -> None:
        console.print(proposals_table(records))
        console.print("[dim]Type 'confirm' to save these cards or 'dismiss' to drop them.[/dim]")

    assistant.proposals.subscribe(on_proposed)
    draft: DraftEditor | None = None

    try:
        while True:
            try:
                user_input = (await session.prompt_async([("class:prompt", "You: ")])).strip()
            except (KeyboardInterrupt, EOFError):
                console.print("[dim]Goodbye![/dim]")
                break

            if not user_input:
                continue

            command, _, arg = user_input.partition(" ")
            command = command.lower()

            if command in ("exit", "quit", "q"):
                console.print("[dim]Goodbye![/dim]")
                break

            if command in ("clear", "reset"):
                assistant.reset()
                console.print("[dim]Conversation cleared. Starting fresh.[/dim]")
                console.print("[dim](Chat log preserved - use 'history' to view)[/dim]\n")
                continue

            if command == "history":
                if arg.strip().lower() == "clear":
                    clear_log()
                    console.print("[dim]Chat log cleared.[/dim]")
                else:
                    console.print(format_history_for_display(10))
                console.print()
                continue

            if command == "new":
                if assistant.editor.is_open:
                    console.print("[yellow]A card editor is already open. 'save' or 'close' it first.[/yellow]")
                else:
                    draft = await _open_draft(console, assistant, arg)
                continue

            if command in ("show", "save", "close"):
                if draft is None or not assistant.editor.is_open:
                    console.print("[dim]No card editor open. Use 'new [collection]'.[/dim]")
                    continue
                if command == "show":
                    console.print(draft_panel(draft, assistant.editor.context))
                elif command == "save":
                    if await _save_draft(console, assistant, draft):
                        draft = None
                else:
                    assistant.editor.unregister(draft)
                    draft = None
                    console.print("[dim]Card editor closed.[/dim]")
                continue

            if command == "confirm":
                await _confirm(console, assistant)
                continue

            if command == "dismiss":
                assistant.proposals.dismiss()
                console.print("[dim]Proposed cards dismissed.[/dim]")
                continue

            with console.status("[dim]Thinking...[/dim]", spinner="dots") as status:
                try:
                    reply = await assistant.send(
                        user_input,
                        on_tool_call=lambda name: status.update(f"[dim]{tool_label(name)}...[/dim]"),
                    )
                except TransportError as e:
                    console.print(f"[red]Something went wrong: {e}.[/red]\n{CONFIG_HINT}")
                    continue
                except SessionBusyError as e:
                    console.print(f"[yellow]{e}[/yellow]")
                    continue

            console.print()
            console.print(Markdown(reply.content or ""))
            console.print()
            if draft is not None and assistant.editor.is_open:
                console.print(draft_panel(draft, assistant.editor.context))
    finally:
        assistant.proposals.unsubscribe(on_proposed)
        if draft is not None:
            assistant.editor.unregister(draft)


def run_chat() -> None:
    """Run the interactive chat interface."""
    console = Console()
    config = load_config()

    try:
        assistant = StudyAssistant.from_config(config, persist=True)
    except ValueError as e:
        console.print(f"[red]✗ {e}[/red]")
        sys.exit(1)

    welcome_text = Text()
    welcome_text.append("FLASHMATH AI\n", style="bold cyan")
    welcome_text.append(f"{config.provider}: {config.model}", style="green")
    welcome_text.justify = "center"
    console.print(Panel(welcome_text, border_style="cyan", box=box.DOUBLE))

    cmd_table = Table(show_header=False, box=None, padding=(0, 2))
    cmd_table.add_column(style="cyan", min_width=14)
    cmd_table.add_column(style="dim")
    cmd_table.add_row("new [deck]", "Open a card draft the assistant can write into")
    cmd_table.add_row("show/save/close", "View, save or discard the open draft")
    cmd_table.add_row("confirm/dismiss", "Save or drop proposed cards")
    cmd_table.add_row("history", "Show recent chat history")
    cmd_table.add_row("clear", "Reset conversation")
    cmd_table.add_row("exit", "Quit")
    console.print(Panel(cmd_table, title="[bold dim]Commands[/bold dim]", border_style="dim", box=box.ROUNDED))
    console.print()

    conversation_age = get_conversation_age()
    if assistant.load_from_disk():
        console.print(f"[green]✓ Restored previous conversation[/green] [dim](from {conversation_age})[/dim]")
        console.print(f"[dim]Messages: {len(assistant.messages)} | Type 'clear' to start fresh[/dim]")
        console.print()

    asyncio.run(_chat_loop(console, assistant))
