"""Chat log storage for readable history."""

import json
from datetime import datetime

from .paths import CHAT_LOG_FILE, ensure_data_dir, atomic_json_write
from .tools import tool_label

# Maximum number of exchanges to keep
MAX_EXCHANGES = 100


def load_log() -> list[dict]:
    """Load the chat log from disk."""
    ensure_data_dir()
    if not CHAT_LOG_FILE.exists():
        return []
    try:
        with open(CHAT_LOG_FILE, encoding="utf-8") as f:
            return json.load(f)
    except (json.JSONDecodeError, OSError):
        return []


def save_log(log: list[dict]) -> None:
    """Save the chat log to disk, keeping only the most recent exchanges."""
    ensure_data_dir()
    atomic_json_write(CHAT_LOG_FILE, log[-MAX_EXCHANGES:])


def add_exchange(
    user_message: str,
    assistant_response: str,
    tools_used: list[str] | None = None,
) -> None:
    """
    Add a chat exchange to the log.

    Args:
        user_message: The user's input
        assistant_response: The assistant's final text
        tools_used: Names of the tools called during the turn, in order
    """
    log = load_log()
    log.append({
        "timestamp": datetime.now().isoformat(),
        "user": user_message,
        "assistant": assistant_response,
        "tools": list(tools_used or []),
    })
    save_log(log)


def get_recent_exchanges(count: int = 10) -> list[dict]:
    """Get the most recent exchanges."""
    return load_log()[-count:]


def format_exchange_for_display(exchange: dict, index: int) -> str:
    """Format a single exchange for display."""
    lines = []

    timestamp = exchange.get("timestamp", "")
    if timestamp:
        try:
            time_str = datetime.fromisoformat(timestamp).strftime("%Y-%m-%d %H:%M")
        except ValueError:
            time_str = timestamp[:16]
    else:
        time_str = "unknown"

    lines.append(f"─── Exchange {index} ({time_str}) ───")

    user_msg = exchange.get("user", "")
    if len(user_msg) > 100:
        user_msg = user_msg[:100] + "..."
    lines.append(f"You: {user_msg}")

    tools = exchange.get("tools", [])
    for name in tools[:5]:
        lines.append(f"  → {tool_label(name)}")
    if len(tools) > 5:
        lines.append(f"  → (+{len(tools) - 5} more tools)")

    assistant_msg = exchange.get("assistant", "")
    if len(assistant_msg) > 200:
        assistant_msg = assistant_msg[:200] + "..."
    assistant_msg = assistant_msg.replace("\n", " ").strip()
    lines.append(f"Assistant: {assistant_msg}")

    return "\n".join(lines)


def format_history_for_display(count: int = 10) -> str:
    """Format recent history for display."""
    exchanges = get_recent_exchanges(count)

    if not exchanges:
        return "No chat history yet."

    output = []
    output.append("=" * 60)
    output.append(f"RECENT CHAT HISTORY ({len(exchanges)} exchanges)")
    output.append("=" * 60)

    for i, exchange in enumerate(exchanges, 1):
        output.append("")
        output.append(format_exchange_for_display(exchange, i))

    output.append("")
    output.append("=" * 60)

    return "\n".join(output)


def clear_log() -> None:
    """Clear the chat log."""
    save_log([])
