"""Persistent conversation storage."""

import json
from datetime import datetime

from .models import Message
from .paths import CONVERSATION_FILE, ensure_data_dir, atomic_json_write


def _empty() -> dict:
    return {"messages": [], "last_saved": None}


def save_conversation(messages: list[Message]) -> None:
    """Save conversation history to disk."""
    ensure_data_dir()
    data = {
        "last_saved": datetime.now().isoformat(),
        "messages": [msg.to_dict() for msg in messages],
    }
    atomic_json_write(CONVERSATION_FILE, data)


def load_conversation() -> dict:
    """
    Load conversation history from disk.

    Returns:
        Dict with 'messages' (list of Message) and 'last_saved'
    """
    ensure_data_dir()

    if not CONVERSATION_FILE.exists():
        return _empty()

    try:
        with open(CONVERSATION_FILE, encoding="utf-8") as f:
            data = json.load(f)
        return {
            "messages": [Message.from_dict(m) for m in data.get("messages", [])],
            "last_saved": data.get("last_saved"),
        }
    except (json.JSONDecodeError, OSError, KeyError, TypeError):
        return _empty()


def clear_conversation() -> None:
    """Delete saved conversation."""
    if CONVERSATION_FILE.exists():
        CONVERSATION_FILE.unlink()


def get_conversation_age() -> str | None:
    """Get human-readable age of saved conversation."""
    if not CONVERSATION_FILE.exists():
        return None

    try:
        with open(CONVERSATION_FILE, encoding="utf-8") as f:
            data = json.load(f)
        last_saved = data.get("last_saved")
        if not last_saved:
            return None

        saved_time = datetime.fromisoformat(last_saved)
        delta = datetime.now() - saved_time

        if delta.days > 0:
            return f"{delta.days} day(s) ago"
        elif delta.seconds > 3600:
            return f"{delta.seconds // 3600} hour(s) ago"
        elif delta.seconds > 60:
            return f"{delta.seconds // 60} minute(s) ago"
        else:
            return "just now"
    except (json.JSONDecodeError, OSError, ValueError):
        return None
