"""Tool definitions for the study assistant.

Definitions use the Anthropic tool shape (name, description, input_schema).
Transports convert them for other providers.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .editor_bridge import EditorBridge

TIMER_MODES = ["1min", "5min", "10min", "llm"]

BASE_TOOLS = [
    {
        "name": "list_collections",
        "description": "List every deck/collection the user has, including card counts, cards due today, accuracy and deadlines.",
        "input_schema": {
            "type": "object",
            "properties": {},
            "required": []
        }
    },
    {
        "name": "list_records",
        "description": "Get all flashcards in a specific collection. Returns card previews, SRS stats (ease, interval, repetitions, due date) and timer settings.",
        "input_schema": {
            "type": "object",
            "properties": {
                "collection_id": {
                    "type": "string",
                    "description": "The collection ID to fetch cards from"
                }
            },
            "required": ["collection_id"]
        }
    },
    {
        "name": "list_due_records",
        "description": "Get flashcards that are currently due for review. Optionally filter by collection.",
        "input_schema": {
            "type": "object",
            "properties": {
                "collection_id": {
                    "type": "string",
                    "description": "Optional collection ID to filter by"
                }
            },
            "required": []
        }
    },
    {
        "name": "get_study_stats",
        "description": "Get study statistics: total cards, due today, overdue, reviewed today, accuracy today. Optionally scoped to a collection.",
        "input_schema": {
            "type": "object",
            "properties": {
                "collection_id": {
                    "type": "string",
                    "description": "Optional collection ID"
                }
            },
            "required": []
        }
    },
    {
        "name": "get_record_detail",
        "description": "Get full details of a single flashcard by ID, including its question content (LaTeX, or a placeholder for images), answer and SRS parameters.",
        "input_schema": {
            "type": "object",
            "properties": {
                "record_id": {
                    "type": "string",
                    "description": "The flashcard ID"
                }
            },
            "required": ["record_id"]
        }
    },
    {
        "name": "get_review_history",
        "description": "Get the review history for a flashcard: timestamps, correct/incorrect, speed ratios and ease changes (most recent 20).",
        "input_schema": {
            "type": "object",
            "properties": {
                "record_id": {
                    "type": "string",
                    "description": "The flashcard ID"
                }
            },
            "required": ["record_id"]
        }
    },
    {
        "name": "create_record",
        "description": "Create and save a single flashcard immediately. Use LaTeX for math. For more than one card use propose_records so the user can review them first.",
        "input_schema": {
            "type": "object",
            "properties": {
                "collection_id": {
                    "type": "string",
                    "description": "The collection ID to add the card to"
                },
                "question": {
                    "type": "string",
                    "description": "Question content (LaTeX allowed)"
                },
                "answer": {
                    "type": "string",
                    "description": "Answer content (LaTeX allowed)"
                }
            },
            "required": ["collection_id", "question"]
        }
    },
    {
        "name": "propose_records",
        "description": "Propose a batch of flashcards for the user to review. Nothing is saved until the user confirms them in the app.",
        "input_schema": {
            "type": "object",
            "properties": {
                "collection_id": {
                    "type": "string",
                    "description": "The collection ID the cards should go into"
                },
                "records": {
                    "type": "array",
                    "items": {
                        "type": "object",
                        "properties": {
                            "question": {"type": "string", "description": "Question content (LaTeX allowed)"},
                            "answer": {"type": "string", "description": "Answer content (LaTeX allowed)"}
                        },
                        "required": ["question"]
                    },
                    "description": "The candidate cards"
                }
            },
            "required": ["collection_id", "records"]
        }
    },
]

EDITOR_TOOLS = [
    {
        "name": "get_editor_content",
        "description": "Read the question and answer currently in the open card editor.",
        "input_schema": {
            "type": "object",
            "properties": {},
            "required": []
        }
    },
    {
        "name": "set_editor_question",
        "description": "Write the question field of the open card editor, replacing its content. The user sees the change live.",
        "input_schema": {
            "type": "object",
            "properties": {
                "content": {
                    "type": "string",
                    "description": "New question content (LaTeX allowed)"
                }
            },
            "required": ["content"]
        }
    },
    {
        "name": "set_editor_answer",
        "description": "Write the answer field of the open card editor, replacing its content. The user sees the change live.",
        "input_schema": {
            "type": "object",
            "properties": {
                "content": {
                    "type": "string",
                    "description": "New answer content (LaTeX allowed)"
                }
            },
            "required": ["content"]
        }
    },
    {
        "name": "set_editor_timer",
        "description": "Set the timer of the open card editor. Mode is one of 1min, 5min, 10min or llm (custom duration given by minutes/seconds).",
        "input_schema": {
            "type": "object",
            "properties": {
                "mode": {
                    "type": "string",
                    "enum": TIMER_MODES,
                    "description": "Timer mode"
                },
                "minutes": {
                    "type": "integer",
                    "description": "Minutes, used with mode 'llm'"
                },
                "seconds": {
                    "type": "integer",
                    "description": "Seconds, used with mode 'llm'"
                }
            },
            "required": ["mode"]
        }
    },
    {
        "name": "clear_editor_field",
        "description": "Clear the question or answer field of the open card editor.",
        "input_schema": {
            "type": "object",
            "properties": {
                "field": {
                    "type": "string",
                    "enum": ["question", "answer"],
                    "description": "Which field to clear"
                }
            },
            "required": ["field"]
        }
    },
]

EDITOR_TOOL_NAMES = frozenset(t["name"] for t in EDITOR_TOOLS)

# Human-readable status shown while a tool runs
TOOL_LABELS: dict[str, str] = {
    "list_collections": "Looking up your decks",
    "list_records": "Reading flashcards",
    "list_due_records": "Checking due cards",
    "get_study_stats": "Pulling study stats",
    "get_record_detail": "Inspecting card details",
    "get_review_history": "Reviewing your history",
    "create_record": "Creating a flashcard",
    "propose_records": "Preparing flashcards for review",
    "get_editor_content": "Reading editor",
    "set_editor_question": "Writing question",
    "set_editor_answer": "Writing answer",
    "set_editor_timer": "Setting timer",
    "clear_editor_field": "Clearing field",
}


def get_tools(editor: EditorBridge | None = None) -> list[dict]:
    """Tools applicable right now: editor tools only while an editor is open."""
    if editor is not None and editor.is_open:
        return BASE_TOOLS + EDITOR_TOOLS
    return list(BASE_TOOLS)


def tool_label(name: str) -> str:
    return TOOL_LABELS.get(name, name)
