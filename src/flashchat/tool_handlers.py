"""Tool handler registry and executor for the study assistant.

Each handler is registered with @handler("tool_name") and receives:
    data: DataAccess instance
    tool_input: dict of decoded tool arguments
    **ctx: editor (EditorBridge | None), proposals (ProposalChannel | None)

Handlers return JSON-encodable data and raise on failure. The executor turns
both outcomes into a ToolResult; nothing escapes to the conversation loop.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, TYPE_CHECKING

from .models import ProposedRecord, Record, RecordInput
from .tools import TIMER_MODES

if TYPE_CHECKING:
    from .editor_bridge import EditorBridge, EditorSession
    from .proposals import ProposalChannel
    from .store import DataAccess

logger = logging.getLogger(__name__)

HANDLERS: dict[str, Callable[..., Awaitable[Any]]] = {}

NO_EDITOR_OPEN = "no editor open"
PREVIEW_LENGTH = 120
HISTORY_LIMIT = 20


class ToolExecutionError(Exception):
    """A tool could not complete; reported back to the model as an error."""
    pass


class MalformedToolArguments(ToolExecutionError):
    """Tool arguments could not be decoded or are missing required fields."""
    pass


def handler(name: str):
    """Decorator to register a tool handler."""
    def decorator(fn: Callable) -> Callable:
        HANDLERS[name] = fn
        return fn
    return decorator


@dataclass
class ToolResult:
    """Outcome of one tool call: either a value or an error message."""

    ok: bool
    value: Any = None
    error: str | None = None

    @classmethod
    def success(cls, value: Any) -> "ToolResult":
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, error: str) -> "ToolResult":
        return cls(ok=False, error=error)

    def to_text(self) -> str:
        """Serialize for the transcript."""
        if self.ok:
            return json.dumps(self.value, indent=2, ensure_ascii=False, default=str)
        return json.dumps({"error": self.error}, ensure_ascii=False)


def parse_arguments(arguments_text: str | None) -> dict:
    """Decode a call's argument payload into a dict."""
    if arguments_text is None or not arguments_text.strip():
        return {}
    try:
        decoded = json.loads(arguments_text)
    except json.JSONDecodeError as e:
        raise MalformedToolArguments(f"Invalid tool arguments: {e}") from e
    if not isinstance(decoded, dict):
        raise MalformedToolArguments("Tool arguments must be a JSON object")
    return decoded


def _require(tool_input: dict, key: str) -> str:
    value = tool_input.get(key)
    if not isinstance(value, str) or not value.strip():
        raise MalformedToolArguments(f"Missing required argument: {key}")
    return value


def _optional_str(tool_input: dict, key: str) -> str | None:
    value = tool_input.get(key)
    if value is None or value == "":
        return None
    if not isinstance(value, str):
        raise MalformedToolArguments(f"Argument '{key}' must be a string")
    return value


def _question_preview(record: Record) -> str:
    if record.has_image_question:
        return "[image]"
    return record.question_content[:PREVIEW_LENGTH]


class ToolExecutor:
    """Dispatches tool calls to registered handlers."""

    def __init__(
        self,
        data: DataAccess,
        editor: EditorBridge | None = None,
        proposals: ProposalChannel | None = None,
    ):
        self.data = data
        self.editor = editor
        self.proposals = proposals

    async def execute(self, name: str, arguments_text: str | None) -> ToolResult:
        fn = HANDLERS.get(name)
        if fn is None:
            logger.debug("Unknown tool requested: %s", name)
            return ToolResult.failure(f"Unknown tool: {name}")
        try:
            tool_input = parse_arguments(arguments_text)
            value = await fn(self.data, tool_input, editor=self.editor, proposals=self.proposals)
        except Exception as e:
            logger.debug("Tool %s failed: %s", name, e)
            return ToolResult.failure(str(e) or type(e).__name__)
        return ToolResult.success(value)


# ---------------------------------------------------------------------------
# Collection and record reads
# ---------------------------------------------------------------------------

@handler("list_collections")
async def handle_list_collections(data: DataAccess, tool_input: dict, **ctx) -> list[dict]:
    results = []
    for c in await data.list_collections():
        stats = await data.get_study_stats(c.id)
        results.append({
            "id": c.id,
            "name": c.name,
            "emoji": c.emoji,
            "deadline": c.deadline,
            "total_cards": stats.total_cards,
            "due_today": stats.due_today,
            "reviewed_today": stats.reviewed_today,
            "accuracy": f"{round(stats.accuracy_today * 100)}%",
        })
    return results


@handler("list_records")
async def handle_list_records(data: DataAccess, tool_input: dict, **ctx) -> list[dict]:
    records = await data.list_records(_require(tool_input, "collection_id"))
    return [
        {
            "id": r.id,
            "question_type": r.question_type,
            "question_preview": _question_preview(r),
            "has_answer": bool(r.answer_content),
            "timer_mode": r.timer_mode,
            "ease_factor": r.ease_factor,
            "interval_days": round(r.interval_days, 1),
            "repetitions": r.repetitions,
            "due_date": r.due_date,
            "last_reviewed": r.last_reviewed,
        }
        for r in records
    ]


@handler("list_due_records")
async def handle_list_due_records(data: DataAccess, tool_input: dict, **ctx) -> list[dict]:
    records = await data.list_due_records(_optional_str(tool_input, "collection_id"))
    return [
        {
            "id": r.id,
            "question_preview": _question_preview(r),
            "ease_factor": r.ease_factor,
            "interval_days": round(r.interval_days, 1),
            "repetitions": r.repetitions,
            "due_date": r.due_date,
        }
        for r in records
    ]


@handler("get_study_stats")
async def handle_get_study_stats(data: DataAccess, tool_input: dict, **ctx) -> dict:
    stats = await data.get_study_stats(_optional_str(tool_input, "collection_id"))
    return stats.to_dict()


@handler("get_record_detail")
async def handle_get_record_detail(data: DataAccess, tool_input: dict, **ctx) -> dict:
    record = await data.get_record_detail(_require(tool_input, "record_id"))
    detail = record.to_dict()
    # Media is never sent to the model, only a placeholder
    if record.has_image_question:
        detail["question_content"] = f"[image at {record.question_content}]"
    if record.answer_type == "image" and record.answer_content:
        detail["answer_content"] = "[image]"
    return detail


@handler("get_review_history")
async def handle_get_review_history(data: DataAccess, tool_input: dict, **ctx) -> list[dict]:
    reviews = await data.get_record_history(_require(tool_input, "record_id"))
    return [r.to_dict() for r in reviews[:HISTORY_LIMIT]]


# ---------------------------------------------------------------------------
# Record creation
# ---------------------------------------------------------------------------

@handler("create_record")
async def handle_create_record(data: DataAccess, tool_input: dict, **ctx) -> dict:
    answer = _optional_str(tool_input, "answer")
    record = await data.create_record(RecordInput(
        collection_id=_require(tool_input, "collection_id"),
        question_content=_require(tool_input, "question"),
        question_type="latex",
        answer_type="latex" if answer else None,
        answer_content=answer,
    ))
    return {"success": True, "id": record.id}


@handler("propose_records")
async def handle_propose_records(data: DataAccess, tool_input: dict, **ctx) -> dict:
    proposals: ProposalChannel | None = ctx.get("proposals")
    if proposals is None:
        raise ToolExecutionError("proposals are not available")
    collection_id = _require(tool_input, "collection_id")
    raw_records = tool_input.get("records")
    if not isinstance(raw_records, list) or not raw_records:
        raise MalformedToolArguments("Argument 'records' must be a non-empty list")

    candidates = []
    for i, item in enumerate(raw_records):
        if not isinstance(item, dict):
            raise MalformedToolArguments(f"records[{i}] must be an object")
        question = item.get("question")
        if not isinstance(question, str) or not question.strip():
            raise MalformedToolArguments(f"records[{i}] is missing a question")
        answer = item.get("answer") or ""
        candidates.append(ProposedRecord(
            question=question,
            answer=answer if isinstance(answer, str) else str(answer),
            target_collection_id=collection_id,
        ))

    count = proposals.propose(candidates)
    return {"success": True, "count": count}


# ---------------------------------------------------------------------------
# Editor operations
# ---------------------------------------------------------------------------

def _editor_session(ctx: dict) -> EditorSession:
    editor: EditorBridge | None = ctx.get("editor")
    if editor is None or editor.session is None:
        raise ToolExecutionError(NO_EDITOR_OPEN)
    return editor.session


@handler("get_editor_content")
async def handle_get_editor_content(data: DataAccess, tool_input: dict, **ctx) -> dict:
    session = _editor_session(ctx)
    return {"question": session.get_question(), "answer": session.get_answer()}


@handler("set_editor_question")
async def handle_set_editor_question(data: DataAccess, tool_input: dict, **ctx) -> dict:
    session = _editor_session(ctx)
    content = tool_input.get("content")
    if not isinstance(content, str):
        raise MalformedToolArguments("Missing required argument: content")
    session.set_question(content)
    return {"success": True}


@handler("set_editor_answer")
async def handle_set_editor_answer(data: DataAccess, tool_input: dict, **ctx) -> dict:
    session = _editor_session(ctx)
    content = tool_input.get("content")
    if not isinstance(content, str):
        raise MalformedToolArguments("Missing required argument: content")
    session.set_answer(content)
    return {"success": True}


@handler("set_editor_timer")
async def handle_set_editor_timer(data: DataAccess, tool_input: dict, **ctx) -> dict:
    session = _editor_session(ctx)
    mode = _require(tool_input, "mode")
    if mode not in TIMER_MODES:
        raise MalformedToolArguments(f"Unknown timer mode '{mode}'. Use one of: {', '.join(TIMER_MODES)}")
    minutes = tool_input.get("minutes")
    seconds = tool_input.get("seconds")
    duration = None
    if minutes is not None or seconds is not None:
        try:
            duration = (int(minutes or 0), int(seconds or 0))
        except (TypeError, ValueError) as e:
            raise MalformedToolArguments("minutes and seconds must be integers") from e
    session.set_timer_mode(mode)
    if duration is not None:
        session.set_timer_seconds(*duration)
    return {"success": True}


@handler("clear_editor_field")
async def handle_clear_editor_field(data: DataAccess, tool_input: dict, **ctx) -> dict:
    session = _editor_session(ctx)
    field = _require(tool_input, "field")
    if field == "question":
        session.set_question("")
    elif field == "answer":
        session.set_answer("")
    else:
        raise MalformedToolArguments("Argument 'field' must be 'question' or 'answer'")
    return {"success": True}
