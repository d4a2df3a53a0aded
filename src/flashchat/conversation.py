"""Tool-calling conversation loop.

One call to ``ConversationLoop.run`` handles one user turn: it asks the model,
executes any requested tools in order, feeds the results back and repeats
until the model answers without tools or the round budget runs out.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, TYPE_CHECKING

from .models import Message
from .normalize import normalize_response
from .tools import get_tools

if TYPE_CHECKING:
    from .editor_bridge import EditorContext
    from .tool_handlers import ToolExecutor
    from .transport import Transport

logger = logging.getLogger(__name__)

MAX_TOOL_ROUNDS = 6
FALLBACK_TEXT = "(No response)"

SYSTEM_PROMPT = """You are FlashMath AI, a helpful study assistant embedded in a flashcard app. You have access to tools that let you look up the user's decks, flashcards, review history, and study statistics.

When the user asks about their flashcards, study progress, or needs help understanding a concept from their cards, use the tools to fetch real data first, then respond with specific, accurate information.

To add a single card use create_record. To add several cards at once use propose_records: the user reviews them and confirms before anything is saved, so tell them the cards are waiting for confirmation.

Keep responses concise and helpful. Use markdown formatting sparingly (bold for emphasis, lists when appropriate). When discussing math, use LaTeX notation.

If the user asks you to explain a concept or solve a problem from one of their flashcards, do so clearly and step-by-step."""

_EDITOR_SECTION = """## Card Editor

The user has the card editor open ({mode}{where}). You can read it with get_editor_content and write to it live with set_editor_question, set_editor_answer, set_editor_timer and clear_editor_field. Prefer writing into the editor over creating new cards when the user asks for help with "this card"."""

ToolCallObserver = Callable[[str], None]


def build_system_prompt(editor_context: EditorContext | None = None) -> str:
    """System prompt, with an editor section while a card editor is open."""
    sections = [SYSTEM_PROMPT]
    if editor_context is not None:
        mode = "editing an existing card" if editor_context.is_editing else "creating a new card"
        where = ""
        if editor_context.collection_name:
            where = f" in '{editor_context.collection_name}'"
            if editor_context.collection_id:
                where += f", collection ID {editor_context.collection_id}"
        sections.append(_EDITOR_SECTION.format(mode=mode, where=where))
    return "\n\n".join(sections)


@dataclass
class TurnResult:
    """Final answer of one turn plus the transcript that produced it."""

    message: Message
    transcript: list[Message] = field(default_factory=list)
    rounds: int = 0
    transport_calls: int = 0


class ConversationLoop:
    """Alternates completion requests and tool execution for one turn."""

    def __init__(
        self,
        transport: Transport,
        executor: ToolExecutor,
        *,
        system_prompt: str | None = None,
        max_rounds: int = MAX_TOOL_ROUNDS,
    ):
        if max_rounds < 1:
            raise ValueError("max_rounds must be at least 1")
        self.transport = transport
        self.executor = executor
        self.system_prompt = system_prompt
        self.max_rounds = max_rounds

    def _system_message(self) -> Message:
        if self.system_prompt is not None:
            return Message(role="system", content=self.system_prompt)
        editor = self.executor.editor
        context = editor.context if editor is not None and editor.is_open else None
        return Message(role="system", content=build_system_prompt(context))

    async def run(
        self,
        history: list[Message],
        on_tool_call: ToolCallObserver | None = None,
    ) -> TurnResult:
        """Run one turn. Transport errors propagate to the caller."""
        transcript = [self._system_message(), *history]
        result = TurnResult(message=Message(role="assistant", content=FALLBACK_TEXT), transcript=transcript)

        for round_number in range(1, self.max_rounds + 1):
            tools = get_tools(self.executor.editor)
            raw = await self.transport.complete(transcript, tools)
            result.transport_calls += 1
            result.rounds = round_number
            response = normalize_response(raw)

            if not response.tool_calls:
                logger.debug("Round %d: final answer", round_number)
                result.message = Message(role="assistant", content=response.content or FALLBACK_TEXT)
                return result

            logger.debug(
                "Round %d: %d tool call(s): %s",
                round_number,
                len(response.tool_calls),
                ", ".join(tc.tool_name for tc in response.tool_calls),
            )
            # The requesting message goes in before any tool runs
            transcript.append(Message(
                role="assistant",
                content=response.content,
                tool_calls=list(response.tool_calls),
            ))

            for call in response.tool_calls:
                if on_tool_call is not None:
                    on_tool_call(call.tool_name)
                outcome = await self.executor.execute(call.tool_name, call.arguments_text)
                transcript.append(Message(
                    role="tool",
                    content=outcome.to_text(),
                    tool_call_id=call.id,
                    tool_name=call.tool_name,
                ))

        # Out of rounds: one last request with no tools offered
        logger.debug("Tool rounds exhausted after %d; requesting final answer", self.max_rounds)
        raw = await self.transport.complete(transcript, None)
        result.transport_calls += 1
        response = normalize_response(raw)
        result.message = Message(role="assistant", content=response.content or FALLBACK_TEXT)
        return result
