"""Study assistant session: persistent history around the conversation loop."""

from __future__ import annotations

import asyncio
import logging

from .chat_log import add_exchange
from .config import Config, load_config
from .conversation import MAX_TOOL_ROUNDS, ConversationLoop, ToolCallObserver, TurnResult
from .conversation_store import clear_conversation, load_conversation, save_conversation
from .editor_bridge import EditorBridge
from .models import Message
from .proposals import ConfirmationResult, ProposalChannel, confirm_proposals
from .store import DataAccess, JsonStore
from .tool_handlers import ToolExecutor
from .transport import Transport, create_transport

logger = logging.getLogger(__name__)


class SessionBusyError(Exception):
    """A turn is already running for this session."""
    pass


class StudyAssistant:
    """One chat session with the study assistant.

    Holds the user-visible history (user messages and final assistant
    answers). Each ``send`` builds a fresh transcript from it; tool traffic
    is never merged back.
    """

    def __init__(
        self,
        transport: Transport,
        data: DataAccess,
        *,
        editor: EditorBridge | None = None,
        proposals: ProposalChannel | None = None,
        max_rounds: int | None = None,
        persist: bool = False,
    ):
        self.editor = editor if editor is not None else EditorBridge()
        self.proposals = proposals if proposals is not None else ProposalChannel()
        self.executor = ToolExecutor(data, self.editor, self.proposals)
        if max_rounds is None:
            max_rounds = MAX_TOOL_ROUNDS
        self.loop = ConversationLoop(transport, self.executor, max_rounds=max_rounds)
        self.messages: list[Message] = []
        self.last_turn: TurnResult | None = None
        self._persist = persist
        self._lock = asyncio.Lock()

    @classmethod
    def from_config(cls, config: Config | None = None, data: DataAccess | None = None, **kwargs) -> "StudyAssistant":
        """Build an assistant for the configured provider and the local store."""
        config = config or load_config()
        return cls(
            create_transport(config),
            data if data is not None else JsonStore(),
            max_rounds=config.max_tool_rounds,
            **kwargs,
        )

    @property
    def data(self) -> DataAccess:
        return self.executor.data

    @property
    def busy(self) -> bool:
        return self._lock.locked()

    async def send(self, user_message: str, on_tool_call: ToolCallObserver | None = None) -> Message:
        """
        Run one user turn and return the final assistant message.

        Raises SessionBusyError if a turn is already in flight. Transport
        errors propagate; the user message stays in history either way.
        """
        if self._lock.locked():
            raise SessionBusyError("Still working on the previous message")

        async with self._lock:
            self.messages.append(Message(role="user", content=user_message))
            tools_used: list[str] = []

            def observe(name: str) -> None:
                tools_used.append(name)
                if on_tool_call is not None:
                    on_tool_call(name)

            result = await self.loop.run(list(self.messages), observe)
            self.last_turn = result
            self.messages.append(result.message)
            logger.debug(
                "Turn finished in %d round(s), %d tool call(s)", result.rounds, len(tools_used)
            )

            if self._persist:
                add_exchange(user_message, result.message.content or "", tools_used)
                self.save_to_disk()
            return result.message

    async def confirm_proposals(self) -> ConfirmationResult:
        """Persist the pending proposal batch (stops at the first failure)."""
        return await confirm_proposals(self.data, self.proposals)

    def load_from_disk(self) -> bool:
        """
        Load conversation from disk.

        Returns:
            True if conversation was loaded, False if starting fresh
        """
        data = load_conversation()
        if data["messages"]:
            self.messages = data["messages"]
            return True
        return False

    def save_to_disk(self) -> None:
        """Save current conversation to disk."""
        save_conversation(self.messages)

    def reset(self) -> None:
        """Clear conversation history, pending proposals and saved state."""
        self.messages = []
        self.last_turn = None
        self.proposals.dismiss()
        if self._persist:
            clear_conversation()
