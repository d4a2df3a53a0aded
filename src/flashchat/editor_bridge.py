"""Bridge between the assistant and an open card editor.

The view that owns an editable card registers a session while it is mounted
and unregisters it on teardown. Only one session is active at a time.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol

logger = logging.getLogger(__name__)


class EditorSession(Protocol):
    """Field accessors exposed by an open editor."""

    def get_question(self) -> str: ...

    def get_answer(self) -> str: ...

    def set_question(self, content: str) -> None: ...

    def set_answer(self, content: str) -> None: ...

    def set_timer_mode(self, mode: str) -> None: ...

    def set_timer_seconds(self, minutes: int, seconds: int) -> None: ...


@dataclass
class EditorContext:
    """What the editor is working on, for the system prompt and UI banner."""

    collection_id: str | None = None
    collection_name: str | None = None
    is_editing: bool = False


class EditorBridge:
    """Holds at most one registered editor session."""

    def __init__(self) -> None:
        self._session: EditorSession | None = None
        self._context: EditorContext | None = None

    @property
    def is_open(self) -> bool:
        return self._session is not None

    @property
    def session(self) -> EditorSession | None:
        return self._session

    @property
    def context(self) -> EditorContext | None:
        return self._context

    def register(self, session: EditorSession, context: EditorContext | None = None) -> None:
        """Make ``session`` the active editor, replacing any previous one."""
        if self._session is not None and self._session is not session:
            logger.debug("Replacing registered editor session")
        self._session = session
        self._context = context or EditorContext()

    def unregister(self, session: EditorSession | None = None) -> None:
        """Clear the active editor.

        When ``session`` is given, only clear if it is still the active one,
        so a view tearing down late cannot remove its successor.
        """
        if session is not None and session is not self._session:
            return
        self._session = None
        self._context = None


@dataclass
class DraftEditor:
    """In-memory editor session backing a card draft."""

    question: str = ""
    answer: str = ""
    timer_mode: str = "5min"
    timer_seconds: int = 300

    def get_question(self) -> str:
        return self.question

    def get_answer(self) -> str:
        return self.answer

    def set_question(self, content: str) -> None:
        self.question = content

    def set_answer(self, content: str) -> None:
        self.answer = content

    def set_timer_mode(self, mode: str) -> None:
        self.timer_mode = mode
        presets = {"1min": 60, "5min": 300, "10min": 600}
        if mode in presets:
            self.timer_seconds = presets[mode]

    def set_timer_seconds(self, minutes: int, seconds: int) -> None:
        self.timer_seconds = max(0, int(minutes)) * 60 + max(0, int(seconds))
