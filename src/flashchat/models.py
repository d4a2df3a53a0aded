"""Data models for flashchat."""

from dataclasses import dataclass, field, asdict, fields


# ---------------------------------------------------------------------------
# Conversation
# ---------------------------------------------------------------------------

@dataclass
class ToolCall:
    """One model-issued request to invoke a tool."""

    id: str
    tool_name: str
    arguments_text: str = "{}"

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class Message:
    """A single transcript entry."""

    role: str  # system | user | assistant | tool
    content: str | None
    tool_calls: list[ToolCall] = field(default_factory=list)
    tool_call_id: str | None = None
    tool_name: str | None = None

    def to_dict(self) -> dict:
        """Serialize for JSON storage, omitting empty optional fields."""
        data: dict = {"role": self.role, "content": self.content}
        if self.tool_calls:
            data["tool_calls"] = [tc.to_dict() for tc in self.tool_calls]
        if self.tool_call_id is not None:
            data["tool_call_id"] = self.tool_call_id
        if self.tool_name is not None:
            data["tool_name"] = self.tool_name
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "Message":
        return cls(
            role=data["role"],
            content=data.get("content"),
            tool_calls=[ToolCall(**tc) for tc in data.get("tool_calls") or []],
            tool_call_id=data.get("tool_call_id"),
            tool_name=data.get("tool_name"),
        )


@dataclass
class NormalizedResponse:
    """Provider-agnostic view of one completion response."""

    content: str | None = None
    tool_calls: list[ToolCall] = field(default_factory=list)


@dataclass
class ProposedRecord:
    """A candidate record awaiting user confirmation."""

    question: str
    answer: str = ""
    target_collection_id: str | None = None


# ---------------------------------------------------------------------------
# Study data
# ---------------------------------------------------------------------------

def _from_known_fields(cls, data: dict):
    """Build a dataclass from a dict, ignoring unknown keys."""
    names = {f.name for f in fields(cls)}
    return cls(**{k: v for k, v in data.items() if k in names})


@dataclass
class Collection:
    """A deck/folder of records."""

    id: str
    name: str
    emoji: str | None = None
    deadline: str | None = None
    position: int = 0

    @classmethod
    def from_dict(cls, data: dict) -> "Collection":
        return _from_known_fields(cls, data)


@dataclass
class Record:
    """A flashcard with its scheduling state."""

    id: str
    collection_id: str | None
    question_type: str = "latex"  # latex | image
    question_content: str = ""
    answer_type: str | None = None
    answer_content: str | None = None
    timer_mode: str = "5min"
    timer_seconds: int = 300
    ease_factor: float = 2.5
    interval_days: float = 0.0
    repetitions: int = 0
    due_date: str | None = None
    last_reviewed: str | None = None
    created_at: str = ""
    updated_at: str = ""

    @property
    def has_image_question(self) -> bool:
        return self.question_type == "image"

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "Record":
        return _from_known_fields(cls, data)


@dataclass
class Review:
    """One review of a record."""

    id: str
    record_id: str
    correct: bool
    response_time_seconds: float = 0.0
    timer_limit_seconds: float = 0.0
    speed_ratio: float = 0.0
    quality: int = 0
    ease_before: float = 2.5
    ease_after: float = 2.5
    interval_before: float = 0.0
    interval_after: float = 0.0
    reviewed_at: str = ""

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "Review":
        return _from_known_fields(cls, data)


@dataclass
class StudyStats:
    """Aggregate study statistics for one collection or all of them."""

    total_cards: int = 0
    due_today: int = 0
    overdue: int = 0
    reviewed_today: int = 0
    accuracy_today: float = 0.0

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class RecordInput:
    """Fields accepted when creating a record."""

    collection_id: str | None
    question_content: str
    question_type: str = "latex"
    answer_type: str | None = None
    answer_content: str | None = None
    timer_mode: str | None = None
    timer_seconds: int | None = None
