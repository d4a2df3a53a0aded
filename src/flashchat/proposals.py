"""Proposed-record channel and the confirmation path that persists them."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, TYPE_CHECKING

from .models import ProposedRecord, RecordInput

if TYPE_CHECKING:
    from .store import DataAccess

logger = logging.getLogger(__name__)

ProposalObserver = Callable[[list[ProposedRecord]], None]


class ProposalChannel:
    """Surfaces candidate records to the UI. Never persists anything."""

    def __init__(self) -> None:
        self._observer: ProposalObserver | None = None
        self.pending: list[ProposedRecord] = []

    @property
    def has_observer(self) -> bool:
        return self._observer is not None

    def subscribe(self, observer: ProposalObserver) -> None:
        self._observer = observer

    def unsubscribe(self, observer: ProposalObserver | None = None) -> None:
        if observer is not None and observer is not self._observer:
            return
        self._observer = None

    def propose(self, records: list[ProposedRecord]) -> int:
        """Replace the pending batch and notify the observer once."""
        self.pending = list(records)
        if self._observer is not None:
            self._observer(list(self.pending))
        else:
            logger.debug("Proposed %d record(s) with no observer subscribed", len(records))
        return len(self.pending)

    def dismiss(self) -> None:
        self.pending = []


@dataclass
class ConfirmationResult:
    """Outcome of confirming a proposal batch."""

    created_ids: list[str] = field(default_factory=list)
    failed: ProposedRecord | None = None
    error: str | None = None
    remaining: list[ProposedRecord] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.error is None


def to_record_input(record: ProposedRecord) -> RecordInput:
    return RecordInput(
        collection_id=record.target_collection_id,
        question_content=record.question,
        question_type="latex",
        answer_type="latex" if record.answer else None,
        answer_content=record.answer or None,
    )


async def confirm_proposals(data: DataAccess, channel: ProposalChannel) -> ConfirmationResult:
    """Persist the pending batch one record at a time.

    Stops at the first failure: records created before it are kept, the
    failing record and everything after it stay pending for a retry.
    """
    result = ConfirmationResult()
    batch = list(channel.pending)
    for index, record in enumerate(batch):
        try:
            created = await data.create_record(to_record_input(record))
        except Exception as e:
            logger.debug("create_record failed for proposal %d: %s", index, e)
            result.failed = record
            result.error = str(e)
            result.remaining = batch[index + 1:]
            channel.pending = batch[index:]
            return result
        result.created_ids.append(created.id)
    channel.pending = []
    return result
