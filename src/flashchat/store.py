"""Data-access interface and a JSON-file implementation of it."""

from __future__ import annotations

import json
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Protocol

from .models import Collection, Record, RecordInput, Review, StudyStats
from .paths import STORE_FILE, atomic_json_write


class StoreError(Exception):
    """Base exception for data-access errors."""
    pass


class RecordNotFoundError(StoreError):
    """The requested record does not exist."""
    pass


class DataAccess(Protocol):
    """Asynchronous study-data API consumed by the tool handlers."""

    async def list_collections(self) -> list[Collection]: ...

    async def list_records(self, collection_id: str) -> list[Record]: ...

    async def list_due_records(self, collection_id: str | None = None) -> list[Record]: ...

    async def get_record_detail(self, record_id: str) -> Record: ...

    async def get_record_history(self, record_id: str) -> list[Review]: ...

    async def get_study_stats(self, collection_id: str | None = None) -> StudyStats: ...

    async def create_record(self, data: RecordInput) -> Record: ...


def now_iso() -> str:
    """UTC timestamp in a lexically sortable ISO format."""
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "Z"


def _today_start_iso() -> str:
    start = datetime.now(timezone.utc).replace(hour=0, minute=0, second=0, microsecond=0)
    return start.strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "Z"


def _is_due(record: Record, now: str) -> bool:
    return not record.due_date or record.due_date <= now


class JsonStore:
    """Collections, records and reviews kept in a single JSON file."""

    def __init__(self, path: Path | None = None):
        self.path = Path(path) if path else STORE_FILE

    def _load(self) -> dict:
        if not self.path.exists():
            return {"collections": [], "records": [], "reviews": []}
        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise StoreError(f"Store file is corrupted: {self.path}") from e
        data.setdefault("collections", [])
        data.setdefault("records", [])
        data.setdefault("reviews", [])
        return data

    def _save(self, data: dict) -> None:
        atomic_json_write(self.path, data)

    def _records(self, data: dict, collection_id: str | None = None) -> list[Record]:
        records = [Record.from_dict(r) for r in data["records"]]
        if collection_id:
            records = [r for r in records if r.collection_id == collection_id]
        return records

    # -- reads ---------------------------------------------------------------

    async def list_collections(self) -> list[Collection]:
        data = self._load()
        collections = [Collection.from_dict(c) for c in data["collections"]]
        return sorted(collections, key=lambda c: c.position)

    async def list_records(self, collection_id: str) -> list[Record]:
        records = self._records(self._load(), collection_id)
        return sorted(records, key=lambda r: r.created_at, reverse=True)

    async def list_due_records(self, collection_id: str | None = None) -> list[Record]:
        now = now_iso()
        due = [r for r in self._records(self._load(), collection_id) if _is_due(r, now)]
        return sorted(due, key=lambda r: r.due_date or "")

    async def get_record_detail(self, record_id: str) -> Record:
        for raw in self._load()["records"]:
            if raw.get("id") == record_id:
                return Record.from_dict(raw)
        raise RecordNotFoundError(f"Flashcard not found: {record_id}")

    async def get_record_history(self, record_id: str) -> list[Review]:
        reviews = [Review.from_dict(r) for r in self._load()["reviews"] if r.get("record_id") == record_id]
        return sorted(reviews, key=lambda r: r.reviewed_at, reverse=True)

    async def get_study_stats(self, collection_id: str | None = None) -> StudyStats:
        data = self._load()
        now = now_iso()
        today = _today_start_iso()
        records = self._records(data, collection_id)
        record_ids = {r.id for r in records}
        reviews = [
            Review.from_dict(r) for r in data["reviews"]
            if r.get("reviewed_at", "") >= today
            and (not collection_id or r.get("record_id") in record_ids)
        ]
        due_today = sum(1 for r in records if _is_due(r, now))
        correct = sum(1 for r in reviews if r.correct)
        return StudyStats(
            total_cards=len(records),
            due_today=due_today,
            overdue=due_today,
            reviewed_today=len(reviews),
            accuracy_today=correct / len(reviews) if reviews else 0.0,
        )

    # -- writes --------------------------------------------------------------

    async def create_record(self, data: RecordInput) -> Record:
        if not data.question_content:
            raise StoreError("Question content is required")
        store = self._load()
        if data.collection_id and not any(c.get("id") == data.collection_id for c in store["collections"]):
            raise StoreError(f"Collection not found: {data.collection_id}")
        now = now_iso()
        record = Record(
            id=uuid.uuid4().hex,
            collection_id=data.collection_id or None,
            question_type=data.question_type,
            question_content=data.question_content,
            answer_type=data.answer_type,
            answer_content=data.answer_content,
            timer_mode=data.timer_mode or "5min",
            timer_seconds=data.timer_seconds or 300,
            due_date=now,
            created_at=now,
            updated_at=now,
        )
        store["records"].append(record.to_dict())
        self._save(store)
        return record

    def create_collection(self, name: str, emoji: str | None = None, deadline: str | None = None) -> Collection:
        """Add a collection (used by the CLI host, not exposed as a tool)."""
        if not name.strip():
            raise StoreError("Collection name is required")
        store = self._load()
        collection = Collection(
            id=uuid.uuid4().hex,
            name=name.strip(),
            emoji=emoji,
            deadline=deadline,
            position=len(store["collections"]),
        )
        store["collections"].append({
            "id": collection.id,
            "name": collection.name,
            "emoji": collection.emoji,
            "deadline": collection.deadline,
            "position": collection.position,
        })
        self._save(store)
        return collection

    def add_review(self, review: Review) -> None:
        """Append a review entry as recorded by the study view."""
        store = self._load()
        if not any(r.get("id") == review.record_id for r in store["records"]):
            raise RecordNotFoundError(f"Flashcard not found: {review.record_id}")
        store["reviews"].append(review.to_dict())
        self._save(store)
