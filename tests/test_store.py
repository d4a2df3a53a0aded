"""Tests for store module - the JSON-file data access layer."""

import asyncio
import json

import pytest

from flashchat.models import RecordInput, Review
from flashchat.store import JsonStore, RecordNotFoundError, StoreError, now_iso


@pytest.fixture
def store(tmp_path):
    return JsonStore(tmp_path / "store.json")


@pytest.fixture
def calculus(store):
    return store.create_collection("Calculus", emoji="📐", deadline="2026-12-01")


def create(store, collection_id, question="Q", **kwargs):
    return asyncio.run(store.create_record(RecordInput(collection_id=collection_id, question_content=question, **kwargs)))


class TestCollections:

    def test_empty_store(self, store):
        assert asyncio.run(store.list_collections()) == []

    def test_create_and_list(self, store, calculus):
        store.create_collection("Linear Algebra")
        collections = asyncio.run(store.list_collections())
        assert [c.name for c in collections] == ["Calculus", "Linear Algebra"]
        assert collections[0].emoji == "📐"
        assert collections[1].position == 1

    def test_blank_name_rejected(self, store):
        with pytest.raises(StoreError):
            store.create_collection("   ")


class TestRecords:

    def test_create_record_defaults(self, store, calculus):
        record = create(store, calculus.id, "\\int x\\,dx", answer_type="latex", answer_content="x^2/2")
        assert record.timer_mode == "5min"
        assert record.timer_seconds == 300
        assert record.ease_factor == 2.5
        assert record.due_date == record.created_at

    def test_create_record_persists(self, store, calculus):
        record = create(store, calculus.id)
        reloaded = JsonStore(store.path)
        detail = asyncio.run(reloaded.get_record_detail(record.id))
        assert detail.question_content == "Q"

    def test_create_record_unknown_collection(self, store):
        with pytest.raises(StoreError, match="Collection not found"):
            create(store, "missing")

    def test_create_record_requires_question(self, store, calculus):
        with pytest.raises(StoreError):
            create(store, calculus.id, "")

    def test_list_records_filters_by_collection(self, store, calculus):
        other = store.create_collection("Other")
        create(store, calculus.id, "a")
        create(store, other.id, "b")
        records = asyncio.run(store.list_records(calculus.id))
        assert [r.question_content for r in records] == ["a"]

    def test_record_not_found(self, store):
        with pytest.raises(RecordNotFoundError):
            asyncio.run(store.get_record_detail("nope"))

    def test_unknown_fields_ignored(self, store, tmp_path):
        store.path.write_text(json.dumps({
            "collections": [{"id": "c1", "name": "C", "color": "red"}],
            "records": [{"id": "r1", "collection_id": "c1", "question_content": "Q", "legacy": True}],
        }))
        record = asyncio.run(store.get_record_detail("r1"))
        assert record.question_content == "Q"

    def test_corrupt_file(self, store):
        store.path.write_text("{nope")
        with pytest.raises(StoreError, match="corrupted"):
            asyncio.run(store.list_collections())


class TestDueRecords:

    def test_new_record_is_due(self, store, calculus):
        record = create(store, calculus.id)
        due = asyncio.run(store.list_due_records())
        assert [r.id for r in due] == [record.id]

    def test_future_record_not_due(self, store, tmp_path):
        store.path.write_text(json.dumps({
            "collections": [{"id": "c1", "name": "C"}],
            "records": [
                {"id": "past", "collection_id": "c1", "due_date": "2020-01-01T00:00:00.000Z"},
                {"id": "future", "collection_id": "c1", "due_date": "2999-01-01T00:00:00.000Z"},
                {"id": "never", "collection_id": "c1", "due_date": None},
            ],
        }))
        due = asyncio.run(store.list_due_records("c1"))
        assert {r.id for r in due} == {"past", "never"}


class TestHistoryAndStats:

    def test_history_newest_first(self, store, calculus):
        record = create(store, calculus.id)
        store.add_review(Review(id="v1", record_id=record.id, correct=True, reviewed_at="2026-01-01T00:00:00.000Z"))
        store.add_review(Review(id="v2", record_id=record.id, correct=False, reviewed_at="2026-02-01T00:00:00.000Z"))
        history = asyncio.run(store.get_record_history(record.id))
        assert [r.id for r in history] == ["v2", "v1"]

    def test_review_for_unknown_record(self, store):
        with pytest.raises(RecordNotFoundError):
            store.add_review(Review(id="v1", record_id="nope", correct=True))

    def test_stats(self, store, calculus):
        first = create(store, calculus.id, "a")
        create(store, calculus.id, "b")
        store.add_review(Review(id="v1", record_id=first.id, correct=True, reviewed_at=now_iso()))
        store.add_review(Review(id="v2", record_id=first.id, correct=False, reviewed_at=now_iso()))
        store.add_review(Review(id="v3", record_id=first.id, correct=True, reviewed_at="2000-01-01T00:00:00.000Z"))

        stats = asyncio.run(store.get_study_stats(calculus.id))
        assert stats.total_cards == 2
        assert stats.due_today == 2
        assert stats.reviewed_today == 2
        assert stats.accuracy_today == 0.5

    def test_stats_empty(self, store):
        stats = asyncio.run(store.get_study_stats())
        assert stats.total_cards == 0
        assert stats.accuracy_today == 0.0
