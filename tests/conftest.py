"""Shared fakes for the study assistant tests."""

import json

import pytest

from flashchat.models import Collection, Record, RecordInput, Review, StudyStats


class FakeData:
    """In-memory DataAccess that records every call."""

    def __init__(self):
        self.calls: list[tuple] = []
        self.collections = [
            Collection(id="c1", name="Calculus", emoji="📐", deadline="2026-12-01"),
            Collection(id="c2", name="Linear Algebra"),
        ]
        self.records = [
            Record(id="r1", collection_id="c1", question_content="\\int x\\,dx", answer_type="latex",
                   answer_content="x^2/2 + C", interval_days=3.14159, repetitions=2,
                   due_date="2020-01-01T00:00:00.000Z"),
            Record(id="r2", collection_id="c1", question_type="image",
                   question_content="/images/q2.png", answer_type="image", answer_content="/images/a2.png"),
            Record(id="r3", collection_id="c2", question_content="det(I)", answer_content="1"),
        ]
        self.reviews = [
            Review(id=f"v{i}", record_id="r1", correct=i % 2 == 0, reviewed_at=f"2026-01-{i + 1:02d}")
            for i in range(25)
        ]
        self.created: list[RecordInput] = []
        self.fail_on_create_after: int | None = None

    async def list_collections(self):
        self.calls.append(("list_collections",))
        return list(self.collections)

    async def list_records(self, collection_id):
        self.calls.append(("list_records", collection_id))
        return [r for r in self.records if r.collection_id == collection_id]

    async def list_due_records(self, collection_id=None):
        self.calls.append(("list_due_records", collection_id))
        return [r for r in self.records if not collection_id or r.collection_id == collection_id]

    async def get_record_detail(self, record_id):
        self.calls.append(("get_record_detail", record_id))
        for r in self.records:
            if r.id == record_id:
                return r
        raise LookupError("Flashcard not found")

    async def get_record_history(self, record_id):
        self.calls.append(("get_record_history", record_id))
        return [r for r in self.reviews if r.record_id == record_id]

    async def get_study_stats(self, collection_id=None):
        self.calls.append(("get_study_stats", collection_id))
        return StudyStats(total_cards=2, due_today=1, overdue=1, reviewed_today=4, accuracy_today=0.75)

    async def create_record(self, data):
        self.calls.append(("create_record", data.question_content))
        if self.fail_on_create_after is not None and len(self.created) >= self.fail_on_create_after:
            raise RuntimeError("database is locked")
        self.created.append(data)
        return Record(id=f"new{len(self.created)}", collection_id=data.collection_id,
                      question_content=data.question_content)


class ScriptedTransport:
    """Transport returning canned raw responses and recording each request."""

    def __init__(self, responses):
        self.responses = list(responses)
        self.requests: list[dict] = []

    async def complete(self, messages, tools=None):
        self.requests.append({
            "messages": list(messages),
            "tools": None if tools is None else [t["name"] for t in tools],
        })
        if not self.responses:
            raise AssertionError("transport called more times than scripted")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


def openai_text(content):
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


def openai_tools(*calls, content=None):
    """calls: (id, name, args_dict) tuples."""
    return {"choices": [{"message": {
        "role": "assistant",
        "content": content,
        "tool_calls": [
            {"id": cid, "type": "function", "function": {"name": name, "arguments": json.dumps(args)}}
            for cid, name, args in calls
        ],
    }}]}


def anthropic_tools(*calls, text=""):
    blocks = [{"type": "text", "text": text}] if text else []
    blocks += [{"type": "tool_use", "id": cid, "name": name, "input": args} for cid, name, args in calls]
    return {"content": blocks, "stop_reason": "tool_use"}


@pytest.fixture
def fake_data():
    return FakeData()


@pytest.fixture
def scripted():
    return ScriptedTransport
