"""Tests for proposals module - proposal channel and confirmation."""

import asyncio

from flashchat.models import ProposedRecord
from flashchat.proposals import ProposalChannel, confirm_proposals, to_record_input


def batch(n, collection_id="c1"):
    return [ProposedRecord(question=f"Q{i}", answer=f"A{i}", target_collection_id=collection_id) for i in range(n)]


class TestProposalChannel:

    def test_propose_notifies_once_with_whole_batch(self):
        channel = ProposalChannel()
        seen = []
        channel.subscribe(seen.append)
        assert channel.propose(batch(3)) == 3
        assert len(seen) == 1
        assert len(seen[0]) == 3

    def test_observer_gets_copy(self):
        channel = ProposalChannel()
        seen = []
        channel.subscribe(seen.append)
        channel.propose(batch(2))
        seen[0].clear()
        assert len(channel.pending) == 2

    def test_propose_replaces_pending(self):
        channel = ProposalChannel()
        channel.propose(batch(3))
        channel.propose(batch(1))
        assert [r.question for r in channel.pending] == ["Q0"]

    def test_no_observer(self):
        channel = ProposalChannel()
        assert not channel.has_observer
        assert channel.propose(batch(2)) == 2

    def test_stale_unsubscribe_ignored(self):
        channel = ProposalChannel()
        old, new = [], []
        channel.subscribe(old.append)
        channel.subscribe(new.append)
        channel.unsubscribe(old.append)
        assert channel.has_observer
        channel.propose(batch(1))
        assert len(new) == 1
        assert old == []

    def test_unsubscribe(self):
        channel = ProposalChannel()
        observer = [].append
        channel.subscribe(observer)
        channel.unsubscribe(observer)
        assert not channel.has_observer

    def test_dismiss(self):
        channel = ProposalChannel()
        channel.propose(batch(2))
        channel.dismiss()
        assert channel.pending == []


class TestToRecordInput:

    def test_with_answer(self):
        data = to_record_input(ProposedRecord("Q", "A", "c1"))
        assert data.collection_id == "c1"
        assert data.question_content == "Q"
        assert data.question_type == "latex"
        assert data.answer_type == "latex"
        assert data.answer_content == "A"

    def test_without_answer(self):
        data = to_record_input(ProposedRecord("Q"))
        assert data.answer_type is None
        assert data.answer_content is None


class TestConfirmProposals:

    def test_all_succeed(self, fake_data):
        channel = ProposalChannel()
        channel.propose(batch(3))
        result = asyncio.run(confirm_proposals(fake_data, channel))
        assert result.ok
        assert result.created_ids == ["new1", "new2", "new3"]
        assert channel.pending == []
        assert [d.question_content for d in fake_data.created] == ["Q0", "Q1", "Q2"]

    def test_stops_at_first_failure(self, fake_data):
        fake_data.fail_on_create_after = 2
        channel = ProposalChannel()
        channel.propose(batch(5))
        result = asyncio.run(confirm_proposals(fake_data, channel))
        assert not result.ok
        assert result.error == "database is locked"
        assert result.created_ids == ["new1", "new2"]
        assert result.failed.question == "Q2"
        assert [r.question for r in result.remaining] == ["Q3", "Q4"]
        # No attempt past the failure
        assert [c for c in fake_data.calls if c[0] == "create_record"] == [
            ("create_record", "Q0"), ("create_record", "Q1"), ("create_record", "Q2"),
        ]
        assert [r.question for r in channel.pending] == ["Q2", "Q3", "Q4"]

    def test_retry_after_failure_creates_rest(self, fake_data):
        fake_data.fail_on_create_after = 1
        channel = ProposalChannel()
        channel.propose(batch(3))
        asyncio.run(confirm_proposals(fake_data, channel))
        fake_data.fail_on_create_after = None
        result = asyncio.run(confirm_proposals(fake_data, channel))
        assert result.ok
        assert [d.question_content for d in fake_data.created] == ["Q0", "Q1", "Q2"]

    def test_empty_batch(self, fake_data):
        result = asyncio.run(confirm_proposals(fake_data, ProposalChannel()))
        assert result.ok
        assert result.created_ids == []
        assert fake_data.calls == []
