"""Tests for chat module - draft and proposal helpers used by the chat UI."""

import asyncio

from rich.console import Console

from conftest import ScriptedTransport
from flashchat.assistant import StudyAssistant
from flashchat.chat import _confirm, _open_draft, _save_draft, draft_panel, find_collection, proposals_table
from flashchat.editor_bridge import DraftEditor, EditorContext
from flashchat.models import Collection, ProposedRecord
from flashchat.store import JsonStore


def quiet_console():
    return Console(record=True, width=100)


COLLECTIONS = [
    Collection(id="c1", name="Calculus"),
    Collection(id="c2", name="Linear Algebra"),
    Collection(id="c3", name="Linear Programming"),
]


class TestFindCollection:

    def test_by_id(self):
        assert find_collection(COLLECTIONS, "c2").name == "Linear Algebra"

    def test_by_name_case_insensitive(self):
        assert find_collection(COLLECTIONS, "calculus").id == "c1"

    def test_unique_prefix(self):
        assert find_collection(COLLECTIONS, "calc").id == "c1"

    def test_ambiguous_prefix(self):
        assert find_collection(COLLECTIONS, "linear") is None

    def test_no_match(self):
        assert find_collection(COLLECTIONS, "topology") is None


class TestRenderables:

    def test_proposals_table(self):
        records = [ProposedRecord("Q1", "A1", "c1"), ProposedRecord("Q2", "", "c1")]
        console = quiet_console()
        console.print(proposals_table(records))
        text = console.export_text()
        assert "Q1" in text
        assert "A1" in text
        assert "Q2" in text

    def test_draft_panel(self):
        console = quiet_console()
        console.print(draft_panel(DraftEditor(question="d/dx sin x"), EditorContext(collection_name="Calculus")))
        text = console.export_text()
        assert "d/dx sin x" in text
        assert "(empty)" in text
        assert "Calculus" in text


class TestDraftCommands:

    def test_open_draft_registers_editor(self, fake_data):
        assistant = StudyAssistant(ScriptedTransport([]), fake_data)
        draft = asyncio.run(_open_draft(quiet_console(), assistant, "calc"))
        assert assistant.editor.session is draft
        assert assistant.editor.context.collection_id == "c1"

    def test_open_draft_unknown_collection(self, fake_data):
        assistant = StudyAssistant(ScriptedTransport([]), fake_data)
        assert asyncio.run(_open_draft(quiet_console(), assistant, "topology")) is None
        assert not assistant.editor.is_open

    def test_open_draft_corrupt_store(self, tmp_path):
        store = JsonStore(tmp_path / "store.json")
        store.path.write_text("{nope")
        assistant = StudyAssistant(ScriptedTransport([]), store)
        console = quiet_console()
        assert asyncio.run(_open_draft(console, assistant, "calc")) is None
        assert not assistant.editor.is_open
        assert "Could not load collections" in console.export_text()

    def test_save_draft_creates_record_and_closes(self, fake_data):
        assistant = StudyAssistant(ScriptedTransport([]), fake_data)
        draft = asyncio.run(_open_draft(quiet_console(), assistant, "c1"))
        draft.set_question("\\sin^2 x + \\cos^2 x")
        draft.set_answer("1")
        draft.set_timer_mode("1min")

        assert asyncio.run(_save_draft(quiet_console(), assistant, draft)) is True
        created = fake_data.created[0]
        assert created.collection_id == "c1"
        assert created.answer_content == "1"
        assert created.timer_seconds == 60
        assert not assistant.editor.is_open

    def test_save_empty_draft_refused(self, fake_data):
        assistant = StudyAssistant(ScriptedTransport([]), fake_data)
        draft = asyncio.run(_open_draft(quiet_console(), assistant, ""))
        assert asyncio.run(_save_draft(quiet_console(), assistant, draft)) is False
        assert fake_data.created == []
        assert assistant.editor.is_open


class TestConfirmCommand:

    def test_reports_partial_failure(self, fake_data):
        fake_data.fail_on_create_after = 1
        assistant = StudyAssistant(ScriptedTransport([]), fake_data)
        assistant.proposals.propose([ProposedRecord("Q1", "", "c1"), ProposedRecord("Q2", "", "c1")])
        console = quiet_console()
        asyncio.run(_confirm(console, assistant))
        text = console.export_text()
        assert "Stopped after 1 card(s)" in text
        assert "1 card(s) still pending" in text

    def test_nothing_pending(self, fake_data):
        assistant = StudyAssistant(ScriptedTransport([]), fake_data)
        console = quiet_console()
        asyncio.run(_confirm(console, assistant))
        assert "No proposed cards waiting" in console.export_text()
