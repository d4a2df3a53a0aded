"""Tests for tools module - tool definitions, schema validation and catalog."""

from flashchat.editor_bridge import DraftEditor, EditorBridge
from flashchat.tools import (
    BASE_TOOLS,
    EDITOR_TOOLS,
    EDITOR_TOOL_NAMES,
    TOOL_LABELS,
    get_tools,
    tool_label,
)

ALL_TOOLS = BASE_TOOLS + EDITOR_TOOLS


class TestToolDefinitions:
    """Tests for tool definitions."""

    def test_tools_are_lists(self):
        assert isinstance(BASE_TOOLS, list)
        assert isinstance(EDITOR_TOOLS, list)

    def test_all_tools_have_required_keys(self):
        for tool in ALL_TOOLS:
            assert "name" in tool, f"Tool missing 'name': {tool}"
            assert "description" in tool, f"Tool '{tool.get('name')}' missing 'description'"
            assert "input_schema" in tool, f"Tool '{tool.get('name')}' missing 'input_schema'"

    def test_all_schemas_have_type_object(self):
        for tool in ALL_TOOLS:
            assert tool["input_schema"]["type"] == "object", f"Tool '{tool['name']}' schema type is not 'object'"

    def test_required_fields_exist_in_properties(self):
        for tool in ALL_TOOLS:
            schema = tool["input_schema"]
            assert isinstance(schema["required"], list)
            for required_field in schema["required"]:
                assert required_field in schema["properties"], (
                    f"Tool '{tool['name']}': required field '{required_field}' not in properties"
                )

    def test_tool_names_are_unique(self):
        names = [t["name"] for t in ALL_TOOLS]
        assert len(names) == len(set(names))

    def test_tool_names_are_provider_safe(self):
        for tool in ALL_TOOLS:
            assert tool["name"].replace("_", "").isalpha(), tool["name"]
            assert tool["name"] == tool["name"].lower()

    def test_descriptions_are_not_empty(self):
        for tool in ALL_TOOLS:
            assert len(tool["description"]) > 10, f"Tool '{tool['name']}' has too short description"

    def test_every_tool_has_label(self):
        for tool in ALL_TOOLS:
            assert tool["name"] in TOOL_LABELS

    def test_tool_label_falls_back_to_name(self):
        assert tool_label("list_collections") == "Looking up your decks"
        assert tool_label("mystery_tool") == "mystery_tool"


class TestExpectedTools:
    """Tests that expected tools exist in the right set."""

    def test_base_tools(self):
        names = {t["name"] for t in BASE_TOOLS}
        assert {
            "list_collections",
            "list_records",
            "list_due_records",
            "get_record_detail",
            "create_record",
            "propose_records",
        } <= names

    def test_editor_tools(self):
        assert EDITOR_TOOL_NAMES == {
            "get_editor_content",
            "set_editor_question",
            "set_editor_answer",
            "set_editor_timer",
            "clear_editor_field",
        }

    def test_no_editor_tool_in_base_set(self):
        assert not EDITOR_TOOL_NAMES & {t["name"] for t in BASE_TOOLS}


class TestGetTools:
    """Editor tools are offered only while an editor session is registered."""

    def test_no_bridge(self):
        names = {t["name"] for t in get_tools(None)}
        assert not names & EDITOR_TOOL_NAMES
        assert len(names) == len(BASE_TOOLS)

    def test_bridge_without_session(self):
        names = {t["name"] for t in get_tools(EditorBridge())}
        assert not names & EDITOR_TOOL_NAMES

    def test_bridge_with_session(self):
        bridge = EditorBridge()
        bridge.register(DraftEditor())
        names = {t["name"] for t in get_tools(bridge)}
        assert EDITOR_TOOL_NAMES <= names
        assert len(names) == len(BASE_TOOLS) + len(EDITOR_TOOLS)

    def test_follows_registration_changes(self):
        bridge = EditorBridge()
        session = DraftEditor()
        bridge.register(session)
        assert len(get_tools(bridge)) == len(BASE_TOOLS) + len(EDITOR_TOOLS)
        bridge.unregister(session)
        assert len(get_tools(bridge)) == len(BASE_TOOLS)

    def test_returns_fresh_list(self):
        tools = get_tools(None)
        tools.append({"name": "extra"})
        assert len(get_tools(None)) == len(BASE_TOOLS)
