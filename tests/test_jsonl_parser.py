"""Tests for JSONL decoding and tool formatting"""

import json
import shutil
import tempfile
import unittest
from pathlib import Path

from conversation_models import (
    ImageContent,
    TextContent,
    ThinkingContent,
    ToolResult,
    ToolUse,
    UnknownContent,
)
from fixtures.sample_conversations import (
    make_assistant_entry,
    make_file_history_snapshot_entry,
    make_progress_entry,
    make_summary_entry,
    make_system_entry,
    make_user_entry,
    make_user_entry_with_tool_results,
    write_jsonl,
)
from jsonl_parser import JsonlParser, format_tool_result, format_tool_use


def to_jsonl(records):
    return "\n".join(json.dumps(r) for r in records)


class TestJsonlParser(unittest.TestCase):
    """Decoding Claude Code and legacy records"""

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()

    def tearDown(self):
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def test_parse_basic_conversation(self):
        """Test user and assistant records with metadata"""
        first = make_user_entry("Hello Claude", timestamp="2026-01-15T09:00:00.000Z")
        data = JsonlParser.parse_string(to_jsonl([first, make_assistant_entry("Hi! How can I help?")]))

        self.assertEqual(len(data.entries), 2)
        self.assertEqual(data.entries[0].role, "user")
        self.assertEqual(data.entries[0].content, (TextContent("Hello Claude"),))
        self.assertEqual(data.entries[0].id, first["uuid"])
        self.assertEqual(data.entries[1].role, "assistant")
        self.assertEqual(data.entries[1].model, "claude-opus-4-6")
        self.assertEqual(data.metadata.session_id, "test-session-id")
        self.assertEqual(data.metadata.version, "2.1.42")
        self.assertEqual(data.metadata.cwd, "/test/project")
        self.assertEqual(data.metadata.created_at, "2026-01-15T09:00:00.000Z")
        self.assertEqual(data.metadata.title, "Claude Code Conversation (2 entries)")

    def test_assistant_usage_and_content_items(self):
        """Test thinking, text and tool use blocks with token usage"""
        record = make_assistant_entry(
            "Let me look.",
            thinking="The user wants a listing",
            tool_uses=[{"id": "toolu_1", "name": "Bash", "input": {"command": "ls"}}],
        )
        entry = JsonlParser.parse_string(json.dumps(record)).entries[0]

        self.assertEqual(entry.content, (
            ThinkingContent("The user wants a listing"),
            TextContent("Let me look."),
            ToolUse("toolu_1", "Bash", {"command": "ls"}),
        ))
        self.assertEqual(entry.usage.input_tokens, 1000)
        self.assertEqual(entry.usage.output_tokens, 200)
        self.assertEqual(entry.usage.cache_read_input_tokens, 5000)

    def test_tool_results_and_sidechain(self):
        """Test tool result blocks, error flags and the sidechain flag"""
        record = make_user_entry_with_tool_results(
            [{"tool_use_id": "toolu_1", "content": "boom", "is_error": True}],
            is_sidechain=True,
        )
        entry = JsonlParser.parse_string(json.dumps(record)).entries[0]

        self.assertEqual(entry.content, (ToolResult("toolu_1", "boom", True),))
        self.assertTrue(entry.is_sidechain)

    def test_non_turn_records_are_skipped(self):
        """Test progress, system and snapshot records produce no entries"""
        records = [
            make_progress_entry(),
            make_user_entry("Hello"),
            make_file_history_snapshot_entry(),
            make_system_entry(),
            make_assistant_entry("Hi there"),
        ]
        data = JsonlParser.parse_string(to_jsonl(records))
        self.assertEqual([e.role for e in data.entries], ["user", "assistant"])

    def test_metadata_from_first_message_record(self):
        """Test session details are not taken from skipped records"""
        records = [make_progress_entry(session_id="other"), make_user_entry("Hello")]
        data = JsonlParser.parse_string(to_jsonl(records))
        self.assertEqual(data.metadata.session_id, "test-session-id")

    def test_summary_record(self):
        """Test compaction summaries become assistant text"""
        data = JsonlParser.parse_string(json.dumps(make_summary_entry("Fixed the bug", "leaf-1")))
        entry = data.entries[0]

        self.assertEqual(entry.role, "assistant")
        self.assertEqual(entry.content, (TextContent("📋 Conversation Summary: Fixed the bug"),))
        self.assertEqual(entry.id, "leaf-1")
        self.assertTrue(entry.timestamp)
        self.assertIsNone(data.metadata.session_id)

    def test_invalid_lines_are_skipped_with_warning(self):
        """Test broken lines are logged and parsing continues"""
        content = "\n".join([
            "not json",
            json.dumps(make_user_entry("Hello")),
            "[1, 2, 3]",
            "",
            "   ",
            "{bad json}",
        ])
        with self.assertLogs("jsonl_parser", level="WARNING") as logs:
            data = JsonlParser.parse_string(content)

        self.assertEqual(len(data.entries), 1)
        self.assertEqual(len(logs.records), 3)
        self.assertIn("Failed to parse line: not json", logs.output[0])

    def test_legacy_message_wrapper(self):
        """Test legacy records wrapping a message object"""
        record = {
            "id": "legacy-1",
            "timestamp": "2024-01-15T10:00:00Z",
            "message": {"role": "assistant", "content": [{"type": "text", "text": "Old reply"}]},
            "model": "claude-2",
            "usage": {"input_tokens": 10, "output_tokens": 5},
        }
        entry = JsonlParser.parse_string(json.dumps(record)).entries[0]

        self.assertEqual(entry.id, "legacy-1")
        self.assertEqual(entry.content, (TextContent("Old reply"),))
        self.assertEqual(entry.model, "claude-2")
        self.assertEqual(entry.usage.output_tokens, 5)

    def test_legacy_role_content_record(self):
        """Test legacy records with top-level role and content"""
        record = {"role": "user", "content": "Old question", "timestamp": "2024-01-15T10:00:00Z"}
        entry = JsonlParser.parse_string(json.dumps(record)).entries[0]

        self.assertEqual(entry.role, "user")
        self.assertEqual(entry.content, (TextContent("Old question"),))
        self.assertEqual(entry.timestamp, "2024-01-15T10:00:00Z")

    def test_numeric_and_invalid_timestamps(self):
        """Test epoch timestamps become ISO strings and other types are dropped"""
        records = [
            {"role": "user", "content": "hi", "timestamp": 1700000000},
            {"role": "assistant", "content": "hello", "timestamp": {"at": "noon"}},
        ]
        data = JsonlParser.parse_string(to_jsonl(records))

        self.assertEqual(data.entries[0].timestamp, "2023-11-14T22:13:20Z")
        self.assertIsNone(data.entries[1].timestamp)

    def test_image_with_non_object_source(self):
        """Test an image whose source is not an object still decodes"""
        items = JsonlParser.parse_content([{"type": "image", "source": "http://example.com/a.png"}])
        self.assertEqual(items, (ImageContent("unknown", ""),))

    def test_content_normalisation(self):
        """Test string, scalar and empty content become non-empty tuples"""
        self.assertEqual(JsonlParser.parse_content("hi"), (TextContent("hi"),))
        self.assertEqual(JsonlParser.parse_content(42), (TextContent("42"),))
        self.assertEqual(JsonlParser.parse_content([]), (TextContent(""),))

    def test_image_and_unknown_blocks(self):
        """Test image blocks and unrecognised block types"""
        items = JsonlParser.parse_content([
            {"type": "image", "source": {"type": "base64", "media_type": "image/png", "data": "abc"}},
            {"type": "document", "source": {}},
        ])
        self.assertEqual(items[0], ImageContent("image/png", "abc"))
        self.assertIsInstance(items[1], UnknownContent)
        self.assertEqual(items[1].type, "document")

    def test_parse_file(self):
        """Test reading a session file from disk"""
        jsonl_file = Path(self.temp_dir) / "session.jsonl"
        write_jsonl(jsonl_file, [make_user_entry("Hello"), make_assistant_entry("Hi")])

        data = JsonlParser.parse_file(jsonl_file)
        self.assertEqual(len(data.entries), 2)

    def test_parse_missing_file_raises(self):
        """Test file errors propagate to the caller"""
        with self.assertRaises(FileNotFoundError):
            JsonlParser.parse_file(Path(self.temp_dir) / "missing.jsonl")


class TestToolFormatting(unittest.TestCase):
    """Text formatting of tool invocations and results"""

    def test_format_tool_use_with_object_input(self):
        """Test object input is pretty-printed JSON"""
        formatted = format_tool_use(ToolUse("t", "Bash", {"command": "ls"}))
        self.assertEqual(formatted, 'Tool: Bash\n{\n  "command": "ls"\n}')

    def test_format_tool_use_with_string_input(self):
        """Test string input is shown as-is"""
        self.assertEqual(format_tool_use(ToolUse("t", "Note", "remember")), "Tool: Note\nremember")

    def test_format_tool_use_without_name(self):
        """Test missing tool names"""
        self.assertTrue(format_tool_use(ToolUse("t", "", {})).startswith("Tool: unknown"))

    def test_format_tool_result(self):
        """Test plain results and errors"""
        self.assertEqual(format_tool_result(ToolResult("t", "hello")), "Result: hello")
        self.assertEqual(format_tool_result(ToolResult("t", "boom", True)), "Error: boom")

    def test_format_tool_result_text_blocks(self):
        """Test lists of text blocks are joined"""
        content = [{"type": "text", "text": "line 1"}, {"type": "text", "text": "line 2"}]
        self.assertEqual(format_tool_result(ToolResult("t", content)), "Result: line 1\nline 2")

    def test_format_tool_result_json(self):
        """Test structured and JSON-looking content is indented"""
        self.assertEqual(
            format_tool_result(ToolResult("t", '{"a": 1}')), 'Result: {\n  "a": 1\n}'
        )
        self.assertEqual(
            format_tool_result(ToolResult("t", {"a": 1})), 'Result: {\n  "a": 1\n}'
        )
        self.assertEqual(format_tool_result(ToolResult("t", "{not json}")), "Result: {not json}")


if __name__ == "__main__":
    unittest.main()
