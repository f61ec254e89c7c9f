"""Tests for merging several session logs into one HTML conversation"""

import shutil
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from combine_jsonl import JsonlCombiner
from fixtures.sample_conversations import (
    make_assistant_entry,
    make_user_entry,
    write_jsonl,
)


class TestJsonlCombiner(unittest.TestCase):
    """Combining JSONL files"""

    def setUp(self):
        self.temp_dir = Path(tempfile.mkdtemp())
        write_jsonl(self.temp_dir / "b.jsonl", [
            make_user_entry("Second question"),
            make_assistant_entry("Second answer"),
        ])
        write_jsonl(self.temp_dir / "a.jsonl", [
            make_user_entry("First question"),
            make_assistant_entry("First answer"),
        ])
        (self.temp_dir / "notes.txt").write_text("not a log")
        self.output = self.temp_dir / "out" / "combined.html"

    def tearDown(self):
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def test_find_jsonl_files_sorted(self):
        """Test only JSONL files are picked up, in name order"""
        self.assertEqual(JsonlCombiner.find_jsonl_files(self.temp_dir), ["a.jsonl", "b.jsonl"])

    def test_combine_all_files(self):
        """Test every file is parsed as one conversation and written as HTML"""
        with patch("builtins.print"):
            data = JsonlCombiner.combine_jsonl_files(self.temp_dir, self.output)

        self.assertEqual(len(data.entries), 4)
        self.assertEqual(data.metadata.title, "Combined Claude Code Conversations (4 entries)")
        self.assertEqual(data.entries[0].content[0].text, "First question")
        self.assertEqual(data.entries[3].content[0].text, "Second answer")

        html = self.output.read_text(encoding="utf-8")
        self.assertIn("<title>Combined Claude Code Conversations (4 entries)</title>", html)
        self.assertIn("Second answer", html)

    def test_missing_file_is_skipped(self):
        """Test an unreadable file is reported and the rest still combined"""
        with patch("builtins.print") as mock_print:
            data = JsonlCombiner.combine_jsonl_files(
                self.temp_dir, self.output, files=["a.jsonl", "missing.jsonl"]
            )

        self.assertEqual(len(data.entries), 2)
        printed = [str(call.args[0]) for call in mock_print.call_args_list if call.args]
        self.assertTrue(any(line.startswith("❌ Failed to read missing.jsonl") for line in printed))
        self.assertTrue(self.output.exists())

    def test_read_lines_drops_blank_lines(self):
        """Test blank lines between records are not carried over"""
        (self.temp_dir / "gaps.jsonl").write_text('{"a": 1}\n\n   \n{"b": 2}\n', encoding="utf-8")
        with patch("builtins.print"):
            lines = JsonlCombiner.read_lines(self.temp_dir, ["gaps.jsonl"])
        self.assertEqual(lines, ['{"a": 1}', '{"b": 2}'])


if __name__ == "__main__":
    unittest.main()
