"""Pytest configuration for Claude log viewer tests."""

import sys
from pathlib import Path

import pytest

# Add src directory to Python path for testing
src_dir = Path(__file__).parent.parent / "src"
if str(src_dir) not in sys.path:
    sys.path.insert(0, str(src_dir))

# Add tests directory to Python path so fixtures can be imported
tests_dir = Path(__file__).parent
if str(tests_dir) not in sys.path:
    sys.path.insert(0, str(tests_dir))


@pytest.fixture
def session_file(tmp_path):
    """A small session log: a question, a shell command with output, a remark and an answer."""
    from fixtures.sample_conversations import (
        make_assistant_entry,
        make_user_entry,
        make_user_entry_with_tool_results,
        write_jsonl,
    )

    path = tmp_path / "8fd830ec-ec03-4c6c-8d63-a23976a2ce97.jsonl"
    write_jsonl(path, [
        make_user_entry("What is in this directory?"),
        make_assistant_entry("Let me look.", tool_uses=[
            {"id": "toolu_ls", "name": "Bash", "input": {"command": "ls -la"}}
        ]),
        make_user_entry_with_tool_results([
            {"tool_use_id": "toolu_ls", "content": "README.md\nsrc"}
        ]),
        make_user_entry("thanks"),
        make_assistant_entry("You're welcome!"),
    ])
    return path
