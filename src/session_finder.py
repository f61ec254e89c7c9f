"""Locate Claude Code session logs stored under ~/.claude/projects."""

from datetime import datetime
from pathlib import Path
from typing import List, Optional

from conversation_models import ConversationEntry
from conversation_viewer import extract_message_summary
from jsonl_parser import JsonlParser
from message_classifier import is_tool_result_message

DEFAULT_CLAUDE_DIR = Path.home() / ".claude" / "projects"


class SessionFinder:
    """Find and describe session JSONL files."""

    def __init__(self, claude_dir: Optional[Path] = None):
        self.claude_dir = Path(claude_dir) if claude_dir else DEFAULT_CLAUDE_DIR

    def find_sessions(self) -> List[Path]:
        """Find all JSONL session files, sorted by most recent first."""
        sessions = []
        if self.claude_dir.exists():
            for jsonl_file in self.claude_dir.rglob("*.jsonl"):
                # Subagent logs belong to a parent session
                if "subagents" in jsonl_file.parts:
                    continue
                sessions.append(jsonl_file)
        return sorted(sessions, key=lambda x: x.stat().st_mtime, reverse=True)

    def find_session_by_id(self, session_id: str) -> Optional[Path]:
        """Find a session by its full UUID or a unique prefix of it."""
        session_id = session_id.lower().strip()
        sessions = self.find_sessions()

        for session in sessions:
            if session.stem.lower() == session_id:
                return session

        matches = [s for s in sessions if s.stem.lower().startswith(session_id)]
        if len(matches) == 1:
            return matches[0]
        elif len(matches) > 1:
            print(f"⚠️  Multiple sessions match '{session_id}':")
            for m in matches[:5]:
                print(f"   - {m.stem}")
            if len(matches) > 5:
                print(f"   ... and {len(matches) - 5} more")
            print("Please provide a more specific ID.")
        return None

    @staticmethod
    def project_name(session_path: Path) -> str:
        """Readable project name from the encoded project folder."""
        project = session_path.parent.name.replace("-", " ").strip()
        if project.startswith("Users"):
            parts = project.split()
            return "~/" + "/".join(parts[2:]) if len(parts) > 2 else "Home"
        return project

    @staticmethod
    def get_conversation_preview(entries: List[ConversationEntry]) -> str:
        """Summary of the first real user message in a session."""
        for entry in entries:
            if entry.role == "user" and not entry.is_sidechain and not is_tool_result_message(entry):
                return extract_message_summary(entry, max_length=60)
        return "No preview available"

    def list_recent_sessions(self, limit: Optional[int] = None) -> List[Path]:
        """Print recent sessions with details and return them."""
        sessions = self.find_sessions()

        if not sessions:
            print(f"❌ No Claude sessions found in {self.claude_dir}")
            print("💡 Make sure you've used Claude Code and have conversations saved.")
            return []

        print(f"\n📚 Found {len(sessions)} Claude sessions:\n")
        print("=" * 80)

        shown = sessions[:limit] if limit else sessions
        for i, session in enumerate(shown, 1):
            stat = session.stat()
            modified = datetime.fromtimestamp(stat.st_mtime)
            try:
                entries = JsonlParser.parse_file(session).entries
                preview = self.get_conversation_preview(entries)
            except (OSError, UnicodeDecodeError) as e:
                entries = []
                preview = f"Error: {str(e)[:30]}"

            print(f"\n{i}. 📁 {self.project_name(session)}")
            print(f"   📄 Session: {session.stem}")
            print(f"   📅 Modified: {modified.strftime('%Y-%m-%d %H:%M')}")
            print(f"   💬 Entries: {len(entries)}")
            print(f"   💾 Size: {stat.st_size / 1024:.1f} KB")
            print(f"   📝 Preview: \"{preview}\"")

        print("\n" + "=" * 80)
        return shown
