"""Merge several Claude Code session logs into a single HTML conversation."""

from pathlib import Path
from typing import Iterable, List, Optional, Union

from conversation_models import ConversationData
from conversation_viewer import ConversationViewer
from jsonl_parser import JsonlParser


class JsonlCombiner:
    """Concatenate JSONL files and render them as one conversation."""

    @staticmethod
    def find_jsonl_files(directory: Path) -> List[str]:
        return sorted(p.name for p in directory.glob("*.jsonl") if p.is_file())

    @classmethod
    def read_lines(cls, directory: Path, files: Iterable[str]) -> List[str]:
        """Collect non-blank lines from each file; unreadable files are skipped."""
        combined: List[str] = []
        for name in files:
            file_path = directory / name
            try:
                print(f"📄 Reading {name}...")
                content = file_path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as e:
                print(f"❌ Failed to read {name}: {e}")
                continue

            lines = [line for line in content.split("\n") if line.strip()]
            combined.extend(lines)
            print(f"✅ Added {len(lines)} lines from {name}")
        return combined

    @classmethod
    def combine_jsonl_files(
        cls,
        directory_path: Union[str, Path],
        output_path: Union[str, Path],
        files: Optional[List[str]] = None,
    ) -> ConversationData:
        """Parse the given files (default: every *.jsonl in the directory) as one
        conversation and write it as HTML to ``output_path``.
        """
        directory = Path(directory_path)
        if files is None:
            files = cls.find_jsonl_files(directory)

        print(f"📁 Reading {len(files)} JSONL files...")
        lines = cls.read_lines(directory, files)

        print(f"\n📊 Combined {len(lines)} total lines")
        print("📝 Parsing as single conversation...")
        data = JsonlParser.parse_string("\n".join(lines))
        print(f"✅ Parsed {len(data.entries)} entries")

        data.metadata.title = f"Combined Claude Code Conversations ({len(data.entries)} entries)"

        written = ConversationViewer(data).save_as_html(output_path)
        print(f"\n💾 Combined conversation saved to: {written}")
        return data
