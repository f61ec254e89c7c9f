#!/usr/bin/env python3
"""
View Claude Code conversation logs in the terminal or as HTML

Parses the JSONL session files Claude Code stores in ~/.claude/projects/,
groups tool calls, shell commands and intermediate reasoning into collapsible
workflows, and prints the conversation or writes a self-contained HTML page.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from combine_jsonl import JsonlCombiner
from conversation_viewer import ConversationViewer
from jsonl_parser import JsonlParser
from session_finder import SessionFinder


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="View Claude Code conversation logs in the terminal or as HTML",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s conversation.jsonl                      # Print to the terminal
  %(prog)s conversation.jsonl --html output.html   # Write an HTML page
  %(prog)s conversation.jsonl --html ~/exports     # Auto-named file in a directory
  %(prog)s --session-id 8fd830ec --html out.html   # Find a session by ID prefix
  %(prog)s --list --limit 10                       # List recent sessions
  %(prog)s --combine ~/.claude/projects/my-project --html all.html
        """,
    )
    parser.add_argument("jsonl_file", nargs="?", help="Path to a JSONL session file")
    parser.add_argument("--html", metavar="OUTPUT", help="Write HTML to this file or directory")
    parser.add_argument(
        "--session-id",
        type=str,
        help="Open a session by ID (full UUID or partial prefix)",
    )
    parser.add_argument("--list", action="store_true", help="List recent sessions")
    parser.add_argument(
        "--limit", type=int, default=None, help="Limit for --list (default: show all)"
    )
    parser.add_argument(
        "--combine",
        metavar="DIR",
        help="Combine every JSONL file in DIR into one conversation (requires --html)",
    )
    parser.add_argument(
        "--claude-dir",
        type=str,
        help="Claude projects directory (default: ~/.claude/projects)",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Show debug logging")
    return parser


def _fail(message: str) -> None:
    print(f"❌ Error: {message}")
    sys.exit(1)


def resolve_input(args: argparse.Namespace, finder: SessionFinder) -> Optional[Path]:
    """Return the JSONL file named on the command line or found by session ID."""
    if args.jsonl_file:
        return Path(args.jsonl_file).expanduser()
    if args.session_id:
        session = finder.find_session_by_id(args.session_id)
        if session is None:
            _fail(f"No session found matching '{args.session_id}'")
        print(f"🔍 Found session: {session.stem}")
        return session
    return None


def main(argv: Optional[List[str]] = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    finder = SessionFinder(Path(args.claude_dir).expanduser() if args.claude_dir else None)

    if args.list:
        finder.list_recent_sessions(args.limit)
        return

    if args.combine:
        if not args.html:
            parser.error("--combine requires --html OUTPUT")
        directory = Path(args.combine).expanduser()
        if not directory.is_dir():
            _fail(f"Not a directory: {directory}")
        try:
            JsonlCombiner.combine_jsonl_files(directory, Path(args.html).expanduser())
        except OSError as e:
            _fail(str(e))
        return

    jsonl_path = resolve_input(args, finder)
    if jsonl_path is None:
        parser.print_help()
        sys.exit(1)

    try:
        print(f"📖 Parsing {jsonl_path}...")
        data = JsonlParser.parse_file(jsonl_path)
        viewer = ConversationViewer(data)

        if args.html:
            print(f"📄 Generating HTML output to {args.html}...")
            output_path = viewer.save_as_html(Path(args.html).expanduser())
            print(f"✅ HTML file generated: {output_path}")
        else:
            print("📺 Displaying conversation:")
            print()
            viewer.display_conversation()
    except (OSError, UnicodeDecodeError) as e:
        _fail(str(e))


if __name__ == "__main__":
    main()
