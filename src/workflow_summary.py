"""One-line descriptions of collapsed assistant processing workflows."""

from collections import Counter
from typing import Sequence

from conversation_models import (
    ConversationEntry,
    MessageContent,
    TextContent,
    ThinkingContent,
    ToolUse,
)

MAX_LISTED_TOOLS = 3
SUMMARY_SEPARATOR = ", "
FALLBACK_SUMMARY = "Processing steps"


def _plural(count: int, word: str) -> str:
    return f"{count} {word}{'s' if count > 1 else ''}"


def format_tool_names(tool_names: Sequence[str]) -> str:
    """List distinct tool names in first-seen order, e.g. ``Read(2), Bash +1 more``."""
    tool_counts = Counter(tool_names)
    listed = [
        f"{name}({count})" if count > 1 else name
        for name, count in list(tool_counts.items())[:MAX_LISTED_TOOLS]
    ]
    text = ", ".join(listed)
    if len(tool_counts) > MAX_LISTED_TOOLS:
        text += f" +{len(tool_counts) - MAX_LISTED_TOOLS} more"
    return text


def generate_processing_summary(
    internal_processing: Sequence[MessageContent],
    tool_results: Sequence[ConversationEntry],
    assistant_message_count: int = 1,
) -> str:
    """Describe what happened inside a processing workflow.

    Args:
        internal_processing: Thinking, tool use and intermediate text items
        tool_results: Tool-result-only entries absorbed into the workflow
        assistant_message_count: Number of assistant entries that were collapsed

    Returns:
        Clauses such as ``🤔 2 thinking steps, 🔧 3 tools: Read(2), Bash`` or
        ``Processing steps`` when there is nothing to report.
    """
    tool_names = [
        item.name or "Unknown" for item in internal_processing if isinstance(item, ToolUse)
    ]
    thinking_count = sum(1 for item in internal_processing if isinstance(item, ThinkingContent))
    text_count = sum(1 for item in internal_processing if isinstance(item, TextContent))

    parts = []
    if assistant_message_count > 1:
        parts.append(f"📝 {assistant_message_count} assistant messages")

    if thinking_count > 0:
        parts.append(f"🤔 {_plural(thinking_count, 'thinking step')}")

    if tool_names:
        parts.append(f"🔧 {_plural(len(tool_names), 'tool')}: {format_tool_names(tool_names)}")

    if text_count > 0:
        parts.append(f"💭 {_plural(text_count, 'intermediate response')}")

    if tool_results:
        parts.append(f"📥 {_plural(len(tool_results), 'result')}")

    return SUMMARY_SEPARATOR.join(parts) if parts else FALLBACK_SUMMARY
