"""Structural predicates over conversation entries and content items."""

from conversation_models import ConversationEntry, MessageContent, ToolResult, ToolUse

# Tool name Claude Code uses for shell commands
BASH_TOOL_NAME = "Bash"


def is_tool_result_message(entry: ConversationEntry) -> bool:
    """True if a user entry carries only tool results, not actual user input."""
    return entry.role == "user" and all(
        isinstance(item, ToolResult) for item in entry.content
    )


def has_tool_usage(entry: ConversationEntry) -> bool:
    """True if an assistant entry invokes at least one tool."""
    return entry.role == "assistant" and any(
        isinstance(item, ToolUse) for item in entry.content
    )


def is_bash_tool_use(item: MessageContent) -> bool:
    return isinstance(item, ToolUse) and item.name == BASH_TOOL_NAME


def is_bash_tool_result(entry: ConversationEntry) -> bool:
    """True if an entry can serve as the output of a preceding shell command.

    The tool_use_id is not matched against the invocation; adjacency to the
    shell call is what pairs them.
    """
    return is_tool_result_message(entry) and any(
        isinstance(item, ToolResult) for item in entry.content
    )


def find_bash_tool_use(entry: ConversationEntry):
    """Return the first shell invocation in an assistant entry, or None."""
    if entry.role != "assistant":
        return None
    for item in entry.content:
        if is_bash_tool_use(item):
            return item
    return None
