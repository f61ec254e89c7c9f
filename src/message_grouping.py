"""
Group a flat list of conversation entries into display units.

A single forward pass turns entries into:

- ``BashWorkflowGroup``: an assistant shell command, the tool-result entry
  right after it, and an optional plain user remark following that
- ``ProcessingWorkflowGroup``: a run of assistant entries and tool-result
  entries, collapsed into internal processing plus one final response
- ``RegularMessage``: anything else, one entry each

Every entry ends up in exactly one group, in input order.
"""

import logging
from typing import List, Optional, Sequence, Tuple

from conversation_models import (
    BashWorkflowGroup,
    ConversationEntry,
    MessageContent,
    ProcessedMessage,
    ProcessingWorkflowGroup,
    RegularMessage,
    TextContent,
    ThinkingContent,
    ToolUse,
)
from message_classifier import (
    find_bash_tool_use,
    is_bash_tool_result,
    is_tool_result_message,
)
from workflow_summary import generate_processing_summary

logger = logging.getLogger(__name__)


def separate_internal_processing(
    entry: ConversationEntry,
) -> Tuple[List[MessageContent], List[MessageContent]]:
    """Split an assistant entry into (internal processing, final response).

    The last text item is the final response candidate. Tool uses, thinking
    and every other text item are internal; images and other items stay in
    the final response.
    """
    last_text_index = None
    for index, item in enumerate(entry.content):
        if isinstance(item, TextContent):
            last_text_index = index

    internal_processing: List[MessageContent] = []
    final_response: List[MessageContent] = []
    for index, item in enumerate(entry.content):
        if isinstance(item, (ToolUse, ThinkingContent)):
            internal_processing.append(item)
        elif isinstance(item, TextContent) and index != last_text_index:
            internal_processing.append(item)
        else:
            final_response.append(item)
    return internal_processing, final_response


def _match_bash_workflow(
    entries: Sequence[ConversationEntry], cursor: int
) -> Optional[Tuple[BashWorkflowGroup, int]]:
    """Match a shell command at ``cursor`` followed by its output entry."""
    entry = entries[cursor]
    bash_tool_use = find_bash_tool_use(entry)
    if bash_tool_use is None:
        return None

    output_index = cursor + 1
    if output_index >= len(entries) or not is_bash_tool_result(entries[output_index]):
        return None

    user_comment = None
    next_index = cursor + 2
    if next_index < len(entries):
        candidate = entries[next_index]
        if (
            candidate.role == "user"
            and not is_tool_result_message(candidate)
            and not candidate.is_sidechain
        ):
            user_comment = candidate
            next_index += 1

    group = BashWorkflowGroup(
        bash_input=bash_tool_use,
        bash_output=entries[output_index],
        assistant_entry=entry,
        user_comment=user_comment,
        timestamp=entry.timestamp or "",
    )
    return group, next_index


def _collect_processing_workflow(
    entries: Sequence[ConversationEntry], cursor: int
) -> Tuple[ProcessedMessage, int]:
    """Collapse the run of assistant and tool-result entries starting at ``cursor``."""
    assistant_messages: List[ConversationEntry] = []
    tool_results: List[ConversationEntry] = []
    end = cursor
    while end < len(entries):
        current = entries[end]
        if current.role == "assistant":
            assistant_messages.append(current)
        elif is_tool_result_message(current):
            tool_results.append(current)
        else:
            # A real user message or a sub-agent prompt ends the run
            break
        end += 1

    internal_processing: List[MessageContent] = []
    final_response: List[MessageContent] = []
    last_index = len(assistant_messages) - 1
    for index, message in enumerate(assistant_messages):
        message_internal, message_final = separate_internal_processing(message)
        internal_processing.extend(message_internal)
        if index == last_index:
            final_response.extend(message_final)
            continue
        # Earlier answers become intermediate steps; images stay visible
        for item in message_final:
            if isinstance(item, TextContent):
                internal_processing.append(item)
            else:
                final_response.append(item)

    if not internal_processing and len(assistant_messages) == 1:
        # Any tool results collected after a plain answer pass through on
        # their own so that no entry is dropped.
        return RegularMessage(assistant_messages[0]), cursor + 1

    group = ProcessingWorkflowGroup(
        assistant_messages=tuple(assistant_messages),
        internal_processing=tuple(internal_processing),
        final_response=tuple(final_response),
        tool_results=tuple(tool_results),
        summary=generate_processing_summary(
            internal_processing, tool_results, len(assistant_messages)
        ),
        timestamp=assistant_messages[0].timestamp or "",
        run=tuple(entries[cursor:end]),
    )
    return group, end


def next_group(
    entries: Sequence[ConversationEntry], cursor: int
) -> Tuple[ProcessedMessage, int]:
    """Build the group starting at ``cursor`` and return it with the next cursor.

    The returned cursor is always greater than ``cursor``.
    """
    entry = entries[cursor]
    if entry.role == "assistant":
        bash_match = _match_bash_workflow(entries, cursor)
        if bash_match is not None:
            return bash_match
        return _collect_processing_workflow(entries, cursor)
    return RegularMessage(entry), cursor + 1


def group_messages(entries: Sequence[ConversationEntry]) -> List[ProcessedMessage]:
    """Partition entries into regular messages and workflow groups."""
    groups: List[ProcessedMessage] = []
    cursor = 0
    while cursor < len(entries):
        group, cursor = next_group(entries, cursor)
        groups.append(group)
    logger.debug("Grouped %d entries into %d messages", len(entries), len(groups))
    return groups


def flatten_groups(groups: Sequence[ProcessedMessage]) -> List[ConversationEntry]:
    """Return the entries referenced by groups, in group order."""
    flattened: List[ConversationEntry] = []
    for group in groups:
        flattened.extend(group.entries())
    return flattened
