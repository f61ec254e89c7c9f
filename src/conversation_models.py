"""
Typed model of a decoded Claude Code conversation.

Content items and message groups are closed sets of frozen dataclasses.
Entries are produced once by the parser and only read afterwards.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple, Union


@dataclass(frozen=True)
class TextContent:
    text: str
    type: str = field(default="text", init=False)


@dataclass(frozen=True)
class ThinkingContent:
    thinking: str
    type: str = field(default="thinking", init=False)


@dataclass(frozen=True)
class ImageContent:
    media_type: str
    data: str = ""
    type: str = field(default="image", init=False)


@dataclass(frozen=True)
class ToolUse:
    id: str
    name: str
    input: Any = None
    type: str = field(default="tool_use", init=False)


@dataclass(frozen=True)
class ToolResult:
    tool_use_id: str
    content: Any = ""
    is_error: bool = False
    type: str = field(default="tool_result", init=False)


@dataclass(frozen=True)
class UnknownContent:
    """A content block with a tag this version does not recognise."""

    type: str
    raw: Dict = field(default_factory=dict, compare=False)


MessageContent = Union[
    TextContent, ThinkingContent, ImageContent, ToolUse, ToolResult, UnknownContent
]


@dataclass(frozen=True)
class Usage:
    input_tokens: int = 0
    output_tokens: int = 0
    cache_creation_input_tokens: Optional[int] = None
    cache_read_input_tokens: Optional[int] = None


@dataclass(frozen=True)
class ConversationEntry:
    """One user or assistant turn with its ordered content items."""

    role: str
    content: Tuple[MessageContent, ...]
    timestamp: Optional[str] = None
    usage: Optional[Usage] = None
    is_sidechain: bool = False
    id: Optional[str] = None
    model: Optional[str] = None
    parent_uuid: Optional[str] = None


@dataclass
class ConversationMetadata:
    title: str = "Conversation"
    created_at: Optional[str] = None
    session_id: Optional[str] = None
    version: Optional[str] = None
    cwd: Optional[str] = None


@dataclass
class ConversationData:
    entries: List[ConversationEntry] = field(default_factory=list)
    metadata: ConversationMetadata = field(default_factory=ConversationMetadata)


@dataclass(frozen=True)
class RegularMessage:
    """A single entry shown as-is."""

    entry: ConversationEntry
    type: str = field(default="regular", init=False)

    def entries(self) -> List[ConversationEntry]:
        return [self.entry]


@dataclass(frozen=True)
class ProcessingWorkflowGroup:
    """Consecutive assistant turns and their tool results, collapsed into one answer.

    ``run`` keeps the collected entries in input order; ``assistant_messages``
    and ``tool_results`` are the same entries split by kind.
    """

    assistant_messages: Tuple[ConversationEntry, ...]
    internal_processing: Tuple[MessageContent, ...]
    final_response: Tuple[MessageContent, ...]
    tool_results: Tuple[ConversationEntry, ...]
    summary: str
    timestamp: str
    run: Tuple[ConversationEntry, ...] = field(default=(), compare=False)
    type: str = field(default="processing_workflow", init=False)

    def entries(self) -> List[ConversationEntry]:
        if self.run:
            return list(self.run)
        return list(self.assistant_messages) + list(self.tool_results)


@dataclass(frozen=True)
class BashWorkflowGroup:
    """A shell command, its output and an optional user remark."""

    bash_input: ToolUse
    bash_output: ConversationEntry
    assistant_entry: ConversationEntry
    user_comment: Optional[ConversationEntry] = None
    timestamp: str = ""
    type: str = field(default="bash_workflow", init=False)

    @property
    def command(self) -> str:
        if isinstance(self.bash_input.input, dict):
            return str(self.bash_input.input.get("command") or "")
        return ""

    def entries(self) -> List[ConversationEntry]:
        entries = [self.assistant_entry, self.bash_output]
        if self.user_comment is not None:
            entries.append(self.user_comment)
        return entries


ProcessedMessage = Union[RegularMessage, ProcessingWorkflowGroup, BashWorkflowGroup]


def text_of(entry: ConversationEntry) -> str:
    """Return the first non-empty text item of an entry, or an empty string."""
    for item in entry.content:
        if isinstance(item, TextContent) and item.text:
            return item.text
    return ""
