"""
Decode Claude Code's JSONL conversation logs into typed entries.

Each line of a session file is one JSON record. Current Claude Code files use
``{"type": "user" | "assistant", "message": {...}, "uuid": ..., ...}`` records
alongside ``summary``, ``system``, ``progress`` and ``file-history-snapshot``
records. Older exports wrap a ``message`` object without a ``type`` or put
``role``/``content`` at the top level; those are decoded as a fallback.
"""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

from conversation_models import (
    ConversationData,
    ConversationEntry,
    ConversationMetadata,
    ImageContent,
    MessageContent,
    TextContent,
    ThinkingContent,
    ToolResult,
    ToolUse,
    UnknownContent,
    Usage,
)

logger = logging.getLogger(__name__)

MESSAGE_TYPES = ("user", "assistant")


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def _timestamp(value: Any) -> Optional[str]:
    """Keep ISO-8601 strings; numeric epoch seconds become UTC ISO-8601."""
    if isinstance(value, str):
        return value or None
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        try:
            dt = datetime.fromtimestamp(value, timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
        return dt.isoformat().replace("+00:00", "Z")
    return None


class JsonlParser:
    """Parse JSONL session logs into ConversationData."""

    @classmethod
    def parse_file(cls, file_path: Union[str, Path]) -> ConversationData:
        """Read and parse a JSONL file. OSError propagates to the caller."""
        with open(file_path, "r", encoding="utf-8") as f:
            return cls.parse_string(f.read())

    @classmethod
    def parse_string(cls, content: str) -> ConversationData:
        """Parse JSONL text, skipping blank and undecodable lines."""
        entries: List[ConversationEntry] = []
        metadata = ConversationMetadata()
        first_timestamp = None

        for line in content.split("\n"):
            if not line.strip():
                continue
            try:
                record = json.loads(line)
                entry = cls.parse_record(record)
            except (json.JSONDecodeError, TypeError, ValueError, AttributeError) as e:
                logger.warning("Failed to parse line: %s... (%s)", line[:100], e)
                continue

            if entry is None:
                continue
            entries.append(entry)

            # Session details come from the first message record that has them
            if metadata.session_id is None and isinstance(record, dict) and "sessionId" in record:
                metadata.session_id = record.get("sessionId")
                metadata.version = record.get("version")
                metadata.cwd = record.get("cwd")
                first_timestamp = _timestamp(record.get("timestamp"))

        metadata.created_at = first_timestamp or _now_iso()
        metadata.title = f"Claude Code Conversation ({len(entries)} entries)"
        logger.debug("Decoded %d entries", len(entries))
        return ConversationData(entries=entries, metadata=metadata)

    @classmethod
    def parse_record(cls, record: Any) -> Optional[ConversationEntry]:
        """Decode one JSON record, or return None for records that are not turns."""
        if not isinstance(record, dict):
            raise TypeError(f"expected a JSON object, got {type(record).__name__}")

        record_type = record.get("type")
        if record_type == "summary":
            return cls._parse_summary_entry(record)
        if record_type in MESSAGE_TYPES and isinstance(record.get("message"), dict):
            return cls._parse_claude_code_entry(record)
        return cls._parse_legacy_entry(record)

    @classmethod
    def _parse_summary_entry(cls, record: Dict) -> ConversationEntry:
        return ConversationEntry(
            role="assistant",
            content=(TextContent(f"📋 Conversation Summary: {record.get('summary', '')}"),),
            timestamp=_now_iso(),
            id=record.get("leafUuid"),
        )

    @classmethod
    def _parse_claude_code_entry(cls, record: Dict) -> ConversationEntry:
        msg = record["message"]
        return ConversationEntry(
            role=msg.get("role") or record["type"],
            content=cls.parse_content(msg.get("content", "")),
            timestamp=_timestamp(record.get("timestamp")),
            usage=cls._parse_usage(msg.get("usage")),
            is_sidechain=bool(record.get("isSidechain", False)),
            id=record.get("uuid"),
            model=msg.get("model"),
            parent_uuid=record.get("parentUuid") or None,
        )

    @classmethod
    def _parse_legacy_entry(cls, record: Dict) -> Optional[ConversationEntry]:
        # Format: { message: { role, content }, timestamp, usage, ... }
        if isinstance(record.get("message"), dict):
            msg = record["message"]
            role = msg.get("role")
            content = msg.get("content", "")
            usage = record.get("usage") or msg.get("usage")
        # Format: { role, content, timestamp, ... }
        elif record.get("role") and record.get("content"):
            role = record["role"]
            content = record["content"]
            usage = record.get("usage")
        else:
            return None

        if role not in MESSAGE_TYPES:
            return None

        return ConversationEntry(
            role=role,
            content=cls.parse_content(content),
            timestamp=_timestamp(record.get("timestamp")),
            usage=cls._parse_usage(usage),
            is_sidechain=bool(record.get("isSidechain", False)),
            id=record.get("id"),
            model=record.get("model"),
            parent_uuid=record.get("parentUuid") or None,
        )

    @classmethod
    def parse_content(cls, content: Any) -> Tuple[MessageContent, ...]:
        """Normalise a message's content into a non-empty tuple of items."""
        if isinstance(content, str):
            return (TextContent(content),)
        if not isinstance(content, list):
            return (TextContent(str(content)),)
        items = tuple(cls._parse_content_item(item) for item in content)
        return items or (TextContent(""),)

    @staticmethod
    def _parse_content_item(item: Any) -> MessageContent:
        if isinstance(item, str):
            return TextContent(item)
        if not isinstance(item, dict):
            return UnknownContent(type(item).__name__, {"value": item})

        item_type = item.get("type", "")
        if item_type == "text":
            return TextContent(item.get("text") or "")
        elif item_type == "thinking":
            return ThinkingContent(item.get("thinking") or "")
        elif item_type == "tool_use":
            return ToolUse(
                id=item.get("id") or "",
                name=item.get("name") or "",
                input=item.get("input", {}),
            )
        elif item_type == "tool_result":
            return ToolResult(
                tool_use_id=item.get("tool_use_id") or "",
                content=item.get("content", ""),
                is_error=bool(item.get("is_error", False)),
            )
        elif item_type == "image":
            source = item.get("source")
            if not isinstance(source, dict):
                source = {}
            return ImageContent(
                media_type=source.get("media_type", "unknown"),
                data=source.get("data", ""),
            )
        return UnknownContent(str(item_type), item)

    @staticmethod
    def _parse_usage(usage: Any) -> Optional[Usage]:
        if not isinstance(usage, dict):
            return None
        return Usage(
            input_tokens=usage.get("input_tokens", 0) or 0,
            output_tokens=usage.get("output_tokens", 0) or 0,
            cache_creation_input_tokens=usage.get("cache_creation_input_tokens"),
            cache_read_input_tokens=usage.get("cache_read_input_tokens"),
        )


def format_tool_use(tool_use: ToolUse) -> str:
    """Format a tool invocation as ``Tool: <name>`` followed by its input."""
    name = tool_use.name or "unknown"
    tool_input = tool_use.input if tool_use.input is not None else {}

    if isinstance(tool_input, str):
        formatted_input = tool_input
    else:
        try:
            formatted_input = json.dumps(tool_input, indent=2, ensure_ascii=False)
        except (TypeError, ValueError):
            formatted_input = str(tool_input)

    return f"Tool: {name}\n{formatted_input}" if formatted_input else f"Tool: {name}"


def _normalize_result_content(content: Any) -> str:
    """Turn tool result content (string, text blocks or other JSON) into text."""
    if content is None:
        return ""
    if isinstance(content, list) and content and all(
        isinstance(b, dict) and b.get("type") == "text" for b in content
    ):
        return "\n".join(b.get("text", "") for b in content)
    if isinstance(content, (dict, list)):
        return json.dumps(content, indent=2, ensure_ascii=False)

    text = str(content)
    stripped = text.strip()
    if stripped.startswith("{") and stripped.endswith("}"):
        try:
            return json.dumps(json.loads(stripped), indent=2, ensure_ascii=False)
        except json.JSONDecodeError:
            return text
    return text


def format_tool_result(tool_result: ToolResult) -> str:
    """Format a tool result as ``Result: ...`` or ``Error: ...``."""
    prefix = "Error: " if tool_result.is_error else "Result: "
    return prefix + _normalize_result_content(tool_result.content)
