"""
Render grouped Claude Code conversations to the terminal or to HTML.

Groups are computed once per ConversationViewer and shared by the table of
contents and the message body.
"""

import html
import json
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Tuple, Union

from conversation_models import (
    BashWorkflowGroup,
    ConversationData,
    ConversationEntry,
    ImageContent,
    MessageContent,
    ProcessedMessage,
    ProcessingWorkflowGroup,
    TextContent,
    ThinkingContent,
    ToolResult,
    ToolUse,
    Usage,
    text_of,
)
from jsonl_parser import format_tool_result, format_tool_use
from message_classifier import is_tool_result_message
from message_grouping import group_messages

# Content longer than this is collapsed behind a "Show more" button
LONG_CONTENT_MAX_LINES = 10
LONG_CONTENT_MAX_CHARS = 500
PREVIEW_LINES = 3

# Table of contents truncation
TOC_SUMMARY_LENGTH = 100
TOC_COMMAND_LENGTH = 60
TOC_COMMENT_LENGTH = 40


def escape_html(text: Optional[str]) -> str:
    if not text:
        return ""
    return html.escape(text, quote=True)


def _truncate(text: str, max_length: int) -> str:
    if len(text) <= max_length:
        return text
    return text[:max_length] + "..."


def _parse_timestamp(timestamp: Optional[str]) -> Optional[datetime]:
    if not timestamp or not isinstance(timestamp, str):
        return None
    try:
        return datetime.fromisoformat(timestamp.replace("Z", "+00:00")).astimezone()
    except ValueError:
        return None


def format_datetime(timestamp: Optional[str]) -> str:
    """Local date and time for display, the raw value if it can't be parsed."""
    dt = _parse_timestamp(timestamp)
    if dt is None:
        return str(timestamp or "")
    return dt.strftime("%Y-%m-%d %H:%M:%S")


def format_time(timestamp: Optional[str]) -> str:
    dt = _parse_timestamp(timestamp)
    if dt is None:
        return str(timestamp or "")
    return dt.strftime("%H:%M:%S")


def format_usage(usage: Usage) -> str:
    return f"📊 Tokens: {usage.input_tokens} in, {usage.output_tokens} out"


def role_presentation(entry: ConversationEntry) -> Tuple[str, str, str]:
    """Return (css class, icon, label) for a message shown on its own."""
    if is_tool_result_message(entry):
        return "tool-result-message", "⚙️", "TOOL RESULT"
    elif entry.is_sidechain and entry.role == "user":
        return "sub-agent", "🤖", "SUB-AGENT"
    elif entry.role == "user":
        return "user", "👤", "USER"
    return "assistant", "🤖", "ASSISTANT"


def extract_message_summary(entry: ConversationEntry, max_length: int = TOC_SUMMARY_LENGTH) -> str:
    """Short one-line description of an entry for the table of contents."""
    for item in entry.content:
        if isinstance(item, TextContent):
            if item.text:
                return _truncate(item.text, max_length)
            break

    first = entry.content[0] if entry.content else None
    if isinstance(first, ToolUse):
        return f"🔧 Tool: {first.name or 'Unknown'}"
    elif isinstance(first, ToolResult):
        return "📥 Tool Result"
    elif isinstance(first, ThinkingContent):
        return "🤔 Thinking..."
    elif isinstance(first, ImageContent):
        return "🖼️ Image"
    elif first is None or isinstance(first, TextContent):
        return "Empty message"
    return "Message"


def is_long_content(content: str) -> bool:
    return len(content.split("\n")) > LONG_CONTENT_MAX_LINES or len(content) > LONG_CONTENT_MAX_CHARS


def generate_collapsible_content(content: str, content_html: str) -> str:
    """Wrap long content in a preview with a Show more toggle."""
    if not is_long_content(content):
        return content_html

    lines = content.split("\n")
    preview_html = escape_html("\n".join(lines[:PREVIEW_LINES]))
    fade = '<span class="content-fade">...</span>' if len(lines) > PREVIEW_LINES else ""
    return f"""
      <div class="collapsible-content">
        <div class="content-preview">{preview_html}{fade}</div>
        <div class="content-full" style="display: none;">{content_html}</div>
        <button class="toggle-content" onclick="toggleContent(this)">Show more</button>
      </div>"""


def content_item_html(item: MessageContent, intermediate: bool = False) -> str:
    """HTML for one content item; ``intermediate`` marks text inside a workflow."""
    if isinstance(item, TextContent):
        if intermediate:
            item_html = f'<div class="intermediate-text">💭 Intermediate: {escape_html(item.text)}</div>'
        else:
            item_html = f'<div class="text-content">{escape_html(item.text)}</div>'
        return generate_collapsible_content(item.text, item_html)
    elif isinstance(item, ThinkingContent):
        item_html = f'<div class="thinking-content">🤔 Thinking: {escape_html(item.thinking)}</div>'
        return generate_collapsible_content(item.thinking, item_html)
    elif isinstance(item, ToolUse):
        formatted = format_tool_use(item)
        item_html = f'<div class="tool-use">🔧 {escape_html(formatted)}</div>'
        return generate_collapsible_content(formatted, item_html)
    elif isinstance(item, ToolResult):
        formatted = format_tool_result(item)
        item_html = f'<div class="tool-result">📥 {escape_html(formatted)}</div>'
        return generate_collapsible_content(formatted, item_html)
    elif isinstance(item, ImageContent):
        return f'<div class="image-content">🖼️ Image ({escape_html(item.media_type)})</div>'
    return f'<div class="unknown-content">❓ Unknown content type: {escape_html(item.type)}</div>'


def content_item_text(item: MessageContent) -> str:
    """Console line(s) for one content item."""
    if isinstance(item, TextContent):
        return item.text
    elif isinstance(item, ThinkingContent):
        return f"🤔 Thinking: {item.thinking}"
    elif isinstance(item, ToolUse):
        return f"🔧 {format_tool_use(item)}"
    elif isinstance(item, ToolResult):
        return f"📥 {format_tool_result(item)}"
    elif isinstance(item, ImageContent):
        return f"🖼️ Image ({item.media_type})"
    return f"❓ Unknown content type: {json.dumps(item.raw, default=str)}"


def _final_response_text(group: ProcessingWorkflowGroup, separator: str) -> str:
    return separator.join(
        item.text for item in group.final_response if isinstance(item, TextContent)
    )


def _bash_output_text(group: BashWorkflowGroup) -> str:
    return "\n".join(
        format_tool_result(item)
        for item in group.bash_output.content
        if isinstance(item, ToolResult)
    )


class ConversationViewer:
    """Render one conversation; message groups are computed once."""

    def __init__(self, data: ConversationData, groups: Optional[List[ProcessedMessage]] = None):
        self.data = data
        self.groups = groups if groups is not None else group_messages(data.entries)

    @property
    def title(self) -> str:
        return self.data.metadata.title or "Conversation"

    # ------------------------------------------------------------------
    # Console
    # ------------------------------------------------------------------

    def display_conversation(self) -> None:
        print("=" * 80)
        print(f"📋 {self.title}")
        print(f"📅 {self.data.metadata.created_at or 'Unknown date'}")
        print(f"📊 {len(self.data.entries)} entries")
        print("=" * 80)
        print()

        for group in self.groups:
            self._display_group(group)

    def _display_group(self, group: ProcessedMessage) -> None:
        if isinstance(group, BashWorkflowGroup):
            self._print_header("💻 BASH WORKFLOW", group.timestamp)
            if group.command:
                print(f"$ {group.command}")
            output_lines = _bash_output_text(group).split("\n")
            print(f"📤 Output: {output_lines[0]}...")
            if group.user_comment is not None:
                user_text = text_of(group.user_comment)
                if user_text:
                    print(f"👤 User: {user_text}")
            print()
        elif isinstance(group, ProcessingWorkflowGroup):
            self._print_header("🤖 ASSISTANT", group.timestamp)
            print(f"📊 {group.summary}")
            final_text = _final_response_text(group, "\n")
            if final_text:
                print(final_text)
            usage = group.assistant_messages[0].usage
            if usage is not None:
                print(format_usage(usage))
            print()
        else:
            entry = group.entry
            _, icon, label = role_presentation(entry)
            self._print_header(f"{icon} {label}", entry.timestamp)
            for item in entry.content:
                print(content_item_text(item))
            if entry.usage is not None:
                print(format_usage(entry.usage))
            print()

    @staticmethod
    def _print_header(label: str, timestamp: Optional[str]) -> None:
        when = format_datetime(timestamp)
        print(f"{label} ({when})" if when else label)
        print("-" * 40)

    # ------------------------------------------------------------------
    # HTML
    # ------------------------------------------------------------------

    def toc_row(self, group: ProcessedMessage) -> Tuple[str, str, str]:
        """Return (role label, summary, time) for a table of contents row."""
        if isinstance(group, ProcessingWorkflowGroup):
            final_text = _final_response_text(group, " ")
            if final_text:
                summary = _truncate(final_text, TOC_SUMMARY_LENGTH)
            else:
                summary = group.summary
            return "🤖 ASSISTANT", summary, format_time(group.timestamp)

        if isinstance(group, BashWorkflowGroup):
            command = group.command
            summary = f"$ {_truncate(command, TOC_COMMAND_LENGTH)}" if command else "$ bash command"
            if group.user_comment is not None:
                user_text = text_of(group.user_comment)
                if user_text:
                    summary += f" → {_truncate(user_text, TOC_COMMENT_LENGTH)}"
            return "💻 BASH WORKFLOW", summary, format_time(group.timestamp)

        entry = group.entry
        _, icon, label = role_presentation(entry)
        return f"{icon} {label}", extract_message_summary(entry), format_time(entry.timestamp)

    def generate_table_of_contents(self) -> str:
        items = []
        for index, group in enumerate(self.groups):
            role, summary, when = self.toc_row(group)
            items.append(f"""
        <div class="toc-item">
          <a href="#message-{index}" class="toc-link">
            <span class="toc-role">{role}</span>
            <span class="toc-summary">{escape_html(summary)}</span>
            <span class="toc-time">{escape_html(when)}</span>
          </a>
        </div>""")

        return f"""
    <div class="table-of-contents">
      <h2>📋 Table of Contents</h2>
      <div class="toc-items">{''.join(items)}
      </div>
    </div>"""

    @staticmethod
    def _header_html(label: str, timestamp: str) -> str:
        when = format_datetime(timestamp)
        time_html = f'<span class="timestamp">{escape_html(when)}</span>' if when else ""
        return f"""
        <div class="message-header">
          <span class="role">{label}</span>
          {time_html}
        </div>"""

    def generate_bash_workflow_html(self, group: BashWorkflowGroup, index: int) -> str:
        comment_html = ""
        if group.user_comment is not None:
            comment_text = "".join(
                f'<div class="text-content">{escape_html(item.text)}</div>'
                for item in group.user_comment.content
                if isinstance(item, TextContent)
            )
            comment_html = f"""
        <div class="user-comment-section">
          <div class="user-comment-header"><span class="role">👤 USER COMMENT</span></div>
          <div class="user-comment-content">{comment_text}</div>
        </div>"""

        return f"""
      <div id="message-{index}" class="message bash-workflow-message">{self._header_html("💻 BASH WORKFLOW", group.timestamp)}
        <div class="bash-command-section">
          <div class="bash-command">
            <span class="command-prompt">$</span>
            <span class="command-text">{escape_html(group.command)}</span>
          </div>
        </div>
        <div class="bash-output-section">
          <div class="bash-output-summary" onclick="toggleBashOutput(this)">
            <span class="output-summary-text">📤 Command Output</span>
            <span class="output-toggle">▼</span>
          </div>
          <div class="bash-output-details" style="display: none;">
            <div class="tool-result">{escape_html(_bash_output_text(group))}</div>
          </div>
        </div>{comment_html}
      </div>"""

    def generate_processing_workflow_html(self, group: ProcessingWorkflowGroup, index: int) -> str:
        internal_html = "".join(
            content_item_html(item, intermediate=True) for item in group.internal_processing
        )
        results_html = "".join(
            content_item_html(item)
            for result_entry in group.tool_results
            for item in result_entry.content
            if isinstance(item, ToolResult)
        )
        final_html = "".join(content_item_html(item) for item in group.final_response)

        usage = group.assistant_messages[0].usage
        usage_html = f'<div class="usage">{format_usage(usage)}</div>' if usage is not None else ""

        return f"""
      <div id="message-{index}" class="message assistant processing-workflow-message">{self._header_html("🤖 ASSISTANT", group.timestamp)}
        <div class="processing-workflow-section">
          <div class="processing-workflow-summary" onclick="toggleProcessingWorkflow(this)">
            <span class="workflow-summary-text">{escape_html(group.summary)}</span>
            <span class="workflow-toggle">▼</span>
          </div>
          <div class="processing-workflow-details" style="display: none;">
            {internal_html}
            {results_html}
          </div>
        </div>
        <div class="message-content final-response">{final_html}</div>
        {usage_html}
      </div>"""

    def generate_entry_html(self, entry: ConversationEntry, index: int) -> str:
        role_class, icon, label = role_presentation(entry)
        content_html = "".join(content_item_html(item) for item in entry.content)
        usage_html = f'<div class="usage">{format_usage(entry.usage)}</div>' if entry.usage is not None else ""
        return f"""
      <div id="message-{index}" class="message {role_class}">{self._header_html(f"{icon} {label}", entry.timestamp or "")}
        <div class="message-content">{content_html}</div>
        {usage_html}
      </div>"""

    def generate_group_html(self, group: ProcessedMessage, index: int) -> str:
        if isinstance(group, ProcessingWorkflowGroup):
            return self.generate_processing_workflow_html(group, index)
        elif isinstance(group, BashWorkflowGroup):
            return self.generate_bash_workflow_html(group, index)
        return self.generate_entry_html(group.entry, index)

    def generate_html(self) -> str:
        """Build a self-contained HTML document for the conversation."""
        metadata = self.data.metadata
        body = "".join(
            self.generate_group_html(group, index) for index, group in enumerate(self.groups)
        )
        return f"""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{escape_html(self.title)}</title>
    <style>{HTML_STYLE}</style>
</head>
<body>
    <div class="header">
        <h1>📋 {escape_html(self.title)}</h1>
        <p>📅 {escape_html(metadata.created_at or 'Unknown date')}</p>
        <p>📊 {len(self.data.entries)} entries</p>
    </div>
    {self.generate_table_of_contents()}
    <div class="conversation-content">{body}
    </div>
    <script>{HTML_SCRIPT}</script>
</body>
</html>
"""

    def default_filename(self) -> str:
        """File name in the ``YYYY-MM-DD-HH_MM-<session>.html`` scheme."""
        dt = _parse_timestamp(self.data.metadata.created_at) or datetime.now()
        session_id = self.data.metadata.session_id or "conversation"
        return f"{dt.strftime('%Y-%m-%d')}-{dt.strftime('%H_%M')}-{session_id[:8]}.html"

    def save_as_html(self, output_path: Union[str, Path]) -> Path:
        """Write the HTML document; a directory gets a generated file name."""
        output_path = Path(output_path)
        if output_path.is_dir():
            output_path = output_path / self.default_filename()
        else:
            output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(self.generate_html(), encoding="utf-8")
        return output_path


HTML_STYLE = """
        body {
            font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif;
            line-height: 1.5;
            color: #333;
            max-width: 900px;
            margin: 0 auto;
            padding: 20px;
            background: #f5f5f5;
        }
        .header, .table-of-contents, .message {
            background: white;
            padding: 20px;
            border-radius: 8px;
            margin-bottom: 20px;
            box-shadow: 0 2px 4px rgba(0,0,0,0.1);
        }
        .message.user { margin-left: 80px; background: #e3f2fd; }
        .message.assistant { margin-right: 80px; background: #f3e5f5; }
        .message.sub-agent { margin: 0 50px 20px; background: #fff3e0; border-left: 4px solid #ff9800; }
        .message.tool-result-message { background: #f5f5f5; border-left: 4px solid #9e9e9e; font-size: 14px; }
        .message.highlight { background: #fff3cd !important; border-left: 4px solid #ffc107 !important; }
        .message-header {
            display: flex;
            justify-content: space-between;
            margin-bottom: 10px;
            font-weight: bold;
        }
        .role { font-size: 14px; }
        .timestamp { font-size: 12px; color: #666; font-weight: normal; }
        .text-content { white-space: pre-wrap; }
        .thinking-content, .intermediate-text, .tool-use, .tool-result, .image-content, .unknown-content {
            padding: 8px;
            border-radius: 4px;
            margin: 5px 0;
            white-space: pre-wrap;
        }
        .thinking-content { background: #fff8e1; border-left: 3px solid #ffc107; font-style: italic; color: #8a6914; }
        .intermediate-text { background: #fff8dc; border-left: 3px solid #daa520; color: #8b7355; }
        .tool-use, .tool-result { background: #f0f0f0; font-family: monospace; font-size: 12px; overflow-x: auto; }
        .tool-use { border-left: 3px solid #2196F3; }
        .tool-result { border-left: 3px solid #4CAF50; }
        .image-content { background: #fff3e0; border-left: 3px solid #ff9800; }
        .unknown-content { background: #ffebee; border-left: 3px solid #f44336; }
        .usage { font-size: 12px; color: #666; margin-top: 10px; padding-top: 10px; border-top: 1px solid #eee; }
        .table-of-contents { max-height: 400px; overflow-y: auto; }
        .toc-items { display: flex; flex-direction: column; gap: 8px; }
        .toc-item { border: 1px solid #e0e0e0; border-radius: 4px; }
        .toc-link { display: flex; padding: 8px 12px; text-decoration: none; color: #333; }
        .toc-link:hover { background: #f5f5f5; }
        .toc-role { font-weight: bold; font-size: 12px; min-width: 120px; color: #666; }
        .toc-summary { flex: 1; margin: 0 10px; font-size: 14px; overflow: hidden; text-overflow: ellipsis; white-space: nowrap; }
        .toc-time { font-size: 11px; color: #999; min-width: 80px; text-align: right; }
        .content-fade { color: #999; font-style: italic; }
        .toggle-content {
            background: #007bff;
            color: white;
            border: none;
            padding: 6px 12px;
            border-radius: 4px;
            cursor: pointer;
            font-size: 12px;
            margin-top: 8px;
        }
        .processing-workflow-section, .bash-output-section {
            margin-bottom: 15px;
            border: 1px solid #e0e0e0;
            border-radius: 6px;
            overflow: hidden;
        }
        .processing-workflow-summary, .bash-output-summary {
            background: #f8f9fa;
            padding: 12px 15px;
            cursor: pointer;
            display: flex;
            justify-content: space-between;
        }
        .workflow-toggle.expanded, .output-toggle.expanded { transform: rotate(180deg); }
        .processing-workflow-details, .bash-output-details { background: #fdfdfd; padding: 15px; }
        .final-response { border-top: 2px solid #28a745; padding-top: 15px; }
        .bash-workflow-message { background: #f8f9fa; border-left: 4px solid #007bff; }
        .bash-command-section {
            background: #1e1e1e;
            color: #fff;
            padding: 12px 15px;
            border-radius: 6px;
            margin-bottom: 10px;
            font-family: 'Monaco', 'Menlo', 'Ubuntu Mono', monospace;
        }
        .command-prompt { color: #00ff00; margin-right: 8px; font-weight: bold; }
        .command-text { word-break: break-all; }
        .bash-output-details .tool-result { margin: 0; background: #1e1e1e; color: #fff; }
        .user-comment-section { background: #e3f2fd; border-radius: 6px; padding: 15px; margin-top: 10px; }
        .user-comment-header { margin-bottom: 10px; color: #1976d2; }
"""

HTML_SCRIPT = """
        function toggleContent(button) {
            const container = button.parentElement;
            const preview = container.querySelector('.content-preview');
            const full = container.querySelector('.content-full');
            const expand = full.style.display === 'none';
            preview.style.display = expand ? 'none' : 'block';
            full.style.display = expand ? 'block' : 'none';
            button.textContent = expand ? 'Show less' : 'Show more';
        }

        function toggleSection(summaryElement, detailsSelector, toggleSelector) {
            const details = summaryElement.parentElement.querySelector(detailsSelector);
            const toggle = summaryElement.querySelector(toggleSelector);
            const expand = details.style.display === 'none';
            details.style.display = expand ? 'block' : 'none';
            toggle.classList.toggle('expanded', expand);
        }

        function toggleProcessingWorkflow(summaryElement) {
            toggleSection(summaryElement, '.processing-workflow-details', '.workflow-toggle');
        }

        function toggleBashOutput(summaryElement) {
            toggleSection(summaryElement, '.bash-output-details', '.output-toggle');
        }

        document.addEventListener('DOMContentLoaded', function() {
            document.querySelectorAll('.toc-link').forEach(function(link) {
                link.addEventListener('click', function(e) {
                    e.preventDefault();
                    const target = document.getElementById(this.getAttribute('href').substring(1));
                    if (target) {
                        target.scrollIntoView({ behavior: 'smooth', block: 'start' });
                        target.classList.add('highlight');
                        setTimeout(function() { target.classList.remove('highlight'); }, 2000);
                    }
                });
            });
        });
"""
