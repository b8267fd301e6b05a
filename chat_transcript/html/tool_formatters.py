"""HTML rendering functions for tool call and tool result cards.

This module contains:
- Status inference from unstructured tool output (JSON or text heuristics)
- Error message extraction
- Output formatting for the expanded view and for compact inline display
- Truncated previews
- Generic parameter table rendering for tool call arguments
- The tool card dispatcher

Every helper is total: JSON is sniffed and parsed locally, and a payload that
fails to parse is treated as plain text.
"""

import json
import re
from typing import Any, Callable, Optional, cast

from .utils import escape_html
from ..factories import resolve_tool_display
from ..models import (
    ToolCallCard,
    ToolCard,
    ToolResultCard,
    ToolStatus,
    ToolStatusInfo,
)

PREVIEW_MAX_LINES = 2
PREVIEW_MAX_CHARS = 100
# Results up to this many characters are shown inline instead of as a preview
TOOL_INLINE_THRESHOLD = 80

ELLIPSIS = "…"
GENERIC_ERROR_MESSAGE = "An error occurred while executing the tool"
NO_OUTPUT_TEXT = "Completed successfully"

_STATUS_ALIASES: dict[str, ToolStatus] = {
    "error": ToolStatus.ERROR,
    "failed": ToolStatus.ERROR,
    "failure": ToolStatus.ERROR,
    "warning": ToolStatus.WARNING,
    "warn": ToolStatus.WARNING,
    "info": ToolStatus.INFO,
}

ERROR_MARKERS = ('"status": "error"', '"error":', "error:", "failed", "exception")
WARNING_MARKERS = ('"status": "warning"', '"warning":', "warning:", "deprecated")
SHELL_ERROR_MARKERS = ("no matches found", "command not found", "No such file")

ERROR_PATTERNS = (
    re.compile(r"^Error:\s*(.+)", re.IGNORECASE),
    re.compile(
        r"^(?:command exited|exit|exited)(?:\s+with)?\s+(?:code|status)?\s*\d+[;:.,]?\s*(.+)?",
        re.IGNORECASE,
    ),
)

STATUS_ICONS: dict[ToolStatus, str] = {
    ToolStatus.SUCCESS: "✓",
    ToolStatus.ERROR: "✕",
    ToolStatus.WARNING: "⚠",
    ToolStatus.INFO: "ℹ",
}


# -- JSON Sniffing ------------------------------------------------------------


def _parse_json_object(text: str) -> Optional[dict[str, Any]]:
    """Parse text as a JSON object, or return None."""
    trimmed = text.strip()
    if not trimmed.startswith("{"):
        return None
    try:
        parsed = json.loads(trimmed)
    except (json.JSONDecodeError, RecursionError):
        return None
    return cast(dict[str, Any], parsed) if isinstance(parsed, dict) else None


def _parse_json_value(text: str) -> tuple[bool, Any]:
    """Parse object- or array-looking text; returns (ok, value)."""
    trimmed = text.strip()
    if not (trimmed.startswith("{") or trimmed.startswith("[")):
        return False, None
    try:
        return True, json.loads(trimmed)
    except (json.JSONDecodeError, RecursionError):
        return False, None


# -- Status Inference ---------------------------------------------------------


def is_tool_error(text: Optional[str]) -> bool:
    if not text:
        return False
    lower = text.lower()
    return any(marker in lower for marker in ERROR_MARKERS)


def is_tool_warning(text: Optional[str]) -> bool:
    if not text:
        return False
    lower = text.lower()
    return any(marker in lower for marker in WARNING_MARKERS)


def extract_status(text: Optional[str]) -> ToolStatusInfo:
    """Infer the display status of a tool result.

    A JSON object with a truthy `status` decides directly; otherwise
    substring heuristics classify error, then warning, then success. Missing
    or empty text is `info`.
    """
    if not text:
        return ToolStatusInfo(ToolStatus.INFO)

    parsed = _parse_json_object(text)
    if parsed is not None and parsed.get("status"):
        status = _STATUS_ALIASES.get(
            str(parsed["status"]).strip().lower(), ToolStatus.SUCCESS
        )
        message = parsed.get("message") or parsed.get("error")
        return ToolStatusInfo(status, str(message) if message else None)

    if is_tool_error(text):
        return ToolStatusInfo(ToolStatus.ERROR)
    if is_tool_warning(text):
        return ToolStatusInfo(ToolStatus.WARNING)
    return ToolStatusInfo(ToolStatus.SUCCESS)


def extract_error_message(text: Optional[str]) -> Optional[str]:
    """Extract a human-readable error message from tool output.

    Handles JSON error objects, `Error: ...` lines, shell exit-code lines
    and a few common shell failures. Returns None when nothing looks like an
    error.
    """
    if not text:
        return None
    trimmed = text.strip()

    parsed = _parse_json_object(trimmed)
    if parsed is not None:
        if isinstance(parsed.get("error"), str) and parsed["error"]:
            return parsed["error"]
        if isinstance(parsed.get("message"), str) and parsed["message"]:
            return parsed["message"]
        if parsed.get("status") == "error":
            return GENERIC_ERROR_MESSAGE

    for pattern in ERROR_PATTERNS:
        match = pattern.match(text)
        if match:
            return match.group(1) or text

    if any(marker in trimmed for marker in SHELL_ERROR_MARKERS):
        return trimmed
    return None


# -- Output Formatting --------------------------------------------------------


def format_tool_output_for_sidebar(text: str) -> str:
    """Format full tool output as markdown for the expanded view.

    JSON errors collapse to a bold error line; other JSON is pretty-printed
    in a fenced json block; anything else is returned unchanged.
    """
    trimmed = text.strip()
    error_message = extract_error_message(text)
    if error_message and trimmed.startswith("{"):
        return f"**Error:** {error_message}"

    ok, parsed = _parse_json_value(trimmed)
    if ok:
        if isinstance(parsed, dict):
            parsed_map = cast(dict[str, Any], parsed)
            if parsed_map.get("status") == "error" and parsed_map.get("error"):
                return f"**Error:** {parsed_map['error']}"
        pretty = json.dumps(parsed, indent=2, ensure_ascii=False)
        return f"```json\n{pretty}\n```"
    return text


def format_json_display(text: str) -> str:
    """Format a tool payload for compact inline display (plain text)."""
    trimmed = text.strip()
    error_message = extract_error_message(text)
    if error_message and trimmed.startswith("{"):
        return error_message

    looks_like_json = (trimmed.startswith("{") and trimmed.endswith("}")) or (
        trimmed.startswith("[") and trimmed.endswith("]")
    )
    if looks_like_json:
        ok, parsed = _parse_json_value(trimmed)
        if ok:
            if isinstance(parsed, dict):
                parsed_map = cast(dict[str, Any], parsed)
                if parsed_map.get("status") == "success" and len(parsed_map) <= 2:
                    return str(parsed_map.get("message") or NO_OUTPUT_TEXT)
            return json.dumps(parsed, indent=2, ensure_ascii=False)
    return text


def get_truncated_preview(
    text: str,
    max_lines: int = PREVIEW_MAX_LINES,
    max_chars: int = PREVIEW_MAX_CHARS,
) -> str:
    """Return the first lines of text, cut at a character ceiling.

    The ellipsis marker is appended once when either limit truncated.
    """
    all_lines = text.split("\n")
    lines = all_lines[:max_lines]
    preview = "\n".join(lines)
    if len(preview) > max_chars:
        return preview[:max_chars] + ELLIPSIS
    if len(lines) < len(all_lines):
        return preview + ELLIPSIS
    return preview


# -- Generic Parameter Table --------------------------------------------------


def render_params_table(params: dict[str, Any]) -> str:
    """Render tool call arguments as an HTML table.

    Structured values are rendered as indented JSON.
    """
    if not params:
        return "<div class='tool-params-empty'>No parameters</div>"

    html_parts = ["<table class='tool-params-table'>"]
    for key, value in params.items():
        if isinstance(value, (dict, list)):
            try:
                formatted_value = json.dumps(value, indent=2, ensure_ascii=False)
                value_html = (
                    "<pre class='tool-param-structured'>"
                    f"{escape_html(formatted_value)}</pre>"
                )
            except (TypeError, ValueError):
                value_html = escape_html(str(cast(object, value)))
        else:
            value_html = escape_html(str(value))
        html_parts.append(
            "<tr>"
            f"<td class='tool-param-key'>{escape_html(str(key))}</td>"
            f"<td class='tool-param-value'>{value_html}</td>"
            "</tr>"
        )
    html_parts.append("</table>")
    return "".join(html_parts)


def _render_call_args(args: Any) -> str:
    if args is None:
        return ""
    if isinstance(args, dict):
        return render_params_table(cast(dict[str, Any], args))
    if isinstance(args, list):
        try:
            formatted = json.dumps(args, indent=2, ensure_ascii=False)
        except (TypeError, ValueError):
            formatted = str(cast(object, args))
        return f"<pre class='tool-param-structured'>{escape_html(formatted)}</pre>"
    return f"<pre class='tool-param-structured'>{escape_html(str(args))}</pre>"


# -- Tool Cards ---------------------------------------------------------------


def _render_card_header(label: str, badge: str = "") -> str:
    return (
        '<div class="chat-tool-card__header">'
        '<div class="chat-tool-card__title">'
        f'<span class="chat-tool-card__name">{escape_html(label)}</span>'
        "</div>"
        f'<div class="chat-tool-card__meta">{badge}</div>'
        "</div>"
    )


def _render_detail(detail: Optional[str]) -> str:
    if not detail:
        return ""
    return f'<div class="chat-tool-card__detail">{escape_html(detail)}</div>'


def format_tool_call_card(card: ToolCallCard) -> str:
    display = resolve_tool_display(card.name, card.args)
    return (
        '<div class="chat-tool-card chat-tool-card--call">'
        f"{_render_card_header(display.label)}"
        f"{_render_detail(display.detail)}"
        f'<div class="chat-tool-card__args">{_render_call_args(card.args)}</div>'
        "</div>"
    )


def format_tool_result_card(
    card: ToolResultCard,
    expanded: bool = False,
    render_markdown: Optional[Callable[[str], str]] = None,
) -> str:
    """Render a tool result card.

    Args:
        card: The result card
        expanded: Render the full formatted output instead of a preview
        render_markdown: Converter for the expanded output; its result is
            inserted as-is and must already be sanitized. Without one the
            output is shown escaped in a <pre> block.
    """
    display = resolve_tool_display(card.name)
    status = extract_status(card.text)
    text = card.text or ""
    has_text = bool(text.strip())

    badge = ""
    if status.status != ToolStatus.INFO:
        badge = (
            '<span class="chat-tool-card__status-badge '
            f'chat-tool-card__status-badge--{status.status.value}">'
            f"{STATUS_ICONS[status.status]} <span>{status.status.value}</span></span>"
        )

    parts = [
        f'<div class="chat-tool-card chat-tool-card--{status.status.value}">',
        _render_card_header(display.label, badge),
    ]
    if status.message:
        parts.append(
            '<div class="chat-tool-card__message '
            f'chat-tool-card__message--{status.status.value}">'
            f"{escape_html(status.message)}</div>"
        )

    if not has_text:
        parts.append(f'<div class="chat-tool-card__status-text">{NO_OUTPUT_TEXT}</div>')
    elif expanded:
        formatted = format_tool_output_for_sidebar(text)
        if render_markdown is not None:
            body = render_markdown(formatted)
        else:
            body = f"<pre>{escape_html(formatted)}</pre>"
        parts.append(f'<div class="chat-tool-card__output">{body}</div>')
    elif len(text) <= TOOL_INLINE_THRESHOLD:
        parts.append(
            '<div class="chat-tool-card__inline">'
            f"{escape_html(format_json_display(text))}</div>"
        )
    else:
        preview = format_json_display(get_truncated_preview(text))
        parts.append(
            f'<div class="chat-tool-card__preview">{escape_html(preview)}</div>'
        )

    parts.append("</div>")
    return "".join(parts)


def render_tool_card(
    card: ToolCard,
    expanded: bool = False,
    render_markdown: Optional[Callable[[str], str]] = None,
) -> str:
    """Render one tool card as safe HTML."""
    if isinstance(card, ToolCallCard):
        return format_tool_call_card(card)
    return format_tool_result_card(card, expanded, render_markdown)


def render_tool_indicator(count: int) -> str:
    """Compact summary shown in place of cards when tools are hidden."""
    if count <= 0:
        return ""
    noun = "tool" if count == 1 else "tools"
    return f'<div class="chat-tool-indicator">{count} {noun} used</div>'


# -- Public Exports -----------------------------------------------------------

__all__ = [
    "PREVIEW_MAX_LINES",
    "PREVIEW_MAX_CHARS",
    "TOOL_INLINE_THRESHOLD",
    "extract_status",
    "extract_error_message",
    "is_tool_error",
    "is_tool_warning",
    "format_tool_output_for_sidebar",
    "format_json_display",
    "get_truncated_preview",
    "render_params_table",
    "format_tool_call_card",
    "format_tool_result_card",
    "render_tool_card",
    "render_tool_indicator",
]
