"""Factory for tool cards and tool display metadata.

Tool calls and tool results arrive as separate content blocks (or as whole
tool-result messages). This module turns them into ToolCallCard and
ToolResultCard instances in arrival order, calls before results, and derives
a short human-readable label/detail pair for card headers.
"""

from dataclasses import dataclass
from typing import Any, Mapping, Optional, Sequence, cast

from ..models import (
    ContentBlock,
    RawMessage,
    ToolCallCard,
    ToolCallContent,
    ToolCard,
    ToolResultCard,
    ToolResultContent,
)
from ..normalizer import is_tool_result_message

TOOL_NAME_FIELDS = ("toolName", "tool_name")

# Argument fields shown as the one-line card detail, in priority order
DETAIL_ARG_FIELDS = ("command", "file_path", "path", "query", "url", "pattern")
DETAIL_MAX_CHARS = 120


@dataclass(frozen=True)
class ToolDisplay:
    """Header data for a tool card."""

    name: str
    label: str
    detail: Optional[str] = None


def message_tool_name(message: RawMessage) -> str:
    for field_name in TOOL_NAME_FIELDS:
        value = message.get(field_name)
        if isinstance(value, str) and value:
            return value
    return "tool"


def create_tool_cards(
    message: RawMessage,
    blocks: Sequence[ContentBlock],
    message_text: Optional[str] = None,
) -> list[ToolCard]:
    """Create tool cards for one message.

    Args:
        message: The raw message the blocks came from
        blocks: Normalized content blocks of the message
        message_text: Extracted text of the message, used when a tool-result
            message carries no explicit result block

    Returns:
        Call cards followed by result cards, each in arrival order
    """
    cards: list[ToolCard] = [
        ToolCallCard(name=block.name, args=block.arguments)
        for block in blocks
        if isinstance(block, ToolCallContent)
    ]
    cards.extend(
        ToolResultCard(name=block.name, text=block.text)
        for block in blocks
        if isinstance(block, ToolResultContent)
    )

    if is_tool_result_message(message) and not any(
        isinstance(card, ToolResultCard) for card in cards
    ):
        cards.append(
            ToolResultCard(name=message_tool_name(message), text=message_text)
        )
    return cards


def _humanize_tool_name(name: str) -> str:
    words = name.replace("-", " ").replace("_", " ").replace(".", " ").split()
    if not words:
        return "Tool"
    if len(words) == 1 and any(ch.isupper() for ch in words[0][1:]):
        # Already CamelCase (e.g. "WebFetch"); keep as-is
        return words[0]
    return " ".join(word[:1].upper() + word[1:] for word in words)


def _detail_from_args(args: Any) -> Optional[str]:
    if not isinstance(args, Mapping):
        return None
    arg_map = cast(Mapping[str, Any], args)
    for field_name in DETAIL_ARG_FIELDS:
        value = arg_map.get(field_name)
        if isinstance(value, str) and value.strip():
            detail = " ".join(value.split())
            if len(detail) > DETAIL_MAX_CHARS:
                detail = detail[: DETAIL_MAX_CHARS - 1] + "…"
            return detail
    return None


def resolve_tool_display(name: str, args: Any = None) -> ToolDisplay:
    """Derive the card label and detail line for a tool invocation."""
    return ToolDisplay(
        name=name,
        label=_humanize_tool_name(name),
        detail=_detail_from_args(args),
    )
