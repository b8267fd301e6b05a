"""Factory for creating ContentBlock instances from raw message content.

Producers send content either as a plain string or as an ordered list of typed
blocks whose type names and field names vary between vendors. This module
converts both shapes into a list of ContentBlock models:
- TextContent / ThinkingContent
- ImageContent (base64 payloads and URLs decoded to a displayable URL)
- ToolCallContent / ToolResultContent
- UnknownContent for anything else

Malformed fragments never raise; they are dropped.
"""

import json
import logging
from typing import Any, Callable, Mapping, Optional, cast

from pydantic import ValidationError

from ..models import (
    ContentBlock,
    ImageContent,
    TextContent,
    ThinkingContent,
    ToolCallContent,
    ToolResultContent,
    UnknownContent,
)

logger = logging.getLogger(__name__)

DEFAULT_IMAGE_MEDIA_TYPE = "image/png"

TOOL_CALL_TYPES = ("toolcall", "tool_call", "tooluse", "tool_use")
TOOL_RESULT_TYPES = ("toolresult", "tool_result")


# =============================================================================
# Field Helpers
# =============================================================================


def _str_field(item: Mapping[str, Any], *names: str) -> Optional[str]:
    """Return the first field among names holding a string."""
    for name in names:
        value = item.get(name)
        if isinstance(value, str):
            return value
    return None


def coerce_args(value: Any) -> Any:
    """Parse JSON-looking string arguments, leaving everything else as-is."""
    if not isinstance(value, str):
        return value
    trimmed = value.strip()
    if not trimmed or trimmed[0] not in "{[":
        return value
    try:
        return json.loads(trimmed)
    except (json.JSONDecodeError, RecursionError):
        return value


def extract_tool_text(item: Mapping[str, Any]) -> Optional[str]:
    """Extract the textual payload of a tool result block.

    Checks the `text` field, then a string `content` field. Structured
    content (a list of text blocks) is joined with newlines.
    """
    text = _str_field(item, "text", "content")
    if text is not None:
        return text
    content = item.get("content")
    if isinstance(content, list):
        parts: list[str] = []
        for part in cast(list[Any], content):
            if isinstance(part, Mapping):
                part_map = cast(Mapping[str, Any], part)
                part_text = part_map.get("text")
                if part_map.get("type") == "text" and isinstance(part_text, str):
                    parts.append(part_text)
        if parts:
            return "\n".join(parts)
    return None


def is_tool_call_block(kind: str, item: Mapping[str, Any]) -> bool:
    """Tool calls are recognized by type name or by a name + arguments pair."""
    return kind in TOOL_CALL_TYPES or (
        isinstance(item.get("name"), str) and item.get("arguments") is not None
    )


# =============================================================================
# Block Creators
# =============================================================================


def _create_text(item: Mapping[str, Any]) -> Optional[ContentBlock]:
    text = item.get("text")
    if not isinstance(text, str):
        return None
    return TextContent(text=text)


def _create_thinking(item: Mapping[str, Any]) -> Optional[ContentBlock]:
    thinking = _str_field(item, "thinking", "text")
    if thinking is None:
        return None
    return ThinkingContent(thinking=thinking)


def _create_image(item: Mapping[str, Any]) -> Optional[ContentBlock]:
    alt = _str_field(item, "alt")
    source = item.get("source")
    if isinstance(source, Mapping):
        source_map = cast(Mapping[str, Any], source)
        data = source_map.get("data")
        if source_map.get("type") == "base64" and isinstance(data, str):
            if data.startswith("data:"):
                return ImageContent(url=data, alt=alt)
            media_type = (
                _str_field(source_map, "media_type", "mediaType")
                or DEFAULT_IMAGE_MEDIA_TYPE
            )
            return ImageContent(url=f"data:{media_type};base64,{data}", alt=alt)
    url = _str_field(item, "url")
    if url:
        return ImageContent(url=url, alt=alt)
    return None


def _create_image_url(item: Mapping[str, Any]) -> Optional[ContentBlock]:
    image_url = item.get("image_url")
    if isinstance(image_url, str) and image_url:
        return ImageContent(url=image_url, alt=_str_field(item, "alt"))
    if isinstance(image_url, Mapping):
        url = _str_field(cast(Mapping[str, Any], image_url), "url")
        if url:
            return ImageContent(url=url, alt=_str_field(item, "alt"))
    return None


def _create_tool_call(item: Mapping[str, Any]) -> Optional[ContentBlock]:
    raw_args = item.get("arguments")
    if raw_args is None:
        raw_args = item.get("args")
    if raw_args is None:
        raw_args = item.get("input")
    return ToolCallContent(
        name=_str_field(item, "name") or "tool",
        arguments=coerce_args(raw_args),
        id=_str_field(item, "id", "toolCallId", "tool_call_id"),
    )


def _create_tool_result(item: Mapping[str, Any]) -> Optional[ContentBlock]:
    return ToolResultContent(
        name=_str_field(item, "name") or "tool",
        text=extract_tool_text(item),
        tool_call_id=_str_field(
            item, "toolCallId", "tool_call_id", "tool_use_id", "toolUseId"
        ),
    )


# Maps lower-cased block type names to their creator functions
CONTENT_BLOCK_CREATORS: dict[
    str, Callable[[Mapping[str, Any]], Optional[ContentBlock]]
] = {
    "text": _create_text,
    "thinking": _create_thinking,
    "image": _create_image,
    "image_url": _create_image_url,
    **{kind: _create_tool_call for kind in TOOL_CALL_TYPES},
    **{kind: _create_tool_result for kind in TOOL_RESULT_TYPES},
}


# =============================================================================
# Content Block Creation
# =============================================================================


def create_content_block(item: Mapping[str, Any]) -> Optional[ContentBlock]:
    """Create a ContentBlock from one raw block using the registry.

    Args:
        item: The raw block mapping

    Returns:
        ContentBlock instance, UnknownContent for unrecognized types, or None
        when the block is malformed
    """
    kind = str(item.get("type") or "").lower()
    try:
        if kind not in TOOL_RESULT_TYPES and is_tool_call_block(kind, item):
            return _create_tool_call(item)
        creator = CONTENT_BLOCK_CREATORS.get(kind)
        if creator is None:
            return UnknownContent(type_name=kind or "unknown")
        return creator(item)
    except (ValidationError, TypeError, ValueError) as e:
        logger.debug("Dropping malformed %r content block: %s", kind, e)
        return None


def normalize_content(content: Any) -> list[ContentBlock]:
    """Create a list of ContentBlocks from message content data.

    Always returns a list for consistent downstream handling. String content
    is wrapped in a TextContent block; non-mapping list entries are skipped.

    Args:
        content: Raw content data (string or list of blocks)
    """
    if isinstance(content, str):
        return [TextContent(text=content)]
    if not isinstance(content, list):
        return []
    blocks: list[ContentBlock] = []
    for item in cast(list[Any], content):
        if not isinstance(item, Mapping):
            continue
        block = create_content_block(cast(Mapping[str, Any], item))
        if block is not None:
            blocks.append(block)
    return blocks
