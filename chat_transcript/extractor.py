"""Per-message content extraction.

Given one raw message, produce an ExtractedContent view: display text,
reasoning ("thinking") text, image attachments and tool cards. Extraction is
a pure function of the message; callers may memoize it in an LRUCache they
own, keyed by the message key plus a digest of the message content.
"""

import re
from typing import Any, Optional

from .cache import LRUCache
from .factories import create_tool_cards, normalize_content
from .models import (
    ContentBlock,
    ExtractedContent,
    ImageAttachment,
    ImageContent,
    RawMessage,
    TextContent,
    ThinkingContent,
)

# Inline reasoning some producers embed in assistant text
THINK_TAG_PATTERN = re.compile(
    r"<\s*(think|thinking)\s*>(.*?)<\s*/\s*\1\s*>", re.IGNORECASE | re.DOTALL
)


def _role(message: RawMessage) -> str:
    role = message.get("role")
    return role.lower() if isinstance(role, str) else ""


def strip_thinking_tags(text: str) -> str:
    return THINK_TAG_PATTERN.sub("", text)


def _text_from_blocks(
    message: RawMessage, blocks: list[ContentBlock]
) -> Optional[str]:
    parts = [block.text for block in blocks if isinstance(block, TextContent)]
    if not parts:
        return None
    text = "\n".join(parts)
    if _role(message) == "assistant":
        text = strip_thinking_tags(text)
    return text


def _thinking_from_blocks(blocks: list[ContentBlock]) -> Optional[str]:
    parts = [block.thinking for block in blocks if isinstance(block, ThinkingContent)]
    if not parts:
        # Fall back to inline <think> segments in the text
        for block in blocks:
            if isinstance(block, TextContent):
                parts.extend(
                    match.group(2).strip()
                    for match in THINK_TAG_PATTERN.finditer(block.text)
                )
    thinking = "\n".join(part for part in parts if part)
    return thinking or None


def extract_text(message: Any) -> Optional[str]:
    """Extract the display text of a message, or None when it has none."""
    if not hasattr(message, "get"):
        return None
    return _text_from_blocks(message, normalize_content(message.get("content")))


def extract_thinking(message: Any) -> Optional[str]:
    """Extract the reasoning text of a message, or None when it has none."""
    if not hasattr(message, "get"):
        return None
    return _thinking_from_blocks(normalize_content(message.get("content")))


def _compute_content(message: Any) -> ExtractedContent:
    if not hasattr(message, "get"):
        return ExtractedContent()
    blocks = normalize_content(message.get("content"))
    text = _text_from_blocks(message, blocks)
    return ExtractedContent(
        text=text,
        thinking=_thinking_from_blocks(blocks),
        images=[
            ImageAttachment(url=block.url, alt=block.alt)
            for block in blocks
            if isinstance(block, ImageContent)
        ],
        tool_cards=create_tool_cards(message, blocks, text),
    )


def extract_content(
    message: Any,
    cache: Optional[LRUCache[str, ExtractedContent]] = None,
    key: Optional[str] = None,
) -> ExtractedContent:
    """Extract typed sub-content from one raw message.

    Args:
        message: The raw message record
        cache: Optional extraction cache owned by the caller
        key: Identity of the message and its content; required for caching

    Returns:
        ExtractedContent; empty (nulls and empty lists) when nothing is found
    """
    if cache is None or key is None:
        return _compute_content(message)
    return cache.get_or_create(key, lambda: _compute_content(message))


def format_reasoning_markdown(text: str) -> str:
    """Format reasoning text as italic markdown lines under a header."""
    lines = [line.strip() for line in text.strip().splitlines()]
    lines = [f"_{line}_" for line in lines if line]
    if not lines:
        return ""
    return "\n".join(["_Reasoning:_", *lines])
