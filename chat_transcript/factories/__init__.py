"""Factory modules for creating typed objects from raw data."""

from .content_factory import (
    # Content block creation
    coerce_args,
    create_content_block,
    extract_tool_text,
    normalize_content,
    # Constants
    CONTENT_BLOCK_CREATORS,
    TOOL_CALL_TYPES,
    TOOL_RESULT_TYPES,
)
from .tool_factory import (
    # Tool card creation
    create_tool_cards,
    message_tool_name,
    # Tool display
    ToolDisplay,
    resolve_tool_display,
)

__all__ = [
    "coerce_args",
    "create_content_block",
    "extract_tool_text",
    "normalize_content",
    "CONTENT_BLOCK_CREATORS",
    "TOOL_CALL_TYPES",
    "TOOL_RESULT_TYPES",
    "create_tool_cards",
    "message_tool_name",
    "ToolDisplay",
    "resolve_tool_display",
]
