"""Models for chat transcript records and their derived views.

Raw message records arrive from different producers with inconsistent shapes.
Content blocks are parsed into the Pydantic models below at the ingestion
boundary, so every later stage sees a single block representation. The
derived, render-time views (extracted content, tool cards, groups) are plain
dataclasses.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Literal, Mapping, Optional, Union

from pydantic import BaseModel


# Producer-owned message record; treated as read-only.
RawMessage = Mapping[str, Any]


class Role(str, Enum):
    """Canonical role used for grouping and avatar selection.

    Using str as base class keeps plain string comparisons working.
    """

    USER = "user"
    ASSISTANT = "assistant"
    TOOL = "tool"
    UNKNOWN = "unknown"


class ToolStatus(str, Enum):
    """Display status inferred from a tool result payload."""

    SUCCESS = "success"
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


# =============================================================================
# Content Block Models
# =============================================================================
# Single internal representation of message content. Producers may send a
# plain string or a list of typed blocks; both are converted to a list of the
# models below by factories.content_factory.


class TextContent(BaseModel):
    type: Literal["text"] = "text"
    text: str


class ThinkingContent(BaseModel):
    type: Literal["thinking"] = "thinking"
    thinking: str


class ImageContent(BaseModel):
    """Image attachment, already decoded to a displayable URL."""

    type: Literal["image"] = "image"
    url: str
    alt: Optional[str] = None


class ToolCallContent(BaseModel):
    type: Literal["tool_call"] = "tool_call"
    name: str = "tool"
    arguments: Any = None
    id: Optional[str] = None


class ToolResultContent(BaseModel):
    type: Literal["tool_result"] = "tool_result"
    name: str = "tool"
    text: Optional[str] = None
    tool_call_id: Optional[str] = None


class UnknownContent(BaseModel):
    """Fallback for block types the pipeline does not display."""

    type: Literal["unknown"] = "unknown"
    type_name: str


ContentBlock = Union[
    TextContent,
    ThinkingContent,
    ImageContent,
    ToolCallContent,
    ToolResultContent,
    UnknownContent,
]


# =============================================================================
# Extracted Content
# =============================================================================


@dataclass(frozen=True)
class ImageAttachment:
    url: str
    alt: Optional[str] = None


@dataclass(frozen=True)
class ToolCallCard:
    """A tool invocation, displayed independently of its result."""

    name: str
    args: Any = None
    kind: Literal["call"] = "call"


@dataclass(frozen=True)
class ToolResultCard:
    """A tool result. Shares correlation with its call but is never merged."""

    name: str
    text: Optional[str] = None
    kind: Literal["result"] = "result"


ToolCard = Union[ToolCallCard, ToolResultCard]


@dataclass
class ExtractedContent:
    """Per-message derived view computed by the content extractor."""

    text: Optional[str] = None
    thinking: Optional[str] = None
    images: list[ImageAttachment] = field(default_factory=list)
    tool_cards: list[ToolCard] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.text and not self.tool_cards and not self.images


@dataclass(frozen=True)
class ToolStatusInfo:
    status: ToolStatus
    message: Optional[str] = None


# =============================================================================
# Normalized Messages and Groups
# =============================================================================


@dataclass(frozen=True)
class NormalizedMessage:
    role: Role
    timestamp: int
    original: RawMessage = field(compare=False)


@dataclass(frozen=True)
class MessageItem:
    """A normal message entry in the chat item sequence."""

    key: str
    message: RawMessage
    kind: Literal["message"] = "message"


@dataclass(frozen=True)
class ReadingIndicatorItem:
    """Assistant turn pending, no text yet."""

    key: str
    kind: Literal["reading-indicator"] = "reading-indicator"


@dataclass(frozen=True)
class StreamItem:
    """Assistant actively emitting partial text."""

    key: str
    text: str
    started_at: int
    kind: Literal["stream"] = "stream"


ChatItem = Union[MessageItem, ReadingIndicatorItem, StreamItem]


@dataclass(frozen=True)
class GroupedMessage:
    message: RawMessage
    key: str


@dataclass
class MessageGroup:
    """Consecutive messages sharing one canonical role.

    Groups are recomputed on every render pass and own no identity beyond it.
    """

    key: str
    role: Role
    messages: list[GroupedMessage]
    timestamp: int
    is_streaming: bool = False
    kind: Literal["group"] = "group"


GroupedEntry = Union[MessageGroup, ReadingIndicatorItem, StreamItem]


# =============================================================================
# Render Options
# =============================================================================


@dataclass(frozen=True)
class RenderOptions:
    """Host-supplied settings passed per render call.

    show_reasoning: render assistant thinking text and raw tool result turns
    show_tools: render tool cards inline (otherwise a compact "N tools used")
    expand_tools: render full tool output instead of a truncated preview
    history_limit: number of most recent history messages to render
    """

    show_reasoning: bool = False
    show_tools: bool = True
    expand_tools: bool = False
    history_limit: int = 200
    assistant_name: str = "Assistant"
