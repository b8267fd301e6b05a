#!/usr/bin/env python3
"""Render driver: turns a transcript into render units and HTML.

The pipeline for one render pass is:
1. Build chat items (history window, tool messages, stream marker)
2. Group consecutive same-role messages
3. For every message of every group: extract content, render markdown
   through the sanitizing pipeline, and render tool cards
4. Emit render units (groups, reading indicator, stream)

A TranscriptRenderer owns its markdown pipeline and extraction cache, so
independent renderers never share state. Failures are scoped to the smallest
unit: a message that fails to render becomes an empty RenderedMessage and the
rest of the transcript still renders.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Literal, Optional, Sequence, Union

from .cache import LRUCache
from .extractor import extract_content, format_reasoning_markdown
from .grouper import build_chat_items, group_messages
from .html.markdown import MarkdownPipeline
from .html.tool_formatters import render_tool_card, render_tool_indicator
from .html.utils import get_template_environment, role_avatar, sender_name
from .models import (
    ExtractedContent,
    ImageAttachment,
    MessageGroup,
    RawMessage,
    ReadingIndicatorItem,
    RenderOptions,
    Role,
    StreamItem,
    ToolCard,
)
from .normalizer import content_fingerprint, is_tool_result_message
from .renderer_timings import (
    DEBUG_TIMING,
    get_timing_var,
    log_timing,
    report_timing_statistics,
    set_timing_var,
)
from .session import TranscriptSession

logger = logging.getLogger(__name__)

EXTRACTION_CACHE_LIMIT = 500


# =============================================================================
# Render Units
# =============================================================================


@dataclass
class RenderedMessage:
    """One message with every fragment already converted to safe HTML.

    tool_only: the message is a tool result without text; only its cards
    (or the tool indicator) are displayed, without a bubble.
    can_copy_markdown: assistant text whose markdown source gets a copy button.
    """

    key: str
    html: str = ""
    reasoning_html: str = ""
    tool_cards_html: list[str] = field(default_factory=list)
    tool_cards: list[ToolCard] = field(default_factory=list)
    images: list[ImageAttachment] = field(default_factory=list)
    markdown: Optional[str] = None
    tool_only: bool = False
    is_streaming: bool = False
    can_copy_markdown: bool = False

    @property
    def is_empty(self) -> bool:
        return (
            not self.html
            and not self.reasoning_html
            and not self.tool_cards_html
            and not self.images
        )


@dataclass
class GroupRenderUnit:
    key: str
    role: Role
    sender_name: str
    avatar: str
    timestamp: int
    messages: list[RenderedMessage]
    is_streaming: bool = False
    kind: Literal["group"] = "group"


@dataclass
class ReadingIndicatorUnit:
    key: str
    sender_name: str
    avatar: str
    kind: Literal["reading-indicator"] = "reading-indicator"


@dataclass
class StreamRenderUnit:
    key: str
    sender_name: str
    avatar: str
    started_at: int
    message: RenderedMessage
    kind: Literal["stream"] = "stream"

    @property
    def html(self) -> str:
        return self.message.html


RenderUnit = Union[GroupRenderUnit, ReadingIndicatorUnit, StreamRenderUnit]


# =============================================================================
# Renderer
# =============================================================================


class TranscriptRenderer:
    """Renders transcripts into render units with owned, bounded caches."""

    def __init__(
        self,
        markdown: Optional[MarkdownPipeline] = None,
        extraction_cache_limit: int = EXTRACTION_CACHE_LIMIT,
    ):
        self.markdown = markdown or MarkdownPipeline()
        self.extraction_cache: LRUCache[str, ExtractedContent] = LRUCache(
            extraction_cache_limit, name="extraction"
        )

    # -- Messages -------------------------------------------------------------

    def _render_tool_cards(
        self, cards: list[ToolCard], options: RenderOptions
    ) -> list[str]:
        if not cards:
            return []
        if not options.show_tools:
            return [render_tool_indicator(len(cards))]
        return [
            render_tool_card(
                card, options.expand_tools, self.markdown.to_sanitized_html
            )
            for card in cards
        ]

    def _render_message(
        self,
        message: RawMessage,
        key: str,
        options: RenderOptions,
        is_streaming: bool,
    ) -> RenderedMessage:
        fingerprint = content_fingerprint(message)
        if fingerprint is None:
            content = extract_content(message)
        else:
            content = extract_content(
                message, self.extraction_cache, f"{key}:{fingerprint}"
            )
        role = message.get("role")
        role_name = role if isinstance(role, str) else "unknown"
        markdown = content.text if content.text and content.text.strip() else None

        if markdown is None and content.tool_cards and is_tool_result_message(message):
            return RenderedMessage(
                key=key,
                tool_cards_html=self._render_tool_cards(content.tool_cards, options),
                tool_cards=content.tool_cards,
                tool_only=True,
                is_streaming=is_streaming,
            )

        if markdown is None and not content.tool_cards and not content.images:
            return RenderedMessage(key=key, is_streaming=is_streaming)

        reasoning_html = ""
        if (
            options.show_reasoning
            and role_name.lower() == "assistant"
            and content.thinking
        ):
            reasoning_html = self.markdown.to_sanitized_html(
                format_reasoning_markdown(content.thinking)
            )

        return RenderedMessage(
            key=key,
            html=self.markdown.to_sanitized_html(markdown) if markdown else "",
            reasoning_html=reasoning_html,
            tool_cards_html=self._render_tool_cards(content.tool_cards, options),
            tool_cards=content.tool_cards,
            images=content.images,
            markdown=markdown,
            is_streaming=is_streaming,
            can_copy_markdown=role_name.lower() == "assistant" and markdown is not None,
        )

    def render_message(
        self,
        message: RawMessage,
        key: str,
        options: Optional[RenderOptions] = None,
        is_streaming: bool = False,
    ) -> RenderedMessage:
        """Render one message; any failure degrades to an empty message."""
        options = options or RenderOptions()
        set_timing_var("_current_msg_id", key)
        try:
            return self._render_message(message, key, options, is_streaming)
        except Exception as e:
            logger.warning("Failed to render message %s: %s", key, e, exc_info=True)
            return RenderedMessage(key=key, is_streaming=is_streaming)

    # -- Units ----------------------------------------------------------------

    def render_group(
        self, group: MessageGroup, options: Optional[RenderOptions] = None
    ) -> GroupRenderUnit:
        options = options or RenderOptions()
        last_index = len(group.messages) - 1
        return GroupRenderUnit(
            key=group.key,
            role=group.role,
            sender_name=sender_name(group.role, options.assistant_name),
            avatar=role_avatar(group.role, options.assistant_name),
            timestamp=group.timestamp,
            messages=[
                self.render_message(
                    item.message,
                    item.key,
                    options,
                    is_streaming=group.is_streaming and index == last_index,
                )
                for index, item in enumerate(group.messages)
            ],
            is_streaming=group.is_streaming,
        )

    def render_stream(
        self, item: StreamItem, options: Optional[RenderOptions] = None
    ) -> StreamRenderUnit:
        options = options or RenderOptions()
        message: RawMessage = {
            "role": "assistant",
            "content": [{"type": "text", "text": item.text}],
            "timestamp": item.started_at,
        }
        # Stream text changes on every delta; bypass the extraction cache
        set_timing_var("_current_msg_id", item.key)
        try:
            content = extract_content(message)
            text = content.text or ""
            rendered = RenderedMessage(
                key=item.key,
                html=self.markdown.to_sanitized_html(text),
                markdown=text or None,
                is_streaming=True,
            )
        except Exception as e:
            logger.warning("Failed to render stream %s: %s", item.key, e)
            rendered = RenderedMessage(key=item.key, is_streaming=True)
        return StreamRenderUnit(
            key=item.key,
            sender_name=sender_name(Role.ASSISTANT, options.assistant_name),
            avatar=role_avatar(Role.ASSISTANT, options.assistant_name),
            started_at=item.started_at,
            message=rendered,
        )

    def render(
        self,
        source: Union[TranscriptSession, Sequence[RawMessage]],
        options: Optional[RenderOptions] = None,
        now: Optional[int] = None,
    ) -> list[RenderUnit]:
        """Render a session (or a plain message list) into render units.

        Args:
            source: Live session, or the ordered message history
            options: Per-call display settings
            now: Current time in epoch millis for synthetic entries

        Returns:
            Ordered render units: groups interleaved with reading-indicator
            and stream units
        """
        options = options or RenderOptions()
        t_start = time.time()
        if DEBUG_TIMING:
            set_timing_var("_markdown_timings", [])
            set_timing_var("_highlight_timings", [])

        with log_timing("Build chat items", t_start):
            if isinstance(source, TranscriptSession):
                items = source.chat_items(options, now)
            else:
                items = build_chat_items(list(source), options=options, now=now)

        with log_timing("Group messages", t_start):
            entries = group_messages(items, now)

        units: list[RenderUnit] = []
        with log_timing(lambda: f"Render units ({len(units)} units)", t_start):
            for entry in entries:
                if isinstance(entry, MessageGroup):
                    units.append(self.render_group(entry, options))
                elif isinstance(entry, ReadingIndicatorItem):
                    units.append(
                        ReadingIndicatorUnit(
                            key=entry.key,
                            sender_name=sender_name(
                                Role.ASSISTANT, options.assistant_name
                            ),
                            avatar=role_avatar(Role.ASSISTANT, options.assistant_name),
                        )
                    )
                else:
                    units.append(self.render_stream(entry, options))

        if DEBUG_TIMING:
            report_timing_statistics(
                [
                    ("Markdown", get_timing_var("_markdown_timings", [])),
                    ("Highlight", get_timing_var("_highlight_timings", [])),
                ]
            )
        return units

    def render_html(
        self,
        units: Sequence[RenderUnit],
        title: str = "Transcript",
        options: Optional[RenderOptions] = None,
    ) -> str:
        """Render units into a standalone HTML page."""
        options = options or RenderOptions()
        template = get_template_environment().get_template("transcript.html")
        return str(
            template.render(
                title=title,
                units=units,
                assistant_name=options.assistant_name,
            )
        )
