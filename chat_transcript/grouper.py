"""Transcript grouping.

Builds the ordered chat item sequence for one render pass (history window,
tool messages, stream marker) and folds consecutive messages of the same
canonical role into MessageGroups.
"""

import logging
import time
from typing import Iterable, Optional, Sequence

from .models import (
    ChatItem,
    GroupedEntry,
    GroupedMessage,
    MessageGroup,
    MessageItem,
    RawMessage,
    ReadingIndicatorItem,
    RenderOptions,
    StreamItem,
)
from .normalizer import message_key, normalize_message

logger = logging.getLogger(__name__)

HISTORY_NOTICE_KEY = "chat:history:notice"
HIDDEN_TOOL_RESULT_ROLES = ("toolresult", "tool_result")


def now_ms() -> int:
    return int(time.time() * 1000)


def group_messages(
    items: Iterable[ChatItem], now: Optional[int] = None
) -> list[GroupedEntry]:
    """Fold consecutive same-role messages into groups.

    Single left-to-right pass. Reading-indicator and stream markers close the
    open group and are emitted on their own; the trailing group is emitted
    last. Output depends only on the input sequence.
    """
    result: list[GroupedEntry] = []
    current: Optional[MessageGroup] = None

    for item in items:
        if not isinstance(item, MessageItem):
            if current is not None:
                result.append(current)
                current = None
            result.append(item)
            continue

        normalized = normalize_message(item.message)
        entry = GroupedMessage(message=item.message, key=item.key)
        if current is None or current.role != normalized.role:
            if current is not None:
                result.append(current)
            current = MessageGroup(
                key=f"group:{normalized.role.value}:{item.key}",
                role=normalized.role,
                messages=[entry],
                timestamp=normalized.timestamp or (now if now is not None else now_ms()),
            )
        else:
            current.messages.append(entry)

    if current is not None:
        result.append(current)
    return result


def _is_hidden_tool_result(message: RawMessage) -> bool:
    role = message.get("role")
    return isinstance(role, str) and role.lower() in HIDDEN_TOOL_RESULT_ROLES


def build_chat_items(
    messages: Sequence[RawMessage],
    tool_messages: Sequence[RawMessage] = (),
    stream: Optional[str] = None,
    stream_started_at: Optional[int] = None,
    session_key: str = "main",
    options: Optional[RenderOptions] = None,
    now: Optional[int] = None,
) -> list[ChatItem]:
    """Build the chat item sequence for one render pass.

    Args:
        messages: Full message history, oldest first
        tool_messages: Live tool messages appended after the history
        stream: Current stream text; None when no assistant turn is pending,
            empty/blank while waiting for the first delta
        stream_started_at: Epoch millis the current stream started
        session_key: Session identity used in the stream marker key
        options: Render options (history window, reasoning visibility)
        now: Current time in epoch millis, for synthetic entries

    Returns:
        Ordered chat items, ready for group_messages
    """
    options = options or RenderOptions()
    now = now if now is not None else now_ms()
    items: list[ChatItem] = []

    limit = max(0, options.history_limit)
    history_start = max(0, len(messages) - limit)
    if history_start > 0:
        items.append(
            MessageItem(
                key=HISTORY_NOTICE_KEY,
                message={
                    "role": "system",
                    "content": f"Showing last {limit} messages ({history_start} hidden).",
                    "timestamp": now,
                },
            )
        )
        logger.debug("History window hides %d messages", history_start)

    for index in range(history_start, len(messages)):
        message = messages[index]
        if not hasattr(message, "get"):
            logger.debug("Skipping non-mapping message at index %d", index)
            continue
        if not options.show_reasoning and _is_hidden_tool_result(message):
            continue
        items.append(MessageItem(key=message_key(message, index), message=message))

    if options.show_reasoning:
        for index, message in enumerate(tool_messages):
            if hasattr(message, "get"):
                items.append(
                    MessageItem(
                        key=message_key(message, index + len(messages)),
                        message=message,
                    )
                )

    if stream is not None:
        key = f"stream:{session_key}:{stream_started_at if stream_started_at is not None else 'live'}"
        if stream.strip():
            items.append(
                StreamItem(
                    key=key,
                    text=stream,
                    started_at=stream_started_at if stream_started_at is not None else now,
                )
            )
        else:
            items.append(ReadingIndicatorItem(key=key))
    return items
