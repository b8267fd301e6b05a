"""Live transcript session state.

A TranscriptSession accumulates raw messages and the state of the current
assistant stream as control signals arrive in order. The renderer re-runs its
synchronous transform over a session whenever new input is applied.
"""

import logging
from typing import Any, Mapping, Optional

from .grouper import build_chat_items, now_ms
from .models import ChatItem, RawMessage, RenderOptions
from .normalizer import normalize_timestamp

logger = logging.getLogger(__name__)


class TranscriptSession:
    """Ordered message history plus the in-progress assistant stream.

    stream is None when no assistant turn is pending, "" while waiting for
    the first delta, and the latest delta text while streaming.
    """

    def __init__(self, session_key: str = "main"):
        self.session_key = session_key
        self.messages: list[RawMessage] = []
        self.tool_messages: list[RawMessage] = []
        self.stream: Optional[str] = None
        self.stream_started_at: Optional[int] = None

    @property
    def is_streaming(self) -> bool:
        return self.stream is not None

    def add_message(self, message: RawMessage) -> None:
        self.messages.append(message)

    def add_tool_message(self, message: RawMessage) -> None:
        self.tool_messages.append(message)

    def begin_reading_indicator(self, started_at: Optional[int] = None) -> None:
        """Mark an assistant turn as pending with no text yet."""
        self.stream = ""
        self.stream_started_at = started_at if started_at is not None else now_ms()

    def stream_delta(self, text: str, started_at: Optional[int] = None) -> None:
        """Replace the current partial assistant text.

        Each delta carries the whole text so far, not an increment.
        """
        if started_at is not None:
            self.stream_started_at = started_at
        elif self.stream_started_at is None:
            self.stream_started_at = now_ms()
        self.stream = text

    def stream_end(self, timestamp: Optional[int] = None) -> Optional[RawMessage]:
        """Fold the final delta into an assistant message and clear the stream.

        Returns the folded message, or None when the stream had no text.
        """
        text = self.stream
        started_at = self.stream_started_at
        self.stream = None
        self.stream_started_at = None
        if not text or not text.strip():
            return None
        if timestamp is None:
            timestamp = started_at if started_at is not None else now_ms()
        message: RawMessage = {
            "role": "assistant",
            "content": [{"type": "text", "text": text}],
            "timestamp": timestamp,
        }
        self.messages.append(message)
        return message

    def abort_stream(self) -> None:
        """Stop streaming without folding the partial text into history."""
        self.stream = None
        self.stream_started_at = None

    def apply_event(self, event: Mapping[str, Any]) -> None:
        """Apply one control event.

        Recognized shapes:
            {"type": "message", "message": {...}}
            {"type": "tool", "message": {...}}
            {"type": "reading-indicator-begin", "startedAt": ms?}
            {"type": "stream-delta", "text": "...", "startedAt": ms?}
            {"type": "stream-end", "timestamp": ms?}
            {"type": "stream-abort"}
        Unknown or malformed events are logged and ignored.
        """
        event_type = event.get("type")
        started_at = normalize_timestamp(event.get("startedAt"))
        if event_type in ("message", "tool"):
            message = event.get("message")
            if not isinstance(message, Mapping):
                logger.warning("Ignoring %s event without a message object", event_type)
                return
            if event_type == "message":
                self.add_message(message)
            else:
                self.add_tool_message(message)
        elif event_type == "reading-indicator-begin":
            self.begin_reading_indicator(started_at)
        elif event_type == "stream-delta":
            text = event.get("text")
            if not isinstance(text, str):
                logger.warning("Ignoring stream-delta event without text")
                return
            self.stream_delta(text, started_at)
        elif event_type == "stream-end":
            self.stream_end(normalize_timestamp(event.get("timestamp")))
        elif event_type == "stream-abort":
            self.abort_stream()
        else:
            logger.warning("Ignoring unknown event type: %r", event_type)

    def chat_items(
        self, options: Optional[RenderOptions] = None, now: Optional[int] = None
    ) -> list[ChatItem]:
        return build_chat_items(
            self.messages,
            tool_messages=self.tool_messages,
            stream=self.stream,
            stream_started_at=self.stream_started_at,
            session_key=self.session_key,
            options=options,
            now=now,
        )
