"""Role and timestamp canonicalization across message producers.

Every function here is total and deterministic: unexpected shapes map to
Role.UNKNOWN or a missing timestamp rather than raising.
"""

import hashlib
import json
import math
from datetime import datetime, timezone
from typing import Any, Optional

from .models import NormalizedMessage, RawMessage, Role

ROLE_ALIASES: dict[str, Role] = {
    "user": Role.USER,
    "human": Role.USER,
    "assistant": Role.ASSISTANT,
    "ai": Role.ASSISTANT,
    "model": Role.ASSISTANT,
    "bot": Role.ASSISTANT,
    "tool": Role.TOOL,
    "toolresult": Role.TOOL,
    "tool_result": Role.TOOL,
    "function": Role.TOOL,
}

TOOL_RESULT_ROLES = ("toolresult", "tool_result", "tool")
TOOL_CALL_ID_FIELDS = ("toolCallId", "tool_call_id")
TIMESTAMP_FIELDS = ("timestamp", "ts", "createdAt", "created_at")

# Epoch values below this are taken to be seconds rather than milliseconds
_SECONDS_CEILING = 100_000_000_000


def _role_string(message: RawMessage) -> str:
    role = message.get("role")
    return role if isinstance(role, str) else ""


def has_tool_call_id(message: RawMessage) -> bool:
    return any(isinstance(message.get(name), str) for name in TOOL_CALL_ID_FIELDS)


def is_tool_result_message(message: Any) -> bool:
    """Check whether a message carries tool output.

    True when the role names tool output (case-insensitive) or a
    tool-call-id field is present.
    """
    if not hasattr(message, "get"):
        return False
    role = _role_string(message).lower()
    return role in TOOL_RESULT_ROLES or has_tool_call_id(message)


def normalize_role(role: Any, message: Optional[RawMessage] = None) -> Role:
    """Map an arbitrary role value to a canonical Role.

    A message carrying a tool-call-id field is a tool message regardless of
    its role string.
    """
    if message is not None and has_tool_call_id(message):
        return Role.TOOL
    if not isinstance(role, str):
        return Role.UNKNOWN
    return ROLE_ALIASES.get(role.strip().lower(), Role.UNKNOWN)


def normalize_timestamp(value: Any) -> Optional[int]:
    """Convert a producer timestamp to epoch milliseconds.

    Accepts epoch seconds or milliseconds (numbers or numeric strings) and
    ISO-8601 strings. Returns None for anything else.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        if not math.isfinite(value) or value < 0:
            return None
        millis = value * 1000 if value < _SECONDS_CEILING else value
        return int(millis)
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            return normalize_timestamp(float(text))
        except ValueError:
            pass
        try:
            dt = datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError:
            return None
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        return int(dt.timestamp() * 1000)
    return None


def message_timestamp(message: RawMessage) -> Optional[int]:
    for name in TIMESTAMP_FIELDS:
        timestamp = normalize_timestamp(message.get(name))
        if timestamp is not None:
            return timestamp
    return None


def normalize_message(message: RawMessage, now: Optional[int] = None) -> NormalizedMessage:
    """Canonicalize role and timestamp of a raw message.

    Pure: the same message (and the same `now`) always normalizes identically.
    Messages without a usable timestamp fall back to `now`, or 0.
    """
    if not hasattr(message, "get"):
        return NormalizedMessage(role=Role.UNKNOWN, timestamp=now or 0, original=message)
    timestamp = message_timestamp(message)
    return NormalizedMessage(
        role=normalize_role(message.get("role"), message),
        timestamp=timestamp if timestamp is not None else (now or 0),
        original=message,
    )


def message_key(message: RawMessage, index: int) -> str:
    """Build a stable key for a message at a given history position."""
    tool_call_id = message.get("toolCallId")
    if isinstance(tool_call_id, str) and tool_call_id:
        return f"tool:{tool_call_id}"
    for name in ("id", "messageId"):
        value = message.get(name)
        if isinstance(value, str) and value:
            return f"msg:{value}"
    role = _role_string(message) or "unknown"
    timestamp = message.get("timestamp")
    if isinstance(timestamp, (int, float)) and not isinstance(timestamp, bool):
        return f"msg:{role}:{timestamp}:{index}"
    return f"msg:{role}:{index}"


def content_fingerprint(message: RawMessage) -> Optional[str]:
    """Digest of a message's full content, or None when it cannot be serialized.

    Keys from message_key() are positional for messages without ids, so the
    digest is what tells two messages at the same position apart.
    """
    try:
        payload = json.dumps(message, sort_keys=True, default=str)
    except (TypeError, ValueError, RecursionError):
        return None
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()
