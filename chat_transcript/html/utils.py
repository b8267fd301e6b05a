"""HTML utilities shared by the transcript formatters and templates."""

import functools
import html
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from jinja2 import Environment, FileSystemLoader, select_autoescape

from ..models import Role

ROLE_CSS_CLASSES: dict[Role, str] = {
    Role.USER: "user",
    Role.ASSISTANT: "assistant",
    Role.TOOL: "tool",
    Role.UNKNOWN: "other",
}

ROLE_AVATARS: dict[Role, str] = {
    Role.USER: "Y",
    Role.ASSISTANT: "A",
    Role.TOOL: "⚙",
    Role.UNKNOWN: "?",
}


# -- HTML Utilities -----------------------------------------------------------


def escape_html(text: str) -> str:
    """Escape HTML special characters in text.

    Also normalizes line endings (CRLF -> LF) to prevent double spacing in <pre> blocks.
    """
    normalized = text.replace("\r\n", "\n").replace("\r", "\n")
    return html.escape(normalized)


def role_css_class(role: Role) -> str:
    return ROLE_CSS_CLASSES.get(role, "other")


def role_avatar(role: Role, assistant_name: Optional[str] = None) -> str:
    if role == Role.ASSISTANT and assistant_name:
        return assistant_name.strip()[:1].upper() or ROLE_AVATARS[role]
    return ROLE_AVATARS.get(role, "?")


def sender_name(role: Role, assistant_name: str = "Assistant") -> str:
    if role == Role.USER:
        return "You"
    if role == Role.ASSISTANT:
        return assistant_name
    if role == Role.TOOL:
        return "Tool"
    return "System"


def format_timestamp(timestamp_ms: Optional[int]) -> str:
    """Format an epoch-millisecond timestamp as UTC 'YYYY-MM-DD HH:MM:SS'.

    Returns an empty string for missing or zero timestamps.
    """
    if not timestamp_ms:
        return ""
    try:
        dt = datetime.fromtimestamp(timestamp_ms / 1000, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return ""
    return dt.strftime("%Y-%m-%d %H:%M:%S")


def is_safe_image_url(url: str) -> bool:
    """Accept http(s) URLs, root-relative paths and raster data URLs."""
    lowered = url.strip().lower()
    if lowered.startswith(("http://", "https://", "/")):
        return True
    return lowered.startswith(
        ("data:image/png", "data:image/jpeg", "data:image/gif", "data:image/webp")
    )


@functools.lru_cache(maxsize=1)
def get_template_environment() -> Environment:
    """Get cached Jinja2 template environment for HTML rendering.

    Templates load from the templates directory with HTML auto-escaping;
    already-sanitized fragments are passed through with the `safe` filter.
    """
    templates_dir = Path(__file__).parent / "templates"
    env = Environment(
        loader=FileSystemLoader(templates_dir),
        autoescape=select_autoescape(["html", "xml"]),
    )
    env.globals["role_css_class"] = role_css_class  # type: ignore[index]
    env.globals["role_avatar"] = role_avatar  # type: ignore[index]
    env.globals["is_safe_image_url"] = is_safe_image_url  # type: ignore[index]
    env.filters["format_timestamp"] = format_timestamp  # type: ignore[index]
    return env
