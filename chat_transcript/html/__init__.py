"""HTML-specific rendering package.

Re-exports the markdown pipeline, sanitizer, highlighter and tool card
formatters.
"""

from .utils import (
    escape_html,
    format_timestamp,
    get_template_environment,
    is_safe_image_url,
    role_avatar,
    role_css_class,
    sender_name,
)
from .highlight import (
    Token,
    highlight_code,
    resolve_language,
    tokenize,
)
from .sanitize import (
    ALLOWED_ATTRS,
    ALLOWED_TAGS,
    sanitize_html,
)
from .markdown import (
    ChatHtmlRenderer,
    MarkdownPipeline,
    render_code_block,
    render_markdown,
    truncate_text,
)
from .tool_formatters import (
    # Status inference
    extract_status,
    extract_error_message,
    is_tool_error,
    is_tool_warning,
    # Output formatting
    format_json_display,
    format_tool_output_for_sidebar,
    get_truncated_preview,
    # Cards
    render_params_table,
    render_tool_card,
    render_tool_indicator,
)

__all__ = [
    # utils
    "escape_html",
    "format_timestamp",
    "get_template_environment",
    "is_safe_image_url",
    "role_avatar",
    "role_css_class",
    "sender_name",
    # highlight
    "Token",
    "highlight_code",
    "resolve_language",
    "tokenize",
    # sanitize
    "ALLOWED_ATTRS",
    "ALLOWED_TAGS",
    "sanitize_html",
    # markdown
    "ChatHtmlRenderer",
    "MarkdownPipeline",
    "render_code_block",
    "render_markdown",
    "truncate_text",
    # tool_formatters
    "extract_status",
    "extract_error_message",
    "is_tool_error",
    "is_tool_warning",
    "format_json_display",
    "format_tool_output_for_sidebar",
    "get_truncated_preview",
    "render_params_table",
    "render_tool_card",
    "render_tool_indicator",
]
