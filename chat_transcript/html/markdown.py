"""Markdown to sanitized HTML conversion for transcript messages.

Conversion runs: cache check -> size guard -> render -> sanitize -> cache
store. Rendering uses a restricted mistune HTMLRenderer whose handlers
tolerate empty children; a failure while rendering one token degrades to an
empty element for that token instead of aborting the message.
"""

import functools
import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional

import mistune

from .highlight import highlight_code
from .sanitize import sanitize_html
from .utils import escape_html
from ..cache import LRUCache
from ..renderer_timings import timing_stat

logger = logging.getLogger(__name__)

# Inputs longer than this are truncated before rendering
MARKDOWN_CHAR_LIMIT = 140_000
# Inputs longer than this (after truncation) skip markdown parsing entirely
MARKDOWN_PARSE_LIMIT = 40_000
# Maximum number of cached conversions
MARKDOWN_CACHE_LIMIT = 200
# Inputs longer than this are never cached
MARKDOWN_CACHE_MAX_CHARS = 50_000

# Empty element emitted when rendering a token fails
EMPTY_ELEMENTS: dict[str, str] = {
    "paragraph": "<p></p>",
    "heading": "",
    "list": "<ul></ul>",
    "list_item": "<li></li>",
    "block_quote": "<blockquote></blockquote>",
    "table": "<table></table>",
    "table_cell": "<td></td>",
    "emphasis": "<em></em>",
    "strong": "<strong></strong>",
    "strikethrough": "<del></del>",
}

COPY_ICON_SVG = (
    '<svg viewBox="0 0 24 24" fill="none" stroke="currentColor" stroke-width="2">'
    '<rect x="9" y="9" width="13" height="13" rx="2" ry="2"></rect>'
    '<path d="M5 15H4a2 2 0 0 1-2-2V4a2 2 0 0 1 2-2h9a2 2 0 0 1 2 2v1"></path>'
    "</svg>"
)


@dataclass(frozen=True)
class TruncatedText:
    text: str
    truncated: bool
    total: int


def truncate_text(text: str, limit: int) -> TruncatedText:
    if len(text) <= limit:
        return TruncatedText(text, False, len(text))
    return TruncatedText(text[:limit], True, len(text))


def render_code_block(code: str, language: Optional[str]) -> str:
    """Render a fenced code block with language label and copy button."""
    language = language or "text"
    escaped_language = escape_html(language)
    return (
        '<div class="chat-code-block">'
        '<div class="chat-code-block__header">'
        f'<span class="chat-code-block__lang">{escaped_language}</span>'
        '<div class="chat-code-block__actions">'
        '<button class="chat-code-block__copy" onclick="copyCodeBlock(this)" '
        f'title="Copy code">{COPY_ICON_SVG}Copy</button>'
        "</div></div>"
        f'<pre><code class="language-{escaped_language}">'
        f"{highlight_code(code, language)}</code></pre>"
        "</div>\n"
    )


class ChatHtmlRenderer(mistune.HTMLRenderer):
    """Restricted HTML renderer for chat messages.

    Text and raw HTML are always escaped. Links always carry safe rel/target
    attributes. Images render as links since <img> is not in the allow-list.
    """

    def __init__(self) -> None:
        super().__init__(escape=True)

    def render_token(self, token: dict[str, Any], state: Any) -> str:
        token_type = str(token.get("type", ""))
        try:
            return super().render_token(token, state)
        except Exception as e:
            logger.warning("Failed to render markdown %s token: %s", token_type, e)
            return EMPTY_ELEMENTS.get(token_type, "")

    def paragraph(self, text: str) -> str:
        return f"<p>{text or ''}</p>\n"

    def heading(self, text: str, level: int, **attrs: Any) -> str:
        level = min(max(int(level), 1), 6)
        return f"<h{level}>{text or ''}</h{level}>\n"

    def list(self, text: str, ordered: bool, **attrs: Any) -> str:
        if not ordered:
            return f"<ul>\n{text or ''}</ul>\n"
        start = attrs.get("start")
        start_attr = f' start="{int(start)}"' if start not in (None, 1) else ""
        return f"<ol{start_attr}>\n{text or ''}</ol>\n"

    def list_item(self, text: str) -> str:
        return f"<li>{text or ''}</li>\n"

    def block_quote(self, text: str) -> str:
        return f"<blockquote>\n{text or ''}</blockquote>\n"

    def link(self, text: str, url: str, title: Optional[str] = None) -> str:
        href = self.safe_url(url or "")
        title_attr = f' title="{escape_html(title)}"' if title else ""
        label = text or escape_html(url or "")
        return (
            f'<a href="{href}"{title_attr} target="_blank" '
            f'rel="noreferrer noopener">{label}</a>'
        )

    def image(self, text: str, url: str, title: Optional[str] = None) -> str:
        return self.link(text or escape_html(url or ""), url, title)

    def emphasis(self, text: str) -> str:
        return f"<em>{text or ''}</em>"

    def strong(self, text: str) -> str:
        return f"<strong>{text or ''}</strong>"

    def strikethrough(self, text: str) -> str:
        return f"<del>{text or ''}</del>"

    def codespan(self, text: str) -> str:
        return f"<code>{escape_html(text or '')}</code>"

    def linebreak(self) -> str:
        return "<br>\n"

    def thematic_break(self) -> str:
        return "<hr>\n"

    def block_code(self, code: str, info: Optional[str] = None) -> str:
        language = info.split()[0] if info and info.strip() else None
        return render_code_block(code or "", language)

    def table(self, text: str) -> str:
        return f"<table>{text or ''}</table>\n"

    def table_head(self, text: str) -> str:
        return f"<thead><tr>{text or ''}</tr></thead>"

    def table_body(self, text: str) -> str:
        return f"<tbody>{text or ''}</tbody>"

    def table_row(self, text: str) -> str:
        return f"<tr>{text or ''}</tr>"

    def table_cell(
        self, text: str, align: Optional[str] = None, head: bool = False
    ) -> str:
        tag = "th" if head else "td"
        return f"<{tag}>{text or ''}</{tag}>"


@functools.lru_cache(maxsize=1)
def _get_markdown_renderer() -> mistune.Markdown:
    """Get cached mistune markdown parser with the chat renderer."""
    return mistune.create_markdown(
        renderer=ChatHtmlRenderer(),
        plugins=["strikethrough", "table", "url"],
        hard_wrap=True,  # Line break for newlines
    )


def render_markdown(text: str) -> str:
    """Convert markdown text to (unsanitized) HTML."""
    with timing_stat("_markdown_timings"):
        try:
            return str(_get_markdown_renderer()(text))
        except Exception as e:
            logger.warning("Markdown rendering failed: %s", e)
            return f"<p>{escape_html(text)}</p>"


class MarkdownPipeline:
    """Converts untrusted markdown to sanitized HTML with bounded caching.

    Each pipeline owns its cache. Lookups are keyed by the trimmed input and
    only inputs up to cache_max_chars are stored.
    """

    def __init__(
        self,
        char_limit: int = MARKDOWN_CHAR_LIMIT,
        parse_limit: int = MARKDOWN_PARSE_LIMIT,
        cache_limit: int = MARKDOWN_CACHE_LIMIT,
        cache_max_chars: int = MARKDOWN_CACHE_MAX_CHARS,
        sanitizer: Callable[[str], str] = sanitize_html,
    ):
        self.char_limit = char_limit
        self.parse_limit = parse_limit
        self.cache_max_chars = cache_max_chars
        self.cache: LRUCache[str, str] = LRUCache(cache_limit, name="markdown")
        self._sanitize = sanitizer

    def to_sanitized_html(self, markdown: str) -> str:
        """Convert markdown to HTML that is safe to insert unescaped.

        Args:
            markdown: Untrusted markdown text

        Returns:
            Sanitized HTML; empty string for blank input
        """
        source = (markdown or "").strip()
        if not source:
            return ""
        cacheable = len(source) <= self.cache_max_chars
        if cacheable:
            cached = self.cache.get(source)
            if cached is not None:
                return cached

        truncated = truncate_text(source, self.char_limit)
        suffix = (
            f"\n\n… truncated ({truncated.total} chars, "
            f"showing first {len(truncated.text)})."
            if truncated.truncated
            else ""
        )
        if len(truncated.text) > self.parse_limit:
            escaped = escape_html(f"{truncated.text}{suffix}")
            rendered = (
                f'<div class="chat-code-block"><pre><code>{escaped}</code></pre></div>'
            )
        else:
            rendered = render_markdown(f"{truncated.text}{suffix}")

        sanitized = self._sanitize(rendered)
        if cacheable:
            self.cache.set(source, sanitized)
        return sanitized
