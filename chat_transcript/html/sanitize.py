"""Allow-list HTML sanitization for rendered transcript content.

Rendered markdown is passed through a bleach Cleaner restricted to a fixed
set of structural, inline-formatting and SVG icon tags. The only inline event
handler that survives is the copy-button hook emitted for fenced code blocks.
Every link with an href is forced to open in a new tab without a referrer.
"""

import functools
from typing import Callable, Iterable, Iterator, Mapping, Optional, Union

from bleach.html5lib_shim import Filter
from bleach.sanitizer import Cleaner

ALLOWED_TAGS: frozenset[str] = frozenset(
    {
        "a",
        "b",
        "blockquote",
        "br",
        "button",
        "code",
        "del",
        "div",
        "em",
        "h1",
        "h2",
        "h3",
        "h4",
        "h5",
        "h6",
        "hr",
        "i",
        "li",
        "ol",
        "p",
        "pre",
        "span",
        "strong",
        "svg",
        "path",
        "rect",
        "polyline",
        "table",
        "tbody",
        "td",
        "th",
        "thead",
        "tr",
        "ul",
    }
)

ALLOWED_ATTRS: frozenset[str] = frozenset(
    {
        "class",
        "href",
        "rel",
        "target",
        "title",
        "start",
        "onclick",
        "viewBox",
        "fill",
        "stroke",
        "stroke-width",
        "d",
        "x",
        "y",
        "width",
        "height",
        "rx",
        "ry",
        "points",
    }
)

ALLOWED_PROTOCOLS: frozenset[str] = frozenset({"http", "https", "mailto"})

COPY_BUTTON_HOOK = "copyCodeBlock(this)"
LINK_REL = "noreferrer noopener"
LINK_TARGET = "_blank"

AttributeFilter = Callable[[str, str, str], bool]
AttributeAllowList = frozenset[tuple[str, frozenset[str]]]

ANY_TAG = "*"


def _attribute_filter(allowed_attrs: AttributeAllowList) -> AttributeFilter:
    """Build a bleach attribute callable for the allow-list.

    Names listed under ANY_TAG are accepted on every tag, the rest only on
    their own tag. `onclick` is accepted only on buttons and only with the
    copy hook value. SVG attribute names are compared case-insensitively
    since the HTML parser may lower-case them outside foreign content.
    """
    allowed: dict[str, set[str]] = {}
    for tag, names in allowed_attrs:
        allowed.setdefault(tag, set()).update(name.lower() for name in names)
    shared = allowed.get(ANY_TAG, set())

    def allow(tag: str, name: str, value: str) -> bool:
        lowered = name.lower()
        if lowered not in shared and lowered not in allowed.get(tag, ()):
            return False
        if lowered == "onclick":
            return tag == "button" and value.strip() == COPY_BUTTON_HOOK
        if lowered.startswith("on"):
            return False
        return True

    return allow


class ExternalLinkFilter(Filter):
    """Force safe rel/target attributes on every link carrying an href."""

    def __iter__(self) -> Iterator[dict[str, object]]:
        for token in Filter.__iter__(self):  # type: ignore[reportUnknownVariableType]
            if (
                token.get("type") in ("StartTag", "EmptyTag")
                and token.get("name") == "a"
            ):
                attrs = token.get("data") or {}
                if attrs.get((None, "href")):
                    attrs[(None, "rel")] = LINK_REL
                    attrs[(None, "target")] = LINK_TARGET
                    token["data"] = attrs
            yield token


@functools.lru_cache(maxsize=8)
def _get_cleaner(
    allowed_tags: frozenset[str], allowed_attrs: AttributeAllowList
) -> Cleaner:
    return Cleaner(
        tags=allowed_tags,
        attributes=_attribute_filter(allowed_attrs),
        protocols=ALLOWED_PROTOCOLS,
        strip=True,
        strip_comments=True,
        filters=[ExternalLinkFilter],
    )


def sanitize_html(
    html: str,
    allowed_tags: Optional[Iterable[str]] = None,
    allowed_attrs: Optional[Union[Iterable[str], Mapping[str, Iterable[str]]]] = None,
) -> str:
    """Sanitize HTML against a tag and attribute allow-list.

    Disallowed tags are stripped (their text is kept and escaped), disallowed
    attributes are dropped, and unsafe URL schemes are removed.

    Args:
        html: HTML to sanitize
        allowed_tags: Tag names to keep (default ALLOWED_TAGS)
        allowed_attrs: Attribute names to keep on any allowed tag, or a
            mapping of tag -> attribute names kept on that tag only, with
            "*" for every tag (default ALLOWED_ATTRS on every tag)

    Returns:
        Sanitized HTML, safe to insert into a document unescaped
    """
    if not html:
        return ""
    tags = frozenset(allowed_tags) if allowed_tags is not None else ALLOWED_TAGS
    if allowed_attrs is None:
        attrs: AttributeAllowList = frozenset({(ANY_TAG, ALLOWED_ATTRS)})
    elif isinstance(allowed_attrs, Mapping):
        attrs = frozenset(
            (tag, frozenset(names)) for tag, names in allowed_attrs.items()
        )
    else:
        attrs = frozenset({(ANY_TAG, frozenset(allowed_attrs))})
    return _get_cleaner(tags, attrs).clean(html)
