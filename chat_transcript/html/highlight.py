#!/usr/bin/env python3
"""Lightweight regex syntax highlighting for fenced code blocks.

Each supported language has an ordered list of (pattern, token class) pairs.
All matches of every pattern are collected, sorted by start offset, and
overlaps are resolved greedily (earliest start wins, ties go to the pattern
listed first). The resulting tokens are spliced into the escaped source from
the end backwards so earlier offsets stay valid.

Language aliases ("js", "py", "sh", ...) are resolved through the Pygments
lexer registry.
"""

import functools
import html
import re
from dataclasses import dataclass
from typing import Optional

from pygments.lexers import get_lexer_by_name, get_lexer_for_filename
from pygments.util import ClassNotFound

from ..renderer_timings import timing_stat


@dataclass(frozen=True)
class Token:
    start: int
    end: int
    token: str
    text: str


SyntaxPatterns = list[tuple[re.Pattern[str], str]]

_JS_STRING = r"\"(?:[^\"\\]|\\.)*\"|'(?:[^'\\]|\\.)*'|`(?:[^`\\]|\\.)*`"
_QUOTED_STRING = r"\"(?:[^\"\\]|\\.)*\"|'(?:[^'\\]|\\.)*'"

SYNTAX_PATTERNS: dict[str, SyntaxPatterns] = {
    "javascript": [
        (re.compile(r"//.*$", re.MULTILINE), "comment"),
        (re.compile(r"/\*[\s\S]*?\*/"), "comment"),
        (re.compile(_JS_STRING), "string"),
        (
            re.compile(
                r"\b(?:const|let|var|function|return|if|else|for|while|class|import"
                r"|export|from|async|await|try|catch|throw|new|this|typeof|instanceof)\b"
            ),
            "keyword",
        ),
        (re.compile(r"\b(?:true|false|null|undefined)\b"), "boolean"),
        (re.compile(r"\b\d+(?:\.\d+)?\b"), "number"),
        (re.compile(r"\b[A-Z][a-zA-Z0-9]*\b"), "class-name"),
        (re.compile(r"[a-zA-Z_$][a-zA-Z0-9_$]*(?=\s*\()"), "function"),
    ],
    "typescript": [
        (re.compile(r"//.*$", re.MULTILINE), "comment"),
        (re.compile(r"/\*[\s\S]*?\*/"), "comment"),
        (re.compile(_JS_STRING), "string"),
        (
            re.compile(
                r"\b(?:const|let|var|function|return|if|else|for|while|class|interface"
                r"|type|import|export|from|async|await|try|catch|throw|new|this|typeof"
                r"|instanceof|extends|implements|readonly|private|protected|public)\b"
            ),
            "keyword",
        ),
        (re.compile(r"\b(?:true|false|null|undefined)\b"), "boolean"),
        (re.compile(r"\b\d+(?:\.\d+)?\b"), "number"),
        (re.compile(r"\b[A-Z][a-zA-Z0-9]*\b"), "class-name"),
        (re.compile(r"[a-zA-Z_$][a-zA-Z0-9_$]*(?=\s*\()"), "function"),
    ],
    "python": [
        (re.compile(r"#.*"), "comment"),
        (re.compile(r"\"\"\"[\s\S]*?\"\"\"|'''[\s\S]*?'''"), "string"),
        (re.compile(_QUOTED_STRING), "string"),
        (
            re.compile(
                r"\b(?:def|class|return|if|elif|else|for|while|try|except|import|from"
                r"|as|with|pass|break|continue|lambda|yield|async|await)\b"
            ),
            "keyword",
        ),
        (re.compile(r"\b(?:True|False|None)\b"), "boolean"),
        (re.compile(r"\b\d+(?:\.\d+)?\b"), "number"),
        (re.compile(r"[a-zA-Z_][a-zA-Z0-9_]*(?=\s*\()"), "function"),
    ],
    "bash": [
        (re.compile(r"#.*"), "comment"),
        (re.compile(_QUOTED_STRING), "string"),
        (
            re.compile(
                r"\b(?:if|then|else|elif|fi|for|while|do|done|case|esac|function"
                r"|return|exit|export|source)\b"
            ),
            "keyword",
        ),
        (re.compile(r"\$\w+|\$\{[^}]*\}"), "variable"),
        (re.compile(r"\b\d+\b"), "number"),
    ],
    "json": [
        (re.compile(r"\"(?:[^\"\\]|\\.)*\"(?=\s*:)"), "property"),
        (re.compile(r"\"(?:[^\"\\]|\\.)*\""), "string"),
        (re.compile(r"\b(?:true|false|null)\b"), "boolean"),
        (re.compile(r"-?\b\d+(?:\.\d+)?(?:[eE][+-]?\d+)?\b"), "number"),
        (re.compile(r"[{}\[\],]"), "punctuation"),
    ],
    "css": [
        (re.compile(r"/\*[\s\S]*?\*/"), "comment"),
        (re.compile(_QUOTED_STRING), "string"),
        (re.compile(r"[a-z-]+(?=\s*:)", re.IGNORECASE), "property"),
        (re.compile(r"\.[a-zA-Z_-][a-zA-Z0-9_-]*"), "selector"),
        (re.compile(r"#[a-fA-F0-9]{3,8}"), "number"),
        (
            re.compile(r"\b\d+(?:\.\d+)?(?:px|em|rem|%|vh|vw|s|ms)\b", re.IGNORECASE),
            "number",
        ),
        (re.compile(r"[@{}\[\];]"), "punctuation"),
    ],
    "html": [
        (re.compile(r"<!--[\s\S]*?-->"), "comment"),
        (re.compile(r"</?[a-zA-Z][a-zA-Z0-9]*(?:\s[^>]*?)?/?>"), "tag"),
        (re.compile(r"[a-zA-Z-]+(?==)"), "attr-name"),
        (re.compile(r"\"(?:[^\"\\]|\\.)*\""), "string"),
    ],
    "sql": [
        (re.compile(r"--.*$", re.MULTILINE), "comment"),
        (re.compile(r"/\*[\s\S]*?\*/"), "comment"),
        (re.compile(r"'(?:[^'\\]|\\.)*'"), "string"),
        (
            re.compile(
                r"\b(?:SELECT|INSERT|UPDATE|DELETE|FROM|WHERE|AND|OR|NOT|NULL|JOIN"
                r"|LEFT|RIGHT|INNER|OUTER|ON|GROUP|BY|ORDER|HAVING|LIMIT|OFFSET|UNION"
                r"|ALL|AS|CREATE|TABLE|INDEX|PRIMARY|KEY|FOREIGN|REFERENCES|DEFAULT"
                r"|UNIQUE|CHECK|CONSTRAINT|ALTER|DROP|ADD|COLUMN|VALUES)\b",
                re.IGNORECASE,
            ),
            "keyword",
        ),
        (re.compile(r"\b\d+\b"), "number"),
    ],
    "yaml": [
        (re.compile(r"#.*"), "comment"),
        (re.compile(_QUOTED_STRING), "string"),
        (
            re.compile(r"\b(?:true|false|null|yes|no|on|off)\b", re.IGNORECASE),
            "boolean",
        ),
        (re.compile(r"\b\d+\b"), "number"),
        (re.compile(r"^[a-zA-Z_][a-zA-Z0-9_]*(?=:)", re.MULTILINE), "property"),
    ],
}

GENERIC_PATTERNS: SyntaxPatterns = [
    (re.compile(r"//.*$", re.MULTILINE), "comment"),
    (re.compile(r"/\*[\s\S]*?\*/"), "comment"),
    (re.compile(_QUOTED_STRING), "string"),
    (re.compile(r"\b(?:true|false|null)\b", re.IGNORECASE), "boolean"),
    (re.compile(r"\b\d+(?:\.\d+)?\b"), "number"),
    (
        re.compile(
            r"\b(?:function|def|class|if|else|for|while|return|import|export"
            r"|const|let|var)\b"
        ),
        "keyword",
    ),
]


@functools.lru_cache(maxsize=256)
def resolve_language(language: Optional[str]) -> Optional[str]:
    """Resolve a fence info string to a key of SYNTAX_PATTERNS.

    Direct names win; otherwise every alias of the matching Pygments lexer is
    tried (so "js" -> "javascript", "sh" -> "bash"). Names that are not lexer
    aliases are tried as file extensions ("yml" -> "yaml").
    Returns None when the language has no pattern table.
    """
    if not language:
        return None
    name = language.strip().lower()
    if name in SYNTAX_PATTERNS:
        return name
    try:
        lexer = get_lexer_by_name(name)
    except ClassNotFound:
        try:
            lexer = get_lexer_for_filename(f"snippet.{name}")
        except ClassNotFound:
            return None
    for alias in lexer.aliases:
        if alias in SYNTAX_PATTERNS:
            return str(alias)
    return None


def patterns_for(language: Optional[str]) -> SyntaxPatterns:
    resolved = resolve_language(language)
    if resolved is None:
        return GENERIC_PATTERNS
    return SYNTAX_PATTERNS[resolved]


def tokenize(code: str, language: Optional[str]) -> list[Token]:
    """Split code into non-overlapping highlight tokens sorted by offset.

    Pure function of (code, language). Zero-width matches are ignored.
    """
    candidates: list[Token] = []
    for pattern, token_class in patterns_for(language):
        for match in pattern.finditer(code):
            if match.end() > match.start():
                candidates.append(
                    Token(match.start(), match.end(), token_class, match.group(0))
                )

    # Stable sort keeps pattern order for matches starting at the same offset
    candidates.sort(key=lambda t: t.start)
    tokens: list[Token] = []
    last_end = -1
    for candidate in candidates:
        if candidate.start >= last_end:
            tokens.append(candidate)
            last_end = candidate.end
    return tokens


def highlight_code(code: str, language: Optional[str]) -> str:
    """Return HTML-escaped code with tokens wrapped in `token` spans."""
    with timing_stat("_highlight_timings"):
        tokens = tokenize(code, language)
        pieces: list[str] = []
        cursor = len(code)
        for token in reversed(tokens):
            pieces.append(html.escape(code[token.end : cursor]))
            pieces.append(
                f'<span class="token {token.token}">{html.escape(token.text)}</span>'
            )
            cursor = token.start
        pieces.append(html.escape(code[:cursor]))
        return "".join(reversed(pieces))
