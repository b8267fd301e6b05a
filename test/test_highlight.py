#!/usr/bin/env python3
"""Tests for regex-based code highlighting."""

import pytest

from chat_transcript.html.highlight import (
    GENERIC_PATTERNS,
    SYNTAX_PATTERNS,
    highlight_code,
    patterns_for,
    resolve_language,
    tokenize,
)


class TestResolveLanguage:
    """Tests for fence language resolution."""

    @pytest.mark.parametrize(
        "language,expected",
        [
            ("python", "python"),
            ("JSON", "json"),
            (" sql ", "sql"),
            ("js", "javascript"),
            ("py", "python"),
            ("sh", "bash"),
            ("ts", "typescript"),
            ("yml", "yaml"),
        ],
    )
    def test_aliases(self, language, expected):
        assert resolve_language(language) == expected

    def test_unknown_language(self):
        assert resolve_language("nope") is None
        assert resolve_language(None) is None
        assert resolve_language("") is None

    def test_unknown_language_uses_generic_patterns(self):
        assert patterns_for("nope") is GENERIC_PATTERNS
        assert patterns_for("python") is SYNTAX_PATTERNS["python"]


class TestTokenize:
    """Tests for overlap resolution."""

    def test_earliest_match_wins(self):
        # The comment swallows the keyword inside it
        tokens = tokenize("x = 1  # return", "python")
        assert [t.token for t in tokens] == ["number", "comment"]
        assert tokens[1].text == "# return"

    def test_tie_goes_to_first_pattern(self):
        tokens = tokenize('{"a": "b"}', "json")
        kinds = [(t.token, t.text) for t in tokens]
        assert ("property", '"a"') in kinds
        assert ("string", '"b"') in kinds
        assert ("string", '"a"') not in kinds

    def test_tokens_do_not_overlap(self):
        code = "const s = 'a // b'; // trailing\nlet n = 42;"
        tokens = tokenize(code, "javascript")
        for previous, current in zip(tokens, tokens[1:]):
            assert previous.end <= current.start
        assert all(code[t.start : t.end] == t.text for t in tokens)

    def test_pure(self):
        code = "SELECT * FROM t WHERE id = 1"
        assert tokenize(code, "sql") == tokenize(code, "sql")


class TestHighlightCode:
    """Tests for highlighted HTML output."""

    def test_json(self):
        html = highlight_code('{"a": 1}', "json")
        assert '<span class="token property">&quot;a&quot;</span>' in html
        assert '<span class="token number">1</span>' in html

    def test_python_keywords(self):
        html = highlight_code("def f():\n    return None", "python")
        assert '<span class="token keyword">def</span>' in html
        assert '<span class="token function">f</span>' in html
        assert '<span class="token boolean">None</span>' in html

    def test_text_between_tokens_is_escaped(self):
        html = highlight_code("a < b && 1", "javascript")
        assert "&lt;" in html
        assert "&amp;&amp;" in html
        assert "<" not in html.replace("<span", "").replace("</span", "")

    def test_no_tokens(self):
        assert highlight_code("<b>", None) == "&lt;b&gt;"

    def test_round_trip_text(self):
        code = "echo $HOME # done"
        html = highlight_code(code, "bash")
        assert '<span class="token variable">$HOME</span>' in html
        assert '<span class="token comment"># done</span>' in html
