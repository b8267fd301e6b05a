#!/usr/bin/env python3
"""Tests for per-message content extraction."""

from chat_transcript.cache import LRUCache
from chat_transcript.extractor import (
    extract_content,
    extract_text,
    extract_thinking,
    format_reasoning_markdown,
    strip_thinking_tags,
)
from chat_transcript.models import (
    ExtractedContent,
    ImageAttachment,
    ToolCallCard,
    ToolResultCard,
)


class TestExtractText:
    """Tests for display text extraction."""

    def test_string_content(self):
        assert extract_text({"role": "user", "content": "hi"}) == "hi"

    def test_text_blocks_joined_with_newline(self):
        message = {
            "role": "user",
            "content": [
                {"type": "text", "text": "one"},
                {"type": "image", "url": "https://x.test/i.png"},
                {"type": "text", "text": "two"},
            ],
        }
        assert extract_text(message) == "one\ntwo"

    def test_no_text_is_none(self):
        assert extract_text({"role": "user", "content": []}) is None
        assert extract_text({"role": "user"}) is None
        assert extract_text("not a message") is None

    def test_think_tags_stripped_for_assistant_only(self):
        text = "<think>plan</think>Answer"
        assert extract_text({"role": "assistant", "content": text}) == "Answer"
        assert extract_text({"role": "user", "content": text}) == text

    def test_strip_thinking_tags_case_insensitive(self):
        assert strip_thinking_tags("a<THINKING>x\ny</Thinking>b") == "ab"


class TestExtractThinking:
    """Tests for reasoning text extraction."""

    def test_thinking_blocks(self):
        message = {
            "role": "assistant",
            "content": [
                {"type": "thinking", "thinking": "first"},
                {"type": "text", "text": "answer"},
                {"type": "thinking", "thinking": "second"},
            ],
        }
        assert extract_thinking(message) == "first\nsecond"

    def test_falls_back_to_inline_tags(self):
        message = {"role": "assistant", "content": "<think> idea </think>Done"}
        assert extract_thinking(message) == "idea"

    def test_none_without_reasoning(self):
        assert extract_thinking({"role": "assistant", "content": "plain"}) is None


class TestExtractContent:
    """Tests for the combined extraction view."""

    def test_images_and_text(self):
        message = {
            "role": "user",
            "content": [
                {"type": "text", "text": "see"},
                {
                    "type": "image",
                    "source": {"type": "base64", "data": "QUJD"},
                    "alt": "shot",
                },
            ],
        }
        content = extract_content(message)
        assert content.text == "see"
        assert content.images == [
            ImageAttachment(url="data:image/png;base64,QUJD", alt="shot")
        ]
        assert not content.is_empty

    def test_calls_before_results(self):
        message = {
            "role": "assistant",
            "content": [
                {"type": "tool_result", "name": "a", "text": "ra"},
                {"type": "tool_call", "name": "b", "arguments": {"x": 1}},
                {"type": "tool_result", "name": "c", "text": "rc"},
                {"type": "tool_use", "name": "d", "input": "{}"},
            ],
        }
        cards = extract_content(message).tool_cards
        assert cards == [
            ToolCallCard(name="b", args={"x": 1}),
            ToolCallCard(name="d", args={}),
            ToolResultCard(name="a", text="ra"),
            ToolResultCard(name="c", text="rc"),
        ]

    def test_synthesizes_result_for_tool_result_message(self):
        message = {
            "role": "toolResult",
            "tool_name": "grep",
            "content": "match found",
        }
        assert extract_content(message).tool_cards == [
            ToolResultCard(name="grep", text="match found")
        ]

    def test_synthesized_result_for_tool_call_id_message(self):
        message = {"role": "user", "toolCallId": "c1", "content": []}
        assert extract_content(message).tool_cards == [
            ToolResultCard(name="tool", text=None)
        ]

    def test_no_synthesis_when_result_block_exists(self):
        message = {
            "role": "tool",
            "content": [{"type": "tool_result", "name": "x", "text": "y"}],
        }
        assert extract_content(message).tool_cards == [ToolResultCard(name="x", text="y")]

    def test_empty_message(self):
        content = extract_content({"role": "assistant", "content": []})
        assert content == ExtractedContent()
        assert content.is_empty

    def test_non_mapping_message(self):
        assert extract_content(None).is_empty

    def test_cache_returns_memoized_result(self):
        cache: LRUCache[str, ExtractedContent] = LRUCache(4)
        message = {"role": "user", "content": "cached"}
        first = extract_content(message, cache, "msg:1")
        second = extract_content(message, cache, "msg:1")
        assert first is second
        assert cache.hits == 1
        assert "msg:1" in cache

    def test_cache_requires_key(self):
        cache: LRUCache[str, ExtractedContent] = LRUCache(4)
        extract_content({"role": "user", "content": "x"}, cache)
        assert len(cache) == 0


class TestFormatReasoningMarkdown:
    """Tests for reasoning markdown formatting."""

    def test_formats_lines(self):
        assert format_reasoning_markdown(" first \n\n second ") == (
            "_Reasoning:_\n_first_\n_second_"
        )

    def test_empty(self):
        assert format_reasoning_markdown("  \n ") == ""
