#!/usr/bin/env python3
"""Tests for content block ingestion."""

from chat_transcript.factories import (
    coerce_args,
    create_content_block,
    extract_tool_text,
    normalize_content,
)
from chat_transcript.models import (
    ImageContent,
    TextContent,
    ThinkingContent,
    ToolCallContent,
    ToolResultContent,
    UnknownContent,
)


class TestNormalizeContent:
    """Tests for the string / block-list tagged union."""

    def test_string_becomes_single_text_block(self):
        assert normalize_content("hello") == [TextContent(text="hello")]

    def test_non_list_non_string_is_empty(self):
        assert normalize_content(None) == []
        assert normalize_content(42) == []
        assert normalize_content({"type": "text", "text": "x"}) == []

    def test_skips_non_mapping_entries(self):
        blocks = normalize_content([None, "stray", {"type": "text", "text": "ok"}, 3])
        assert blocks == [TextContent(text="ok")]

    def test_drops_malformed_fragments(self):
        """Fragments missing their payload produce no block."""
        blocks = normalize_content(
            [{"type": "text"}, {"type": "thinking", "thinking": 5}, {"type": "image"}]
        )
        assert blocks == []

    def test_unknown_type_is_preserved_as_unknown(self):
        blocks = normalize_content([{"type": "Audio", "data": "..."}])
        assert blocks == [UnknownContent(type_name="audio")]


class TestBlockCreation:
    """Tests for individual block creators."""

    def test_thinking_falls_back_to_text_field(self):
        block = create_content_block({"type": "thinking", "text": "pondering"})
        assert block == ThinkingContent(thinking="pondering")

    def test_base64_image_becomes_data_url(self):
        block = create_content_block(
            {
                "type": "image",
                "source": {"type": "base64", "media_type": "image/jpeg", "data": "AAAA"},
            }
        )
        assert block == ImageContent(url="data:image/jpeg;base64,AAAA")

    def test_base64_image_defaults_to_png(self):
        block = create_content_block(
            {"type": "image", "source": {"type": "base64", "data": "AAAA"}}
        )
        assert isinstance(block, ImageContent)
        assert block.url == "data:image/png;base64,AAAA"

    def test_data_url_payload_used_verbatim(self):
        block = create_content_block(
            {
                "type": "image",
                "source": {"type": "base64", "data": "data:image/gif;base64,R0lG"},
            }
        )
        assert isinstance(block, ImageContent)
        assert block.url == "data:image/gif;base64,R0lG"

    def test_image_url_variants(self):
        nested = create_content_block(
            {"type": "image_url", "image_url": {"url": "https://x.test/a.png"}}
        )
        bare = create_content_block(
            {"type": "image_url", "image_url": "https://x.test/b.png", "alt": "b"}
        )
        assert nested == ImageContent(url="https://x.test/a.png")
        assert bare == ImageContent(url="https://x.test/b.png", alt="b")

    def test_tool_call_type_names(self):
        for kind in ("toolcall", "toolCall", "tool_call", "tooluse", "tool_use"):
            block = create_content_block({"type": kind, "name": "read", "args": {}})
            assert isinstance(block, ToolCallContent), kind
            assert block.name == "read"

    def test_tool_call_recognized_by_name_and_arguments(self):
        block = create_content_block({"name": "search", "arguments": '{"q": "x"}'})
        assert block == ToolCallContent(name="search", arguments={"q": "x"})

    def test_tool_call_name_defaults(self):
        block = create_content_block({"type": "tool_use", "input": [1, 2]})
        assert block == ToolCallContent(name="tool", arguments=[1, 2])

    def test_tool_result_text_sources(self):
        from_text = create_content_block({"type": "toolResult", "text": "a"})
        from_content = create_content_block({"type": "tool_result", "content": "b"})
        from_blocks = create_content_block(
            {
                "type": "tool_result",
                "name": "grep",
                "content": [
                    {"type": "text", "text": "c"},
                    {"type": "image", "url": "x"},
                    {"type": "text", "text": "d"},
                ],
            }
        )
        assert isinstance(from_text, ToolResultContent) and from_text.text == "a"
        assert isinstance(from_content, ToolResultContent) and from_content.text == "b"
        assert from_blocks == ToolResultContent(name="grep", text="c\nd")

    def test_tool_result_with_arguments_is_still_a_result(self):
        block = create_content_block(
            {"type": "tool_result", "name": "x", "arguments": {}, "text": "done"}
        )
        assert isinstance(block, ToolResultContent)


class TestHelpers:
    """Tests for argument coercion and tool text extraction."""

    def test_coerce_args_parses_json_looking_strings(self):
        assert coerce_args(' {"a": 1} ') == {"a": 1}
        assert coerce_args("[1, 2]") == [1, 2]

    def test_coerce_args_keeps_other_values(self):
        assert coerce_args("ls -la") == "ls -la"
        assert coerce_args("{not json") == "{not json"
        assert coerce_args("") == ""
        assert coerce_args({"a": 1}) == {"a": 1}
        assert coerce_args(None) is None

    def test_extract_tool_text_none_when_absent(self):
        assert extract_tool_text({"type": "tool_result"}) is None
        assert extract_tool_text({"content": [{"type": "image"}]}) is None

    def test_coerce_args_too_deeply_nested_stays_text(self):
        deep = "[" * 100000 + "]" * 100000
        assert coerce_args(deep) == deep

    def test_deeply_nested_tool_arguments_kept_as_text(self):
        deep = "[" * 100000 + "]" * 100000
        blocks = normalize_content([{"type": "tool_call", "arguments": deep}])
        assert blocks == [ToolCallContent(name="tool", arguments=deep)]
