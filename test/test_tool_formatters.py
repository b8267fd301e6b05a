#!/usr/bin/env python3
"""Tests for tool status inference, formatting and card rendering."""

import pytest

from chat_transcript.factories import resolve_tool_display
from chat_transcript.html.markdown import MarkdownPipeline
from chat_transcript.html.tool_formatters import (
    PREVIEW_MAX_CHARS,
    extract_error_message,
    extract_status,
    format_json_display,
    format_tool_output_for_sidebar,
    get_truncated_preview,
    render_params_table,
    render_tool_card,
    render_tool_indicator,
)
from chat_transcript.models import ToolCallCard, ToolResultCard, ToolStatus


class TestExtractStatus:
    """Tests for status inference from tool output."""

    def test_json_error_with_message(self):
        info = extract_status('{"status":"error","error":"disk full"}')
        assert info.status == ToolStatus.ERROR
        assert info.message == "disk full"

    def test_plain_success(self):
        info = extract_status("Completed.")
        assert info.status == ToolStatus.SUCCESS
        assert info.message is None

    def test_missing_text_is_info(self):
        assert extract_status(None).status == ToolStatus.INFO
        assert extract_status("").status == ToolStatus.INFO

    @pytest.mark.parametrize(
        "status,expected",
        [
            ("failed", ToolStatus.ERROR),
            ("WARN", ToolStatus.WARNING),
            ("warning", ToolStatus.WARNING),
            ("info", ToolStatus.INFO),
            ("ok", ToolStatus.SUCCESS),
        ],
    )
    def test_json_status_mapping(self, status, expected):
        info = extract_status(f'{{"status": "{status}", "message": "m"}}')
        assert info.status == expected
        assert info.message == "m"

    @pytest.mark.parametrize(
        "text",
        [
            "Traceback: ValueError exception raised",
            "Build FAILED",
            "error: file missing",
            '{"error": "bad"',
        ],
    )
    def test_error_heuristics(self, text):
        assert extract_status(text).status == ToolStatus.ERROR

    @pytest.mark.parametrize(
        "text", ["Warning: low disk", "this API is deprecated", '"warning": true']
    )
    def test_warning_heuristics(self, text):
        assert extract_status(text).status == ToolStatus.WARNING

    def test_invalid_json_falls_back_to_text(self):
        assert extract_status("{not json at all").status == ToolStatus.SUCCESS

    def test_too_deeply_nested_json_falls_back_to_text(self):
        text = '{"x":' + "[" * 100000 + "]" * 100000 + "}"
        assert extract_status(text).status == ToolStatus.SUCCESS
        assert extract_error_message(text) is None


class TestExtractErrorMessage:
    """Tests for error message extraction."""

    def test_json_error_field(self):
        assert extract_error_message('{"status":"error","error":"disk full"}') == "disk full"

    def test_json_message_field(self):
        assert extract_error_message('{"message": "nope"}') == "nope"

    def test_json_error_status_without_message(self):
        assert (
            extract_error_message('{"status": "error"}')
            == "An error occurred while executing the tool"
        )

    def test_error_prefix(self):
        assert extract_error_message("Error: something broke") == "something broke"
        assert extract_error_message("error:   lower case") == "lower case"

    def test_exit_code_lines(self):
        assert extract_error_message("command exited with code 1: oops") == "oops"
        assert extract_error_message("exit code 2") == "exit code 2"

    def test_shell_failures(self):
        assert (
            extract_error_message("  zsh: command not found: foo  ")
            == "zsh: command not found: foo"
        )
        assert extract_error_message("ls: x: No such file or directory")

    def test_not_an_error(self):
        assert extract_error_message("all good") is None
        assert extract_error_message("") is None
        assert extract_error_message(None) is None


class TestFormatToolOutputForSidebar:
    """Tests for expanded output formatting."""

    def test_json_error(self):
        assert (
            format_tool_output_for_sidebar('{"status":"error","error":"disk full"}')
            == "**Error:** disk full"
        )

    def test_json_pretty_printed(self):
        assert format_tool_output_for_sidebar('{"a": 1}') == '```json\n{\n  "a": 1\n}\n```'
        assert format_tool_output_for_sidebar("[1]") == "```json\n[\n  1\n]\n```"

    def test_other_text_unchanged(self):
        assert format_tool_output_for_sidebar("plain output") == "plain output"
        assert format_tool_output_for_sidebar("{broken") == "{broken"

    def test_too_deeply_nested_json_unchanged(self):
        text = "[" * 100000 + "]" * 100000
        assert format_tool_output_for_sidebar(text) == text


class TestFormatJsonDisplay:
    """Tests for compact inline payload display."""

    def test_simple_success(self):
        assert format_json_display('{"status": "success"}') == "Completed successfully"

    def test_success_with_message(self):
        assert format_json_display('{"status": "success", "message": "Saved"}') == "Saved"

    def test_json_error(self):
        assert format_json_display('{"error": "denied"}') == "denied"

    def test_pretty_json(self):
        assert format_json_display("[1,2]") == "[\n  1,\n  2\n]"

    def test_plain_text(self):
        assert format_json_display("hello") == "hello"


class TestGetTruncatedPreview:
    """Tests for truncated previews."""

    def test_line_limit(self):
        assert get_truncated_preview("a\nb\nc") == "a\nb…"

    def test_char_limit(self):
        assert get_truncated_preview("x" * 150) == "x" * 100 + "…"

    def test_short_text_untouched(self):
        assert get_truncated_preview("short") == "short"
        assert get_truncated_preview("a\nb") == "a\nb"

    def test_ellipsis_appended_once(self):
        preview = get_truncated_preview("y" * 80 + "\n" + "z" * 80 + "\nmore")
        assert preview.count("…") == 1

    def test_deterministic_and_bounded(self):
        text = "\n".join(f"line {i} " + "w" * i for i in range(60))
        first = get_truncated_preview(text, max_lines=5, max_chars=40)
        assert first == get_truncated_preview(text, max_lines=5, max_chars=40)
        assert len(first.removesuffix("…")) <= 40
        assert len(get_truncated_preview(text).removesuffix("…")) <= PREVIEW_MAX_CHARS


class TestToolDisplay:
    """Tests for card label/detail resolution."""

    def test_label_and_detail(self):
        display = resolve_tool_display("web_search", {"query": "  python   news "})
        assert display.label == "Web Search"
        assert display.detail == "python news"

    def test_camel_case_kept(self):
        assert resolve_tool_display("WebFetch").label == "WebFetch"

    def test_no_detail_for_non_mapping(self):
        assert resolve_tool_display("bash", "ls").detail is None


class TestRenderToolCard:
    """Tests for tool card HTML."""

    def test_error_result_card(self):
        html = render_tool_card(
            ToolResultCard(name="write", text='{"status":"error","error":"disk full"}')
        )
        assert "chat-tool-card--error" in html
        assert "chat-tool-card__status-badge--error" in html
        assert "disk full" in html

    def test_empty_result_card(self):
        html = render_tool_card(ToolResultCard(name="bash"))
        assert "Completed successfully" in html
        assert "chat-tool-card--info" in html
        assert "status-badge" not in html

    def test_short_result_inline(self):
        html = render_tool_card(ToolResultCard(name="bash", text="Completed."))
        assert '<div class="chat-tool-card__inline">Completed.</div>' in html

    def test_long_result_preview(self):
        html = render_tool_card(ToolResultCard(name="bash", text="a" * 90 + "\nb\nc"))
        assert "chat-tool-card__preview" in html
        assert "…" in html

    def test_expanded_uses_markdown(self):
        pipeline = MarkdownPipeline()
        html = render_tool_card(
            ToolResultCard(name="x", text='{"status":"error","error":"disk full"}'),
            expanded=True,
            render_markdown=pipeline.to_sanitized_html,
        )
        assert "<strong>Error:</strong> disk full" in html

    def test_expanded_without_markdown_is_escaped(self):
        html = render_tool_card(
            ToolResultCard(name="x", text="<b>raw</b> " + "x" * 100), expanded=True
        )
        assert "&lt;b&gt;raw&lt;/b&gt;" in html
        assert "<b>" not in html

    def test_result_text_is_escaped(self):
        html = render_tool_card(ToolResultCard(name="x", text="<script>x</script>"))
        assert "<script>" not in html

    def test_call_card(self):
        html = render_tool_card(ToolCallCard(name="bash", args={"command": "ls -la"}))
        assert "chat-tool-card--call" in html
        assert "Bash" in html
        assert '<div class="chat-tool-card__detail">ls -la</div>' in html
        assert "tool-params-table" in html

    def test_call_card_with_string_args(self):
        html = render_tool_card(ToolCallCard(name="echo", args="<hi>"))
        assert "&lt;hi&gt;" in html


class TestParamsTableAndIndicator:
    """Tests for parameter tables and the hidden-tools indicator."""

    def test_params_table(self):
        html = render_params_table({"path": "a<b", "opts": {"deep": True}})
        assert "a&lt;b" in html
        assert "tool-param-structured" in html
        assert "&quot;deep&quot;: true" in html

    def test_empty_params(self):
        assert "No parameters" in render_params_table({})

    def test_indicator(self):
        assert "1 tool used" in render_tool_indicator(1)
        assert "3 tools used" in render_tool_indicator(3)
        assert render_tool_indicator(0) == ""
