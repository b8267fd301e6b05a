"""Pytest configuration and shared fixtures."""

from pathlib import Path
from typing import Any

import pytest

from chat_transcript.html.markdown import MarkdownPipeline
from chat_transcript.renderer import TranscriptRenderer


@pytest.fixture
def pipeline() -> MarkdownPipeline:
    """Fresh markdown pipeline with its own cache."""
    return MarkdownPipeline()


@pytest.fixture
def renderer() -> TranscriptRenderer:
    """Fresh renderer with its own caches."""
    return TranscriptRenderer()


@pytest.fixture
def sample_messages() -> list[dict[str, Any]]:
    """A short conversation with a tool call and its result."""
    return [
        {"role": "user", "content": "List the files", "timestamp": 1_700_000_000_000},
        {
            "role": "assistant",
            "content": [
                {"type": "text", "text": "Running **ls** now."},
                {
                    "type": "tool_use",
                    "name": "bash",
                    "input": {"command": "ls -la"},
                },
            ],
            "timestamp": 1_700_000_001_000,
        },
        {
            "role": "toolResult",
            "toolCallId": "call-1",
            "toolName": "bash",
            "content": [{"type": "text", "text": "README.md\nsetup.py"}],
            "timestamp": 1_700_000_002_000,
        },
        {
            "role": "assistant",
            "content": "There are two files.",
            "timestamp": 1_700_000_003_000,
        },
    ]


@pytest.fixture
def write_jsonl(tmp_path: Path):
    """Write a list of objects (or raw strings) as a JSONL file."""
    import json

    def _write(lines: list[Any], name: str = "transcript.jsonl") -> Path:
        path = tmp_path / name
        with open(path, "w", encoding="utf-8") as f:
            for line in lines:
                f.write(line if isinstance(line, str) else json.dumps(line))
                f.write("\n")
        return path

    return _write
