#!/usr/bin/env python3
"""Load JSONL transcript event logs and convert them to HTML."""

import json
import logging
from pathlib import Path
from typing import Any, Optional

from .models import RenderOptions
from .renderer import TranscriptRenderer
from .session import TranscriptSession

logger = logging.getLogger(__name__)

EVENT_TYPES = (
    "message",
    "tool",
    "reading-indicator-begin",
    "stream-delta",
    "stream-end",
    "stream-abort",
)


def apply_line(session: TranscriptSession, entry: dict[str, Any]) -> bool:
    """Apply one decoded JSONL entry to a session.

    Entries with a known event `type` are control events; any other object
    with a `role` is a bare message record. Returns False when the entry was
    not recognised.
    """
    if entry.get("type") in EVENT_TYPES:
        session.apply_event(entry)
        return True
    if "role" in entry:
        session.add_message(entry)
        return True
    return False


def load_transcript(
    jsonl_path: Path, session: Optional[TranscriptSession] = None
) -> TranscriptSession:
    """Replay a JSONL event log into a TranscriptSession.

    Blank lines are ignored; invalid or unrecognised lines are logged and
    skipped.
    """
    session = session or TranscriptSession(session_key=jsonl_path.stem)
    with open(jsonl_path, "r", encoding="utf-8", errors="replace") as f:
        for line_no, line in enumerate(f, 1):
            line = line.strip()
            if not line:
                continue
            try:
                entry = json.loads(line)
            except (json.JSONDecodeError, RecursionError) as e:
                logger.warning("Line %d of %s | JSON decode error: %s", line_no, jsonl_path, e)
                continue
            if not isinstance(entry, dict):
                logger.warning("Line %d of %s is not a JSON object", line_no, jsonl_path)
                continue
            if not apply_line(session, entry):
                logger.warning(
                    "Line %d of %s is not a recognised event or message", line_no, jsonl_path
                )
    return session


def convert_jsonl_to_html(
    input_path: Path,
    output_path: Optional[Path] = None,
    options: Optional[RenderOptions] = None,
    renderer: Optional[TranscriptRenderer] = None,
) -> Path:
    """Convert a JSONL transcript to a standalone HTML page.

    Args:
        input_path: JSONL event log
        output_path: Destination (default: input path with .html suffix)
        options: Render options
        renderer: Renderer to use; a fresh one by default

    Returns:
        Path of the written HTML file
    """
    if not input_path.exists():
        raise FileNotFoundError(f"Input path not found: {input_path}")
    if output_path is None:
        output_path = input_path.with_suffix(".html")

    options = options or RenderOptions()
    renderer = renderer or TranscriptRenderer()
    session = load_transcript(input_path)
    units = renderer.render(session, options)
    html_content = renderer.render_html(units, title=input_path.stem, options=options)

    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(html_content, encoding="utf-8")
    return output_path
