#!/usr/bin/env python3
"""CLI interface for chat-transcript."""

import logging
import sys
from pathlib import Path
from typing import Optional

import click

from .converter import convert_jsonl_to_html
from .models import RenderOptions


@click.command()
@click.argument("input_path", type=click.Path(path_type=Path))
@click.option(
    "-o",
    "--output",
    type=click.Path(path_type=Path),
    help="Output file path (default: input file with .html extension)",
)
@click.option(
    "--show-reasoning",
    is_flag=True,
    help="Render assistant reasoning and raw tool result turns",
)
@click.option(
    "--hide-tools",
    is_flag=True,
    help='Collapse tool cards into a compact "N tools used" indicator',
)
@click.option(
    "--expand-tools",
    is_flag=True,
    help="Render full tool output instead of a truncated preview",
)
@click.option(
    "--history-limit",
    type=click.IntRange(min=1),
    default=200,
    help="Number of most recent messages to render (default: 200)",
)
@click.option(
    "--assistant-name",
    type=str,
    default="Assistant",
    help="Display name for assistant messages (default: Assistant)",
)
@click.option(
    "--debug",
    is_flag=True,
    default=False,
    help="Enable debug logging and show full traceback on errors.",
)
def main(
    input_path: Path,
    output: Optional[Path],
    show_reasoning: bool,
    hide_tools: bool,
    expand_tools: bool,
    history_limit: int,
    assistant_name: str,
    debug: bool,
) -> None:
    """Render a chat transcript JSONL event log to HTML.

    INPUT_PATH: JSONL file where each line is a control event
    ({"type": "message" | "stream-delta" | ...}) or a bare message record.
    """
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(levelname)s: %(message)s",
    )

    options = RenderOptions(
        show_reasoning=show_reasoning,
        show_tools=not hide_tools,
        expand_tools=expand_tools,
        history_limit=history_limit,
        assistant_name=assistant_name,
    )

    try:
        output_path = convert_jsonl_to_html(input_path, output, options)
        click.echo(f"Successfully rendered {input_path} to {output_path}")
    except FileNotFoundError as e:
        click.echo(f"Error: {e}", err=True)
        if debug:
            import traceback

            traceback.print_exc()
        sys.exit(1)
    except Exception as e:
        click.echo(f"Error rendering transcript: {e}", err=True)
        if debug:
            import traceback

            traceback.print_exc()
        sys.exit(1)


if __name__ == "__main__":
    main()
