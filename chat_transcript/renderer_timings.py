"""Timing utilities for transcript rendering.

Enabled through the CHAT_TRANSCRIPT_DEBUG_TIMING environment variable. When
disabled every helper here is a no-op.
"""

import os
import time
from contextlib import contextmanager
from typing import Any, Callable, Iterator, Optional, Tuple, Union

# Set to "1", "true", or "yes" to enable timing output
DEBUG_TIMING = os.getenv("CHAT_TRANSCRIPT_DEBUG_TIMING", "").lower() in (
    "1",
    "true",
    "yes",
)

_timing_data: dict[str, Any] = {}


def set_timing_var(name: str, value: Any) -> None:
    """Set a timing variable (e.g. "_markdown_timings", "_current_msg_id")."""
    if DEBUG_TIMING:
        _timing_data[name] = value


def get_timing_var(name: str, default: Any = None) -> Any:
    return _timing_data.get(name, default)


@contextmanager
def log_timing(
    phase: Union[str, Callable[[], str]],
    t_start: Optional[float] = None,
) -> Iterator[None]:
    """Print the duration of a render phase.

    Args:
        phase: Phase name, or a callable evaluated when the phase ends
        t_start: Optional start of the whole run, to also print elapsed total
    """
    if not DEBUG_TIMING:
        yield
        return

    t_phase_start = time.time()
    try:
        yield
    finally:
        t_now = time.time()
        phase_name = phase() if callable(phase) else phase
        line = f"[TIMING] {phase_name:40s} {t_now - t_phase_start:8.3f}s"
        if t_start is not None:
            line += f" (total: {t_now - t_start:8.3f}s)"
        print(line, flush=True)
        _timing_data["_t_last"] = t_now


@contextmanager
def timing_stat(list_name: str) -> Iterator[None]:
    """Append the duration of the wrapped block to a named timing list.

    Nothing is recorded unless the list was registered with set_timing_var.
    """
    if not DEBUG_TIMING:
        yield
        return

    t_start = time.time()
    try:
        yield
    finally:
        duration = time.time() - t_start
        if list_name in _timing_data:
            msg_id = _timing_data.get("_current_msg_id", "")
            _timing_data[list_name].append((duration, msg_id))


def report_timing_statistics(
    operation_timings: list[Tuple[str, list[Tuple[float, str]]]],
) -> None:
    """Print totals and the slowest 10 operations per named timing list."""
    for operation_name, timings in operation_timings:
        if not timings:
            continue
        slowest = sorted(timings, key=lambda x: x[0], reverse=True)[:10]
        print(f"\n[TIMING] {operation_name} rendering:", flush=True)
        print(f"[TIMING]   Total operations: {len(timings)}", flush=True)
        print(
            f"[TIMING]   Total time: {sum(t[0] for t in timings):.3f}s", flush=True
        )
        print("[TIMING]   Slowest 10 operations:", flush=True)
        for duration, msg_id in slowest:
            print(f"[TIMING]     {msg_id}: {duration * 1000:.1f}ms", flush=True)
