"""Helpers for reporting capture progress and remaining time."""

from __future__ import annotations

from datetime import datetime, timedelta


def format_duration(seconds: float) -> str:
    """Return a compact human-readable duration such as ``1h05m00s``."""
    total_seconds = int(round(seconds))
    if total_seconds <= 0:
        return "<1s"
    hours, remainder = divmod(total_seconds, 3600)
    minutes, secs = divmod(remainder, 60)
    if hours:
        return f"{hours}h{minutes:02d}m{secs:02d}s"
    if minutes:
        return f"{minutes}m{secs:02d}s"
    return f"{secs}s"


def eta_string(remaining_seconds: float, now: datetime | None = None) -> str:
    """Format the time left in a run along with its wall-clock finish time."""
    remaining = max(0.0, remaining_seconds)
    finish_time = (now or datetime.now()) + timedelta(seconds=remaining)
    return f"ETA {format_duration(remaining)} (finish {finish_time.strftime('%H:%M:%S')})"


def progress_label(index: int, total: int) -> str:
    """Return ``(NN/total)`` with the index padded to the width of ``total``."""
    width = len(str(total))
    return f"({index:0{width}d}/{total})"


__all__ = ["eta_string", "format_duration", "progress_label"]
