"""Derive a validated capture plan from user-supplied timelapse constraints."""

from __future__ import annotations

import math
from pathlib import Path
from typing import Union

from webcam_timelapse.errors import (
    InvalidDuration,
    InvalidFrameCount,
    OutputTooShort,
    ValidationError,
)
from webcam_timelapse.models import CapturePlan

# GIF viewers will not play frames faster than roughly 60fps.
MAX_PLAYBACK_FPS = 60
MIN_DISPLAY_DELAY_MILLIS = 1000 / MAX_PLAYBACK_FPS


def max_frames(duration_hours: float, refresh_interval_seconds: float) -> int:
    """Upper bound on distinct frames the source can produce over the duration."""
    span = (3600 * duration_hours) / refresh_interval_seconds
    if not math.isfinite(span):
        raise InvalidDuration(
            f"Duration is too long for a source refreshing every {refresh_interval_seconds}s"
        )
    return int(math.ceil(span))


def minimum_output_seconds(frame_count: int) -> float:
    """Shortest output length renderable at the playback frame-rate ceiling.

    Rounded up to three decimals, so 37 frames need at least 0.617 seconds.
    """
    return math.ceil((1000 * frame_count) / MAX_PLAYBACK_FPS) / 1000


def wait_time_millis(duration_hours: float, frame_count: int) -> int:
    millis = (3600000 * duration_hours) // frame_count
    if not math.isfinite(millis):
        raise InvalidDuration("Duration is too long to schedule")
    return int(millis)


def display_delay_millis(output_seconds: float, frame_count: int) -> int:
    millis = (1000 * output_seconds) // frame_count
    if not math.isfinite(millis):
        raise OutputTooShort(
            "Timelapse length must be a finite number of seconds",
            minimum_output_seconds=minimum_output_seconds(frame_count),
        )
    return int(millis)


def format_seconds(value: float) -> str:
    """Render a seconds value without trailing zeros (``2.0`` -> ``"2"``)."""
    text = f"{value:.3f}".rstrip("0").rstrip(".")
    return text or "0"


def check_refresh_interval(refresh_interval_seconds: float) -> None:
    if not (math.isfinite(refresh_interval_seconds) and refresh_interval_seconds > 0):
        raise ValidationError("Source refresh interval must be a finite number of seconds greater than 0")


def check_duration(duration_hours: float) -> None:
    if not math.isfinite(duration_hours):
        raise InvalidDuration("Duration must be a finite number of hours")
    if not duration_hours > 0:
        raise InvalidDuration("Duration must be greater than 0 hours")


def check_frame_count(frame_count: int, limit: int) -> None:
    if not 0 < frame_count <= limit:
        raise InvalidFrameCount(
            f"Frame count must be greater than 0 and at most {limit}",
            max_frames=limit,
        )


def check_output_seconds(output_seconds: float, frame_count: int) -> int:
    """Return the per-frame display delay, rejecting outputs that play too fast."""
    delay = display_delay_millis(output_seconds, frame_count)
    if not delay > MIN_DISPLAY_DELAY_MILLIS:
        minimum = minimum_output_seconds(frame_count)
        raise OutputTooShort(
            f"Timelapse length is too short (min {format_seconds(minimum)} seconds)",
            minimum_output_seconds=minimum,
        )
    return delay


def derive_plan(
    source_url: str,
    refresh_interval_seconds: float,
    duration_hours: float,
    frame_count: int,
    output_seconds: float,
    save_path: Union[str, Path],
) -> CapturePlan:
    """Validate the inputs in order and build an immutable :class:`CapturePlan`.

    Raises
    ------
    InvalidDuration
        ``duration_hours`` is not a finite, strictly positive number, or is
        too large to schedule.
    InvalidFrameCount
        ``frame_count`` falls outside ``[1, max_frames]``.
    OutputTooShort
        ``output_seconds`` is not finite or would give each frame
        ``1000/60`` ms or less.
    ValidationError
        ``refresh_interval_seconds`` is not a finite, strictly positive number.
    """
    check_refresh_interval(refresh_interval_seconds)

    check_duration(duration_hours)
    limit = max_frames(duration_hours, refresh_interval_seconds)
    check_frame_count(frame_count, limit)
    delay = check_output_seconds(output_seconds, frame_count)

    return CapturePlan(
        source_url=source_url,
        refresh_interval_seconds=refresh_interval_seconds,
        duration_hours=duration_hours,
        max_frames=limit,
        frame_count=frame_count,
        wait_time_millis=wait_time_millis(duration_hours, frame_count),
        minimum_output_seconds=minimum_output_seconds(frame_count),
        output_seconds=output_seconds,
        display_delay_millis=delay,
        save_path=Path(save_path),
    )


__all__ = [
    "MAX_PLAYBACK_FPS",
    "MIN_DISPLAY_DELAY_MILLIS",
    "check_duration",
    "check_refresh_interval",
    "check_frame_count",
    "check_output_seconds",
    "derive_plan",
    "display_delay_millis",
    "format_seconds",
    "max_frames",
    "minimum_output_seconds",
    "wait_time_millis",
]
