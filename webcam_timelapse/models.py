"""Data models used across the webcam timelapse pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Tuple

import numpy as np

STAGING_DIRNAME = "timelapseSourceImages"
OUTPUT_FILENAME = "timelapse.gif"


@dataclass(frozen=True)
class CapturePlan:
    """Validated timing and count parameters governing a single run."""

    source_url: str
    refresh_interval_seconds: float
    duration_hours: float
    max_frames: int
    frame_count: int
    wait_time_millis: int
    minimum_output_seconds: float
    output_seconds: float
    display_delay_millis: int
    save_path: Path

    @property
    def staging_dir(self) -> Path:
        return self.save_path / STAGING_DIRNAME

    @property
    def output_path(self) -> Path:
        return self.save_path / OUTPUT_FILENAME

    @property
    def frame_index_width(self) -> int:
        """Digits used when zero-padding frame indices."""
        return len(str(self.frame_count))

    @property
    def wait_time_seconds(self) -> float:
        return self.wait_time_millis / 1000.0


@dataclass
class Frame:
    """One positionally indexed capture attempt."""

    index: int
    file_path: Path
    image: Optional[np.ndarray] = None
    error: Optional[str] = None

    @property
    def present(self) -> bool:
        return self.image is not None


@dataclass
class CaptureRun:
    """Ordered frames produced by one acquisition pass."""

    plan: CapturePlan
    frames: List[Frame] = field(default_factory=list)

    def present_frames(self) -> List[Frame]:
        return [frame for frame in self.frames if frame.present]

    def absent_indices(self) -> Tuple[int, ...]:
        return tuple(frame.index for frame in self.frames if not frame.present)

    @property
    def captured_count(self) -> int:
        return len(self.present_frames())

    @property
    def skipped_count(self) -> int:
        return len(self.frames) - self.captured_count


@dataclass
class AssemblyResult:
    """Summary of an encoded timelapse artifact."""

    output_path: Path
    frame_count: int
    display_delay_millis: int

    @property
    def duration_millis(self) -> int:
        return self.frame_count * self.display_delay_millis


@dataclass
class TimelapseResult:
    """Outcome of a complete capture-and-assemble run."""

    plan: CapturePlan
    captured_count: int
    skipped_count: int
    assembly: AssemblyResult


__all__ = [
    "AssemblyResult",
    "CapturePlan",
    "CaptureRun",
    "Frame",
    "OUTPUT_FILENAME",
    "STAGING_DIRNAME",
    "TimelapseResult",
]
