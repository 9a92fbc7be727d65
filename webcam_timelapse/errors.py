"""Exception taxonomy for the webcam timelapse pipeline."""

from __future__ import annotations

from typing import Optional


class TimelapseError(Exception):
    """Base class for every error raised by the pipeline."""

    stage = "timelapse"


class ValidationError(TimelapseError):
    """Raised by plan derivation when a user-supplied bound is violated."""

    stage = "validation"


class InvalidDuration(ValidationError):
    pass


class InvalidFrameCount(ValidationError):
    def __init__(self, message: str, max_frames: int) -> None:
        super().__init__(message)
        self.max_frames = max_frames


class OutputTooShort(ValidationError):
    def __init__(self, message: str, minimum_output_seconds: float) -> None:
        super().__init__(message)
        self.minimum_output_seconds = minimum_output_seconds


class StorageUnavailable(TimelapseError):
    """The staging directory could not be created or cleared."""

    stage = "storage"


class FrameCaptureFailure(TimelapseError):
    """A single frame could not be captured. Always absorbed by the scheduler."""

    stage = "acquisition"

    def __init__(self, message: str, index: Optional[int] = None) -> None:
        super().__init__(message)
        self.index = index


class FrameFetchFailure(FrameCaptureFailure):
    pass


class FrameWriteFailure(FrameCaptureFailure):
    pass


class SuspensionInterrupted(TimelapseError):
    """The inter-frame wait ended early."""

    stage = "acquisition"


class EncodingFailed(TimelapseError):
    """The output animation could not be produced."""

    stage = "assembly"


__all__ = [
    "EncodingFailed",
    "FrameCaptureFailure",
    "FrameFetchFailure",
    "FrameWriteFailure",
    "InvalidDuration",
    "InvalidFrameCount",
    "OutputTooShort",
    "StorageUnavailable",
    "SuspensionInterrupted",
    "TimelapseError",
    "ValidationError",
]
