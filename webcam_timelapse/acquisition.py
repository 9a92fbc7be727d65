"""Timed frame acquisition from a fixed-URL image source."""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from time import perf_counter
from typing import Callable, Optional, Tuple

import cv2
import numpy as np
import requests

from webcam_timelapse.errors import (
    FrameCaptureFailure,
    FrameFetchFailure,
    FrameWriteFailure,
    SuspensionInterrupted,
)
from webcam_timelapse.models import CapturePlan, CaptureRun, Frame
from webcam_timelapse.progress import eta_string, progress_label
from webcam_timelapse.storage import frame_filename


class FrameFetcher:
    """Download a still image and decode it into a BGR raster."""

    def __init__(self, logger: logging.Logger, *, http_timeout: float = 10) -> None:
        self.logger = logger
        self.http_timeout = http_timeout

    def fetch(self, url: str) -> Tuple[bytes, np.ndarray]:
        try:
            response = requests.get(url, timeout=self.http_timeout)
            response.raise_for_status()
        except requests.RequestException as exc:
            raise FrameFetchFailure(f"Request to {url} failed: {exc}") from exc

        content = response.content
        if not content:
            raise FrameFetchFailure(f"Empty response from {url}")

        image = cv2.imdecode(np.frombuffer(content, dtype=np.uint8), cv2.IMREAD_COLOR)
        if image is None:
            raise FrameFetchFailure(f"Response from {url} is not a decodable image")

        return content, image


class FrameAcquisitionScheduler:
    """Fetch ``frame_count`` frames spaced ``wait_time_millis`` apart.

    Failures on individual frames are logged and leave the frame absent; the
    run always covers every index. ``waiter`` receives a timeout in seconds
    and returns ``True`` when the wait was cut short.
    """

    def __init__(
        self,
        fetcher: FrameFetcher,
        logger: logging.Logger,
        *,
        waiter: Optional[Callable[[float], bool]] = None,
    ) -> None:
        self.fetcher = fetcher
        self.logger = logger
        self._wake = threading.Event()
        self._waiter = waiter or self._wake.wait

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _write(self, frame: Frame, content: bytes) -> None:
        try:
            frame.file_path.write_bytes(content)
        except OSError as exc:
            raise FrameWriteFailure(
                f"Unable to write {frame.file_path}: {exc}",
                index=frame.index,
            ) from exc

    def _capture(self, frame: Frame, url: str) -> None:
        try:
            content, image = self.fetcher.fetch(url)
        except FrameFetchFailure as exc:
            exc.index = frame.index
            raise
        self._write(frame, content)
        frame.image = image

    def _suspend(self, seconds: float) -> None:
        if self._waiter(seconds):
            self._wake.clear()
            raise SuspensionInterrupted(f"Wait of {seconds:.3f}s interrupted")

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def interrupt_wait(self) -> None:
        """Cut the current inter-frame wait short; the run moves on to the next frame."""
        self._wake.set()

    def run(self, plan: CapturePlan, staging_dir: Path) -> CaptureRun:
        total = plan.frame_count
        capture = CaptureRun(plan=plan)
        started = perf_counter()

        self.logger.info(
            "Capturing %s frames from %s every %0.1fs",
            total,
            plan.source_url,
            plan.wait_time_seconds,
        )

        for index in range(1, total + 1):
            frame = Frame(index=index, file_path=staging_dir / frame_filename(index, total))
            label = progress_label(index, total)

            try:
                self._capture(frame, plan.source_url)
            except FrameCaptureFailure as exc:
                frame.error = str(exc)
                self.logger.error("%s Error saving to %s: %s", label, frame.file_path, exc)
            else:
                remaining = (total - index) * plan.wait_time_seconds
                self.logger.info(
                    "%s New image saved to %s (%s)",
                    label,
                    frame.file_path,
                    eta_string(remaining),
                )
            capture.frames.append(frame)

            if index != total:
                try:
                    self._suspend(plan.wait_time_seconds)
                except SuspensionInterrupted as exc:
                    self.logger.warning("%s %s; continuing with next frame", label, exc)

        self.logger.info(
            "Acquisition finished in %0.1fs: %s captured, %s skipped",
            perf_counter() - started,
            capture.captured_count,
            capture.skipped_count,
        )
        return capture


__all__ = ["FrameAcquisitionScheduler", "FrameFetcher"]
