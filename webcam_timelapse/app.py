"""
Webcam timelapse pipeline.
Captures still frames from a webcam on a fixed cadence and assembles them into a gif.
"""

from __future__ import annotations

import logging
from typing import Optional

from dotenv import load_dotenv

from webcam_timelapse.acquisition import FrameAcquisitionScheduler, FrameFetcher
from webcam_timelapse.assembly import TimelapseAssembler
from webcam_timelapse.config import Settings, load_config
from webcam_timelapse.logging_setup import DEFAULT_LOGGER_NAME
from webcam_timelapse.models import CapturePlan, TimelapseResult
from webcam_timelapse.planning import format_seconds
from webcam_timelapse.progress import format_duration
from webcam_timelapse.storage import prepare_directory

# Load environment variables
load_dotenv()


class WebcamTimelapse:
    """Run the capture pipeline: prepare storage, acquire frames, assemble output."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        *,
        logger: Optional[logging.Logger] = None,
        acquisition: Optional[FrameAcquisitionScheduler] = None,
        assembler: Optional[TimelapseAssembler] = None,
    ) -> None:
        self.settings = settings or load_config()
        self.logger = logger or logging.getLogger(DEFAULT_LOGGER_NAME)
        self.acquisition = acquisition or FrameAcquisitionScheduler(
            FrameFetcher(self.logger, http_timeout=self.settings.http_timeout),
            self.logger,
        )
        self.assembler = assembler or TimelapseAssembler(self.logger)

    def describe_plan(self, plan: CapturePlan) -> None:
        self.logger.info(
            "Timelapse plan: %s frames over %s hours (one every %s), "
            "%s seconds of output at %sms per frame",
            plan.frame_count,
            format_seconds(plan.duration_hours),
            format_duration(plan.wait_time_seconds),
            format_seconds(plan.output_seconds),
            plan.display_delay_millis,
        )

    def run(self, plan: CapturePlan) -> TimelapseResult:
        """Execute one run against ``plan``.

        Only storage and encoding failures escape; per-frame problems reduce
        the number of frames in the output instead.
        """
        self.describe_plan(plan)
        staging_dir = prepare_directory(plan.staging_dir, self.logger)

        capture = self.acquisition.run(plan, staging_dir)

        self.logger.info("Images downloaded, creating timelapse gif...")
        assembly = self.assembler.assemble(
            capture,
            plan.display_delay_millis,
            plan.output_path,
        )

        result = TimelapseResult(
            plan=plan,
            captured_count=capture.captured_count,
            skipped_count=capture.skipped_count,
            assembly=assembly,
        )
        if result.skipped_count:
            self.logger.warning(
                "Timelapse completed with %s of %s frames (%s skipped: %s)",
                result.captured_count,
                plan.frame_count,
                result.skipped_count,
                ", ".join(str(index) for index in capture.absent_indices()),
            )
        else:
            self.logger.info("Timelapse completed with all %s frames", plan.frame_count)
        return result


__all__ = ["WebcamTimelapse"]
