import logging
import signal
import sys
from pathlib import Path
from unittest.mock import patch

import cv2
import numpy as np
import pytest
from PIL import Image

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from webcam_timelapse import cli  # noqa: E402
from webcam_timelapse.acquisition import FrameAcquisitionScheduler  # noqa: E402
from webcam_timelapse.app import WebcamTimelapse  # noqa: E402
from webcam_timelapse.config import Settings  # noqa: E402
from webcam_timelapse.errors import (  # noqa: E402
    FrameFetchFailure,
    InvalidFrameCount,
    OutputTooShort,
    StorageUnavailable,
    ValidationError,
)
from webcam_timelapse.planning import derive_plan  # noqa: E402

LOGGER = logging.getLogger("pipeline-tests")


class SequenceFetcher:
    """Return a distinct solid frame per attempt, failing on listed attempts."""

    def __init__(self, fail_on=()):
        self.fail_on = set(fail_on)
        self.attempts = 0

    def fetch(self, url):
        self.attempts += 1
        if self.attempts in self.fail_on:
            raise FrameFetchFailure("timeout")
        image = np.full((8, 8, 3), (self.attempts * 4 % 256, 255 - self.attempts, 0), dtype=np.uint8)
        success, buffer = cv2.imencode(".jpg", image)
        assert success
        return buffer.tobytes(), image


def build_timelapse(fetcher, waits):
    acquisition = FrameAcquisitionScheduler(
        fetcher,
        LOGGER,
        waiter=lambda seconds: waits.append(seconds) and False,
    )
    return WebcamTimelapse(Settings(), logger=LOGGER, acquisition=acquisition)


def test_one_hour_sixty_frame_run_end_to_end(tmp_path):
    plan = derive_plan("http://cam.test/netcam.jpg", 60, 1, 60, 2, tmp_path)
    stale = plan.staging_dir / "image99.jpg"
    stale.parent.mkdir(parents=True)
    stale.write_bytes(b"stale")
    waits = []

    result = build_timelapse(SequenceFetcher(), waits).run(plan)

    staged = sorted(path.name for path in plan.staging_dir.iterdir())
    assert staged == [f"image{index:02d}.jpg" for index in range(1, 61)]
    assert waits == [60.0] * 59
    assert result.captured_count == 60
    assert result.skipped_count == 0
    assert result.assembly.display_delay_millis == 33
    with Image.open(plan.output_path) as gif:
        assert gif.n_frames == 60
        durations = []
        for position in range(gif.n_frames):
            gif.seek(position)
            durations.append(gif.info.get("duration"))
    # GIF delays are stored in hundredths of a second.
    assert durations == [30] * 60
    assert all(
        (plan.staging_dir / f"image{index:02d}.jpg").read_bytes()[:2] == b"\xff\xd8"
        for index in (1, 30, 60)
    )


def test_degraded_run_reports_skips_and_still_produces_output(tmp_path):
    plan = derive_plan("http://cam.test/netcam.jpg", 60, 1, 5, 2, tmp_path)

    result = build_timelapse(SequenceFetcher(fail_on={2, 4}), []).run(plan)

    assert result.captured_count == 3
    assert result.skipped_count == 2
    assert result.assembly.frame_count == 3
    assert (tmp_path / "timelapse.gif").exists()
    assert sorted(path.name for path in plan.staging_dir.iterdir()) == [
        "image1.jpg",
        "image3.jpg",
        "image5.jpg",
    ]


def test_storage_failure_stops_before_any_fetch(tmp_path):
    blocker = tmp_path / "save"
    blocker.write_text("a file, not a directory")
    plan = derive_plan("http://cam.test/netcam.jpg", 60, 1, 5, 2, blocker)
    fetcher = SequenceFetcher()

    with pytest.raises(StorageUnavailable):
        build_timelapse(fetcher, []).run(plan)

    assert fetcher.attempts == 0


def scripted(answers):
    replies = iter(answers)
    return lambda prompt: next(replies)


def test_collect_plan_prompts_in_order(tmp_path):
    args = cli.build_parser().parse_args([])

    plan = cli.collect_plan(args, Settings(), scripted(["1", "1", "60", "2", str(tmp_path)]))

    assert plan.source_url == "http://69.91.192.220/netcam.jpg"
    assert plan.frame_count == 60
    assert plan.wait_time_millis == 60000
    assert plan.display_delay_millis == 33
    assert plan.save_path == tmp_path


def test_collect_plan_uses_flags_without_prompting(tmp_path):
    args = cli.build_parser().parse_args(
        ["--source", "uw-seattle-campus", "--hours", "2", "--frames", "24", "--length", "4", "--save-dir", str(tmp_path)]
    )

    def no_prompts(prompt):
        raise AssertionError(f"unexpected prompt: {prompt}")

    plan = cli.collect_plan(args, Settings(), no_prompts)

    assert plan.max_frames == 24
    assert plan.display_delay_millis == 166


def test_collect_plan_empty_save_dir_uses_default(tmp_path):
    args = cli.build_parser().parse_args(["--source", "1", "--hours", "1", "--frames", "10", "--length", "1"])
    settings = Settings(default_save_dir=tmp_path / "default")

    plan = cli.collect_plan(args, settings, scripted([""]))

    assert plan.save_path == tmp_path / "default"


def test_collect_plan_stops_at_first_invalid_answer():
    args = cli.build_parser().parse_args([])

    with pytest.raises(InvalidFrameCount) as excinfo:
        cli.collect_plan(args, Settings(), scripted(["1", "1", "61"]))

    assert excinfo.value.max_frames == 60


def test_collect_plan_rejects_short_output():
    args = cli.build_parser().parse_args(["--source", "1", "--hours", "1", "--frames", "60"])

    with pytest.raises(OutputTooShort):
        cli.collect_plan(args, Settings(), scripted(["0.5", "unused"]))


@pytest.mark.parametrize("answers", [["9"], ["1", "soon"]])
def test_collect_plan_rejects_bad_selection_and_non_numbers(answers):
    args = cli.build_parser().parse_args([])

    with pytest.raises(ValidationError):
        cli.collect_plan(args, Settings(), scripted(answers))


def test_main_returns_error_for_invalid_input_without_touching_disk(tmp_path):
    save_dir = tmp_path / "never-created"

    exit_code = cli.main(
        [
            "--config", str(tmp_path / "missing.json"),
            "--source", "1",
            "--hours", "0",
            "--frames", "1",
            "--length", "1",
            "--save-dir", str(save_dir),
        ]
    )

    assert exit_code == 1
    assert not save_dir.exists()


def test_main_runs_pipeline_and_reports_success(tmp_path):
    class StubTimelapse:
        def __init__(self, settings, logger):
            self.plans = []
            self.acquisition = None

        def run(self, plan):
            self.plans.append(plan)
            return type(
                "Result",
                (),
                {
                    "captured_count": plan.frame_count,
                    "skipped_count": 0,
                    "assembly": type("Assembly", (), {"output_path": plan.output_path})(),
                },
            )()

    with patch.object(cli, "WebcamTimelapse", StubTimelapse):
        exit_code = cli.main(
            [
                "--config", str(tmp_path / "missing.json"),
                "--source", "1",
                "--hours", "1",
                "--frames", "10",
                "--length", "1",
                "--save-dir", str(tmp_path),
            ]
        )

    assert exit_code == 0


def test_main_reports_fatal_stage_failure(tmp_path):
    class FailingTimelapse:
        def __init__(self, settings, logger):
            self.acquisition = None

        def run(self, plan):
            raise StorageUnavailable("read-only volume")

    with patch.object(cli, "WebcamTimelapse", FailingTimelapse):
        exit_code = cli.main(
            [
                "--config", str(tmp_path / "missing.json"),
                "--source", "1",
                "--hours", "1",
                "--frames", "10",
                "--length", "1",
                "--save-dir", str(tmp_path),
            ]
        )

    assert exit_code == 1


@pytest.mark.parametrize("hours", ["inf", "nan"])
def test_main_rejects_non_finite_hours(tmp_path, hours):
    exit_code = cli.main(
        [
            "--config", str(tmp_path / "missing.json"),
            "--source", "1",
            "--hours", hours,
            "--frames", "1",
            "--length", "1",
            "--save-dir", str(tmp_path / "never-created"),
        ]
    )

    assert exit_code == 1
    assert not (tmp_path / "never-created").exists()


@pytest.mark.skipif(not hasattr(signal, "SIGUSR1"), reason="SIGUSR1 is not available on this platform")
def test_skip_wait_signal_interrupts_the_current_wait(tmp_path):
    plan = derive_plan("http://cam.test/netcam.jpg", 60, 1, 2, 2, tmp_path)
    plan.staging_dir.mkdir(parents=True)
    acquisition = FrameAcquisitionScheduler(SequenceFetcher(), LOGGER)
    previous = cli.install_skip_wait_handler(acquisition, LOGGER)
    try:
        handler = signal.getsignal(signal.SIGUSR1)
        handler(signal.SIGUSR1, None)
        # The half-hour wait between the two frames returns immediately.
        capture = acquisition.run(plan, plan.staging_dir)
    finally:
        signal.signal(signal.SIGUSR1, previous)

    assert capture.captured_count == 2


@pytest.mark.skipif(not hasattr(signal, "SIGUSR1"), reason="SIGUSR1 is not available on this platform")
def test_main_restores_previous_skip_wait_handler(tmp_path):
    seen = []

    class RecordingTimelapse:
        def __init__(self, settings, logger):
            self.acquisition = FrameAcquisitionScheduler(SequenceFetcher(), logger)

        def run(self, plan):
            seen.append(signal.getsignal(signal.SIGUSR1))
            return None

    before = signal.getsignal(signal.SIGUSR1)
    with patch.object(cli, "WebcamTimelapse", RecordingTimelapse):
        cli.main(
            [
                "--config", str(tmp_path / "missing.json"),
                "--source", "1",
                "--hours", "1",
                "--frames", "10",
                "--length", "1",
                "--save-dir", str(tmp_path),
            ]
        )

    assert seen and seen[0] is not before
    assert signal.getsignal(signal.SIGUSR1) == before
