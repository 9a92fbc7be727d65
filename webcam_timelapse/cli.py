"""
Command line entry point for capturing a webcam timelapse.

Any parameter not supplied as a flag is prompted for interactively.
"""

from __future__ import annotations

import argparse
import logging
import signal
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional, Sequence

from webcam_timelapse.app import WebcamTimelapse
from webcam_timelapse.config import ImageSource, Settings, load_config
from webcam_timelapse.errors import TimelapseError, ValidationError
from webcam_timelapse.logging_setup import configure_logging
from webcam_timelapse.models import CapturePlan
from webcam_timelapse.planning import (
    check_duration,
    check_frame_count,
    check_output_seconds,
    derive_plan,
    format_seconds,
    max_frames,
    minimum_output_seconds,
)
from webcam_timelapse.scheduler import run_at

InputFunc = Callable[[str], str]

# Sending this signal to a running capture cuts the current wait short.
SKIP_WAIT_SIGNAL = getattr(signal, "SIGUSR1", None)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="webcam-timelapse",
        description="Capture still frames from a webcam and assemble them into a timelapse gif.",
    )
    parser.add_argument("--config", type=Path, default=Path("config.json"), help="Path to config.json")
    parser.add_argument("--source", help="Webcam menu number, name, or slug")
    parser.add_argument("--hours", type=float, help="Hours the timelapse should cover")
    parser.add_argument("--frames", type=int, help="Number of frames to capture")
    parser.add_argument("--length", type=float, help="Length of the final timelapse in seconds")
    parser.add_argument("--save-dir", type=Path, help="Directory to save images and timelapse")
    parser.add_argument(
        "--start-at",
        type=datetime.fromisoformat,
        help="Delay the capture until this ISO datetime (e.g. 2026-10-20T06:30)",
    )
    parser.add_argument("--log-file", type=Path, help="Also write log output to this file")
    parser.add_argument("--list-sources", action="store_true", help="List available webcams and exit")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    return parser


def print_header(text: str) -> None:
    """Print ``text`` underlined with dashes of equal length."""
    print(text)
    print("-" * len(text))


def print_sources(settings: Settings) -> None:
    print()
    print_header("Available webcams")
    for position, source in enumerate(settings.sources, start=1):
        print(f"{position}: {source.name}")


def _ask_number(input_func: InputFunc, prompt: str, cast: Callable[[str], float], label: str):
    raw = input_func(prompt).strip()
    try:
        return cast(raw)
    except ValueError:
        raise ValidationError(f"{label} must be a number, got '{raw}'") from None


def select_source(settings: Settings, selection: Optional[str], input_func: InputFunc) -> ImageSource:
    if selection is None:
        print_sources(settings)
        selection = input_func("\nEnter which webcam feed you want a timelapse of: ")
    source = settings.find_source(selection)
    if source is None:
        raise ValidationError(f"{selection.strip()} is not a valid selection")
    return source


def install_skip_wait_handler(acquisition, logger: logging.Logger):
    """Route SIGUSR1 to ``acquisition.interrupt_wait`` so the next frame is captured now.

    Returns the previous handler, or ``None`` where the platform has no SIGUSR1.
    """
    if SKIP_WAIT_SIGNAL is None:
        return None

    def _skip_wait(signum, frame):
        logger.info("Received signal %s, capturing the next frame now", signum)
        acquisition.interrupt_wait()

    return signal.signal(SKIP_WAIT_SIGNAL, _skip_wait)


def collect_plan(
    args: argparse.Namespace,
    settings: Settings,
    input_func: InputFunc = input,
) -> CapturePlan:
    """Resolve every plan input from flags or prompts, validating each as it arrives."""
    source = select_source(settings, args.source, input_func)

    hours = args.hours
    if hours is None:
        hours = _ask_number(input_func, "Enter how many hours the timelapse should cover: ", float, "Duration")
    check_duration(hours)

    limit = max_frames(hours, source.refresh_interval_seconds)
    frames = args.frames
    if frames is None:
        frames = _ask_number(
            input_func,
            f"Enter how many frames should be used (max {limit}): ",
            int,
            "Frame count",
        )
    check_frame_count(frames, limit)

    length = args.length
    if length is None:
        minimum = format_seconds(minimum_output_seconds(frames))
        length = _ask_number(
            input_func,
            f"Enter how many seconds long the final timelapse should be (min {minimum}): ",
            float,
            "Timelapse length",
        )
    check_output_seconds(length, frames)

    save_dir = args.save_dir
    if save_dir is None:
        entered = input_func(
            f"Enter directory to save images and timelapse [{settings.default_save_dir}]: "
        ).strip()
        save_dir = Path(entered) if entered else settings.default_save_dir

    return derive_plan(
        source.url,
        source.refresh_interval_seconds,
        hours,
        frames,
        length,
        save_dir,
    )


def main(argv: Optional[Sequence[str]] = None, *, input_func: InputFunc = input) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    settings = load_config(args.config)
    logger = configure_logging(
        level=settings.log_level,
        log_file=args.log_file or settings.log_file,
        verbose=args.verbose,
    )

    if args.list_sources:
        print_sources(settings)
        return 0

    try:
        plan = collect_plan(args, settings, input_func)
    except ValidationError as exc:
        logger.error("Invalid input: %s", exc)
        return 1
    except EOFError:
        logger.error("Input ended before all timelapse parameters were provided")
        return 1

    timelapse = WebcamTimelapse(settings, logger=logger)
    previous_handler = install_skip_wait_handler(timelapse.acquisition, logger)
    try:
        result = run_at(lambda: timelapse.run(plan), args.start_at, logger)
    except TimelapseError as exc:
        logger.error("%s failed: %s", exc.stage.capitalize(), exc)
        return 1
    finally:
        if previous_handler is not None:
            signal.signal(SKIP_WAIT_SIGNAL, previous_handler)

    if result is None:
        return 1
    logger.info(
        "Done: %s captured, %s skipped, output %s",
        result.captured_count,
        result.skipped_count,
        result.assembly.output_path,
    )
    return 0


__all__ = ["build_parser", "collect_plan", "install_skip_wait_handler", "main"]
