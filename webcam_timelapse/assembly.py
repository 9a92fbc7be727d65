"""Assemble captured frames into an animated GIF."""

from __future__ import annotations

import logging
import uuid
from pathlib import Path
from typing import BinaryIO, Optional, Tuple

import cv2
import numpy as np
from PIL import GifImagePlugin, Image

from webcam_timelapse.errors import EncodingFailed
from webcam_timelapse.models import AssemblyResult, CaptureRun


class GifEncoder:
    """Streaming animated GIF writer with a uniform per-frame delay.

    Every :meth:`add_frame` call writes one image block, with its own colour
    table, straight to the output. Identical consecutive frames stay separate
    frames. :meth:`finish` writes the trailer.
    """

    def __init__(self) -> None:
        self._output: Optional[BinaryIO] = None
        self._delay_millis = 0
        self._size: Optional[Tuple[int, int]] = None
        self._frame_count = 0

    def start(self, output: BinaryIO) -> None:
        self._output = output
        self._size = None
        self._frame_count = 0

    def set_delay(self, millis: int) -> None:
        self._delay_millis = int(millis)

    def _to_palette(self, image: np.ndarray) -> Image.Image:
        if self._size is not None and (image.shape[1], image.shape[0]) != self._size:
            image = cv2.resize(image, self._size, interpolation=cv2.INTER_AREA)
        rgb = cv2.cvtColor(image, cv2.COLOR_BGR2RGB)
        return Image.fromarray(rgb).convert("P", palette=Image.Palette.ADAPTIVE, colors=256)

    def add_frame(self, image: np.ndarray) -> None:
        if self._output is None:
            raise RuntimeError("GifEncoder.start() must be called before adding frames")

        frame = self._to_palette(image)
        if self._size is None:
            self._size = frame.size
            header, _ = GifImagePlugin.getheader(
                frame,
                info={"loop": 0, "duration": self._delay_millis},
            )
            for block in header:
                self._output.write(block)

        for block in GifImagePlugin.getdata(
            frame,
            duration=self._delay_millis,
            include_color_table=True,
        ):
            self._output.write(block)
        self._frame_count += 1

    @property
    def frame_count(self) -> int:
        return self._frame_count

    def finish(self) -> None:
        if self._output is None:
            raise RuntimeError("GifEncoder.start() must be called before finish()")
        if not self._frame_count:
            raise ValueError("No frames were added to the animation")

        self._output.write(b";")
        self._output.flush()
        self._output = None


class TimelapseAssembler:
    """Feed the present frames of a capture run through an encoder."""

    def __init__(
        self,
        logger: logging.Logger,
        *,
        encoder_factory=GifEncoder,
    ) -> None:
        self.logger = logger
        self.encoder_factory = encoder_factory

    def assemble(
        self,
        capture: CaptureRun,
        display_delay_millis: int,
        output_path: Path,
    ) -> AssemblyResult:
        present = capture.present_frames()
        if not present:
            raise EncodingFailed(
                f"No frames were captured; nothing to write to {output_path}"
            )

        temp_output = output_path.with_name(f".tmp_{uuid.uuid4().hex}_{output_path.name}")
        encoder = self.encoder_factory()

        try:
            with temp_output.open("wb") as handle:
                encoder.start(handle)
                encoder.set_delay(display_delay_millis)
                for frame in present:
                    encoder.add_frame(frame.image)
                encoder.finish()
            temp_output.replace(output_path)
        except (OSError, ValueError, RuntimeError, cv2.error) as exc:
            temp_output.unlink(missing_ok=True)
            raise EncodingFailed(f"Failed to create {output_path}: {exc}") from exc

        self.logger.info(
            "Created gif successfully with %s frames at %sms - Saved to %s",
            len(present),
            display_delay_millis,
            output_path,
        )
        return AssemblyResult(
            output_path=output_path,
            frame_count=len(present),
            display_delay_millis=display_delay_millis,
        )


__all__ = ["GifEncoder", "TimelapseAssembler"]
