"""
Webcam timelapse capture: fetch still frames on a schedule and assemble them
into an animated gif.
"""

from .app import WebcamTimelapse
from .config import DEFAULT_SOURCES, ImageSource, Settings, load_config
from .models import CapturePlan, CaptureRun, Frame
from .planning import derive_plan

__all__ = [
    "DEFAULT_SOURCES",
    "CapturePlan",
    "CaptureRun",
    "Frame",
    "ImageSource",
    "Settings",
    "WebcamTimelapse",
    "derive_plan",
    "load_config",
]
