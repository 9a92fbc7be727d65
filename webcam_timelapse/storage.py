"""Staging directory preparation and frame file naming."""

from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import Optional, Union

from webcam_timelapse.errors import StorageUnavailable

FRAME_PREFIX = "image"
FRAME_SUFFIX = ".jpg"


def frame_filename(index: int, frame_count: int) -> str:
    """Return the staged filename for a 1-based frame index.

    Indices are zero-padded to the width of ``frame_count`` so that
    lexicographic order matches capture order.
    """
    width = len(str(frame_count))
    return f"{FRAME_PREFIX}{index:0{width}d}{FRAME_SUFFIX}"


def prepare_directory(
    path: Union[str, Path],
    logger: Optional[logging.Logger] = None,
) -> Path:
    """Ensure ``path`` exists as an empty directory and return it."""
    target = Path(path)
    log = logger or logging.getLogger(__name__)

    if target.exists() and not target.is_dir():
        raise StorageUnavailable(f"Staging path {target} exists and is not a directory")

    try:
        target.mkdir(parents=True, exist_ok=True)
        removed = 0
        for entry in target.iterdir():
            if entry.is_dir() and not entry.is_symlink():
                shutil.rmtree(entry)
            else:
                entry.unlink()
            removed += 1
    except OSError as exc:
        raise StorageUnavailable(f"Unable to prepare staging directory {target}: {exc}") from exc

    if removed:
        log.info("Cleared %s stale entries from %s", removed, target)
    else:
        log.debug("Staging directory ready: %s", target)
    return target


__all__ = ["FRAME_PREFIX", "FRAME_SUFFIX", "frame_filename", "prepare_directory"]
