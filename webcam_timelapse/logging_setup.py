"""Logging configuration helpers for the webcam timelapse tool."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, Optional, Union

DEFAULT_LOGGER_NAME = "webcam_timelapse"
DEFAULT_LOG_FILENAME = "webcam_timelapse.log"

# HTTP, image and scheduler libraries log every request/job at INFO or DEBUG.
NOISY_LOGGERS = ("urllib3", "PIL", "apscheduler")


def resolve_log_path(log_file: Union[str, Path]) -> Path:
    """Absolute log path; a directory gets ``webcam_timelapse.log`` inside it."""
    log_path = Path(log_file).expanduser()
    if not log_path.is_absolute():
        log_path = Path.cwd() / log_path
    if log_path.is_dir():
        log_path = log_path / DEFAULT_LOG_FILENAME
    return log_path


def _open_file_handler(log_file: Union[str, Path]) -> tuple[Optional[logging.Handler], Optional[str]]:
    """Open a file handler, falling back to the working directory.

    Returns the handler (or ``None``) and a warning to emit once logging is up.
    """
    log_path = resolve_log_path(log_file)
    try:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        return logging.FileHandler(log_path, encoding="utf-8"), None
    except OSError as exc:
        fallback_path = Path.cwd() / DEFAULT_LOG_FILENAME
        try:
            handler = logging.FileHandler(fallback_path, encoding="utf-8")
        except OSError as fallback_exc:
            return None, f"Cannot log to '{log_path}' or '{fallback_path}': {fallback_exc}"
        return handler, f"Cannot log to '{log_path}' ({exc}); logging to '{fallback_path}' instead"


def quiet_library_loggers(names: Iterable[str] = NOISY_LOGGERS, *, level: int = logging.WARNING) -> None:
    for name in names:
        logging.getLogger(name).setLevel(level)


def configure_logging(
    logger_name: Optional[str] = None,
    *,
    level: int = logging.INFO,
    log_file: Union[str, Path, None] = None,
    include_stream: bool = True,
    verbose: bool = False,
) -> logging.Logger:
    """Configure application logging and return a ready-to-use logger.

    ``verbose`` forces DEBUG and lets third-party library loggers through;
    otherwise those are held at WARNING so capture progress stays readable.
    ``log_file`` may name a directory, in which case ``webcam_timelapse.log``
    is created inside it.
    """
    if verbose:
        level = logging.DEBUG
    formatter = logging.Formatter(
        "%(asctime)s - %(levelname)s - %(name)s - %(message)s"
        if verbose
        else "%(asctime)s - %(levelname)s - %(message)s"
    )

    handlers: list[logging.Handler] = []
    pending_warning: Optional[str] = None
    if log_file:
        file_handler, pending_warning = _open_file_handler(log_file)
        if file_handler:
            handlers.append(file_handler)
    if include_stream:
        handlers.append(logging.StreamHandler())
    for handler in handlers:
        handler.setFormatter(formatter)

    logging.basicConfig(level=level, handlers=handlers, force=True)
    quiet_library_loggers(level=logging.NOTSET if verbose else logging.WARNING)

    logger = logging.getLogger(logger_name or DEFAULT_LOGGER_NAME)
    logger.setLevel(level)
    if pending_warning:
        logger.warning(pending_warning)
    return logger


__all__ = [
    "DEFAULT_LOGGER_NAME",
    "DEFAULT_LOG_FILENAME",
    "configure_logging",
    "quiet_library_loggers",
    "resolve_log_path",
]
