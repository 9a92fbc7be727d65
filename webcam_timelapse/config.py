"""Configuration dataclasses and loading helpers for webcam timelapses."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable, Mapping, Optional, Tuple


@dataclass(frozen=True)
class ImageSource:
    """A named still-image webcam and how often it refreshes."""

    name: str
    url: str
    refresh_interval_seconds: int

    @property
    def slug(self) -> str:
        return "-".join(
            "".join(ch for ch in word if ch.isalnum())
            for word in self.name.lower().split()
            if any(ch.isalnum() for ch in word)
        )


# More freeway and port webcams are listed at https://www.king5.com/traffic-cameras
DEFAULT_SOURCES: Tuple[ImageSource, ...] = (
    ImageSource("UW Bothell Campus", "http://69.91.192.220/netcam.jpg", 60),
    ImageSource("UW Seattle Campus", "https://www.washington.edu/cambots/camera1_l.jpg", 300),
    ImageSource(
        "Kaloch Lodge - Olympic National Park",
        "https://pixelcaster.com/dnc-kalaloch/kalaloch.jpg",
        60,
    ),
    ImageSource(
        "Friday Harbor Ferry",
        "https://images.wsdot.wa.gov/wsf/fridayharbor/friholding.jpg",
        120,
    ),
    ImageSource(
        "Sequim Valley Airport",
        "http://olypen.com/sequimvalleyairport/webcam/webcam.jpg",
        45,
    ),
    ImageSource("Poulsbo, WA", "http://bwbryant.com/poulsbo_webcam.jpg", 900),
    ImageSource("Olympia Airport", "https://images.wsdot.wa.gov/airports/OlySW.jpg", 900),
)


@dataclass(frozen=True)
class Settings:
    """Root configuration object for the timelapse tool."""

    default_save_dir: Path = Path("timelapses")
    http_timeout: float = 10.0
    log_file: Optional[Path] = None
    log_level: int = logging.INFO
    sources: Tuple[ImageSource, ...] = field(default_factory=lambda: DEFAULT_SOURCES)

    def find_source(self, selection: str) -> Optional[ImageSource]:
        """Look a source up by 1-based menu number, name, or slug."""
        text = str(selection).strip()
        if text.isdigit():
            position = int(text) - 1
            if 0 <= position < len(self.sources):
                return self.sources[position]
            return None
        lowered = text.lower()
        for source in self.sources:
            if lowered in (source.name.lower(), source.slug):
                return source
        return None


def _parse_positive_int(value: Any, default: int) -> int:
    """Parse a positive integer with fallback to default."""
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        return default
    return parsed if parsed > 0 else default


def _parse_positive_float(value: Any, default: float) -> float:
    try:
        parsed = float(value)
    except (TypeError, ValueError):
        return default
    return parsed if parsed > 0 else default


def _parse_log_level(value: Any, default: int) -> int:
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        level = logging.getLevelName(value.strip().upper())
        if isinstance(level, int):
            return level
    return default


def _parse_optional_path(value: Any) -> Optional[Path]:
    if value is None:
        return None
    text = str(value).strip()
    return Path(text) if text else None


def _parse_sources(raw_list: Iterable[Any]) -> Tuple[ImageSource, ...]:
    sources: list[ImageSource] = []
    for entry in raw_list or []:
        if not isinstance(entry, Mapping):
            continue
        name = str(entry.get("name", "")).strip()
        url = str(entry.get("url", "")).strip()
        if not name or not url:
            continue
        sources.append(
            ImageSource(
                name=name,
                url=url,
                refresh_interval_seconds=_parse_positive_int(
                    entry.get("refresh_interval_seconds"),
                    60,
                ),
            )
        )
    return tuple(sources)


def _settings_from_mapping(data: Mapping[str, Any]) -> Settings:
    default = Settings()
    sources = _parse_sources(data.get("sources", []))
    return Settings(
        default_save_dir=Path(data.get("save_dir", default.default_save_dir)),
        http_timeout=_parse_positive_float(data.get("http_timeout"), default.http_timeout),
        log_file=_parse_optional_path(data.get("log_file")),
        log_level=_parse_log_level(data.get("log_level"), default.log_level),
        sources=sources or DEFAULT_SOURCES,
    )


def load_config(
    config_path: Path | str = "config.json",
    env: Mapping[str, str] | None = None,
) -> Settings:
    """Load settings from a JSON file, falling back to environment variables."""
    source_env = os.environ if env is None else env
    path = Path(config_path)

    if path.exists():
        with path.open("r", encoding="utf-8") as handle:
            data = json.load(handle)
        return _settings_from_mapping(data if isinstance(data, Mapping) else {})

    return _settings_from_mapping({
        "save_dir": source_env.get("TIMELAPSE_SAVE_DIR", "timelapses"),
        "http_timeout": source_env.get("HTTP_TIMEOUT"),
        "log_file": source_env.get("LOG_FILE"),
        "log_level": source_env.get("LOG_LEVEL"),
    })


__all__ = [
    "DEFAULT_SOURCES",
    "ImageSource",
    "Settings",
    "load_config",
]
