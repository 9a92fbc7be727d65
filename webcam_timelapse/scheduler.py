"""Delayed start of a timelapse run."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Dict, Optional, TypeVar

from apscheduler.schedulers.blocking import BlockingScheduler
from apscheduler.triggers.date import DateTrigger

T = TypeVar("T")


def run_at(
    job: Callable[[], T],
    start_at: Optional[datetime],
    logger: logging.Logger,
) -> Optional[T]:
    """Run ``job`` once at ``start_at`` and return its result.

    Start times that are missing or already past run the job immediately.
    Returns ``None`` when the wait is cancelled with Ctrl+C.
    """
    now = datetime.now(start_at.tzinfo) if start_at is not None else datetime.now()
    if start_at is None or start_at <= now:
        return job()

    scheduler = BlockingScheduler()
    outcome: Dict[str, object] = {}

    def _run_once() -> None:
        try:
            outcome["result"] = job()
        except BaseException as exc:
            outcome["error"] = exc
        finally:
            scheduler.shutdown(wait=False)

    scheduler.add_job(
        _run_once,
        trigger=DateTrigger(run_date=start_at),
        id="timelapse_run",
        name="Timelapse Run",
        max_instances=1,
        misfire_grace_time=None,
    )

    logger.info("Timelapse capture scheduled to start at %s", start_at.isoformat(sep=" "))
    try:
        scheduler.start()
    except (KeyboardInterrupt, SystemExit):
        logger.info("Scheduled timelapse cancelled before it started")
        if scheduler.running:
            scheduler.shutdown(wait=False)
        return None

    error = outcome.get("error")
    if error is not None:
        raise error
    return outcome.get("result")  # type: ignore[return-value]


__all__ = ["run_at"]
