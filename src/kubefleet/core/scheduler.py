# src/kubefleet/core/scheduler.py

import asyncio
import logging
import re
from typing import Callable, Coroutine, List

logger = logging.getLogger(__name__)

_INTERVAL_RE = re.compile(r"^(\d+)([smh])$")
_MULTIPLIERS = {"s": 1, "m": 60, "h": 3600}


def parse_interval(interval_str: str) -> int:
    """Converts a duration string like '30s', '5m' or '1h' to seconds."""
    match = _INTERVAL_RE.match(interval_str.strip().lower())
    if not match:
        raise ValueError(f"Invalid interval format: '{interval_str}'. Use 's', 'm', or 'h'.")
    seconds = int(match.group(1)) * _MULTIPLIERS[match.group(2)]
    if seconds <= 0:
        raise ValueError(f"Interval must be positive: '{interval_str}'.")
    return seconds


class Scheduler:
    """
    Runs async jobs periodically, e.g. the reconciliation pass behind `kubefleet start`.
    A failing run is logged and the job is retried at its next interval.
    """

    def __init__(self):
        self.tasks: List[asyncio.Task] = []

    async def _run_periodically(self, interval_seconds: int, job_func: Callable[[], Coroutine]):
        try:
            while True:
                try:
                    await job_func()
                except Exception as e:
                    logger.error(f"Error in scheduled job '{job_func.__name__}': {e}", exc_info=True)

                await asyncio.sleep(interval_seconds)
        except asyncio.CancelledError:
            logger.info(f"Job '{job_func.__name__}' cancelled.")
            raise

    def add_job(self, job_func: Callable[[], Coroutine], interval_seconds: int) -> asyncio.Task:
        task = asyncio.create_task(self._run_periodically(interval_seconds, job_func))
        self.tasks.append(task)
        logger.info(f"Scheduled job '{job_func.__name__}' to run every {interval_seconds}s.")
        return task

    def add_job_from_string(self, job_func: Callable[[], Coroutine], interval_str: str) -> asyncio.Task:
        """
        Adds a job based on a duration string like '5m' or '1h'.
        """
        return self.add_job(job_func, parse_interval(interval_str))

    async def stop(self):
        """Cancels all scheduled tasks."""
        logger.info("Stopping scheduler...")
        for task in self.tasks:
            task.cancel()
        if self.tasks:
            await asyncio.gather(*self.tasks, return_exceptions=True)
        self.tasks.clear()
