"""Progress reporting interface consumed by the build scheduler."""

from __future__ import annotations

import threading
import time
from typing import Dict, Optional

from polybuild.logging import get_logger

logger = get_logger("build.progress")


class ProgressReporter:
    """Receives per-file progress from the scheduler. The base class ignores everything.

    Methods may be called concurrently from worker threads.
    """

    def start_file(self, name: str) -> None:
        """A backend started assembling ``name``."""

    def report(self, name: str, percent: float, elapsed: Optional[float] = None) -> None:
        """Overall progress: ``percent`` of the scheduled files are done; ``name`` is current."""

    def end_file(self, name: str, elapsed: float) -> None:
        """A backend finished assembling ``name`` after ``elapsed`` seconds."""


class ConsoleProgressReporter(ProgressReporter):
    """Writes progress lines through the ``polybuild.build.progress`` logger."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._started: Dict[str, float] = {}

    def start_file(self, name: str) -> None:
        with self._lock:
            self._started[name] = time.perf_counter()

    def report(self, name: str, percent: float, elapsed: Optional[float] = None) -> None:
        if elapsed is None:
            with self._lock:
                started = self._started.get(name)
            if started is not None:
                elapsed = time.perf_counter() - started
        suffix = f" | Elapsed: {elapsed:.2f}s" if elapsed is not None else ""
        logger.info(f"Compiling: {name} ({percent:.0f}%){suffix}")

    def end_file(self, name: str, elapsed: float) -> None:
        with self._lock:
            self._started.pop(name, None)
        logger.info(f"Finished: {name} in {elapsed:.2f}s")
