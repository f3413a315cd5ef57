"""Build engine: source selection, staleness, scheduling, lint and orchestration."""

from .linter import lint_dependencies
from .orchestrator import BuildOptions, BuildOrchestrator
from .progress import ConsoleProgressReporter, ProgressReporter
from .scheduler import BuildScheduler, ScheduleResult
from .selection import select_sources
from .staleness import is_up_to_date, partition_tasks

__all__ = [
    "BuildOptions",
    "BuildOrchestrator",
    "BuildScheduler",
    "ScheduleResult",
    "ProgressReporter",
    "ConsoleProgressReporter",
    "lint_dependencies",
    "select_sources",
    "is_up_to_date",
    "partition_tasks",
]
