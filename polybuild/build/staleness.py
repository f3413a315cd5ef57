"""Incremental-build staleness decisions."""

from __future__ import annotations

from pathlib import Path
from typing import List, Sequence, Tuple

from polybuild.data import SourceTask


def is_up_to_date(source_path: Path, artifact_path: Path) -> bool:
    """Check whether ``artifact_path`` is current with respect to ``source_path``.

    An artifact is current iff it exists and its modification time is not earlier than the
    source's. Equal times count as current, so filesystems with coarse timestamps never
    trigger a rebuild loop.
    """
    try:
        artifact_mtime = artifact_path.stat().st_mtime
    except FileNotFoundError:
        return False
    try:
        source_mtime = source_path.stat().st_mtime
    except FileNotFoundError:
        return False
    return artifact_mtime >= source_mtime


def partition_tasks(
    tasks: Sequence[SourceTask], incremental: bool
) -> Tuple[List[SourceTask], List[SourceTask]]:
    """Split tasks into those whose artifact can be reused and those to assemble.

    Parameters
    ----------
    tasks : Sequence[SourceTask]
        Tasks in selection order.
    incremental : bool
        When False, every task is rebuilt regardless of existing artifacts.

    Returns
    -------
    Tuple[List[SourceTask], List[SourceTask]]
        ``(skipped, to_assemble)``, each in selection order.
    """
    if not incremental:
        return [], list(tasks)
    skipped: List[SourceTask] = []
    to_assemble: List[SourceTask] = []
    for task in tasks:
        if is_up_to_date(task.source_path, task.artifact):
            skipped.append(task)
        else:
            to_assemble.append(task)
    return skipped, to_assemble
