"""Bounded-concurrency build scheduler."""

from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Union

from polybuild.compile import Compiler
from polybuild.data import AssembleResult, BuildConfig, SourceTask
from polybuild.errors import AggregateAssembleFailure, AssembleFailure, BuildError
from polybuild.logging import get_logger

from .progress import ProgressReporter

logger = get_logger("build.scheduler")


@dataclass
class ScheduleResult:
    """Artifacts and failures of one scheduler run."""

    artifacts: Dict[int, Path] = field(default_factory=dict)
    """Artifact of every successful task, keyed by the task's selection index."""
    failures: List[AssembleFailure] = field(default_factory=list)
    """Failed tasks, in selection order."""
    compiled: List[str] = field(default_factory=list)
    """Sources assembled successfully, in selection order."""
    aggregate: bool = False
    """Report failures as one aggregate error (parallel runs) instead of the first one."""

    @property
    def success(self) -> bool:
        return not self.failures

    @property
    def error(self) -> Optional[BuildError]:
        """The failure to report: the single error of a fail-fast run, or an aggregate."""
        if not self.failures:
            return None
        if self.aggregate:
            return AggregateAssembleFailure(self.failures)
        return self.failures[0]

    def ordered_artifacts(self) -> List[Path]:
        return [self.artifacts[i] for i in sorted(self.artifacts)]


class BuildScheduler:
    """Runs assemble tasks with at most ``jobs`` concurrent backend invocations.

    With ``jobs <= 1`` tasks run strictly in selection order and the first failure stops the
    run. With ``jobs > 1`` tasks run on a thread pool; every task runs to completion regardless
    of sibling failures, so a single pass surfaces all independent compile errors.

    Examples
    --------
    >>> scheduler = BuildScheduler(compiler, jobs=4, reporter=ConsoleProgressReporter())
    >>> result = scheduler.run(project_path, tasks, obj_dir, config.build)
    >>> result.ordered_artifacts()
    """

    def __init__(
        self, compiler: Compiler, jobs: int = 1, reporter: Optional[ProgressReporter] = None
    ) -> None:
        self._compiler = compiler
        self._jobs = max(1, int(jobs))
        self._reporter = reporter or ProgressReporter()

    @property
    def jobs(self) -> int:
        return self._jobs

    def run(
        self,
        project_path: Union[str, Path],
        tasks: Sequence[SourceTask],
        obj_dir: Union[str, Path],
        config: BuildConfig,
    ) -> ScheduleResult:
        """Assemble ``tasks`` and collect the results.

        Parameters
        ----------
        project_path : Union[str, Path]
            The project root.
        tasks : Sequence[SourceTask]
            Tasks to assemble, in selection order.
        obj_dir : Union[str, Path]
            Object directory passed to the backend.
        config : BuildConfig
            Effective build settings.

        Returns
        -------
        ScheduleResult
            Successful artifacts keyed by task index, plus failures in selection order. A
            failed task never contributes an artifact.
        """
        if not tasks:
            return ScheduleResult()
        if self._jobs <= 1:
            return self._run_sequential(Path(project_path), tasks, obj_dir, config)
        return self._run_parallel(Path(project_path), tasks, obj_dir, config)

    def _assemble(
        self, project_path: Path, task: SourceTask, obj_dir: Union[str, Path], config: BuildConfig
    ) -> AssembleResult:
        try:
            return self._compiler.assemble(
                project_path, task.source, obj_dir, config, reporter=self._reporter
            )
        except Exception as e:
            # A raising backend must not stop sibling tasks
            logger.exception(f"{self._compiler.name}: unexpected error assembling {task.source}")
            Path(task.artifact).unlink(missing_ok=True)
            return AssembleResult.failure(task.source, f"{type(e).__name__}: {e}")

    def _run_sequential(
        self,
        project_path: Path,
        tasks: Sequence[SourceTask],
        obj_dir: Union[str, Path],
        config: BuildConfig,
    ) -> ScheduleResult:
        result = ScheduleResult()
        total = len(tasks)
        for completed, task in enumerate(tasks):
            self._reporter.report(task.source, completed / total * 100)
            outcome = self._assemble(project_path, task, obj_dir, config)
            if not outcome.ok:
                result.failures.append(AssembleFailure(task.source, outcome.error))
                return result
            result.artifacts[task.index] = outcome.artifact
            result.compiled.append(task.source)
            self._reporter.report(task.source, (completed + 1) / total * 100, outcome.elapsed)
        return result

    def _run_parallel(
        self,
        project_path: Path,
        tasks: Sequence[SourceTask],
        obj_dir: Union[str, Path],
        config: BuildConfig,
    ) -> ScheduleResult:
        lock = threading.Lock()
        total = len(tasks)
        completed = 0
        artifacts: Dict[int, Path] = {}
        failures: Dict[int, AssembleFailure] = {}
        compiled: Dict[int, str] = {}

        def _work(task: SourceTask) -> None:
            nonlocal completed
            outcome = self._assemble(project_path, task, obj_dir, config)
            with lock:
                completed += 1
                if outcome.ok:
                    artifacts[task.index] = outcome.artifact
                    compiled[task.index] = task.source
                else:
                    failures[task.index] = AssembleFailure(task.source, outcome.error)

        with ThreadPoolExecutor(max_workers=self._jobs) as pool:
            futures = []
            for task in tasks:
                with lock:
                    percent = completed / total * 100
                self._reporter.report(task.source, percent)
                futures.append(pool.submit(_work, task))
            for future in futures:
                # _work never raises; result() only waits for completion
                future.result()

        return ScheduleResult(
            artifacts=artifacts,
            failures=[failures[i] for i in sorted(failures)],
            compiled=[compiled[i] for i in sorted(compiled)],
            aggregate=True,
        )
