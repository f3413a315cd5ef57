import sys
import threading
from pathlib import Path
from typing import List, Optional

import pytest

from polybuild.build.progress import ProgressReporter
from polybuild.build.scheduler import BuildScheduler
from polybuild.data import BuildConfig, SourceTask
from polybuild.errors import AggregateAssembleFailure, AssembleFailure


class _RecordingReporter(ProgressReporter):
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.reports: List[tuple] = []
        self.started: List[str] = []
        self.ended: List[str] = []

    def start_file(self, name: str) -> None:
        with self._lock:
            self.started.append(name)

    def report(self, name: str, percent: float, elapsed: Optional[float] = None) -> None:
        with self._lock:
            self.reports.append((name, percent))

    def end_file(self, name: str, elapsed: float) -> None:
        with self._lock:
            self.ended.append(name)


def _percentages(reporter: _RecordingReporter) -> List[tuple]:
    return [(name, round(percent)) for name, percent in reporter.reports]


def _tasks(project: Path, compiler, count: int) -> List[SourceTask]:
    tasks = []
    for i in range(count):
        source = f"src/f{i}.c"
        path = project / source
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(f"int f{i};\n")
        artifact = compiler.get_artifact_path(project, source, "obj", BuildConfig())
        tasks.append(SourceTask(index=i, source=source, artifact=artifact, source_path=path))
    return tasks


def test_sequential_in_selection_order(tmp_path: Path, fake_compiler):
    tasks = _tasks(tmp_path, fake_compiler, 4)
    reporter = _RecordingReporter()
    result = BuildScheduler(fake_compiler, jobs=1, reporter=reporter).run(
        tmp_path, tasks, "obj", BuildConfig()
    )

    assert result.success
    assert result.error is None
    assert fake_compiler.assembled == [t.source for t in tasks]
    assert result.ordered_artifacts() == [t.artifact for t in tasks]
    assert all(t.artifact.is_file() for t in tasks)
    # Before and after each task
    assert [p for _, p in _percentages(reporter)] == [0, 25, 25, 50, 50, 75, 75, 100]
    assert reporter.started == reporter.ended == [t.source for t in tasks]


def test_sequential_fail_fast(tmp_path: Path, fake_compiler):
    tasks = _tasks(tmp_path, fake_compiler, 4)
    fake_compiler.fail = {"src/f1.c", "src/f2.c"}

    result = BuildScheduler(fake_compiler, jobs=1).run(tmp_path, tasks, "obj", BuildConfig())

    assert not result.success
    assert fake_compiler.assembled == ["src/f0.c", "src/f1.c"]
    assert isinstance(result.error, AssembleFailure)
    assert result.error.source == "src/f1.c"
    assert "syntax error" in str(result.error)
    assert list(result.artifacts) == [0]
    assert result.compiled == ["src/f0.c"]


def test_parallel_runs_every_task_and_aggregates(tmp_path: Path, fake_compiler):
    tasks = _tasks(tmp_path, fake_compiler, 6)
    fake_compiler.fail = {"src/f1.c", "src/f4.c"}

    result = BuildScheduler(fake_compiler, jobs=3).run(tmp_path, tasks, "obj", BuildConfig())

    assert not result.success
    assert sorted(fake_compiler.assembled) == sorted(t.source for t in tasks)
    error = result.error
    assert isinstance(error, AggregateAssembleFailure)
    assert [f.source for f in error.failures] == ["src/f1.c", "src/f4.c"]
    assert "src/f1.c" in str(error) and "src/f4.c" in str(error)
    # Failed tasks never contribute artifacts
    assert sorted(result.artifacts) == [0, 2, 3, 5]
    assert result.compiled == ["src/f0.c", "src/f2.c", "src/f3.c", "src/f5.c"]


def test_parallel_single_failure_is_aggregate(tmp_path: Path, fake_compiler):
    tasks = _tasks(tmp_path, fake_compiler, 3)
    fake_compiler.fail = {"src/f2.c"}
    result = BuildScheduler(fake_compiler, jobs=2).run(tmp_path, tasks, "obj", BuildConfig())
    assert isinstance(result.error, AggregateAssembleFailure)
    assert len(result.error.failures) == 1


def test_parallel_respects_job_limit_and_order(tmp_path: Path, fake_compiler):
    tasks = _tasks(tmp_path, fake_compiler, 8)
    fake_compiler.delay = 0.02

    result = BuildScheduler(fake_compiler, jobs=2).run(tmp_path, tasks, "obj", BuildConfig())

    assert result.success
    assert 1 <= fake_compiler.max_active <= 2
    assert result.ordered_artifacts() == [t.artifact for t in tasks]


def test_raising_backend_does_not_stop_siblings(tmp_path: Path, fake_compiler, monkeypatch):
    tasks = _tasks(tmp_path, fake_compiler, 3)
    original = fake_compiler.assemble

    def _assemble(project_path, source, obj_dir, config, reporter=None):
        if source == "src/f0.c":
            raise RuntimeError("backend crashed")
        return original(project_path, source, obj_dir, config, reporter=reporter)

    monkeypatch.setattr(fake_compiler, "assemble", _assemble)
    result = BuildScheduler(fake_compiler, jobs=2).run(tmp_path, tasks, "obj", BuildConfig())

    assert sorted(result.artifacts) == [1, 2]
    assert "backend crashed" in str(result.error)


def test_empty_task_list(tmp_path: Path, fake_compiler):
    result = BuildScheduler(fake_compiler, jobs=4).run(tmp_path, [], "obj", BuildConfig())
    assert result.success
    assert result.ordered_artifacts() == []
    assert BuildScheduler(fake_compiler, jobs=0).jobs == 1


if __name__ == "__main__":
    pytest.main(sys.argv)
