import os
import sys
from pathlib import Path

import pytest

from polybuild.build.staleness import is_up_to_date, partition_tasks
from polybuild.data import SourceTask


def _touch(path: Path, mtime: float) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(path.name)
    os.utime(path, (mtime, mtime))
    return path


def test_missing_artifact_is_stale(tmp_path: Path):
    source = _touch(tmp_path / "a.c", 1000)
    assert not is_up_to_date(source, tmp_path / "a.o")


def test_artifact_newer_or_equal_is_current(tmp_path: Path):
    source = _touch(tmp_path / "a.c", 1000)
    assert is_up_to_date(source, _touch(tmp_path / "newer.o", 2000))
    assert is_up_to_date(source, _touch(tmp_path / "equal.o", 1000))


def test_artifact_older_is_stale(tmp_path: Path):
    source = _touch(tmp_path / "a.c", 2000)
    assert not is_up_to_date(source, _touch(tmp_path / "a.o", 1000))


def test_partition_tasks(tmp_path: Path):
    fresh = SourceTask(
        index=0,
        source="src/a.c",
        source_path=_touch(tmp_path / "src" / "a.c", 1000),
        artifact=_touch(tmp_path / "obj" / "a.o", 2000),
    )
    stale = SourceTask(
        index=1,
        source="src/b.c",
        source_path=_touch(tmp_path / "src" / "b.c", 3000),
        artifact=_touch(tmp_path / "obj" / "b.o", 2000),
    )
    missing = SourceTask(
        index=2,
        source="src/c.c",
        source_path=_touch(tmp_path / "src" / "c.c", 1000),
        artifact=tmp_path / "obj" / "c.o",
    )
    tasks = [fresh, stale, missing]

    assert partition_tasks(tasks, incremental=True) == ([fresh], [stale, missing])
    assert partition_tasks(tasks, incremental=False) == ([], tasks)


if __name__ == "__main__":
    pytest.main(sys.argv)
