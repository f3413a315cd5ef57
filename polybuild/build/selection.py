"""Source selection: which files of a project take part in a build."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, List, Optional, Set, Union

from polybuild.data import ProjectConfig
from polybuild.logging import get_logger

logger = get_logger("build.selection")

SOURCE_DIR = "src"
"""Source tree scanned by wildcard builds."""
TEST_DIR = "tests"
"""Test tree scanned when a test entry is built in wildcard mode."""


def _key(rel: str) -> str:
    return rel.replace("\\", "/").lower()


def scan_tree(project_path: Path, tree: str, extensions: Iterable[str]) -> List[str]:
    """Collect every file under ``project_path / tree`` with one of ``extensions``.

    Parameters
    ----------
    project_path : Path
        The project root.
    tree : str
        Subdirectory to scan recursively.
    extensions : Iterable[str]
        Extensions with leading dot, compared case-insensitively.

    Returns
    -------
    List[str]
        Project-relative posix paths, sorted so that repeated scans of the same tree give the
        same order. A missing tree yields an empty list.
    """
    root = project_path / tree
    if not root.is_dir():
        logger.warning(f"Source directory not found: {root}")
        return []
    suffixes = tuple(ext.lower() for ext in extensions)
    found = [
        p.relative_to(project_path).as_posix()
        for p in root.rglob("*")
        if p.is_file() and p.name.lower().endswith(suffixes)
    ]
    return sorted(found)


def select_sources(
    project_path: Union[str, Path],
    config: ProjectConfig,
    extensions: Iterable[str],
    test_entry: Optional[str] = None,
) -> List[str]:
    """Compute the ordered set of sources to build.

    With a test entry, the test entry comes first (if it exists). In wildcard mode the
    source tree is added without the configured main entry, so that the build never holds two
    program entry points, followed by the test tree. Without wildcard the test entry is the only
    source.

    Without a test entry, wildcard mode selects every matching file under ``src/``; otherwise
    only the configured main file is selected, if it exists.

    Parameters
    ----------
    project_path : Union[str, Path]
        The project root.
    config : ProjectConfig
        The effective project configuration.
    extensions : Iterable[str]
        Source extensions of the resolved backend.
    test_entry : Optional[str]
        Project-relative test program replacing the main entry.

    Returns
    -------
    List[str]
        Project-relative posix paths without duplicates. Empty if nothing matched.
    """
    project_path = Path(project_path)
    extensions = list(extensions)

    if test_entry:
        selected: List[str] = []
        seen: Set[str] = set()

        def _add(rel: str) -> None:
            if _key(rel) not in seen:
                seen.add(_key(rel))
                selected.append(rel)

        if (project_path / test_entry).is_file():
            _add(Path(test_entry).as_posix())
        else:
            logger.warning(f"Test entry not found: {test_entry}")

        if config.build.wildcard:
            main_key = _key(config.main) if config.main else None
            for rel in scan_tree(project_path, SOURCE_DIR, extensions):
                if _key(rel) != main_key:
                    _add(rel)
            for rel in scan_tree(project_path, TEST_DIR, extensions):
                _add(rel)
        return selected

    if config.build.wildcard:
        return scan_tree(project_path, SOURCE_DIR, extensions)

    if config.main and (project_path / config.main).is_file():
        return [Path(config.main).as_posix()]
    return []
