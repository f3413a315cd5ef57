"""Artifact-path strategies.

Each compiler backend decides where the artifact of a given source lives. A strategy is a
plain function ``(source, obj_dir, config) -> Path`` registered next to the backend factory
in the :class:`~polybuild.compile.registry.BackendRegistry`.
"""

from __future__ import annotations

import sys
from pathlib import Path, PurePosixPath
from typing import Callable

from polybuild.data import BuildConfig

ArtifactPathStrategy = Callable[[str, Path, BuildConfig], Path]
"""Maps a project-relative source path to its artifact path under the object directory."""

_SOURCE_ROOTS = ("src/", "tests/")


def strip_source_root(source: str) -> PurePosixPath:
    """Normalize ``source`` to posix form and drop a leading ``src/`` or ``tests/``.

    Examples
    --------
    >>> strip_source_root("src/net/socket.c")
    PurePosixPath('net/socket.c')
    """
    rel = source.replace("\\", "/")
    lowered = rel.lower()
    for root in _SOURCE_ROOTS:
        if lowered.startswith(root):
            rel = rel[len(root) :]
            break
    return PurePosixPath(rel)


def platform_executable_suffix() -> str:
    """``.exe`` on Windows, empty elsewhere."""
    return ".exe" if sys.platform.startswith("win") else ""


def flatten(suffix: str) -> ArtifactPathStrategy:
    """Flatten the source path into one file name and swap its extension.

    ``src/net/socket.c`` becomes ``<obj_dir>/net_socket<suffix>``.
    """

    def _strategy(source: str, obj_dir: Path, config: BuildConfig) -> Path:
        rel = strip_source_root(source)
        flat = "_".join(rel.with_suffix("").parts)
        return Path(obj_dir) / f"{flat}{suffix}"

    _strategy.__name__ = f"flatten{suffix.replace('.', '_')}"
    return _strategy


def per_directory(suffix: str) -> ArtifactPathStrategy:
    """Preserve the subdirectory structure of the source and swap its extension.

    ``src/com/acme/Main.java`` becomes ``<obj_dir>/com/acme/Main<suffix>``.
    """

    def _strategy(source: str, obj_dir: Path, config: BuildConfig) -> Path:
        rel = strip_source_root(source)
        return Path(obj_dir).joinpath(*rel.with_suffix(suffix).parts)

    _strategy.__name__ = f"per_directory{suffix.replace('.', '_')}"
    return _strategy


def platform_binary(source: str, obj_dir: Path, config: BuildConfig) -> Path:
    """Flatten the source path into a program name with the platform executable suffix.

    Used by toolchains that produce a finished program per source (go, rustc).
    ``src/cmd/tool.go`` becomes ``<obj_dir>/cmd_tool`` (``cmd_tool.exe`` on Windows), so
    equally named sources in different directories never share a program.
    """
    return flatten(platform_executable_suffix())(source, obj_dir, config)


flatten_object = flatten(".o")
"""Default strategy of native compilers: ``src/a/b.c`` -> ``<obj_dir>/a_b.o``."""
