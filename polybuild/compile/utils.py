"""Utility functions for invoking external toolchains."""

from __future__ import annotations

import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence, Union

from polybuild.logging import get_logger

logger = get_logger("compile.process")


@dataclass(frozen=True)
class ProcessResult:
    """Exit status and captured output of an external process."""

    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0


def run_process(
    cmd: Sequence[Union[str, Path]],
    *,
    cwd: Optional[Path] = None,
    stdin_file: Optional[Union[str, Path]] = None,
    capture: bool = True,
) -> ProcessResult:
    """Run an external command and wait for it to finish.

    There is no timeout: a tool that hangs blocks the caller until it exits.

    Parameters
    ----------
    cmd : Sequence[Union[str, Path]]
        The command and its arguments. No shell is involved.
    cwd : Optional[Path]
        Working directory of the process.
    stdin_file : Optional[Union[str, Path]]
        File whose content is fed to the process on stdin.
    capture : bool
        Capture stdout/stderr. Interactive tools (debuggers) are run with ``capture=False``.

    Returns
    -------
    ProcessResult
        The exit status and captured output. A missing executable is reported as exit
        status 127 with the OS error in ``stderr``.
    """
    argv = [str(c) for c in cmd]
    logger.debug("Running: %s", subprocess.list2cmdline(argv))
    try:
        if stdin_file is not None:
            with open(stdin_file, "rb") as stdin:
                completed = subprocess.run(
                    argv, cwd=cwd, stdin=stdin, capture_output=capture, check=False
                )
        else:
            completed = subprocess.run(argv, cwd=cwd, capture_output=capture, check=False)
    except OSError as e:
        return ProcessResult(returncode=127, stderr=f"{argv[0]}: {e}")

    return ProcessResult(
        returncode=completed.returncode,
        stdout=_decode(completed.stdout),
        stderr=_decode(completed.stderr),
    )


def _decode(data: Optional[bytes]) -> str:
    if not data:
        return ""
    return data.decode("utf-8", errors="replace")


def find_executable(*candidates: str) -> Optional[str]:
    """Return the first of ``candidates`` found on PATH, or None."""
    for candidate in candidates:
        path = shutil.which(candidate)
        if path:
            return path
    return None
