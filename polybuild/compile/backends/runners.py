"""Interpreted-language runners."""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional

from polybuild.compile.backend import PathLike, Runner
from polybuild.compile.utils import find_executable, run_process
from polybuild.data import BackendDescriptor, BackendKind


class PythonRunner(Runner):
    DESCRIPTOR = BackendDescriptor(
        name="python",
        kind=BackendKind.RUNNER,
        source_extensions=(".py",),
        dependency_categories=frozenset({"python", "runtime"}),
    )
    TOOLS = ("python3", "python")

    def debug(self, script: PathLike, stdin: Optional[PathLike] = None) -> bool:
        """Run the script under ``pdb``."""
        interpreter = find_executable(*self.TOOLS)
        if interpreter is None:
            return False
        return run_process([interpreter, "-m", "pdb", Path(script)], capture=False).ok


class NodeRunner(Runner):
    DESCRIPTOR = BackendDescriptor(
        name="node",
        kind=BackendKind.RUNNER,
        source_extensions=(".js", ".mjs", ".cjs"),
        dependency_categories=frozenset({"npm", "runtime"}),
    )
    TOOLS = ("node", "deno")

    def _run_args(self) -> List[str]:
        # deno needs an explicit sub-command; node takes the script directly
        interpreter = find_executable(*self.TOOLS) or ""
        return ["run"] if Path(interpreter).stem == "deno" else []

    def debug(self, script: PathLike, stdin: Optional[PathLike] = None) -> bool:
        """Start ``node inspect`` on the script."""
        node = find_executable("node")
        if node is None:
            return False
        return run_process([node, "inspect", Path(script)], capture=False).ok
