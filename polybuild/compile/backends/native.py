"""Toolchains that produce a finished program per source: Go and Rust.

Their "link" step only publishes the program of the first artifact as the project output.
"""

from __future__ import annotations

import shutil
from pathlib import Path
from typing import List

from polybuild.compile.artifacts import platform_binary, platform_executable_suffix
from polybuild.compile.backend import Compiler
from polybuild.compile.utils import ProcessResult, run_process
from polybuild.data import BackendDescriptor, BackendKind, BuildConfig


class _WholeProgramCompiler(Compiler):
    DEFAULT_ARTIFACT_PATH = staticmethod(platform_binary)

    def output_extension(self, config: BuildConfig) -> str:
        return platform_executable_suffix()

    def _link(self, artifacts: List[Path], output_file: Path, config: BuildConfig) -> ProcessResult:
        shutil.copy2(artifacts[0], output_file)
        return ProcessResult(returncode=0)


class GoCompiler(_WholeProgramCompiler):
    DESCRIPTOR = BackendDescriptor(
        name="go",
        kind=BackendKind.COMPILER,
        source_extensions=(".go",),
        dependency_categories=frozenset({"runtime"}),
    )
    TOOLS = ("go",)

    def _assemble(
        self, project_path: Path, source_path: Path, artifact: Path, config: BuildConfig
    ) -> ProcessResult:
        cmd = [self.tool(), "build", "-o", artifact]
        if config.mode == "debug":
            cmd += ["-gcflags", "all=-N -l"]
        cmd += [*config.extra_args, source_path]
        return run_process(cmd, cwd=project_path)


class RustCompiler(_WholeProgramCompiler):
    DESCRIPTOR = BackendDescriptor(
        name="rust",
        kind=BackendKind.COMPILER,
        source_extensions=(".rs",),
        dependency_categories=frozenset({"runtime"}),
    )
    TOOLS = ("rustc",)

    def _assemble(
        self, project_path: Path, source_path: Path, artifact: Path, config: BuildConfig
    ) -> ProcessResult:
        flags = ["-g"] if config.mode == "debug" else ["-C", "opt-level=3"]
        cmd = [self.tool(), *flags, "-o", artifact, *config.extra_args, source_path]
        return run_process(cmd, cwd=project_path)
