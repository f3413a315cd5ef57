"""GCC-family compilers: C, C++ and Fortran."""

from __future__ import annotations

from pathlib import Path
from typing import ClassVar, List, Optional, Tuple

from polybuild.compile.backend import Compiler, PathLike
from polybuild.compile.utils import ProcessResult, run_process
from polybuild.data import BackendDescriptor, BackendKind, BuildConfig

_MODE_FLAGS = {
    "debug": ["-g", "-O0"],
    "release": ["-O2"],
}


class GccFamilyCompiler(Compiler):
    """Compiles each source with ``<tool> -c`` and links the objects with the same driver.

    Artifacts are flattened object files: ``src/net/socket.c`` -> ``<objdir>/net_socket.o``.
    """

    LINK_FLAGS: ClassVar[Tuple[str, ...]] = ()
    """Flags appended to the link command line."""

    def compile_command(
        self, project_path: PathLike, source: str, artifact: Path, config: BuildConfig
    ) -> Optional[List[str]]:
        flags = _MODE_FLAGS.get(config.mode, [])
        source_path = Path(project_path) / source
        cmd = [self.tool(), "-c", *flags, str(source_path), "-o", str(artifact)]
        return [*cmd, *config.extra_args]

    def _assemble(
        self, project_path: Path, source_path: Path, artifact: Path, config: BuildConfig
    ) -> ProcessResult:
        rel = source_path.relative_to(project_path).as_posix()
        cmd = self.compile_command(project_path, rel, artifact, config)
        return run_process(cmd, cwd=project_path)

    def _link(self, artifacts: List[Path], output_file: Path, config: BuildConfig) -> ProcessResult:
        cmd = [self.tool(), *artifacts, "-o", output_file, *self.LINK_FLAGS, *config.extra_args]
        if config.mode == "release":
            cmd.append("-s")
        return run_process(cmd)

    def debug(self, artifact: PathLike, stdin: Optional[PathLike] = None) -> bool:
        """Start ``gdb`` on the built program."""
        args = ["gdb", "-q"]
        if stdin is not None:
            args += ["-ex", f"run < {stdin}"]
        result = run_process([*args, "--args", Path(artifact)], capture=False)
        return result.ok


class CCompiler(GccFamilyCompiler):
    DESCRIPTOR = BackendDescriptor(
        name="c",
        kind=BackendKind.COMPILER,
        source_extensions=(".c",),
        dependency_categories=frozenset({"c", "runtime"}),
    )
    TOOLS = ("gcc", "cc")


class CppCompiler(GccFamilyCompiler):
    DESCRIPTOR = BackendDescriptor(
        name="cpp",
        kind=BackendKind.COMPILER,
        source_extensions=(".cpp", ".cc", ".cxx"),
        dependency_categories=frozenset({"cpp", "runtime"}),
    )
    TOOLS = ("g++", "c++")

    def output_extension(self, config: BuildConfig) -> str:
        # target "shared" produces a shared library next to the executable outputs
        if config.target == "shared":
            return ".so"
        return ""

    def _link(self, artifacts: List[Path], output_file: Path, config: BuildConfig) -> ProcessResult:
        if config.target == "shared":
            cmd = [self.tool(), "-shared", *artifacts, "-o", output_file, *config.extra_args]
            return run_process(cmd)
        return super()._link(artifacts, output_file, config)


class FortranCompiler(GccFamilyCompiler):
    DESCRIPTOR = BackendDescriptor(
        name="fortran",
        kind=BackendKind.COMPILER,
        source_extensions=(".f90", ".f95", ".f", ".for"),
        dependency_categories=frozenset({"fortran", "runtime"}),
    )
    TOOLS = ("gfortran",)
