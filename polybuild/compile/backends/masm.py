"""MicroAssembly (``masm``) assembler, linker and interpreter."""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional

from polybuild.compile.artifacts import flatten
from polybuild.compile.backend import Compiler, PathLike
from polybuild.compile.utils import ProcessResult, run_process
from polybuild.data import BackendDescriptor, BackendKind, BuildConfig

MASM_OBJECT_SUFFIX = ".masi"


class MasmCompiler(Compiler):
    """Assembles ``.masm`` sources into ``.masi`` images and links them with ``masm link``.

    The linked output is itself a ``.masi`` image, executed by ``masm --run``.
    """

    DESCRIPTOR = BackendDescriptor(
        name="masm",
        kind=BackendKind.COMPILER,
        source_extensions=(".masm",),
        dependency_categories=frozenset({"assembly", "native", "runtime"}),
    )
    TOOLS = ("masm",)
    DEFAULT_ARTIFACT_PATH = staticmethod(flatten(MASM_OBJECT_SUFFIX))

    def output_extension(self, config: BuildConfig) -> str:
        return MASM_OBJECT_SUFFIX

    def _assemble(
        self, project_path: Path, source_path: Path, artifact: Path, config: BuildConfig
    ) -> ProcessResult:
        result = run_process([self.tool(), source_path, "-o", artifact, *config.extra_args])
        # masm reports assembly errors on stderr while still exiting with status 0
        if result.ok and result.stderr.strip():
            return ProcessResult(returncode=1, stdout=result.stdout, stderr=result.stderr)
        return result

    def _link(self, artifacts: List[Path], output_file: Path, config: BuildConfig) -> ProcessResult:
        cmd = [self.tool(), "link", *artifacts, "-o", output_file, *config.extra_args]
        result = run_process(cmd)
        if result.ok and "Link failed" in result.stdout:
            return ProcessResult(returncode=1, stdout=result.stdout, stderr=result.stderr)
        return result

    def run(self, artifact: PathLike, stdin: Optional[PathLike] = None) -> bool:
        return self._interpret(artifact, "--run", stdin)

    def debug(self, artifact: PathLike, stdin: Optional[PathLike] = None) -> bool:
        return self._interpret(artifact, "--debug", stdin)

    def _interpret(self, artifact: PathLike, flag: str, stdin: Optional[PathLike]) -> bool:
        cmd = [self.tool(), Path(artifact), flag]
        if stdin is not None:
            cmd += ["--stdin-from", Path(stdin)]
        return run_process(cmd, capture=False).ok
