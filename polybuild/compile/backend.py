"""Abstract base classes for compiler and runner backends."""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from pathlib import Path
from typing import TYPE_CHECKING, ClassVar, FrozenSet, List, Optional, Sequence, Tuple, Union

from polybuild.data import AssembleResult, BackendDescriptor, BuildConfig, LinkResult
from polybuild.logging import get_logger

from .artifacts import ArtifactPathStrategy, flatten_object
from .utils import ProcessResult, find_executable, run_process

if TYPE_CHECKING:
    from polybuild.build.progress import ProgressReporter

logger = get_logger("compile.backend")

PathLike = Union[str, Path]


class Backend(ABC):
    """Common surface of compilers and runners.

    Subclasses declare a class-level :attr:`DESCRIPTOR` and the executable they drive in
    :attr:`TOOLS`.
    """

    DESCRIPTOR: ClassVar[BackendDescriptor]
    """Name, source extensions and supported dependency categories of the backend."""

    TOOLS: ClassVar[Tuple[str, ...]] = ()
    """Candidate executables, in preference order. The first one on PATH is used."""

    @property
    def descriptor(self) -> BackendDescriptor:
        return self.DESCRIPTOR

    @property
    def name(self) -> str:
        return self.DESCRIPTOR.name

    @property
    def source_extensions(self) -> Tuple[str, ...]:
        return self.DESCRIPTOR.source_extensions

    @property
    def dependency_categories(self) -> FrozenSet[str]:
        return self.DESCRIPTOR.dependency_categories

    @classmethod
    def is_available(cls) -> bool:
        """Check if the backend's tool is installed in the current environment.

        Returns
        -------
        bool
            True if one of :attr:`TOOLS` is found on PATH (or no tool is needed).
        """
        if not cls.TOOLS:
            return True
        return find_executable(*cls.TOOLS) is not None

    def tool(self) -> str:
        """The executable to invoke: the first of :attr:`TOOLS` on PATH, else the first name."""
        return find_executable(*self.TOOLS) or self.TOOLS[0]

    def run(self, artifact: PathLike, stdin: Optional[PathLike] = None) -> bool:
        """Run a built program. Output goes straight to the terminal.

        Returns
        -------
        bool
            True if the program exited with status 0.
        """
        result = run_process([Path(artifact)], stdin_file=stdin, capture=False)
        if not result.ok:
            logger.error(f"{Path(artifact).name} exited with status {result.returncode}")
        return result.ok

    def debug(self, artifact: PathLike, stdin: Optional[PathLike] = None) -> bool:
        """Launch a debugger on a built program. Unsupported unless overridden."""
        logger.error(f"Backend '{self.name}' does not support debugging; use an external debugger")
        return False

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"


class Compiler(Backend):
    """A backend that assembles sources into artifacts and links artifacts into one output.

    ``assemble`` and ``link`` never raise for toolchain failures: the failure is returned as
    a value so that a parallel build can keep collecting sibling results. Concrete compilers
    implement :meth:`_assemble` and :meth:`_link`, which return the finished process.
    """

    DEFAULT_ARTIFACT_PATH: ClassVar[ArtifactPathStrategy] = staticmethod(flatten_object)
    """Artifact-path strategy used when the registry does not supply one."""

    def __init__(self, artifact_path: Optional[ArtifactPathStrategy] = None) -> None:
        """Initialize the compiler.

        Parameters
        ----------
        artifact_path : Optional[ArtifactPathStrategy]
            Strategy computing the artifact path of a source. Defaults to
            :attr:`DEFAULT_ARTIFACT_PATH`.
        """
        self._artifact_path = artifact_path or type(self).DEFAULT_ARTIFACT_PATH

    def get_artifact_path(
        self, project_path: PathLike, source: str, obj_dir: PathLike, config: BuildConfig
    ) -> Path:
        """Get the canonical artifact path for ``source``.

        Parameters
        ----------
        project_path : PathLike
            The project root.
        source : str
            Project-relative source path.
        obj_dir : PathLike
            Object directory, absolute or relative to ``project_path``.
        config : BuildConfig
            Effective build settings.

        Returns
        -------
        Path
            Where :meth:`assemble` writes the artifact of ``source``.
        """
        obj_dir = Path(obj_dir)
        if not obj_dir.is_absolute():
            obj_dir = Path(project_path) / obj_dir
        return self._artifact_path(source, obj_dir, config)

    def output_extension(self, config: BuildConfig) -> str:
        """Extension of the linked output file. Empty for plain native executables."""
        return ""

    def assemble(
        self,
        project_path: PathLike,
        source: str,
        obj_dir: PathLike,
        config: BuildConfig,
        reporter: Optional["ProgressReporter"] = None,
    ) -> AssembleResult:
        """Assemble one source file into its artifact.

        Parameters
        ----------
        project_path : PathLike
            The project root.
        source : str
            Project-relative path of the source to assemble.
        obj_dir : PathLike
            Object directory, absolute or relative to ``project_path``.
        config : BuildConfig
            Effective build settings.
        reporter : Optional[ProgressReporter]
            Receives ``start_file`` / ``end_file`` notifications.

        Returns
        -------
        AssembleResult
            The artifact path on success, the tool's error output on failure.
        """
        project_path = Path(project_path)
        artifact = self.get_artifact_path(project_path, source, obj_dir, config)
        if reporter is not None:
            reporter.start_file(source)
        start = time.perf_counter()
        try:
            artifact.parent.mkdir(parents=True, exist_ok=True)
            result = self._assemble(project_path, project_path / source, artifact, config)
        except Exception as e:
            logger.exception(f"{self.name}: error assembling {source}")
            artifact.unlink(missing_ok=True)
            return AssembleResult.failure(source, f"{type(e).__name__}: {e}")
        finally:
            elapsed = time.perf_counter() - start
            if reporter is not None:
                reporter.end_file(source, elapsed)

        if not result.ok:
            # A partial artifact would look up to date on the next incremental build
            artifact.unlink(missing_ok=True)
            detail = (result.stderr or result.stdout).strip()
            logger.error(f"{self.name} error in {source}:\n{detail}")
            return AssembleResult.failure(
                source, detail or f"exit status {result.returncode}", elapsed
            )
        if result.stderr.strip():
            logger.warning(f"{source}:\n{result.stderr.strip()}")
        return AssembleResult.success(source, artifact, elapsed)

    def link(
        self, artifacts: Sequence[PathLike], output_file: PathLike, config: BuildConfig
    ) -> LinkResult:
        """Link artifacts into one output file.

        Parameters
        ----------
        artifacts : Sequence[PathLike]
            Artifacts in link order.
        output_file : PathLike
            Path of the output to produce.
        config : BuildConfig
            Effective build settings.

        Returns
        -------
        LinkResult
            The output path on success, the tool's error output on failure.
        """
        output_file = Path(output_file)
        artifacts = [Path(a) for a in artifacts]
        if not artifacts:
            return LinkResult.failure("No artifacts to link")
        try:
            output_file.parent.mkdir(parents=True, exist_ok=True)
            result = self._link(artifacts, output_file, config)
        except Exception as e:
            logger.exception(f"{self.name}: error linking {output_file.name}")
            return LinkResult.failure(f"{type(e).__name__}: {e}")

        if not result.ok:
            detail = (result.stderr or result.stdout).strip()
            return LinkResult.failure(f"{self.name} link error: {detail or result.returncode}")
        if result.stderr.strip():
            logger.warning(f"Link warnings:\n{result.stderr.strip()}")
        return LinkResult.success(output_file)

    def compile_command(
        self, project_path: PathLike, source: str, artifact: Path, config: BuildConfig
    ) -> Optional[List[str]]:
        """The command line that assembles ``source``, for a compilation database.

        Returns None when the backend cannot describe its compilation as one command.
        """
        return None

    @abstractmethod
    def _assemble(
        self, project_path: Path, source_path: Path, artifact: Path, config: BuildConfig
    ) -> ProcessResult:
        """Invoke the toolchain to turn ``source_path`` into ``artifact``."""
        ...

    @abstractmethod
    def _link(self, artifacts: List[Path], output_file: Path, config: BuildConfig) -> ProcessResult:
        """Invoke the toolchain to combine ``artifacts`` into ``output_file``."""
        ...


class Runner(Backend):
    """A backend for interpreted sources. It has no assemble or link step; a build with a
    runner only checks that the sources are present.
    """

    def run(self, script: PathLike, stdin: Optional[PathLike] = None) -> bool:
        """Run ``script`` with the backend's interpreter."""
        interpreter = find_executable(*self.TOOLS)
        if interpreter is None:
            logger.error(f"{self.name}: none of {', '.join(self.TOOLS)} found in PATH")
            return False
        result = run_process(
            [interpreter, *self._run_args(), Path(script)], stdin_file=stdin, capture=False
        )
        if not result.ok:
            logger.error(f"{self.name}: {Path(script).name} exited with status {result.returncode}")
        return result.ok

    def _run_args(self) -> List[str]:
        """Interpreter arguments placed before the script path."""
        return []
