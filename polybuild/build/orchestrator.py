"""Build orchestration: from a project path to assembled artifacts and a linked output."""

from __future__ import annotations

import json
import shlex
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Union

from polybuild.compile import BackendRegistry, Compiler, Runner
from polybuild.data import (
    BuildConfig,
    BuildOutcome,
    CompileCommandEntry,
    LintFinding,
    ProjectConfig,
    ProjectConfigStore,
    SourceTask,
)
from polybuild.errors import BuildError, LinkFailure, NoSourcesFoundError
from polybuild.logging import get_logger

from .linter import lint_dependencies, log_findings
from .progress import ProgressReporter
from .scheduler import BuildScheduler
from .selection import select_sources
from .staleness import partition_tasks

logger = get_logger("build.orchestrator")

COMPILE_COMMANDS_FILE = "compile_commands.json"

PathLike = Union[str, Path]


@dataclass(frozen=True)
class BuildOptions:
    """Per-invocation overrides of a build. None keeps the configured value."""

    clean: bool = False
    """Remove the output and object directories before building."""
    mode: Optional[str] = None
    """Build mode override (``debug`` or ``release``)."""
    test_entry: Optional[str] = None
    """Project-relative test program replacing the main entry."""
    force_link: bool = False
    """Link even if linking is disabled in the configuration."""
    extra_args: Sequence[str] = ()
    """Arguments appended to the configured extra arguments."""
    jobs: Optional[int] = None
    """Concurrency override."""


class BuildOrchestrator:
    """Drives a build: configuration, backend resolution, lint, selection, staleness,
    scheduling and linking.

    The orchestrator holds no per-build state; one instance can serve many builds.

    Examples
    --------
    >>> orchestrator = BuildOrchestrator(create_default_registry())
    >>> outcome = orchestrator.build("/path/to/project", BuildOptions(jobs=4))
    >>> outcome.raise_for_status()
    >>> outcome.output
    """

    def __init__(
        self,
        registry: BackendRegistry,
        store: Optional[ProjectConfigStore] = None,
        reporter: Optional[ProgressReporter] = None,
    ) -> None:
        """Initialize the orchestrator.

        Parameters
        ----------
        registry : BackendRegistry
            The backend registry, usually from :func:`create_default_registry`.
        store : Optional[ProjectConfigStore]
            Configuration store. Defaults to a store reading ``polybuild.yaml``.
        reporter : Optional[ProgressReporter]
            Progress sink handed to the scheduler and backends.
        """
        self._registry = registry
        self._store = store or ProjectConfigStore()
        self._reporter = reporter or ProgressReporter()

    @property
    def registry(self) -> BackendRegistry:
        return self._registry

    @property
    def store(self) -> ProjectConfigStore:
        return self._store

    def load_config(self, project_path: PathLike) -> ProjectConfig:
        """Load the project configuration. Raises ``ConfigurationMissingError`` if absent."""
        return self._store.load(project_path)

    @staticmethod
    def effective_config(config: ProjectConfig, options: BuildOptions) -> ProjectConfig:
        """Apply ``options`` to ``config`` without modifying it."""
        return config.with_overrides(
            mode=options.mode,
            link=True if options.force_link else None,
            jobs=options.jobs,
            test_entry=options.test_entry,
            extra_args=options.extra_args,
        )

    def build(self, project_path: PathLike, options: Optional[BuildOptions] = None) -> BuildOutcome:
        """Load the project configuration and build the project.

        Parameters
        ----------
        project_path : PathLike
            The project root.
        options : Optional[BuildOptions]
            Per-invocation overrides.

        Returns
        -------
        BuildOutcome
            Assemble and link failures are carried in ``errors``.

        Raises
        ------
        ConfigurationMissingError
            If the project has no configuration file.
        UnknownBackendError
            If the configured backend is not registered.
        NoSourcesFoundError
            If source selection is empty.
        BuildError
            If a clean would remove a directory outside the project.
        """
        return self.build_config(project_path, self.load_config(project_path), options)

    def build_config(
        self,
        project_path: PathLike,
        config: ProjectConfig,
        options: Optional[BuildOptions] = None,
    ) -> BuildOutcome:
        """Build the project with an already-loaded configuration. See :meth:`build`."""
        project_path = Path(project_path)
        options = options or BuildOptions()
        effective = self.effective_config(config, options)
        build = effective.build

        if options.clean:
            self._clean(project_path, build)

        backend = self._registry.resolve(build.backend)
        logger.info(f"Building {effective.name} with '{backend.name}' ({build.mode})")

        findings = lint_dependencies(effective, backend.descriptor)
        log_findings(findings)

        sources = select_sources(
            project_path, effective, backend.source_extensions, options.test_entry
        )
        if not sources:
            raise NoSourcesFoundError(
                f"No source files found for backend '{backend.name}' in {project_path}"
            )

        if isinstance(backend, Runner):
            logger.info(
                f"'{backend.name}' is a runner: {len(sources)} source file(s) present, "
                "nothing to compile"
            )
            return BuildOutcome(success=True, findings=findings)

        tasks = [
            SourceTask(
                index=i,
                source=source,
                artifact=backend.get_artifact_path(project_path, source, build.objdir, build),
                source_path=project_path / source,
            )
            for i, source in enumerate(sources)
        ]
        skipped, to_assemble = partition_tasks(tasks, build.incremental)
        for task in skipped:
            logger.info(f"Up to date: {task.source}")

        if build.compile_commands:
            self._write_compile_commands(project_path, backend, tasks, build)

        scheduler = BuildScheduler(backend, jobs=build.jobs, reporter=self._reporter)
        result = scheduler.run(project_path, to_assemble, build.objdir, build)
        skipped_sources = [task.source for task in skipped]
        if not result.success:
            logger.error(f"Build failed: {len(result.failures)} source file(s) did not assemble")
            return BuildOutcome(
                success=False,
                compiled=result.compiled,
                skipped=skipped_sources,
                errors=[result.error],
                findings=findings,
            )

        by_index: Dict[int, Path] = {task.index: task.artifact for task in skipped}
        by_index.update(result.artifacts)
        outcome = BuildOutcome(
            success=True,
            artifacts=[by_index[i] for i in sorted(by_index)],
            compiled=result.compiled,
            skipped=skipped_sources,
            findings=findings,
        )

        if not build.link:
            logger.info("Linking disabled - object files only.")
            return outcome

        output_file = self.output_path(project_path, effective, backend)
        link_result = backend.link(outcome.artifacts, output_file, build)
        if not link_result.ok:
            error = LinkFailure(output_file.name, link_result.error)
            logger.error(str(error))
            outcome.success = False
            outcome.errors.append(error)
            return outcome

        outcome.output = link_result.output
        logger.info(f"Linked output: {output_file.name}")
        return outcome

    def lint(self, project_path: PathLike) -> List[LintFinding]:
        """Check the project's dependency categories against its backend."""
        config = self.load_config(project_path)
        backend = self._registry.resolve(config.build.backend)
        return lint_dependencies(config, backend.descriptor)

    @staticmethod
    def output_path(project_path: PathLike, config: ProjectConfig, compiler: Compiler) -> Path:
        """``<project>/<output>/<name><ext>``, the file the link step produces."""
        ext = compiler.output_extension(config.build)
        return Path(project_path) / config.build.output / f"{config.name}{ext}"

    def run(
        self,
        project_path: PathLike,
        stdin: Optional[PathLike] = None,
        options: Optional[BuildOptions] = None,
    ) -> bool:
        """Run the built output, or the main script for runner backends.

        Returns
        -------
        bool
            True if the program exited successfully.
        """
        return self._launch(project_path, stdin, options, debug=False)

    def debug(
        self,
        project_path: PathLike,
        stdin: Optional[PathLike] = None,
        options: Optional[BuildOptions] = None,
    ) -> bool:
        """Start the backend's debugger on the built output or the main script."""
        return self._launch(project_path, stdin, options, debug=True)

    def _launch(
        self,
        project_path: PathLike,
        stdin: Optional[PathLike],
        options: Optional[BuildOptions],
        debug: bool,
    ) -> bool:
        project_path = Path(project_path)
        options = options or BuildOptions()
        config = self.effective_config(self.load_config(project_path), options)
        backend = self._registry.resolve(config.build.backend)

        if isinstance(backend, Runner):
            entry = options.test_entry or config.main
            if not entry or not (project_path / entry).is_file():
                logger.error(f"Script not found: {entry or '<main not configured>'}")
                return False
            target = project_path / entry
        else:
            target = self.output_path(project_path, config, backend)
            if not target.is_file():
                logger.error(f"Output not found: {target}. Build with linking enabled first.")
                return False

        logger.info(f"{'Debugging' if debug else 'Running'} {target.name}")
        if debug:
            return backend.debug(target, stdin)
        return backend.run(target, stdin)

    @staticmethod
    def _clean(project_path: Path, build: BuildConfig) -> None:
        root = project_path.resolve()
        for directory in (project_path / build.output, project_path / build.objdir):
            # Only ever remove directories strictly below the project root
            if root not in directory.resolve().parents:
                raise BuildError(f"Refusing to clean {directory}: not inside project {root}")
            if directory.is_dir():
                logger.info(f"Removing {directory}")
                shutil.rmtree(directory)

    @staticmethod
    def _write_compile_commands(
        project_path: Path, compiler: Compiler, tasks: Sequence[SourceTask], build: BuildConfig
    ) -> Optional[Path]:
        entries = []
        for task in tasks:
            cmd = compiler.compile_command(project_path, task.source, task.artifact, build)
            if cmd is None:
                continue
            entries.append(
                CompileCommandEntry(
                    directory=str(project_path),
                    command=shlex.join(str(c) for c in cmd),
                    file=str(task.source_path),
                )
            )
        if not entries:
            logger.debug(f"'{compiler.name}' provides no compile commands")
            return None

        path = project_path / COMPILE_COMMANDS_FILE
        with open(path, "w", encoding="utf-8") as f:
            json.dump([e.model_dump() for e in entries], f, indent=2)
        logger.info(f"Wrote {COMPILE_COMMANDS_FILE} ({len(entries)} entries)")
        return path
