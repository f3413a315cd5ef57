"""Java compiler: ``javac`` per source, ``jar`` to link the classes."""

from __future__ import annotations

import os
from pathlib import Path
from typing import List, Optional

from polybuild.compile.artifacts import per_directory
from polybuild.compile.backend import Compiler, PathLike
from polybuild.compile.utils import ProcessResult, find_executable, run_process
from polybuild.data import BackendDescriptor, BackendKind, BuildConfig

_CLASS_SUFFIX = ".class"


class JavaCompiler(Compiler):
    """Class files keep the package directory layout of the sources:
    ``src/com/acme/Main.java`` -> ``<objdir>/com/acme/Main.class``.
    """

    DESCRIPTOR = BackendDescriptor(
        name="java",
        kind=BackendKind.COMPILER,
        source_extensions=(".java",),
        dependency_categories=frozenset({"java", "runtime"}),
    )
    TOOLS = ("javac",)
    DEFAULT_ARTIFACT_PATH = staticmethod(per_directory(_CLASS_SUFFIX))

    def output_extension(self, config: BuildConfig) -> str:
        return ".jar"

    def _class_root(self, artifact: Path, source_path: Path, project_path: Path) -> Path:
        # Walk up from the class file as many levels as the source is nested below src/
        depth = len(Path(self._relative(source_path, project_path)).parts)
        root = artifact
        for _ in range(depth):
            root = root.parent
        return root

    @staticmethod
    def _relative(source_path: Path, project_path: Path) -> str:
        rel = source_path.relative_to(project_path).as_posix()
        for prefix in ("src/", "tests/"):
            if rel.lower().startswith(prefix):
                return rel[len(prefix) :]
        return rel

    def _assemble(
        self, project_path: Path, source_path: Path, artifact: Path, config: BuildConfig
    ) -> ProcessResult:
        class_root = self._class_root(artifact, source_path, project_path)
        flags = ["-g"] if config.mode == "debug" else ["-g:none"]
        # Sibling sources resolve from the source roots, already built classes from the objdir
        source_roots = [project_path / "src"]
        own_root = project_path / source_path.relative_to(project_path).parts[0]
        if own_root.name.lower() == "tests":
            source_roots.append(own_root)
        cmd = [
            self.tool(),
            *flags,
            "-sourcepath",
            os.pathsep.join(str(root) for root in source_roots),
            "-cp",
            class_root,
            "-d",
            class_root,
            *config.extra_args,
            source_path,
        ]
        return run_process(cmd, cwd=project_path)

    def _link(self, artifacts: List[Path], output_file: Path, config: BuildConfig) -> ProcessResult:
        jar = find_executable("jar") or "jar"
        root = _class_root_of(artifacts, config.objdir)
        # The first artifact belongs to the entry source in selection order
        main_class = artifacts[0].relative_to(root).with_suffix("").as_posix().replace("/", ".")
        cmd = [jar, "--create", "--file", output_file, "--main-class", main_class]
        for artifact in artifacts:
            cmd += ["-C", root, artifact.relative_to(root).as_posix()]
        return run_process(cmd)

    def run(self, artifact: PathLike, stdin: Optional[PathLike] = None) -> bool:
        java = find_executable("java") or "java"
        return run_process([java, "-jar", Path(artifact)], stdin_file=stdin, capture=False).ok


def _class_root_of(paths: List[Path], objdir: str) -> Path:
    """The object directory the class files were written under."""
    objdir_parts = Path(objdir).parts
    for parent in paths[0].parents:
        if parent.parts[-len(objdir_parts) :] == objdir_parts:
            return parent
    return _common_root(paths)


def _common_root(paths: List[Path]) -> Path:
    root = paths[0].parent
    for path in paths[1:]:
        while root not in path.parents:
            root = root.parent
    return root
