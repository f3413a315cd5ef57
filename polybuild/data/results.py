"""Per-invocation build values: tasks, backend results, lint findings and the build outcome."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Optional, Tuple

from polybuild.errors import BuildError


@dataclass(frozen=True)
class SourceTask:
    """One selected source file and the artifact it is expected to produce."""

    index: int
    """Position of the source in selection order. Used to keep link order deterministic."""
    source: str
    """Project-relative posix path of the source (e.g. ``src/main.c``)."""
    artifact: Path
    """Expected artifact path, as computed by the backend's artifact-path strategy."""
    source_path: Path
    """Absolute path of the source file."""


@dataclass(frozen=True)
class AssembleResult:
    """Result of assembling one source: either an artifact path or an error message."""

    source: str
    artifact: Optional[Path] = None
    error: Optional[str] = None
    elapsed: float = 0.0

    @property
    def ok(self) -> bool:
        return self.error is None and self.artifact is not None

    @classmethod
    def success(cls, source: str, artifact: Path, elapsed: float = 0.0) -> "AssembleResult":
        return cls(source=source, artifact=Path(artifact), elapsed=elapsed)

    @classmethod
    def failure(cls, source: str, error: str, elapsed: float = 0.0) -> "AssembleResult":
        return cls(source=source, error=error or "unknown error", elapsed=elapsed)


@dataclass(frozen=True)
class LinkResult:
    """Result of a link step: either the output path or an error message."""

    output: Optional[Path] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.output is not None

    @classmethod
    def success(cls, output: Path) -> "LinkResult":
        return cls(output=Path(output))

    @classmethod
    def failure(cls, error: str) -> "LinkResult":
        return cls(error=error or "unknown error")


class LintKind(str, Enum):
    """Kinds of dependency-category findings."""

    MISSING_CATEGORY = "missing_category"
    """The dependency declares no category."""
    UNSUPPORTED_CATEGORY = "unsupported_category"
    """The declared category is not supported by the backend."""


@dataclass(frozen=True)
class LintFinding:
    """A dependency-category warning. Findings never fail a build on their own."""

    dependency: str
    category: Optional[str]
    kind: LintKind
    backend: str
    supported: Tuple[str, ...] = ()
    dev: bool = False
    severity: str = "warning"

    @property
    def message(self) -> str:
        label = "dev dependency" if self.dev else "dependency"
        if self.kind is LintKind.MISSING_CATEGORY:
            return (
                f"{label} '{self.dependency}' has no category specified in 'dependencyCategories'"
            )
        supported = ", ".join(self.supported) or "none"
        return (
            f"backend '{self.backend}' does not declare support for category '{self.category}' "
            f"required by {label} '{self.dependency}' (supported: {supported})"
        )


@dataclass
class BuildOutcome:
    """The result of one build invocation, returned to the caller."""

    success: bool
    """Whether the build reached a legitimate terminal state."""
    artifacts: List[Path] = field(default_factory=list)
    """Artifacts of all selected sources (reused and rebuilt), in selection order."""
    compiled: List[str] = field(default_factory=list)
    """Sources that were assembled in this invocation."""
    skipped: List[str] = field(default_factory=list)
    """Sources whose existing artifact was up to date."""
    errors: List[BuildError] = field(default_factory=list)
    """Failures carried as values, in selection order."""
    output: Optional[Path] = None
    """The linked output, if the link step ran."""
    findings: List[LintFinding] = field(default_factory=list)
    """Dependency-category warnings emitted during the build."""

    @property
    def messages(self) -> List[str]:
        return [str(e) for e in self.errors]

    def raise_for_status(self) -> None:
        """Raise the first carried error if the build failed."""
        if not self.success:
            if self.errors:
                raise self.errors[0]
            raise BuildError("Build failed")
