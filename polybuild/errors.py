"""Error taxonomy of the build orchestrator.

Precondition failures (missing configuration, unknown backend, empty source selection) are
raised before any work is scheduled. Assemble and link failures are never raised by backends:
they travel as values in :class:`~polybuild.data.results.BuildOutcome` so that parallel builds
can report every failure at once.
"""

from __future__ import annotations

from typing import Iterable, List, Optional


class BuildError(RuntimeError):
    """Base class of all orchestrator errors."""

    exit_code: int = 3
    """Process exit code the CLI uses when this error ends a command."""


class ConfigurationMissingError(BuildError, FileNotFoundError):
    """Raised when no project configuration file exists."""

    exit_code = 2


class UnknownBackendError(BuildError, LookupError):
    """Raised when a backend name is registered neither as a compiler nor as a runner."""

    def __init__(self, name: str, known: Iterable[str] = ()) -> None:
        known = sorted(known)
        message = f"Unknown backend: '{name}'"
        if known:
            message += f" (registered: {', '.join(known)})"
        super().__init__(message)
        self.name = name


class NoSourcesFoundError(BuildError):
    """Raised when source selection yields nothing to build."""


class AssembleFailure(BuildError):
    """A backend failed to assemble one source file."""

    def __init__(self, source: str, detail: str) -> None:
        super().__init__(f"Failed to assemble {source}: {detail}")
        self.source = source
        self.detail = detail


class AggregateAssembleFailure(BuildError):
    """One or more tasks of a parallel build failed."""

    def __init__(self, failures: List[AssembleFailure]) -> None:
        lines = [f"{len(failures)} source file(s) failed to assemble:"]
        lines.extend(f"  - {f}" for f in failures)
        super().__init__("\n".join(lines))
        self.failures = list(failures)


class LinkFailure(BuildError):
    """The backend's link step failed."""

    def __init__(self, output: str, detail: Optional[str]) -> None:
        super().__init__(f"Failed to link {output}: {detail or 'unknown error'}")
        self.output = output
        self.detail = detail


class RunFailure(BuildError):
    """Running a built program or script failed."""

    exit_code = 5


class DebugFailure(BuildError):
    """Launching the debugger on a built program or script failed."""

    exit_code = 4
