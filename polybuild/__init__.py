from polybuild.build import (
    BuildOptions,
    BuildOrchestrator,
    ConsoleProgressReporter,
    ProgressReporter,
)
from polybuild.compile import (
    DEFAULT_BACKEND,
    BackendRegistry,
    Compiler,
    Runner,
    create_default_registry,
)
from polybuild.data import (
    BackendDescriptor,
    BackendKind,
    BuildConfig,
    BuildOutcome,
    LintFinding,
    ProjectConfig,
    ProjectConfigStore,
)
from polybuild.errors import (
    AggregateAssembleFailure,
    AssembleFailure,
    BuildError,
    ConfigurationMissingError,
    LinkFailure,
    NoSourcesFoundError,
    UnknownBackendError,
)
from polybuild.logging import configure_logging, get_logger

__version__ = "0.1.0"

__all__ = [
    # Orchestration
    "BuildOptions",
    "BuildOrchestrator",
    "ProgressReporter",
    "ConsoleProgressReporter",
    # Backends
    "BackendRegistry",
    "Compiler",
    "Runner",
    "DEFAULT_BACKEND",
    "create_default_registry",
    # Data types
    "BackendDescriptor",
    "BackendKind",
    "BuildConfig",
    "BuildOutcome",
    "LintFinding",
    "ProjectConfig",
    "ProjectConfigStore",
    # Errors
    "BuildError",
    "ConfigurationMissingError",
    "UnknownBackendError",
    "NoSourcesFoundError",
    "AssembleFailure",
    "AggregateAssembleFailure",
    "LinkFailure",
    # Logging
    "configure_logging",
    "get_logger",
]
