"""Data layer with strongly-typed models for polybuild."""

from .backend import BackendDescriptor, BackendKind
from .compile_db import CompileCommandEntry
from .config import BuildConfig, ProjectConfig
from .results import (
    AssembleResult,
    BuildOutcome,
    LinkResult,
    LintFinding,
    LintKind,
    SourceTask,
)
from .store import ProjectConfigStore

__all__ = [
    # Backend types
    "BackendDescriptor",
    "BackendKind",
    # Configuration types
    "BuildConfig",
    "ProjectConfig",
    "ProjectConfigStore",
    # Build values
    "SourceTask",
    "AssembleResult",
    "LinkResult",
    "LintFinding",
    "LintKind",
    "BuildOutcome",
    "CompileCommandEntry",
]
