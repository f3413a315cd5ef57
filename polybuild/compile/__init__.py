"""Compiler subsystem package.

This package provides the backend plugin contract and the registry that dispatches to it:
- Compiler: Abstract base class for toolchains that assemble sources and link artifacts
- Runner: Abstract base class for interpreters that run sources directly
- BackendRegistry: Explicit name -> factory registry with per-backend artifact-path strategies

The typical workflow is:
1. Create the registry once at startup: registry = create_default_registry()
2. Resolve a backend by name: compiler = registry.resolve("c")
3. Assemble and link: compiler.assemble(...), compiler.link(...)
"""

from .artifacts import ArtifactPathStrategy, flatten, per_directory, platform_binary
from .backend import Backend, Compiler, Runner
from .registry import DEFAULT_BACKEND, BackendRegistry, create_default_registry

__all__ = [
    "ArtifactPathStrategy",
    "Backend",
    "BackendRegistry",
    "Compiler",
    "DEFAULT_BACKEND",
    "Runner",
    "create_default_registry",
    "flatten",
    "per_directory",
    "platform_binary",
]
