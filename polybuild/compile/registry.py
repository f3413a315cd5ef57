"""Backend registry mapping backend names to compiler and runner factories."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple, Type, Union

from polybuild.data import BackendDescriptor
from polybuild.errors import UnknownBackendError

from .artifacts import ArtifactPathStrategy
from .backend import Compiler, Runner
from .backends import (
    CCompiler,
    CppCompiler,
    FortranCompiler,
    GoCompiler,
    JavaCompiler,
    MasmCompiler,
    NodeRunner,
    PythonRunner,
    RustCompiler,
)

DEFAULT_BACKEND = "c"
"""Backend used when a project does not name one."""

CompilerFactory = Callable[..., Compiler]
"""Creates a compiler. Called with ``artifact_path=`` when the entry has a strategy."""
RunnerFactory = Callable[[], Runner]
"""Creates a runner."""

_BUILTIN_COMPILERS: List[Type[Compiler]] = [
    CCompiler,
    CppCompiler,
    FortranCompiler,
    MasmCompiler,
    GoCompiler,
    RustCompiler,
    JavaCompiler,
]
"""Compiler types registered by :func:`create_default_registry`."""

_BUILTIN_RUNNERS: List[Type[Runner]] = [PythonRunner, NodeRunner]
"""Runner types registered by :func:`create_default_registry`."""


@dataclass(frozen=True)
class _CompilerEntry:
    factory: CompilerFactory
    artifact_path: Optional[ArtifactPathStrategy]


def _normalize(name: Optional[str]) -> str:
    return (name or "").strip().lower()


class BackendRegistry:
    """Central registry of compiler and runner backends.

    Backends are registered explicitly by name at startup; the registry is then frozen and
    shared read-only (it is safe for concurrent lookups). Names are case-insensitive. Each
    compiler entry may carry its own artifact-path strategy, which is handed to the
    compiler when it is created.

    Examples
    --------
    >>> registry = BackendRegistry()
    >>> registry.register_compiler("c", CCompiler)
    >>> registry.resolve("C").name
    'c'
    """

    _compilers: Dict[str, _CompilerEntry]
    """Compiler factories by lower-cased name."""

    _runners: Dict[str, RunnerFactory]
    """Runner factories by lower-cased name."""

    def __init__(self, default_backend: str = DEFAULT_BACKEND) -> None:
        """Initialize an empty registry.

        Parameters
        ----------
        default_backend : str
            Backend that an empty or unspecified name resolves to.
        """
        self._compilers = {}
        self._runners = {}
        self._default_backend = _normalize(default_backend)
        self._frozen = False

    @property
    def default_backend(self) -> str:
        return self._default_backend

    @property
    def frozen(self) -> bool:
        return self._frozen

    def freeze(self) -> "BackendRegistry":
        """Disallow further registration. Returns ``self``."""
        self._frozen = True
        return self

    def _check_can_register(self, key: str, replace: bool) -> None:
        if self._frozen:
            raise RuntimeError(f"Cannot register backend '{key}': registry is frozen")
        if not key:
            raise ValueError("Backend name must not be empty")
        if not replace and (key in self._compilers or key in self._runners):
            raise ValueError(f"Backend '{key}' is already registered")

    def register_compiler(
        self,
        name: str,
        factory: CompilerFactory,
        *,
        artifact_path: Optional[ArtifactPathStrategy] = None,
        replace: bool = False,
    ) -> None:
        """Register a compiler factory under ``name``.

        Parameters
        ----------
        name : str
            Backend name. Stored lower-cased.
        factory : CompilerFactory
            Callable creating the compiler (usually the compiler class).
        artifact_path : Optional[ArtifactPathStrategy]
            Artifact-path strategy for this backend. None keeps the compiler's default.
        replace : bool
            Allow replacing an existing registration.

        Raises
        ------
        ValueError
            If the name is empty or already registered and ``replace`` is False.
        RuntimeError
            If the registry is frozen.
        """
        key = _normalize(name)
        self._check_can_register(key, replace)
        self._runners.pop(key, None)
        self._compilers[key] = _CompilerEntry(factory=factory, artifact_path=artifact_path)

    def register_runner(self, name: str, factory: RunnerFactory, *, replace: bool = False) -> None:
        """Register a runner factory under ``name``. Raises like :meth:`register_compiler`."""
        key = _normalize(name)
        self._check_can_register(key, replace)
        self._compilers.pop(key, None)
        self._runners[key] = factory

    def _key(self, name: Optional[str]) -> str:
        return _normalize(name) or self._default_backend

    def find_compiler(self, name: Optional[str]) -> Optional[Compiler]:
        """Create the compiler registered under ``name``, or return None if there is none."""
        entry = self._compilers.get(self._key(name))
        if entry is None:
            return None
        if entry.artifact_path is not None:
            return entry.factory(artifact_path=entry.artifact_path)
        return entry.factory()

    def find_runner(self, name: Optional[str]) -> Optional[Runner]:
        """Create the runner registered under ``name``, or return None if there is none."""
        factory = self._runners.get(self._key(name))
        return factory() if factory is not None else None

    def resolve(self, name: Optional[str]) -> Union[Compiler, Runner]:
        """Resolve a backend name, preferring compilers over runners.

        Parameters
        ----------
        name : Optional[str]
            Backend name, case-insensitive. Empty or None selects the default backend.

        Returns
        -------
        Union[Compiler, Runner]
            A fresh backend instance.

        Raises
        ------
        UnknownBackendError
            If no compiler or runner is registered under ``name``.
        """
        compiler = self.find_compiler(name)
        if compiler is not None:
            return compiler
        runner = self.find_runner(name)
        if runner is not None:
            return runner
        raise UnknownBackendError(self._key(name), self.names())

    def artifact_path_strategy(self, name: Optional[str]) -> Optional[ArtifactPathStrategy]:
        """The artifact-path strategy registered for a compiler, or None."""
        entry = self._compilers.get(self._key(name))
        return entry.artifact_path if entry is not None else None

    def names(self) -> List[str]:
        """All registered backend names, sorted."""
        return sorted([*self._compilers, *self._runners])

    def descriptors(self) -> List[Tuple[BackendDescriptor, bool]]:
        """Descriptor and tool availability of every registered backend, sorted by name."""
        result = []
        for name in self.names():
            backend = self.resolve(name)
            result.append((backend.descriptor, backend.is_available()))
        return result

    def __contains__(self, name: object) -> bool:
        if not isinstance(name, str):
            return False
        key = self._key(name)
        return key in self._compilers or key in self._runners

    def __len__(self) -> int:
        return len(self._compilers) + len(self._runners)


def create_default_registry() -> BackendRegistry:
    """Create a frozen registry holding every built-in backend.

    The following backends are registered:

    - Compilers: ``c``, ``cpp``, ``fortran`` (GCC family), ``masm``, ``go``, ``rust``, ``java``.
    - Runners: ``python``, ``node``.

    Returns
    -------
    BackendRegistry
        The registry, to be created once at startup and passed to the orchestrator.
    """
    registry = BackendRegistry()
    for compiler_type in _BUILTIN_COMPILERS:
        registry.register_compiler(
            compiler_type.DESCRIPTOR.name,
            compiler_type,
            artifact_path=compiler_type.DEFAULT_ARTIFACT_PATH,
        )
    for runner_type in _BUILTIN_RUNNERS:
        registry.register_runner(runner_type.DESCRIPTOR.name, runner_type)
    return registry.freeze()
