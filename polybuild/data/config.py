"""Strong-typed project configuration read from ``polybuild.yaml``."""

from pathlib import Path
from typing import Dict, List, Literal, Optional, Sequence

from pydantic import AliasChoices, Field, field_validator, model_validator

from .utils import BaseModelWithDocstrings, NonEmptyString


def _check_relative_path(value: str, what: str) -> str:
    path = Path(value)
    if path.is_absolute():
        raise ValueError(f"Invalid {what} (absolute path not allowed): {value}")
    if ".." in path.parts:
        raise ValueError(f"Invalid {what} (parent directory traversal not allowed): {value}")
    return value


class BuildConfig(BaseModelWithDocstrings):
    """The ``build`` section of a project configuration.

    The selection mode is either wildcard (every matching source under ``src/``) or the single
    configured main entry; the two are never combined.
    """

    mode: Literal["debug", "release"] = "debug"
    """Build mode. Backends map it to their own debug/optimization flags."""
    output: NonEmptyString = "build"
    """Output directory, relative to the project root. The linked output is written here."""
    objdir: NonEmptyString = "build/obj"
    """Directory for per-source artifacts, relative to the project root."""
    target: str = "default"
    """Target platform or flavour, interpreted by the backend."""
    backend: str = Field(default="", validation_alias=AliasChoices("backend", "compiler"))
    """Name of the compiler or runner backend. Empty selects the baseline backend."""
    incremental: bool = True
    """Skip sources whose artifact is not older than the source."""
    wildcard: bool = False
    """Build every matching source under ``src/`` instead of only the main entry."""
    link: bool = False
    """Link all artifacts into a single output after assembling."""
    jobs: int = Field(default=1, ge=1)
    """Maximum number of concurrent assemble tasks. 1 means sequential and fail-fast."""
    extra_args: List[str] = Field(default_factory=list)
    """Extra arguments appended to every compiler and linker invocation."""
    test_entry: Optional[str] = None
    """Default test program of the ``test`` command, relative to the project root."""
    compile_commands: bool = False
    """Write a ``compile_commands.json`` compilation database for backends that support it."""

    @field_validator("mode", mode="before")
    @classmethod
    def _normalize_mode(cls, value):
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @field_validator("output", "objdir")
    @classmethod
    def _validate_directories(cls, value: str, info) -> str:
        what = f"{info.field_name} directory"
        if not Path(value).parts:
            raise ValueError(f"Invalid {what} (must be below the project root): {value}")
        return _check_relative_path(value, what)

    @field_validator("test_entry")
    @classmethod
    def _validate_test_entry(cls, value: Optional[str]) -> Optional[str]:
        if value:
            return _check_relative_path(value, "test entry")
        return None


class ProjectConfig(BaseModelWithDocstrings):
    """A project description: identity, entry point, build settings and dependencies.

    The object is immutable. Per-invocation overrides produce a new value through
    :meth:`with_overrides` and are never written back unless the caller saves explicitly.
    """

    name: NonEmptyString
    """Project name. The linked output is named after it."""
    version: str = "0.1.0"
    """Project version."""
    description: str = ""
    """Free-form project description."""
    authors: List[str] = Field(default_factory=list)
    """Authors of the project."""
    main: str = ""
    """Main entry point, relative to the project root (e.g. ``src/main.c``)."""
    build: BuildConfig = Field(default_factory=BuildConfig)
    """Build settings."""
    dependencies: Dict[str, str] = Field(default_factory=dict)
    """Runtime dependencies, mapping package name to version."""
    dev_dependencies: Dict[str, str] = Field(default_factory=dict)
    """Development-only dependencies, mapping package name to version."""
    dependency_categories: Dict[str, str] = Field(default_factory=dict)
    """Category of each dependency (e.g. ``native``, ``runtime``), checked against the backend."""
    scripts: Dict[str, str] = Field(default_factory=dict)
    """Custom named scripts."""

    @field_validator("version", mode="before")
    @classmethod
    def _coerce_version(cls, value):
        # YAML reads unquoted versions such as 1.0 as numbers
        if isinstance(value, (int, float)):
            return str(value)
        return value

    @field_validator("dependencies", "dev_dependencies", mode="before")
    @classmethod
    def _coerce_dependency_versions(cls, value):
        if isinstance(value, dict):
            return {k: str(v) if isinstance(v, (int, float)) else v for k, v in value.items()}
        return value

    @model_validator(mode="after")
    def _validate_main(self) -> "ProjectConfig":
        if self.main:
            _check_relative_path(self.main, "main entry")
        return self

    def with_overrides(
        self,
        *,
        mode: Optional[str] = None,
        link: Optional[bool] = None,
        jobs: Optional[int] = None,
        backend: Optional[str] = None,
        test_entry: Optional[str] = None,
        extra_args: Sequence[str] = (),
    ) -> "ProjectConfig":
        """Compute the effective configuration for one invocation.

        Parameters
        ----------
        mode : Optional[str]
            Replaces ``build.mode`` when given.
        link : Optional[bool]
            Replaces ``build.link`` when given (e.g. forced link for test builds).
        jobs : Optional[int]
            Replaces ``build.jobs`` when given.
        backend : Optional[str]
            Replaces ``build.backend`` when given.
        test_entry : Optional[str]
            Replaces ``build.test_entry`` when given.
        extra_args : Sequence[str]
            Appended to ``build.extra_args``.

        Returns
        -------
        ProjectConfig
            A new, validated configuration. ``self`` is left untouched.
        """
        update = {}
        if mode is not None:
            update["mode"] = mode
        if link is not None:
            update["link"] = link
        if jobs is not None:
            update["jobs"] = jobs
        if backend is not None:
            update["backend"] = backend
        if test_entry is not None:
            update["test_entry"] = test_entry
        if extra_args:
            update["extra_args"] = [*self.build.extra_args, *extra_args]
        if not update:
            return self

        # Re-validate so that overrides obey the same constraints as the file
        build = BuildConfig.model_validate({**self.build.model_dump(), **update})
        return self.model_copy(update={"build": build})

    def with_dependency(
        self, name: str, version: str = "*", category: Optional[str] = None, dev: bool = False
    ) -> "ProjectConfig":
        """Return a new configuration declaring ``name`` as a (dev) dependency."""
        if not name:
            raise ValueError("Dependency name must not be empty")
        field = "dev_dependencies" if dev else "dependencies"
        update = {field: {**getattr(self, field), name: version}}
        if category:
            update["dependency_categories"] = {**self.dependency_categories, name: category}
        return self.model_copy(update=update)
