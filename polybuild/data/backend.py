"""Strong-typed descriptors of compiler and runner backends."""

from enum import Enum
from typing import FrozenSet, Tuple

from pydantic import Field, field_validator

from .utils import BaseModelWithDocstrings, NonEmptyString


class BackendKind(str, Enum):
    """The capability set a backend offers."""

    COMPILER = "compiler"
    """Assembles sources into artifacts and links artifacts into an output."""
    RUNNER = "runner"
    """Runs interpreted sources directly; no assemble or link step."""


class BackendDescriptor(BaseModelWithDocstrings):
    """Static description of a backend: its name, the sources it accepts and the dependency
    categories it declares support for.
    """

    name: NonEmptyString
    """Registry key of the backend. Stored lower-cased; lookups are case-insensitive."""
    kind: BackendKind
    """Whether the backend is a compiler or a runner."""
    source_extensions: Tuple[NonEmptyString, ...] = Field(min_length=1)
    """Recognized source file extensions, including the leading dot (e.g. ``.c``)."""
    dependency_categories: FrozenSet[str] = frozenset()
    """Supported dependency categories, lower-cased (e.g. ``runtime``, ``native``)."""

    @field_validator("name")
    @classmethod
    def _normalize_name(cls, value: str) -> str:
        return value.strip().lower()

    @field_validator("source_extensions")
    @classmethod
    def _validate_extensions(cls, value: Tuple[str, ...]) -> Tuple[str, ...]:
        for ext in value:
            if not ext.startswith("."):
                raise ValueError(f"Source extension must start with '.': {ext}")
        return value

    @field_validator("dependency_categories")
    @classmethod
    def _normalize_categories(cls, value: FrozenSet[str]) -> FrozenSet[str]:
        return frozenset(c.strip().lower() for c in value if c.strip())

    def matches(self, path: str) -> bool:
        """Check whether ``path`` has one of the recognized extensions (case-insensitive)."""
        lowered = path.lower()
        return any(lowered.endswith(ext.lower()) for ext in self.source_extensions)
