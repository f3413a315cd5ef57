"""JSON Compilation Database entries (``compile_commands.json``)."""

from pydantic import BaseModel, ConfigDict

from .utils import NonEmptyString


class CompileCommandEntry(BaseModel):
    """One translation unit of a compilation database, as read by clangd and similar tools."""

    model_config = ConfigDict(use_attribute_docstrings=True, frozen=True)

    directory: NonEmptyString
    """Working directory of the compilation."""
    command: NonEmptyString
    """The compile command line, shell-quoted."""
    file: NonEmptyString
    """The main source file of the compilation."""
