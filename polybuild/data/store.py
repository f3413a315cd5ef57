"""Loading and saving project configuration files."""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Union

import yaml
from pydantic import ValidationError

from polybuild.env import get_config_file_name
from polybuild.errors import ConfigurationMissingError

from .config import ProjectConfig


class ProjectConfigStore:
    """Reads and writes the YAML configuration file at the root of a project.

    The store is the only component that writes configuration. Per-invocation overrides live
    in memory and reach disk only through an explicit :meth:`save`.

    Examples
    --------
    >>> store = ProjectConfigStore()
    >>> config = store.load("/path/to/project")
    >>> store.save(config.with_dependency("zlib", "1.3", category="c"), "/path/to/project")
    """

    def __init__(self, file_name: Optional[str] = None) -> None:
        """Initialize the store.

        Parameters
        ----------
        file_name : Optional[str]
            Name of the configuration file. Defaults to ``POLYBUILD_CONFIG`` or
            ``polybuild.yaml``.
        """
        self._file_name = file_name or get_config_file_name()

    @property
    def file_name(self) -> str:
        return self._file_name

    def path_for(self, project_path: Union[str, Path]) -> Path:
        return Path(project_path) / self._file_name

    def exists(self, project_path: Union[str, Path]) -> bool:
        return self.path_for(project_path).is_file()

    def load(self, project_path: Union[str, Path]) -> ProjectConfig:
        """Load and validate the configuration of a project.

        Parameters
        ----------
        project_path : Union[str, Path]
            The project root.

        Returns
        -------
        ProjectConfig
            The validated configuration.

        Raises
        ------
        ConfigurationMissingError
            If the project has no configuration file.
        ValueError
            If the file is not valid YAML, is not a mapping, or fails validation.
        """
        path = self.path_for(project_path)
        if not path.is_file():
            raise ConfigurationMissingError(
                f"No {self._file_name} found in {Path(project_path).resolve()}"
            )

        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in {path}: {e}") from e

        if not isinstance(data, dict):
            raise ValueError(
                f"Project configuration must be a mapping, got {type(data).__name__}: {path}"
            )

        try:
            return ProjectConfig.model_validate(data)
        except ValidationError as e:
            raise ValueError(f"Invalid project configuration in {path}:\n{e}") from e

    def save(self, config: ProjectConfig, project_path: Union[str, Path]) -> Path:
        """Write ``config`` to the project's configuration file.

        Returns
        -------
        Path
            The path of the written file.
        """
        path = self.path_for(project_path)
        data = config.model_dump(mode="json", by_alias=True)
        with open(path, "w", encoding="utf-8") as f:
            yaml.safe_dump(data, f, sort_keys=False, allow_unicode=True)
        return path
