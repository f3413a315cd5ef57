"""Environment variables understood by polybuild."""

import os

DEFAULT_CONFIG_FILE_NAME = "polybuild.yaml"


def get_config_file_name() -> str:
    """Name of the project configuration file. Override with ``POLYBUILD_CONFIG``."""
    return os.environ.get("POLYBUILD_CONFIG") or DEFAULT_CONFIG_FILE_NAME


def get_log_level() -> str:
    """Default log level. Override with ``POLYBUILD_LOG_LEVEL``."""
    return (os.environ.get("POLYBUILD_LOG_LEVEL") or "INFO").upper()
