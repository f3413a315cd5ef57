"""Logging setup shared by all polybuild modules.

Use ``get_logger(name)`` in modules and call ``configure_logging`` once from entry points.
"""

from __future__ import annotations

import logging
from typing import Optional, Union

from polybuild.env import get_log_level

_ROOT_LOGGER_NAME = "polybuild"
_LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
_DATE_FORMAT = "%H:%M:%S"

_configured = False


def configure_logging(level: Optional[Union[int, str]] = None, *, force: bool = False) -> None:
    """Attach a stderr handler to the ``polybuild`` logger.

    Parameters
    ----------
    level : Optional[Union[int, str]]
        Logging level. Defaults to ``POLYBUILD_LOG_LEVEL`` (``INFO`` when unset).
    force : bool
        Reconfigure even if logging was already configured.
    """
    global _configured
    if _configured and not force:
        return

    if level is None:
        level = get_log_level()
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    root = logging.getLogger(_ROOT_LOGGER_NAME)
    for handler in list(root.handlers):
        root.removeHandler(handler)
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(_LOG_FORMAT, _DATE_FORMAT))
    root.addHandler(handler)
    root.setLevel(level)
    _configured = True


def get_logger(name: str) -> logging.Logger:
    """Get a logger under the ``polybuild`` namespace."""
    if name.startswith(_ROOT_LOGGER_NAME):
        return logging.getLogger(name)
    return logging.getLogger(f"{_ROOT_LOGGER_NAME}.{name}")
