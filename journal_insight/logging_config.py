"""Process-wide logging setup for scripts and embedding applications."""

from __future__ import annotations

import logging
import sys
from typing import Union

from .config import LoggingConfig


LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

# Chatty dependencies are held at WARNING unless the app asks for DEBUG.
NOISY_LOGGERS = ("chromadb", "httpx", "urllib3", "sentence_transformers")


def _level_of(setting: Union[LoggingConfig, str, int]) -> int:
    if isinstance(setting, LoggingConfig):
        setting = setting.level
    if isinstance(setting, int):
        return setting
    return getattr(logging, str(setting).upper(), logging.INFO)


def configure_logging(setting: Union[LoggingConfig, str, int] = "INFO") -> int:
    """Install a stdout handler once; later calls only adjust levels.

    Returns the resolved root level.
    """
    level = _level_of(setting)
    root = logging.getLogger()
    if not root.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)
    root.setLevel(level)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(level if level <= logging.DEBUG else logging.WARNING)
    return level
