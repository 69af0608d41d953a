from __future__ import annotations

import logging
import os
from typing import Optional


ROOT_LOGGER_NAME = "file_agent"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"

_LOGGER: Optional[logging.Logger] = None


def _level_from_env(default: int = logging.INFO) -> int:
    raw = os.getenv("FILE_AGENT_LOG_LEVEL", "").strip().upper()
    if not raw:
        return default
    level = logging.getLevelName(raw)
    return level if isinstance(level, int) else default


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return the agent logger, or a child of it when ``name`` is given."""
    global _LOGGER
    if _LOGGER is None:
        logger = logging.getLogger(ROOT_LOGGER_NAME)
        if not logger.handlers:
            handler = logging.StreamHandler()
            handler.setFormatter(logging.Formatter(LOG_FORMAT))
            logger.addHandler(handler)
            logger.setLevel(_level_from_env())
        _LOGGER = logger
    if name:
        return _LOGGER.getChild(name)
    return _LOGGER
