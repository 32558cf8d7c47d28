from __future__ import annotations

import logging
from typing import Optional, Union

from statflow.settings import EngineSettings

_ROOT_LOGGER = "statflow"
_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: Optional[Union[int, str]] = None, *, stream=None) -> logging.Logger:
    """Attach one stream handler to the ``statflow`` logger.

    Without ``level`` the ``STATFLOW_LOG_LEVEL`` setting (default WARNING) applies.

    Library modules only call ``logging.getLogger(__name__)``; scripts and
    notebooks call this once to see the output. Calling it again replaces the
    handler instead of stacking a second one.
    """
    if level is None:
        level = EngineSettings.from_env().log_level
    logger = logging.getLogger(_ROOT_LOGGER)
    for h in list(logger.handlers):
        if getattr(h, "_statflow_handler", False):
            logger.removeHandler(h)

    handler = logging.StreamHandler(stream)
    handler.setFormatter(logging.Formatter(_FORMAT))
    handler._statflow_handler = True  # type: ignore[attr-defined]
    logger.addHandler(handler)
    logger.setLevel(level.upper() if isinstance(level, str) else level)
    return logger


def get_logger(name: Optional[str] = None) -> logging.Logger:
    if not name:
        return logging.getLogger(_ROOT_LOGGER)
    return logging.getLogger(name)


__all__ = ["configure_logging", "get_logger"]
