from __future__ import annotations

import logging
import os
import sys

LOG_LEVEL_ENV = "TYPESCHEMA_LOG_LEVEL"
LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"

_HANDLER_ATTR = "_typeschema_handler"


def _level_from_env() -> int:
    name = os.environ.get(LOG_LEVEL_ENV, "WARNING").strip().upper()
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.WARNING


def configure_logging(verbose: bool = False) -> logging.Logger:
    """Send the package's log records to the current stderr.

    Safe to call repeatedly; the handler is installed once and re-pointed at
    ``sys.stderr`` on every call.
    """
    logger = logging.getLogger("typeschema")
    logger.setLevel(logging.DEBUG if verbose else _level_from_env())
    for handler in logger.handlers:
        if getattr(handler, _HANDLER_ATTR, False) and isinstance(handler, logging.StreamHandler):
            handler.setStream(sys.stderr)
            return logger
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    setattr(handler, _HANDLER_ATTR, True)
    logger.addHandler(handler)
    return logger
