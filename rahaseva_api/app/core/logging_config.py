"""
Log handlers for the RahaSeva API process.

Output goes to stderr and, when ``LOG_FILE`` is configured, to that file
as well.  Request lines come from ``RequestLoggingMiddleware`` under
``rahaseva_api.app.core.middleware``, so uvicorn's own access logger is
turned down to warnings.  Store fallbacks, reconnect attempts and
rejected credentials are logged by their modules at INFO, which is the
default level.

``create_app`` calls ``setup_logging`` every time it builds an app; only
the first call attaches handlers.
"""

import logging
from pathlib import Path
from typing import List, Optional

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Loggers whose output overlaps with the request middleware.
QUIET_LOGGERS = ("uvicorn.access",)


def _handlers(logfile: Optional[str]) -> List[logging.Handler]:
    handlers: List[logging.Handler] = [logging.StreamHandler()]
    if logfile:
        handlers.append(logging.FileHandler(Path(logfile).resolve(), encoding="utf-8"))
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)
    for handler in handlers:
        handler.setFormatter(formatter)
    return handlers


def setup_logging(level: str = "INFO", logfile: Optional[str] = None) -> None:
    """Attach the API's handlers to the root logger.

    Parameters
    ----------
    level : str
        ``LOG_LEVEL`` from the settings, case insensitive.  Unknown names
        mean ``INFO``.
    logfile : Optional[str]
        ``LOG_FILE`` from the settings; empty means stderr only.
    """
    root = logging.getLogger()
    if root.handlers:
        return

    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    for handler in _handlers(logfile):
        root.addHandler(handler)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
