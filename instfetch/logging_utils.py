from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import List, Optional

from .lib.env import PATHS

DEFAULT_LOG_PATH = PATHS.log_default
FALLBACK_LOG_NAME = "instfetch.log"

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
LOG_DATEFMT = "%Y-%m-%dT%H:%M:%S%z"

# Handlers installed by the last configure_logging() call.
_installed: List[logging.Handler] = []


def _open_log(log_path: str, fallback_name: str) -> logging.FileHandler:
    try:
        Path(os.path.dirname(log_path) or ".").mkdir(parents=True, exist_ok=True)
        return logging.FileHandler(log_path)
    except OSError:
        # /var/log is often read-only in the installation system.
        return logging.FileHandler(str(Path.cwd() / fallback_name))


def configure_logging(
    log_path: str = DEFAULT_LOG_PATH,
    level: int = logging.INFO,
    *,
    console_level: Optional[int] = logging.WARNING,
    fallback_name: str = FALLBACK_LOG_NAME,
) -> str:
    """Send every fetch attempt and fallback to ``log_path``.

    The console only shows records at ``console_level`` and above
    (``None`` disables it). Calling again replaces the handlers installed
    before, so repeated runs in one process do not duplicate lines.

    Returns the path of the log file actually written.
    """

    root = logging.getLogger()
    for h in _installed:
        root.removeHandler(h)
        h.close()
    _installed.clear()

    fmt = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATEFMT)

    file_handler = _open_log(log_path, fallback_name)
    file_handler.setFormatter(fmt)
    _installed.append(file_handler)

    if console_level is not None:
        console = logging.StreamHandler()
        console.setFormatter(fmt)
        console.setLevel(max(level, console_level))
        _installed.append(console)

    root.setLevel(level)
    for h in _installed:
        root.addHandler(h)

    chosen = file_handler.baseFilename
    if chosen != os.path.abspath(log_path):
        logging.getLogger(__name__).warning("Cannot write %s, logging to %s", log_path, chosen)
    return chosen
