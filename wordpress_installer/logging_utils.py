from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import List, Optional

DEFAULT_LOG_PATH = "/var/log/wordpress-installer.log"
LOG_NAME = "wordpress-installer.log"
CONSOLE_ONLY = "<stderr>"

_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
_DATEFMT = "%Y-%m-%dT%H:%M:%S%z"


def _candidates(log_path: str) -> List[str]:
    out = [log_path, str(Path.cwd() / LOG_NAME), os.path.join(tempfile.gettempdir(), LOG_NAME)]
    return list(dict.fromkeys(out))


def _open_handler(path: str) -> Optional[logging.Handler]:
    try:
        Path(os.path.dirname(path) or ".").mkdir(parents=True, exist_ok=True)
        return logging.FileHandler(path)
    except OSError:
        return None


def configure_logging(
    log_path: str = DEFAULT_LOG_PATH,
    level: int = logging.INFO,
    also_console: bool = False,
) -> str:
    """Attach the installer's log file to the root logger.

    Tries log_path, then the working directory, then the temp directory. When
    none can be opened the log goes to stderr instead, so a read-only system
    never stops the installer before it starts. The console otherwise belongs
    to the Reporter.

    Returns the file actually in use (CONSOLE_ONLY for stderr). Calling it
    again is a no-op that returns the same value.
    """

    root = logging.getLogger()
    root.setLevel(level)

    if getattr(root, "_wp_installer_configured", False):
        return getattr(root, "_wp_installer_log_path", log_path)

    fmt = logging.Formatter(fmt=_FORMAT, datefmt=_DATEFMT)

    chosen_path = CONSOLE_ONLY
    handler: Optional[logging.Handler] = None
    for path in _candidates(log_path):
        handler = _open_handler(path)
        if handler is not None:
            chosen_path = path
            break

    if handler is None or also_console:
        console = logging.StreamHandler()
        console.setFormatter(fmt)
        root.addHandler(console)
    if handler is not None:
        handler.setFormatter(fmt)
        root.addHandler(handler)

    setattr(root, "_wp_installer_configured", True)
    setattr(root, "_wp_installer_log_path", chosen_path)

    log = logging.getLogger(__name__)
    if chosen_path != log_path:
        log.warning("Cannot write %s; logging to %s", log_path, chosen_path)
    log.info("Logging initialized (%s)", chosen_path)
    return chosen_path
