from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Tuple

from .app_config import DEFAULT_LOG_PATH

FALLBACK_LOG_NAME = "prepare-after-updater.log"

FILE_HANDLER_NAME = "prepare-after-updater.file"
CONSOLE_HANDLER_NAME = "prepare-after-updater.console"

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
LOG_DATEFMT = "%Y-%m-%dT%H:%M:%S%z"


def _find_handler(root: logging.Logger, name: str) -> Optional[logging.Handler]:
    for h in root.handlers:
        if h.get_name() == name:
            return h
    return None


def _open_log_file(log_path: str) -> Tuple[logging.FileHandler, Optional[OSError]]:
    """Open the requested log file, or the fallback in the working directory.

    Returns the handler and the error that forced the fallback, if any.
    """

    try:
        Path(log_path).parent.mkdir(parents=True, exist_ok=True)
        return logging.FileHandler(log_path, encoding="utf-8"), None
    except OSError as e:
        fallback = Path.cwd() / FALLBACK_LOG_NAME
        return logging.FileHandler(str(fallback), encoding="utf-8"), e


def configure_logging(
    log_path: str = DEFAULT_LOG_PATH,
    *,
    verbose: bool = False,
    also_console: bool = True,
) -> str:
    """Send run logs to a file and, optionally, the console.

    The file always records INFO and above. ``verbose`` lowers only the
    console threshold to DEBUG (command output, lookup details).
    Calling it again keeps the existing sinks.

    Returns the log file actually written.
    """

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)

    existing = _find_handler(root, FILE_HANDLER_NAME)
    if existing is not None:
        return getattr(existing, "baseFilename", log_path)

    fmt = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATEFMT)

    file_handler, error = _open_log_file(log_path)
    file_handler.set_name(FILE_HANDLER_NAME)
    file_handler.setLevel(logging.INFO)
    file_handler.setFormatter(fmt)
    root.addHandler(file_handler)

    if also_console:
        console = logging.StreamHandler()
        console.set_name(CONSOLE_HANDLER_NAME)
        console.setLevel(logging.DEBUG if verbose else logging.INFO)
        console.setFormatter(fmt)
        root.addHandler(console)

    log = logging.getLogger(__name__)
    actual = file_handler.baseFilename
    if error is not None:
        log.warning("Cannot write log %s (%s), logging to %s instead", log_path, error, actual)
    else:
        log.info("Logging to %s", actual)
    return actual
