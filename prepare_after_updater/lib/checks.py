from __future__ import annotations

import logging
import os
import shutil
from typing import Sequence

from .command import run_cmd, split_command

logger = logging.getLogger(__name__)


def command_exists(name: str) -> bool:
    return shutil.which(name) is not None


def _under_home(home: str, rel: str) -> str | None:
    """Join ``rel`` onto ``home`` and normalise it lexically.

    Returns None when ``..`` segments would climb out of ``home``. Symlinks
    are not resolved, so a link inside the home still counts.
    """

    root = os.path.normpath(home)
    target = os.path.normpath(os.path.join(root, rel.lstrip("/")))
    if os.path.commonpath([root, target]) != root:
        return None
    return target


def config_exists(home_dir: str, config_paths: Sequence[str]) -> bool:
    """Return True if any of the home-relative paths exists.

    Paths that escape the home directory are skipped with a warning. Lookup
    errors other than "does not exist" (e.g. permission denied) are logged
    and count as absent for that path.
    """

    for rel in config_paths:
        p = _under_home(home_dir, rel)
        if p is None:
            logger.warning("Ignoring config path outside %s: %s", home_dir, rel)
            continue
        try:
            os.stat(p)
        except (FileNotFoundError, NotADirectoryError):
            continue
        except (OSError, ValueError) as e:
            logger.warning("Cannot check %s: %s", p, e)
            continue
        logger.debug("Found config %s", p)
        return True
    return False


def is_installed(check_command: str) -> bool:
    """Return True if the check command is on PATH and exits 0.

    "Not found" and "failed" both mean not installed. A command whose
    executable is not on PATH is never spawned.
    """

    parts = split_command(check_command)
    if not parts:
        return False
    if not command_exists(parts[0]):
        logger.debug("Check command %s not on PATH", parts[0])
        return False
    return run_cmd(parts).succeeded
