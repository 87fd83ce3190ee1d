from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Mapping, Optional

from ..errors import NoPackageManagerDetected, PackagesUndefinedForManager
from .command import ExecutionOutcome, run_cmd
from .checks import command_exists

logger = logging.getLogger(__name__)

# Priority order: the apt family wins when several managers are installed.
MANAGER_PRIORITY = ("apt", "apt-get", "dnf", "yum")

# Refresh prefers apt-get over apt (apt warns about its unstable CLI in scripts).
_REFRESH_COMMANDS = (
    ("apt-get", ["apt-get", "update"]),
    ("apt", ["apt", "update"]),
    ("yum", ["yum", "check-update"]),
    ("dnf", ["dnf", "check-update"]),
)

# yum/dnf check-update exit with 100 when updates are available.
UPDATES_AVAILABLE_CODE = 100


class RefreshStatus(enum.Enum):
    SUCCESS = "success"
    UPDATES_AVAILABLE = "updates_available"
    FAILED = "failed"


@dataclass(frozen=True)
class RefreshResult:
    status: RefreshStatus
    manager: Optional[str] = None
    returncode: Optional[int] = None

    @property
    def ok(self) -> bool:
        return self.status is not RefreshStatus.FAILED


def detect_package_manager() -> Optional[str]:
    for manager in MANAGER_PRIORITY:
        if command_exists(manager):
            return manager
    return None


def install_packages(manager: str, packages: Mapping[str, str]) -> ExecutionOutcome:
    """Install the packages listed for ``manager``.

    Runs ``<manager> install -y <pkg...>``. The caller decides what a
    non-successful outcome means.
    """

    pkg_list = packages.get(manager)
    if pkg_list is None:
        raise PackagesUndefinedForManager(manager)

    tokens = pkg_list.split()
    if not tokens:
        raise PackagesUndefinedForManager(manager)

    logger.info("Installing with %s: %s", manager, " ".join(tokens))
    return run_cmd([manager, "install", "-y", *tokens])


def refresh_package_database() -> RefreshResult:
    """Refresh the package index once per run.

    Never raises for a failed refresh; the result says what happened.
    """

    logger.info("Refreshing package database...")

    for manager, argv in _REFRESH_COMMANDS:
        if command_exists(manager):
            break
    else:
        logger.warning("%s", NoPackageManagerDetected())
        return RefreshResult(status=RefreshStatus.FAILED)

    r = run_cmd(argv)
    if r.output:
        logger.info("%s output:\n%s", manager, r.text.rstrip())

    if r.succeeded:
        logger.info("Package database refreshed")
        return RefreshResult(status=RefreshStatus.SUCCESS, manager=manager, returncode=0)

    if r.returncode == UPDATES_AVAILABLE_CODE:
        logger.info("Package updates are available")
        return RefreshResult(status=RefreshStatus.UPDATES_AVAILABLE, manager=manager, returncode=r.returncode)

    logger.warning("Package database refresh failed (returncode=%s)", r.returncode)
    return RefreshResult(status=RefreshStatus.FAILED, manager=manager, returncode=r.returncode)
