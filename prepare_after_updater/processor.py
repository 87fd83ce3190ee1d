from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Tuple

from .errors import (
    ConfigNotFound,
    EmptyCommand,
    NoPackageManagerDetected,
    ProcessFailed,
    ProvisionError,
    UnrecognizedAction,
)
from .lib.command import ExecutionOutcome, ensure_success, run_command
from .lib.pkg import detect_package_manager, install_packages
from .lib.checks import config_exists, is_installed
from .manifest import Program

logger = logging.getLogger(__name__)


class Action(enum.Enum):
    INSTALL = "install"
    EXECUTE = "execute"
    UNRECOGNIZED = "unrecognized"


class Status(enum.Enum):
    COMPLETED = "completed"
    ALREADY_INSTALLED = "already_installed"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True)
class PostActionResult:
    command: str
    succeeded: bool


@dataclass(frozen=True)
class ProgramReport:
    name: str
    action: Action
    status: Status
    error: Optional[str] = None
    post_actions: Tuple[PostActionResult, ...] = ()


@dataclass(frozen=True)
class RunSummary:
    user_home: str
    reports: Tuple[ProgramReport, ...] = field(default_factory=tuple)

    def count(self, status: Status) -> int:
        return sum(1 for r in self.reports if r.status is status)


def resolve_action(program: Program, has_config: bool) -> Action:
    """Pick the effective action for a program.

    An explicit action wins. Without one, an existing configuration means the
    program only needs its command re-run; otherwise it gets installed.
    """

    action = program.action.strip()
    if action == Action.INSTALL.value:
        return Action.INSTALL
    if action == Action.EXECUTE.value:
        return Action.EXECUTE
    if action == "":
        return Action.EXECUTE if has_config else Action.INSTALL
    return Action.UNRECOGNIZED


def _log_output(outcome: ExecutionOutcome, *, level: int) -> None:
    if outcome.output:
        logger.log(level, "Command output:\n%s", outcome.text.rstrip())


def _install(program: Program) -> None:
    manager = detect_package_manager()
    if manager is None:
        raise NoPackageManagerDetected()

    outcome = install_packages(manager, program.packages)
    try:
        ensure_success(outcome)
    except ProcessFailed:
        _log_output(outcome, level=logging.WARNING)
        raise
    _log_output(outcome, level=logging.INFO)
    logger.info("Installation of %s finished successfully", program.name)


def _execute(command_line: str) -> None:
    logger.info("Executing command: %s", command_line)
    outcome = run_command(command_line)
    try:
        ensure_success(outcome)
    except ProcessFailed:
        _log_output(outcome, level=logging.WARNING)
        raise
    _log_output(outcome, level=logging.INFO)


def run_post_actions(commands: Iterable[str]) -> Tuple[PostActionResult, ...]:
    """Run post-actions in order; a failure never stops the rest."""

    results: List[PostActionResult] = []
    for cmd in commands:
        logger.info("Running post-action: %s", cmd)
        try:
            _execute(cmd)
        except (EmptyCommand, ProcessFailed) as e:
            logger.warning("Post-action failed: %s", e)
            results.append(PostActionResult(command=cmd, succeeded=False))
        else:
            results.append(PostActionResult(command=cmd, succeeded=True))
    return tuple(results)


def _dispatch(program: Program, action: Action, has_config: bool) -> ProgramReport:
    if action is Action.INSTALL:
        if is_installed(program.check_command):
            logger.info("%s is already installed", program.name)
            return ProgramReport(name=program.name, action=action, status=Status.ALREADY_INSTALLED)
        _install(program)

    elif action is Action.EXECUTE:
        if not has_config:
            raise ConfigNotFound(program.name)
        if not program.command.strip():
            logger.warning("No command configured for %s, skipping", program.name)
            return ProgramReport(
                name=program.name,
                action=action,
                status=Status.SKIPPED,
                error=str(EmptyCommand(program.command)),
            )
        _execute(program.command)

    else:
        raise UnrecognizedAction(program.name, program.action)

    post = run_post_actions(program.post_action)
    return ProgramReport(name=program.name, action=action, status=Status.COMPLETED, post_actions=post)


def process_program(user_home: str, program: Program) -> ProgramReport:
    """Process one program; failures are logged and reported, never raised."""

    logger.info("Checking program: %s", program.name)
    action = Action.UNRECOGNIZED
    try:
        has_config = config_exists(user_home, program.config_paths)
        action = resolve_action(program, has_config)
        logger.info("Program %s: action=%s config_exists=%s", program.name, action.value, has_config)
        return _dispatch(program, action, has_config)
    except (ConfigNotFound, UnrecognizedAction) as e:
        logger.warning("%s, skipping", e)
        status = Status.SKIPPED
        error = str(e)
    except ProvisionError as e:
        logger.error("Processing %s failed: %s", program.name, e)
        status = Status.FAILED
        error = str(e)
    except Exception as e:
        logger.exception("Unexpected error while processing %s", program.name)
        status = Status.FAILED
        error = str(e)

    return ProgramReport(name=program.name, action=action, status=status, error=error)


def run_programs(user_home: str, programs: Iterable[Program]) -> RunSummary:
    """Process programs in manifest order, each independent of the others."""

    reports = [process_program(user_home, program) for program in programs]
    summary = RunSummary(user_home=user_home, reports=tuple(reports))
    logger.info(
        "Finished %s: completed=%d already_installed=%d skipped=%d failed=%d",
        user_home,
        summary.count(Status.COMPLETED),
        summary.count(Status.ALREADY_INSTALLED),
        summary.count(Status.SKIPPED),
        summary.count(Status.FAILED),
    )
    return summary
