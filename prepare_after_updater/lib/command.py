from __future__ import annotations

import logging
import os
import shlex
import subprocess
from dataclasses import dataclass
from typing import Optional, Sequence

from ..errors import EmptyCommand, ExecutableNotFound, ProcessFailed

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExecutionOutcome:
    argv: list[str]
    succeeded: bool
    output: bytes
    returncode: Optional[int]

    @property
    def text(self) -> str:
        return self.output.decode("utf-8", errors="replace")


def _fmt_argv(argv: Sequence[str]) -> str:
    return " ".join(shlex.quote(a) for a in argv)


def split_command(command_line: str) -> list[str]:
    """Split a command line on whitespace.

    No shell quoting or escaping is honoured: ``echo "a b"`` yields
    ``['echo', '"a', 'b"']``. Manifests must not rely on quoting.
    """

    return command_line.split()


def run_cmd(argv: Sequence[str]) -> ExecutionOutcome:
    """Run a command with consistent logging.

    - Always logs the command.
    - Captures stdout and stderr merged into one byte stream.
    - A spawn failure (missing executable, no permission, invalid argv) is logged and
      reported as an unsuccessful outcome without a return code.
    """

    argv_list = list(argv)
    if not argv_list:
        raise EmptyCommand("")

    logger.info("CMD %s", _fmt_argv(argv_list))

    try:
        p = subprocess.run(
            argv_list,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            env=dict(os.environ),
        )
    except FileNotFoundError:
        logger.warning("%s", ExecutableNotFound(argv_list[0]))
        return ExecutionOutcome(argv=argv_list, succeeded=False, output=b"", returncode=None)
    except (OSError, ValueError) as e:
        # ValueError: arguments the OS cannot accept, e.g. an embedded NUL.
        logger.warning("Could not start %s: %s", argv_list[0], e)
        return ExecutionOutcome(argv=argv_list, succeeded=False, output=b"", returncode=None)

    if p.stdout:
        logger.debug("OUTPUT %s", p.stdout.decode("utf-8", errors="replace").strip())

    return ExecutionOutcome(
        argv=argv_list,
        succeeded=p.returncode == 0,
        output=p.stdout or b"",
        returncode=p.returncode,
    )


def run_command(command_line: str) -> ExecutionOutcome:
    parts = split_command(command_line)
    if not parts:
        raise EmptyCommand(command_line)
    return run_cmd(parts)


def ensure_success(outcome: ExecutionOutcome) -> ExecutionOutcome:
    if not outcome.succeeded:
        raise ProcessFailed(outcome.argv, outcome.returncode, outcome.output)
    return outcome
