from __future__ import annotations

from typing import Optional, Sequence


class ProvisionError(RuntimeError):
    pass


class EmptyCommand(ProvisionError):
    def __init__(self, command_line: str = "") -> None:
        super().__init__(f"Empty command: {command_line!r}")
        self.command_line = command_line


class ExecutableNotFound(ProvisionError):
    def __init__(self, executable: str) -> None:
        super().__init__(f"Executable not found on PATH: {executable}")
        self.executable = executable


class ProcessFailed(ProvisionError):
    """A spawned process did not exit with status 0.

    The combined stdout/stderr is kept for diagnostics.
    """

    def __init__(self, argv: Sequence[str], returncode: Optional[int], output: bytes = b"") -> None:
        code = "spawn failed" if returncode is None else f"exit {returncode}"
        super().__init__(f"Command failed ({code}): {' '.join(argv)}")
        self.argv = list(argv)
        self.returncode = returncode
        self.output = output


class PackagesUndefinedForManager(ProvisionError):
    def __init__(self, manager: str) -> None:
        super().__init__(f"No packages defined for {manager}")
        self.manager = manager


class NoPackageManagerDetected(ProvisionError):
    def __init__(self) -> None:
        super().__init__("No supported package manager found")


class ConfigNotFound(ProvisionError):
    def __init__(self, name: str) -> None:
        super().__init__(f"Configuration for {name} not found")
        self.name = name


class UnrecognizedAction(ProvisionError):
    def __init__(self, name: str, action: str) -> None:
        super().__init__(f"Unknown action for {name}: {action}")
        self.name = name
        self.action = action


# Initialization-phase errors (fatal for a run or a user).


class ConfigError(ProvisionError):
    pass


class ManifestError(ProvisionError):
    pass


class FetchError(ProvisionError):
    pass


class UserSelectionError(ProvisionError):
    pass
