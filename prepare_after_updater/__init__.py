"""Prepare After Updater: per-user provisioning after a system update.

For a selected user home it fetches a program manifest and, for each program,
either installs it with the host package manager or re-runs its command
against an existing configuration, then runs its post-actions.

Core design goals:
- Manifest order is processing order
- One program's failure never stops the others
- No ambient state: config is built once and passed explicitly
- Centralized logging
"""

__version__ = "2.1.4"

__all__ = ["__version__"]
