from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Callable, List, Sequence

from .app_config import AppConfig
from .errors import UserSelectionError

logger = logging.getLogger(__name__)


def has_excluded_prefix(name: str, prefixes: Sequence[str]) -> bool:
    return any(name.startswith(p) for p in prefixes)


def list_user_homes(home_dir: str, exclude: Sequence[str]) -> List[str]:
    """Return home directory paths under ``home_dir``, sorted by name."""

    try:
        with os.scandir(home_dir) as it:
            entries = sorted(it, key=lambda e: e.name)
    except OSError as e:
        raise UserSelectionError(f"Cannot read directory {home_dir}: {e}") from e

    homes: List[str] = []
    for entry in entries:
        if not entry.is_dir():
            continue
        if has_excluded_prefix(entry.name, exclude):
            logger.info("Skipping excluded directory: %s", entry.name)
            continue
        homes.append(str(Path(home_dir) / entry.name))
    return homes


def select_user_home(
    home_dir: str,
    exclude: Sequence[str],
    *,
    prompt: Callable[[str], str] = input,
    out: Callable[[str], None] = print,
) -> str:
    homes = list_user_homes(home_dir, exclude)
    if not homes:
        raise UserSelectionError(f"No suitable directories in {home_dir}")

    out("Select the user's home directory:")
    for i, home in enumerate(homes, start=1):
        out(f"{i}. {Path(home).name}")

    try:
        answer = prompt("Enter number: ")
    except EOFError as e:
        raise UserSelectionError("No selection made") from e

    try:
        choice = int(answer.strip())
    except ValueError as e:
        raise UserSelectionError(f"Invalid choice: {answer!r}") from e
    if choice < 1 or choice > len(homes):
        raise UserSelectionError(f"Invalid choice: {choice}")

    return homes[choice - 1]


def resolve_user_homes(
    cfg: AppConfig,
    *,
    prompt: Callable[[str], str] = input,
    out: Callable[[str], None] = print,
) -> List[str]:
    """Pick the homes to process: explicit user, every user, or a menu choice."""

    if cfg.user:
        user_path = Path(cfg.home_dir) / cfg.user
        if user_path.is_dir():
            logger.info("Processing requested user: %s", cfg.user)
            return [str(user_path)]
        logger.warning("User %s not found, falling back to selection", cfg.user)

    if cfg.all_users:
        homes = list_user_homes(cfg.home_dir, cfg.exclude_prefixes)
        if not homes:
            raise UserSelectionError(f"No suitable directories in {cfg.home_dir}")
        logger.info("Processing %d user home(s)", len(homes))
        return homes

    selected = select_user_home(cfg.home_dir, cfg.exclude_prefixes, prompt=prompt, out=out)
    logger.info("Selected home directory: %s", selected)
    return [selected]
