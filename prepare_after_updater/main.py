from __future__ import annotations

import argparse
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

from . import __version__
from .app_config import DEFAULT_LOG_PATH, AppConfig, resolve_app_config
from .errors import ConfigError, FetchError, ManifestError, UserSelectionError
from .lib.fetch import fetch_manifest
from .lib.pkg import refresh_package_database
from .logging_utils import configure_logging
from .manifest import load_manifest, write_template
from .processor import RunSummary, run_programs
from .users import resolve_user_homes

logger = logging.getLogger(__name__)


EXAMPLES = """\
examples:
  prepare-after-updater --home /home --exclude a_,test --log /var/log/update.log
  prepare-after-updater --user alice --url https://my.site/programs.json
  prepare-after-updater --autoconfig programs.json
  prepare-after-updater            (uses /etc/prepare-after-updater/config.json or defaults)
"""


def _is_root() -> bool:
    return os.geteuid() == 0


def process_user(user_home: str, cfg: AppConfig) -> Optional[RunSummary]:
    """Fetch the manifest into the user's home, load it and run every program."""

    if not cfg.resource_url:
        logger.warning("Resource URL not set, skipping manifest download for %s", user_home)
        return None

    dst = Path(user_home) / cfg.download_name
    fetch_manifest(cfg.resource_url, str(dst))
    try:
        manifest = load_manifest(str(dst))
    finally:
        dst.unlink(missing_ok=True)

    return run_programs(user_home, manifest)


def run(cfg: AppConfig) -> int:
    """Refresh the package database, then process each selected user home."""

    refresh_package_database()

    try:
        homes = resolve_user_homes(cfg)
    except UserSelectionError as e:
        logger.error("User selection failed: %s", e)
        return 1

    failed = False
    for home in homes:
        try:
            process_user(home, cfg)
        except (FetchError, ManifestError) as e:
            logger.error("Cannot load program manifest for %s: %s", home, e)
            failed = True
    return 1 if failed else 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="prepare-after-updater",
        description="Install or re-activate per-user programs after a system update.",
        epilog=EXAMPLES,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    p.add_argument("--version", action="store_true", help="Show version and exit")
    p.add_argument("--home", default=None, help="Directory holding user home directories")
    p.add_argument("--exclude", default=None, help="Excluded directory prefixes (comma-separated)")
    p.add_argument("--user", default=None, help="Process a specific user (by name)")
    p.add_argument("--all-users", action="store_true", help="Process every non-excluded user home")
    p.add_argument("--config", default=None, help="Path to the config file (json|yaml)")
    p.add_argument("--url", default=None, help="Manifest URL (overrides resource_url)")
    p.add_argument("--download", default=None, help="File name for the downloaded manifest")
    p.add_argument("--log", default=None, help="Path to the log file")
    p.add_argument("--autoconfig", default=None, metavar="PATH", help="Write a manifest template and exit")
    p.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return p


def _overrides(args: argparse.Namespace) -> Dict[str, Any]:
    return {
        "home_dir": args.home,
        "exclude_prefixes": args.exclude,
        "user": args.user,
        "all_users": args.all_users,
        "resource_url": args.url,
        "download_name": args.download,
        "log_path": args.log,
    }


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    if args.version:
        print(f"Prepare After Updater v{__version__}")
        return 0

    if args.autoconfig:
        try:
            path = write_template(args.autoconfig)
        except OSError as e:
            print(f"Cannot write template: {e}")
            return 1
        print(f"Manifest template written: {path}")
        return 0

    cfg: Optional[AppConfig] = None
    cfg_error: Optional[ConfigError] = None
    try:
        cfg = resolve_app_config(args.config, _overrides(args))
    except ConfigError as e:
        cfg_error = e

    configure_logging(
        log_path=cfg.log_path if cfg else (args.log or DEFAULT_LOG_PATH),
        verbose=args.verbose,
    )

    logger.info("=== Starting ===")
    logger.info("Version: %s", __version__)
    try:
        if not _is_root():
            logger.error("Must be run as root")
            return 1
        if cfg is None:
            logger.error("Failed to load configuration: %s", cfg_error)
            return 1
        logger.info(
            "Config: home_dir=%s exclude=%s resource_url=%s",
            cfg.home_dir,
            ",".join(cfg.exclude_prefixes),
            cfg.resource_url or "-",
        )
        return run(cfg)
    except KeyboardInterrupt:
        return 130
    finally:
        logger.info("=== Finished ===")


if __name__ == "__main__":
    raise SystemExit(main())
