from __future__ import annotations

import json
import logging
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple

from .errors import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_DIR = "/etc/prepare-after-updater"
DEFAULT_CONFIG_FILE = "config.json"
DEFAULT_CONFIG_PATH = f"{DEFAULT_CONFIG_DIR}/{DEFAULT_CONFIG_FILE}"
DEFAULT_DOWNLOAD_NAME = "web_cfg.json"
DEFAULT_HOME_DIR = "/home"
DEFAULT_LOG_PATH = "/var/log/prepare-after-updater.log"
DEFAULT_EXCLUDE = ("a_", "adminsec")


@dataclass(frozen=True)
class AppConfig:
    resource_url: str = ""
    home_dir: str = DEFAULT_HOME_DIR
    log_path: str = DEFAULT_LOG_PATH
    exclude_prefixes: Tuple[str, ...] = DEFAULT_EXCLUDE
    user: str = ""
    download_name: str = DEFAULT_DOWNLOAD_NAME
    all_users: bool = False


def split_prefixes(value: Any) -> Tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        items = value.split(",")
    elif isinstance(value, (list, tuple)):
        items = [str(v) for v in value]
    else:
        raise ConfigError("exclude_prefixes must be a list or a comma-separated string")
    return tuple(i.strip() for i in items if i.strip())


def _detect_format(path: Path) -> str:
    ext = path.suffix.lower().lstrip(".")
    if ext in {"yaml", "yml"}:
        return "yaml"
    # Default to JSON for unknown extensions.
    return "json"


def _read_raw(path: Path) -> Dict[str, Any]:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read config file {path}: {e}") from e

    if _detect_format(path) == "yaml":
        try:
            import yaml  # type: ignore
        except Exception as e:  # pragma: no cover
            raise ConfigError(
                "YAML config requested but PyYAML is not available. Use a JSON config."
            ) from e
        try:
            data = yaml.safe_load(text) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Cannot parse config file {path}: {e}") from e
    else:
        try:
            data = json.loads(text)
        except ValueError as e:
            raise ConfigError(f"Cannot parse config file {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Config file must contain an object/dict, got {type(data).__name__}")
    return data


def load_app_config(path: str) -> AppConfig:
    """Load the application config; empty values fall back to defaults."""

    raw = _read_raw(Path(path))
    exclude = split_prefixes(raw.get("exclude_prefixes"))
    return AppConfig(
        resource_url=str(raw.get("resource_url") or ""),
        home_dir=str(raw.get("home_dir") or DEFAULT_HOME_DIR),
        log_path=str(raw.get("log_path") or DEFAULT_LOG_PATH),
        exclude_prefixes=exclude or DEFAULT_EXCLUDE,
    )


def apply_overrides(cfg: AppConfig, overrides: Mapping[str, Any]) -> AppConfig:
    """Apply CLI values on top of ``cfg``; empty/None values are ignored."""

    changes: Dict[str, Any] = {}
    for key, value in overrides.items():
        if value is None or value == "" or value is False:
            continue
        if key == "exclude_prefixes":
            value = split_prefixes(value)
            if not value:
                continue
        changes[key] = value
    return replace(cfg, **changes)


def resolve_app_config(
    config_path: Optional[str] = None,
    overrides: Optional[Mapping[str, Any]] = None,
) -> AppConfig:
    """Build the effective config.

    - An explicit config path must load.
    - Otherwise the default config file is used when present.
    - Otherwise built-in defaults.
    CLI overrides are applied last.
    """

    if config_path:
        cfg = load_app_config(config_path)
        logger.info("Loaded config %s", config_path)
    elif Path(DEFAULT_CONFIG_PATH).exists():
        cfg = load_app_config(DEFAULT_CONFIG_PATH)
        logger.info("Loaded config %s", DEFAULT_CONFIG_PATH)
    else:
        cfg = AppConfig()
        logger.info("Config file not found, using defaults")

    return apply_overrides(cfg, overrides or {})
