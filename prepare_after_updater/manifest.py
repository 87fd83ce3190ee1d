"""Program manifest model and loader.

A manifest is a JSON object with one key, ``programs``, holding an ordered
list of program entries. Unknown keys are ignored and missing keys take empty
values. Files ending in ``.yaml``/``.yml`` are read with PyYAML using the
same schema.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Iterator, Mapping, Tuple

from .errors import ManifestError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Program:
    name: str = ""
    config_paths: Tuple[str, ...] = ()
    check_command: str = ""
    action: str = ""
    packages: Mapping[str, str] = field(default_factory=dict)
    command: str = ""
    post_action: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        # Frozen all the way down: callers cannot edit a shared entry.
        object.__setattr__(self, "config_paths", tuple(self.config_paths))
        object.__setattr__(self, "packages", MappingProxyType(dict(self.packages)))
        object.__setattr__(self, "post_action", tuple(self.post_action))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "config_paths": list(self.config_paths),
            "check_command": self.check_command,
            "action": self.action,
            "packages": dict(self.packages),
            "command": self.command,
            "post_action": list(self.post_action),
        }


@dataclass(frozen=True)
class Manifest:
    programs: Tuple[Program, ...] = ()

    def __iter__(self) -> Iterator[Program]:
        return iter(self.programs)

    def __len__(self) -> int:
        return len(self.programs)

    def to_dict(self) -> Dict[str, Any]:
        return {"programs": [p.to_dict() for p in self.programs]}


def _detect_format(path: Path) -> str:
    ext = path.suffix.lower().lstrip(".")
    if ext in {"yaml", "yml"}:
        return "yaml"
    # Downloaded manifests often carry no meaningful extension.
    return "json"


def _str(value: Any, *, where: str) -> str:
    if value is None:
        return ""
    if isinstance(value, (dict, list)):
        raise ManifestError(f"{where} must be a string")
    return str(value)


def _str_list(value: Any, *, where: str) -> Tuple[str, ...]:
    if value is None:
        return ()
    if not isinstance(value, list):
        raise ManifestError(f"{where} must be a list of strings")
    return tuple(_str(v, where=where) for v in value)


def _packages(value: Any, *, where: str) -> Dict[str, str]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ManifestError(f"{where} must be a mapping of manager -> packages")
    out: Dict[str, str] = {}
    for manager, pkgs in value.items():
        if isinstance(pkgs, list):
            out[str(manager)] = " ".join(str(p) for p in pkgs)
        else:
            out[str(manager)] = _str(pkgs, where=f"{where}.{manager}")
    return out


def program_from_dict(raw: Mapping[str, Any], *, index: int = 0) -> Program:
    if not isinstance(raw, dict):
        raise ManifestError(f"programs[{index}] must be an object")
    where = f"programs[{index}]"
    return Program(
        name=_str(raw.get("name"), where=f"{where}.name"),
        config_paths=_str_list(raw.get("config_paths"), where=f"{where}.config_paths"),
        check_command=_str(raw.get("check_command"), where=f"{where}.check_command"),
        action=_str(raw.get("action"), where=f"{where}.action"),
        packages=_packages(raw.get("packages"), where=f"{where}.packages"),
        command=_str(raw.get("command"), where=f"{where}.command"),
        post_action=_str_list(raw.get("post_action"), where=f"{where}.post_action"),
    )


def parse_manifest(data: Any) -> Manifest:
    if not isinstance(data, dict):
        raise ManifestError(f"Manifest must be an object/dict, got {type(data).__name__}")
    programs = data.get("programs")
    if programs is None:
        programs = []
    if not isinstance(programs, list):
        raise ManifestError("Manifest 'programs' must be a list")
    return Manifest(programs=tuple(program_from_dict(p, index=i) for i, p in enumerate(programs)))


def load_manifest(path: str) -> Manifest:
    p = Path(path)
    try:
        text = p.read_text(encoding="utf-8")
    except OSError as e:
        raise ManifestError(f"Cannot read manifest {p}: {e}") from e

    if _detect_format(p) == "yaml":
        import yaml  # type: ignore

        try:
            data = yaml.safe_load(text) or {}
        except yaml.YAMLError as e:
            raise ManifestError(f"Cannot parse manifest {p}: {e}") from e
    else:
        try:
            data = json.loads(text)
        except ValueError as e:
            raise ManifestError(f"Cannot parse manifest {p}: {e}") from e

    manifest = parse_manifest(data)
    logger.info("Loaded %d program(s) from %s", len(manifest), str(p))
    return manifest


def generate_template() -> Manifest:
    """Example manifest: one install entry and one execute entry."""

    return Manifest(
        programs=(
            Program(
                name="Program name",
                config_paths=(".config/app",),
                action="install",
                packages={
                    "apt": "package1 package2",
                    "yum": "package1 package2",
                },
                command="command to execute",
                post_action=("command1", "command2"),
            ),
            Program(
                name="Program name",
                config_paths=(".config1", ".config2"),
                action="execute",
                command="command to execute",
                post_action=("command1", "command2"),
            ),
        )
    )


def write_template(path: str) -> Path:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)

    data = generate_template().to_dict()
    if _detect_format(p) == "yaml":
        import yaml  # type: ignore

        p.write_text(yaml.safe_dump(data, sort_keys=False, allow_unicode=True), encoding="utf-8")
    else:
        p.write_text(json.dumps(data, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")
    return p
